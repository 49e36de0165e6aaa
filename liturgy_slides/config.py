"""
User settings stored as one JSON file (default ~/.liturgy_slides_config.json,
override with LITURGY_SLIDES_CONFIG).

Keys: data_root, last_template, last_output, aelf {base_url, zone, timeout}.
"""
from pathlib import Path
import json
import os

CONFIG_FILE = Path(os.environ.get("LITURGY_SLIDES_CONFIG", Path.home() / ".liturgy_slides_config.json"))

# Used when no data root has been chosen
DEFAULT_HOME = Path.home() / ".liturgy_slides"

DATA_ROOT_FOLDERS = ("templates", "output", "imports")

DEFAULT_AELF = {
    "base_url": "https://api.aelf.org",
    "zone": "france",
    "timeout": 30,
}


def _read():
    if not CONFIG_FILE.exists():
        return {}
    return json.loads(CONFIG_FILE.read_text(encoding="utf-8"))


def _update(**values):
    data = _read()
    data.update(values)
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _home() -> Path:
    root = load_data_root()
    return Path(root) if root else DEFAULT_HOME


def load_data_root():
    return _read().get("data_root")


def save_data_root(path):
    _update(data_root=str(path))


def ensure_data_root_structure(data_root: str | None) -> None:
    """Create the data root and its sub-folders. Called at every startup."""
    if not data_root:
        return
    for name in DATA_ROOT_FOLDERS:
        (Path(data_root) / name).mkdir(parents=True, exist_ok=True)


def load_build_prefs():
    cfg = _read()
    return {key: cfg.get(key) for key in ("last_template", "last_output")}


def save_build_prefs(template_name, output_name):
    _update(last_template=template_name, last_output=output_name)


def load_aelf_settings():
    stored = _read().get("aelf") or {}
    settings = dict(DEFAULT_AELF)
    for key, value in stored.items():
        # unknown keys and empty values fall back to the defaults
        if key in DEFAULT_AELF and value:
            settings[key] = value
    settings["timeout"] = float(settings["timeout"])
    return settings


def database_path() -> Path:
    return _home() / "songs.db"


def output_folder() -> Path:
    return _home() / "output"
