"""Shared fixtures."""

import pytest

from liturgy_slides import config
from liturgy_slides.song_library import SongLibrary


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the JSON config and data root at a temporary directory."""
    cfg = tmp_path / "config" / "liturgy_slides_config.json"
    monkeypatch.setattr(config, "CONFIG_FILE", cfg)
    monkeypatch.setattr(config, "DEFAULT_HOME", tmp_path / "home")
    for var in ("LS_DEBUG", "LS_DEBUG_JSON", "LS_DEBUG_LOG", "LS_DEBUG_PRINT"):
        monkeypatch.delenv(var, raising=False)
    return cfg


@pytest.fixture
def library(tmp_path):
    lib = SongLibrary(tmp_path / "songs.db")
    lib.initialize_schema()
    yield lib
    lib.close()
