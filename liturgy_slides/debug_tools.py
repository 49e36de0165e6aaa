"""
Optional packing diagnostics for exports.

Enable with LS_DEBUG=1. Each export then writes, next to the .pptx:
  <stem>_debug.log   one line per content slide
  <stem>_debug.json  per-item word counts and a band summary
Fine-tune with LS_DEBUG_JSON / LS_DEBUG_LOG / LS_DEBUG_PRINT (0 to disable).
"""
from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def _truthy(v: str | None) -> bool:
    if v is None:
        return False
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    return default if raw is None else _truthy(raw)


@dataclass
class DebugSettings:
    enabled: bool = False
    write_json_report: bool = True
    write_text_log: bool = True
    # Echo each line through the module logger at DEBUG level
    print_console: bool = True

    @staticmethod
    def from_env() -> "DebugSettings":
        return DebugSettings(
            enabled=_truthy(os.getenv("LS_DEBUG")),
            write_json_report=_env_flag("LS_DEBUG_JSON", True),
            write_text_log=_env_flag("LS_DEBUG_LOG", True),
            print_console=_env_flag("LS_DEBUG_PRINT", True),
        )


@dataclass
class DebugRecorder:
    settings: DebugSettings
    output_path: Optional[Path] = None
    lines: List[str] = field(default_factory=list)
    runs: List[Dict[str, Any]] = field(default_factory=list)

    def log(self, msg: str) -> None:
        if not self.settings.enabled:
            return
        self.lines.append(f"[{time.strftime('%H:%M:%S')}] {msg}")
        if self.settings.print_console:
            logger.debug(msg)

    def start_run(self, run_kind: str, template_path: str, output_path: str) -> None:
        if not self.settings.enabled:
            return
        self.output_path = Path(output_path)
        self.runs.append({
            "kind": run_kind,
            "template_path": template_path,
            "output_path": output_path,
            "started_at": time.strftime("%Y-%m-%d %H:%M:%S"),
            "slides": [],
        })
        self.log(f"export ({run_kind}) template={template_path} output={output_path}")

    def add_packing_records(self, source_kind: str, source_title: str, slides, min_words: int, max_words: int) -> None:
        """Record the word count of every content slide produced for one reading/song."""
        if not self.settings.enabled or not self.runs:
            return
        run = self.runs[-1]
        for i, s in enumerate(slides, start=1):
            in_band = min_words <= s.word_count <= max_words
            self.log(f"[PACK] {source_kind} {source_title!r} {i}/{len(slides)} words={s.word_count} in_band={in_band}")
            run["slides"].append({
                "type": source_kind,
                "source": source_title,
                "slide_title": s.slide_title,
                "word_count": s.word_count,
                "in_band": in_band,
                "content": s.content,
            })

    def summary(self) -> Dict[str, int]:
        slides = [s for run in self.runs for s in run["slides"]]
        in_band = sum(1 for s in slides if s["in_band"])
        return {"content_slides": len(slides), "in_band": in_band, "out_of_band": len(slides) - in_band}

    def flush(self) -> None:
        if not self.settings.enabled or not self.output_path:
            return
        out_dir = self.output_path.parent
        stem = self.output_path.stem
        summary = self.summary()
        self.log(f"{summary['in_band']}/{summary['content_slides']} content slides in band")

        if self.settings.write_text_log:
            (out_dir / f"{stem}_debug.log").write_text("\n".join(self.lines) + "\n", encoding="utf-8")

        if self.settings.write_json_report:
            report = {"version": 1, "summary": summary, "runs": self.runs}
            (out_dir / f"{stem}_debug.json").write_text(
                json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8"
            )
