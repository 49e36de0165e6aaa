"""Tests for debug settings and the debug recorder."""

import json

from liturgy_slides.debug_tools import DebugRecorder, DebugSettings
from liturgy_slides.slide_packer import ContentSlide


def test_disabled_by_default():
    assert DebugSettings.from_env().enabled is False


def test_env_toggles(monkeypatch):
    monkeypatch.setenv("LS_DEBUG", "yes")
    monkeypatch.setenv("LS_DEBUG_LOG", "0")

    s = DebugSettings.from_env()

    assert s.enabled is True
    assert s.write_text_log is False
    assert s.write_json_report is True


def test_disabled_recorder_writes_nothing(tmp_path):
    dbg = DebugRecorder(DebugSettings())
    dbg.start_run("liturgy", "default", str(tmp_path / "out.pptx"))
    dbg.add_packing_records("reading", "Lecture", [ContentSlide("T (1/1)", "texte", 1)], 80, 90)
    dbg.flush()
    assert list(tmp_path.iterdir()) == []


def test_packing_records(tmp_path):
    dbg = DebugRecorder(DebugSettings(enabled=True, print_console=False))
    dbg.start_run("liturgy", "default", str(tmp_path / "out.pptx"))
    dbg.add_packing_records(
        "song",
        "Chant",
        [ContentSlide("Chant - Refrain (1/2)", "a b", 85), ContentSlide("Chant - Refrain (2/2)", "c", 95)],
        80,
        90,
    )
    dbg.flush()

    report = json.loads((tmp_path / "out_debug.json").read_text(encoding="utf-8"))
    assert [s["in_band"] for s in report["runs"][0]["slides"]] == [True, False]
    log = (tmp_path / "out_debug.log").read_text(encoding="utf-8")
    assert "[PACK] song 'Chant' 2/2 words=95 in_band=False" in log
    assert report["summary"] == {"content_slides": 2, "in_band": 1, "out_of_band": 1}
    assert "1/2 content slides in band" in log
