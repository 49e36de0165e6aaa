from __future__ import annotations

from pathlib import Path

from pptx import Presentation

from liturgy_slides.pptx_utils import CONTENT_SHAPE_NAME
from liturgy_slides.slide_packer import (
    MAX_WORDS_PER_SLIDE,
    MIN_WORDS_PER_SLIDE,
    OVERFLOW_UNIT_MAX_WORDS,
    count_words,
)


def _content_text(slide) -> str | None:
    for sh in slide.shapes:
        if sh.name == CONTENT_SHAPE_NAME and getattr(sh, "has_text_frame", False):
            return sh.text_frame.text
    return None


def analyze_pptx(pptx_path: Path) -> dict:
    """Word-count QA over the content slides of an exported deck.

    Flags:
      - UNDER_BAND: fewer words than the packing band minimum
      - OVER_BAND: more words than the band maximum
      - OVERFLOW: well past the maximum, only possible for one oversized sentence/line
      - EMPTY: content box without text

    Slides with no CONTENT box (title slides) are listed but not flagged.
    Short readings and song sections legitimately land under the band, so
    UNDER_BAND is informational.
    """
    prs = Presentation(str(pptx_path))
    flags = {"UNDER_BAND": [], "OVER_BAND": [], "OVERFLOW": [], "EMPTY": []}
    slide_stats = []

    for idx, slide in enumerate(prs.slides, start=1):
        text = _content_text(slide)
        if text is None:
            slide_stats.append({"slide": idx, "content": False})
            continue

        words = count_words(text)
        slide_stats.append({"slide": idx, "content": True, "words": words})

        if words == 0:
            flags["EMPTY"].append(idx)
            continue
        if words < MIN_WORDS_PER_SLIDE:
            flags["UNDER_BAND"].append(idx)
        if words > MAX_WORDS_PER_SLIDE:
            flags["OVER_BAND"].append(idx)
        if words > MAX_WORDS_PER_SLIDE + OVERFLOW_UNIT_MAX_WORDS:
            flags["OVERFLOW"].append(idx)

    content = [s["words"] for s in slide_stats if s["content"]]
    return {
        "pptx": str(pptx_path),
        "slide_count": len(prs.slides),
        "content_slide_count": len(content),
        "average_words": round(sum(content) / len(content), 1) if content else 0.0,
        "flags": flags,
        "slides": slide_stats,
    }
