"""
PowerPoint export of a liturgy presentation.

Every ordered item gets a title slide followed by its paginated content
slides. Without a template the deck is drawn from scratch; with a template the
{{TITLE}} / {{SLIDE TITLE}} / {{CONTENT}} token slides are duplicated and
filled in.
"""

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional

from liturgy_slides.debug_tools import DebugRecorder, DebugSettings
from liturgy_slides.liturgical_calendar import LiturgicalSeason, liturgical_season
from liturgy_slides.liturgy import Presentation, Reading, Song
from liturgy_slides.pptx_utils import (
    CONTENT_SHAPE_NAME,
    TOKEN_CONTENT,
    TOKEN_SLIDE_TITLE,
    TOKEN_SUBTITLE,
    TOKEN_TITLE,
    TemplateError,
    add_blank_slide,
    add_text_box,
    duplicate_slide,
    find_template_slide_index,
    find_token_shape,
    load_template,
    new_presentation,
    remove_token_slides,
    replace_token_text,
)
from liturgy_slides.slide_packer import (
    MAX_WORDS_PER_SLIDE,
    MIN_WORDS_PER_SLIDE,
    ContentSlide,
    build_reading_slides,
    build_song_slides,
)

logger = logging.getLogger(__name__)

FRENCH_DAYS = ["lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche"]
FRENCH_MONTHS = [
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
]

# Default layout palette
OPENING_BACKGROUND = "1E40AF"
OPENING_TEXT = "FFFFFF"
READING_BACKGROUND = "F8FAFC"
READING_MUTED = "64748B"
BODY_TEXT = "1F2937"
WORD_COUNT_TEXT = "94A3B8"
SONG_BACKGROUND = "FEF3C7"
SONG_ACCENT = "D97706"
SONG_MUTED = "92400E"


def french_long_date(day: date) -> str:
    """e.g. ``dimanche 18 octobre 2026``."""
    return f"{FRENCH_DAYS[day.weekday()]} {day.day} {FRENCH_MONTHS[day.month - 1]} {day.year}"


@dataclass
class ExportSummary:
    output_path: Path
    slide_count: int
    content_slides: int


class PresentationBuilder:
    def __init__(self, template_path: Optional[Path] = None):
        """
        template_path: optional .pptx holding token slides; when omitted the
        built-in layout is used.
        """
        self.template_path = Path(template_path) if template_path else None

    def build(self, presentation: Presentation, output_path: Path) -> ExportSummary:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        # Re-read debug settings every run so users can toggle without restarting.
        dbg = DebugRecorder(DebugSettings.from_env())
        dbg.start_run("liturgy", str(self.template_path or "default"), str(output_path))

        if self.template_path:
            writer = _TemplateWriter(self.template_path)
        else:
            writer = _DefaultWriter(liturgical_season(presentation.date))

        writer.opening(presentation.title, french_long_date(presentation.date))

        content_count = 0
        for _item, target in presentation.ordered_items():
            if isinstance(target, Reading):
                slides = build_reading_slides(target)
                writer.reading_title(target)
                kind = "reading"
            else:
                slides = build_song_slides(target)
                writer.song_title(target)
                kind = "song"

            for slide in slides:
                writer.content(slide, kind)
            content_count += len(slides)
            dbg.add_packing_records(kind, target.title, slides, MIN_WORDS_PER_SLIDE, MAX_WORDS_PER_SLIDE)

        prs = writer.finish()
        prs.save(str(output_path))
        dbg.flush()

        summary = ExportSummary(output_path=output_path, slide_count=len(prs.slides), content_slides=content_count)
        logger.info(f"Exported {summary.slide_count} slides to {output_path}")
        return summary


class _DefaultWriter:
    """Draws slides on a blank deck; positions are in inches on a 10 x 7.5 slide."""

    def __init__(self, season: LiturgicalSeason):
        self.prs = new_presentation()
        self.accent = season.text_color
        self.number = 0

    def _slide(self, background: str, number_color: str):
        self.number += 1
        slide = add_blank_slide(self.prs, background)
        add_text_box(slide, str(self.number), 9.2, 7, 0.5, 0.3, size=12, color=number_color)
        return slide

    def opening(self, title: str, subtitle: str) -> None:
        slide = self._slide(OPENING_BACKGROUND, OPENING_TEXT)
        add_text_box(slide, title, 0.5, 2, 9, 1.5, size=44, color=OPENING_TEXT, bold=True)
        add_text_box(slide, subtitle, 0.5, 4, 9, 1, size=24, color=OPENING_TEXT)

    def reading_title(self, reading: Reading) -> None:
        slide = self._slide(READING_BACKGROUND, READING_MUTED)
        add_text_box(slide, reading.title, 0.5, 2.5, 9, 1.2, size=36, color=self.accent, bold=True)
        if reading.reference:
            add_text_box(slide, reading.reference, 0.5, 4, 9, 0.8, size=24, color=READING_MUTED)

    def song_title(self, song: Song) -> None:
        slide = self._slide(SONG_BACKGROUND, SONG_MUTED)
        add_text_box(slide, song.title, 0.5, 2.5, 9, 1.2, size=32, color=SONG_ACCENT, bold=True)
        if song.subtitle:
            add_text_box(slide, song.subtitle, 0.5, 4, 9, 0.8, size=18, color=SONG_MUTED)

    def content(self, cs: ContentSlide, kind: str) -> None:
        if kind == "reading":
            slide = self._slide(READING_BACKGROUND, READING_MUTED)
            add_text_box(slide, cs.slide_title, 0.5, 0.5, 9, 0.8, size=28, color=self.accent, bold=True)
            add_text_box(
                slide, cs.content, 0.8, 1.8, 8.4, 5,
                size=20, color=BODY_TEXT, align="left", top_anchor=True, line_spacing=28,
                name=CONTENT_SHAPE_NAME,
            )
            add_text_box(slide, f"{cs.word_count} mots", 0.5, 7.2, 2, 0.3, size=10, color=WORD_COUNT_TEXT, align="left")
        else:
            slide = self._slide(SONG_BACKGROUND, SONG_MUTED)
            add_text_box(slide, cs.slide_title, 0.5, 0.5, 9, 0.8, size=24, color=SONG_ACCENT, bold=True)
            add_text_box(
                slide, cs.content, 1, 1.8, 8, 5,
                size=18, color=BODY_TEXT, top_anchor=True, line_spacing=24,
                name=CONTENT_SHAPE_NAME,
            )
            add_text_box(slide, f"{cs.word_count} mots", 0.5, 7.2, 2, 0.3, size=10, color=SONG_MUTED, align="left")

    def finish(self):
        return self.prs


class _TemplateWriter:
    """Fills copies of the template's token slides."""

    def __init__(self, template_path: Path):
        if not template_path.is_file():
            raise TemplateError(f"Template not found: {template_path}")
        self.prs = load_template(template_path)
        self.title_idx = find_template_slide_index(self.prs, [TOKEN_TITLE])
        self.content_idx = find_template_slide_index(self.prs, [TOKEN_SLIDE_TITLE, TOKEN_CONTENT])
        content_slide = self.prs.slides[self.content_idx]
        # each token replacement rewrites its whole text box
        title_box = find_token_shape(content_slide, TOKEN_SLIDE_TITLE)
        if title_box.shape_id == find_token_shape(content_slide, TOKEN_CONTENT).shape_id:
            raise TemplateError(f"{TOKEN_SLIDE_TITLE} and {TOKEN_CONTENT} must be in separate text boxes")

    def _title(self, title: str, subtitle: str) -> None:
        slide = duplicate_slide(self.prs, self.title_idx)
        replace_token_text(slide, TOKEN_TITLE, title)
        # {{SUBTITLE}} is optional in the template
        replace_token_text(slide, TOKEN_SUBTITLE, subtitle or "")

    def opening(self, title: str, subtitle: str) -> None:
        self._title(title, subtitle)

    def reading_title(self, reading: Reading) -> None:
        self._title(reading.title, reading.reference)

    def song_title(self, song: Song) -> None:
        self._title(song.title, song.subtitle)

    def content(self, cs: ContentSlide, kind: str) -> None:
        slide = duplicate_slide(self.prs, self.content_idx)
        replace_token_text(slide, TOKEN_SLIDE_TITLE, cs.slide_title)
        shape = replace_token_text(slide, TOKEN_CONTENT, cs.content)
        shape.name = CONTENT_SHAPE_NAME

    def finish(self):
        removed = remove_token_slides(self.prs)
        logger.debug(f"Removed {removed} template slide(s)")
        return self.prs


def build_presentation(presentation: Presentation, output_path: Path, template_path: Optional[Path] = None) -> ExportSummary:
    return PresentationBuilder(template_path).build(presentation, output_path)


def content_slides_for(presentation: Presentation) -> List[ContentSlide]:
    """All content slides of a presentation in slide order, without rendering."""
    out: List[ContentSlide] = []
    for _item, target in presentation.ordered_items():
        out.extend(build_reading_slides(target) if isinstance(target, Reading) else build_song_slides(target))
    return out
