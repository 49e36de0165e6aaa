"""
Word-count based pagination of readings and song lyrics.

Readings are split into sentences, songs into blank-line separated sections and
then lines. Units are packed greedily into chunks that aim for MIN..MAX words;
a unit is never cut in two.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

MIN_WORDS_PER_SLIDE = 80
TARGET_WORDS_PER_SLIDE = 85  # intent only, the packer compares against MIN/MAX
MAX_WORDS_PER_SLIDE = 90

# A short unit may still be forced onto an under-filled chunk past MAX.
OVERFLOW_UNIT_MAX_WORDS = 15

READING_JOINER = " "
SONG_JOINER = "\n"

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_SECTION_SPLIT_RE = re.compile(r"\n\s*\n")
_NUMBERED_RE = re.compile(r"^(\d+)\.")
REFRAIN_MARKER = "R/"


class SectionType(str, Enum):
    VERSE = "verse"
    REFRAIN = "refrain"
    NUMBERED_VERSE = "numbered_verse"


@dataclass(frozen=True)
class Section:
    content: str
    type: SectionType

    @property
    def lines(self) -> List[str]:
        return self.content.split("\n")

    @property
    def number(self) -> Optional[int]:
        m = _NUMBERED_RE.match(self.content)
        return int(m.group(1)) if m else None


@dataclass(frozen=True)
class Chunk:
    content: str
    word_count: int
    section: Optional[Section] = None
    position: int = 1
    total: int = 1

    @property
    def section_type(self) -> Optional[SectionType]:
        return self.section.type if self.section else None


@dataclass(frozen=True)
class ContentSlide:
    """One slide's worth of text, ready for the renderer."""
    slide_title: str
    content: str
    word_count: int


def count_words(text: str) -> int:
    return len((text or "").split())


def normalize_newlines(text: str) -> str:
    return (text or "").replace("\r\n", "\n").replace("\r", "\n")


# -------------------------
# Splitting
# -------------------------

def split_sentences(text: str) -> List[str]:
    """Sentences keep their terminal punctuation; empty pieces are dropped."""
    pieces = _SENTENCE_SPLIT_RE.split(normalize_newlines(text))
    return [p.strip() for p in pieces if p.strip()]


def classify_section(first_line: str) -> SectionType:
    line = (first_line or "").strip()
    if line.startswith(REFRAIN_MARKER) or "refrain" in line.lower():
        return SectionType.REFRAIN
    if _NUMBERED_RE.match(line):
        return SectionType.NUMBERED_VERSE
    return SectionType.VERSE


def split_sections(lyrics: str) -> List[Section]:
    sections: List[Section] = []
    for block in _SECTION_SPLIT_RE.split(normalize_newlines(lyrics)):
        block = block.strip()
        if not block:
            continue
        first_line = block.split("\n", 1)[0]
        sections.append(Section(content=block, type=classify_section(first_line)))
    return sections


# -------------------------
# Packing
# -------------------------

def pack_units(
    units: Iterable[str],
    joiner: str = READING_JOINER,
    *,
    min_words: int = MIN_WORDS_PER_SLIDE,
    max_words: int = MAX_WORDS_PER_SLIDE,
    overflow_unit_words: int = OVERFLOW_UNIT_MAX_WORDS,
) -> List[Chunk]:
    """Greedily pack units into chunks of at most ``max_words`` words.

    When the next unit does not fit and the chunk is still below ``min_words``,
    a short unit (<= ``overflow_unit_words``) is appended anyway and the chunk is
    closed. A unit longer than ``max_words`` ends up alone in its own chunk.
    """
    chunks: List[Chunk] = []
    cur: List[str] = []
    cur_words = 0

    def _emit(parts: List[str], words: int) -> None:
        if parts:
            chunks.append(Chunk(content=joiner.join(parts), word_count=words))

    for unit in units:
        unit_words = count_words(unit)
        would_be = cur_words + unit_words

        if would_be > max_words and cur_words > 0:
            if cur_words < min_words and unit_words <= overflow_unit_words:
                _emit(cur + [unit], would_be)
                cur, cur_words = [], 0
            else:
                _emit(cur, cur_words)
                cur, cur_words = [unit], unit_words
            continue

        cur.append(unit)
        cur_words = would_be

    _emit(cur, cur_words)
    return chunks


def merge_small_chunks(
    chunks: Sequence[Chunk],
    *,
    min_words: int = MIN_WORDS_PER_SLIDE,
    max_words: int = MAX_WORDS_PER_SLIDE,
) -> List[Chunk]:
    """Single left-to-right pass merging an under-filled chunk into its successor.

    A merged chunk is not looked at again, so runs of three or more small chunks
    can stay partly unmerged.
    """
    merged: List[Chunk] = []
    i = 0
    while i < len(chunks):
        cur = chunks[i]
        if cur.word_count < min_words and i < len(chunks) - 1:
            nxt = chunks[i + 1]
            combined = cur.word_count + nxt.word_count
            if combined <= max_words:
                merged.append(Chunk(content=f"{cur.content} {nxt.content}", word_count=combined))
                i += 2
                continue
        merged.append(cur)
        i += 1
    return merged


# -------------------------
# Entry points
# -------------------------

def paginate_reading(text: str) -> List[Chunk]:
    return merge_small_chunks(pack_units(split_sentences(text), READING_JOINER))


def paginate_song(lyrics: str) -> List[Chunk]:
    out: List[Chunk] = []
    for section in split_sections(lyrics):
        packed = pack_units(section.lines, SONG_JOINER)
        total = len(packed)
        for position, chunk in enumerate(packed, start=1):
            out.append(Chunk(
                content=chunk.content,
                word_count=chunk.word_count,
                section=section,
                position=position,
                total=total,
            ))
    return out


def section_title(song_title: str, chunk: Chunk) -> str:
    base = song_title
    kind = chunk.section_type or SectionType.VERSE

    if kind == SectionType.REFRAIN:
        base += " - Refrain"
    elif kind == SectionType.NUMBERED_VERSE:
        number = chunk.section.number if chunk.section else None
        base += f" - Couplet {number if number is not None else chunk.position}"
    else:
        base += f" - Partie {chunk.position}"

    return f"{base} ({chunk.position}/{chunk.total})"


def build_reading_slides(reading) -> List[ContentSlide]:
    """Content slides for anything with ``title`` and ``text`` attributes."""
    chunks = paginate_reading(reading.text)
    total = len(chunks)
    return [
        ContentSlide(
            slide_title=f"{reading.title} ({i}/{total})",
            content=chunk.content,
            word_count=chunk.word_count,
        )
        for i, chunk in enumerate(chunks, start=1)
    ]


def build_song_slides(song) -> List[ContentSlide]:
    """Content slides for anything with ``title`` and ``lyrics`` attributes."""
    return [
        ContentSlide(
            slide_title=section_title(song.title, chunk),
            content=chunk.content,
            word_count=chunk.word_count,
        )
        for chunk in paginate_song(song.lyrics)
    ]
