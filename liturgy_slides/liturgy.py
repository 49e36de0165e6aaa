"""Readings, songs and the ordered slide sequence of a service."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date as Date
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union


class ReadingType(str, Enum):
    FIRST_READING = "first_reading"
    PSALM = "psalm"
    SECOND_READING = "second_reading"
    GOSPEL = "gospel"


READING_ORDER = [
    ReadingType.FIRST_READING,
    ReadingType.PSALM,
    ReadingType.SECOND_READING,
    ReadingType.GOSPEL,
]


class SongCategory(str, Enum):
    ENTRANCE = "entrance"
    KYRIE = "kyrie"
    GLORIA = "gloria"
    OFFERTORY = "offertory"
    SANCTUS = "sanctus"
    COMMUNION = "communion"
    FINAL = "final"
    OTHER = "other"

    @classmethod
    def parse(cls, value) -> "SongCategory":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.OTHER


class ItemKind(str, Enum):
    READING = "reading"
    SONG = "song"


@dataclass
class Reading:
    id: str
    title: str
    reference: str
    text: str
    type: ReadingType


@dataclass
class Song:
    id: str
    title: str
    lyrics: str
    author: Optional[str] = None
    melody: Optional[str] = None
    category: SongCategory = SongCategory.OTHER

    @classmethod
    def new(cls, title: str, lyrics: str, author=None, melody=None, category=SongCategory.OTHER) -> "Song":
        return cls(
            id=f"song-{uuid.uuid4().hex[:12]}",
            title=title,
            lyrics=lyrics,
            author=author or None,
            melody=melody or None,
            category=SongCategory.parse(category),
        )

    @property
    def subtitle(self) -> str:
        return " - ".join(p for p in (self.author, self.melody) if p)


@dataclass
class SlideItem:
    id: str
    kind: ItemKind
    order: int


@dataclass
class Presentation:
    title: str
    date: Date
    readings: List[Reading] = field(default_factory=list)
    songs: List[Song] = field(default_factory=list)
    slide_order: List[SlideItem] = field(default_factory=list)

    @classmethod
    def for_date(cls, day: Date, readings=(), songs=()) -> "Presentation":
        p = cls(title=f"Messe du {day.strftime('%d/%m/%Y')}", date=day)
        for r in readings:
            p.add_reading(r)
        for s in songs:
            p.add_song(s)
        return p

    # ---------------- Content ----------------

    def add_reading(self, reading: Reading) -> None:
        if not any(r.id == reading.id for r in self.readings):
            self.readings.append(reading)
        self.sync_order()

    def add_song(self, song: Song) -> None:
        if not any(s.id == song.id for s in self.songs):
            self.songs.append(song)
        self.sync_order()

    def remove(self, item_id: str) -> bool:
        before = len(self.readings) + len(self.songs)
        self.readings = [r for r in self.readings if r.id != item_id]
        self.songs = [s for s in self.songs if s.id != item_id]
        self.sync_order()
        return (len(self.readings) + len(self.songs)) != before

    # ---------------- Ordering ----------------

    def sync_order(self) -> None:
        """Keep valid items where they are, append new readings then new songs."""
        reading_ids = {r.id for r in self.readings}
        song_ids = {s.id for s in self.songs}

        kept = sorted(
            (
                item for item in self.slide_order
                if (item.kind == ItemKind.READING and item.id in reading_ids)
                or (item.kind == ItemKind.SONG and item.id in song_ids)
            ),
            key=lambda item: item.order,
        )
        known = {item.id for item in kept}

        new_items = [SlideItem(r.id, ItemKind.READING, 0) for r in self.readings if r.id not in known]
        new_items += [SlideItem(s.id, ItemKind.SONG, 0) for s in self.songs if s.id not in known]

        final = kept + new_items
        for i, item in enumerate(final):
            item.order = i
        self.slide_order = final

    def move(self, item_id: str, direction: str) -> bool:
        ordered = sorted(self.slide_order, key=lambda item: item.order)
        idx = next((i for i, item in enumerate(ordered) if item.id == item_id), None)
        if idx is None:
            return False

        if direction == "up":
            other = idx - 1
        elif direction == "down":
            other = idx + 1
        else:
            raise ValueError(f"Unknown direction: {direction!r}")

        if other < 0 or other >= len(ordered):
            return False

        ordered[idx].order, ordered[other].order = ordered[other].order, ordered[idx].order
        return True

    def ordered_items(self) -> Iterator[Tuple[SlideItem, Union[Reading, Song]]]:
        readings = {r.id: r for r in self.readings}
        songs = {s.id: s for s in self.songs}
        for item in sorted(self.slide_order, key=lambda i: i.order):
            target = readings.get(item.id) if item.kind == ItemKind.READING else songs.get(item.id)
            if target is not None:
                yield item, target
