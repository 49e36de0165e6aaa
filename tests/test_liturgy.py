"""Tests for presentation content and slide ordering."""

from datetime import date

import pytest

from liturgy_slides.liturgy import ItemKind, Presentation, Reading, ReadingType, Song, SongCategory


def _reading(rid: str) -> Reading:
    return Reading(id=rid, title=f"Lecture {rid}", reference="Jn 1, 1", text="Au commencement.", type=ReadingType.FIRST_READING)


def _song(sid: str) -> Song:
    return Song(id=sid, title=f"Chant {sid}", lyrics="La la la")


@pytest.fixture
def presentation():
    return Presentation.for_date(
        date(2026, 10, 18),
        readings=[_reading("r1"), _reading("r2")],
        songs=[_song("s1")],
    )


class TestSongCategory:
    @pytest.mark.parametrize("value,expected", [
        ("communion", SongCategory.COMMUNION),
        (" KYRIE ", SongCategory.KYRIE),
        (SongCategory.FINAL, SongCategory.FINAL),
        ("inconnu", SongCategory.OTHER),
        (None, SongCategory.OTHER),
    ])
    def test_parse(self, value, expected):
        assert SongCategory.parse(value) == expected


class TestSong:
    def test_new_generates_id_and_normalises(self):
        song = Song.new("Titre", "Paroles", author="", category="gloria")
        assert song.id.startswith("song-")
        assert song.author is None
        assert song.category == SongCategory.GLORIA

    def test_subtitle(self):
        assert Song("1", "T", "L", author="A", melody="M").subtitle == "A - M"
        assert Song("1", "T", "L", melody="M").subtitle == "M"
        assert Song("1", "T", "L").subtitle == ""


class TestPresentation:
    def test_for_date_title(self, presentation):
        assert presentation.title == "Messe du 18/10/2026"

    def test_readings_then_songs(self, presentation):
        order = [(i.id, i.kind) for i in presentation.slide_order]
        assert order == [("r1", ItemKind.READING), ("r2", ItemKind.READING), ("s1", ItemKind.SONG)]
        assert [i.order for i in presentation.slide_order] == [0, 1, 2]

    def test_new_items_are_appended_after_existing_order(self, presentation):
        presentation.move("s1", "up")
        presentation.add_reading(_reading("r3"))
        presentation.add_song(_song("s2"))
        ids = [item.id for item, _ in presentation.ordered_items()]
        assert ids == ["r1", "s1", "r2", "r3", "s2"]

    def test_adding_twice_is_a_noop(self, presentation):
        presentation.add_song(_song("s1"))
        assert len(presentation.songs) == 1
        assert len(presentation.slide_order) == 3

    def test_move(self, presentation):
        assert presentation.move("r2", "down") is True
        assert [i.id for i, _ in presentation.ordered_items()] == ["r1", "s1", "r2"]

    def test_move_at_edges(self, presentation):
        assert presentation.move("r1", "up") is False
        assert presentation.move("s1", "down") is False
        assert presentation.move("missing", "up") is False

    def test_move_bad_direction(self, presentation):
        with pytest.raises(ValueError):
            presentation.move("r1", "left")

    def test_remove_renumbers(self, presentation):
        assert presentation.remove("r1") is True
        assert [(i.id, i.order) for i in presentation.slide_order] == [("r2", 0), ("s1", 1)]
        assert presentation.remove("r1") is False

    def test_ordered_items_yield_targets(self, presentation):
        targets = [t for _, t in presentation.ordered_items()]
        assert isinstance(targets[0], Reading)
        assert isinstance(targets[-1], Song)
