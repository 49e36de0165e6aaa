"""Tests for the SQLite song library."""

import json

import pytest

from liturgy_slides.builtin_songs import BUILTIN_SONGS
from liturgy_slides.liturgy import Song, SongCategory
from liturgy_slides.song_library import (
    DuplicateSongError,
    SongLibrary,
    SongNotFoundError,
    SongValidationError,
    lyrics_hash,
    normalize_text,
)

LYRICS = "Peuple de Dieu, marche joyeux,\nAlléluia, alléluia !"


class TestNormalisation:
    def test_normalize_text(self):
        assert normalize_text("  Gloire à Dieu,  au plus HAUT des cieux ! ") == "gloire a dieu au plus haut des cieux"

    def test_hash_ignores_case_accents_and_punctuation(self):
        assert lyrics_hash("Élevé, vers TOI !") == lyrics_hash("eleve vers toi")
        assert lyrics_hash("un") != lyrics_hash("deux")


class TestCrud:
    def test_create_and_get(self, library):
        song = library.create_song("Peuple de Dieu", LYRICS, author="Jo Akepsimas", category="entrance")

        assert song.id > 0
        assert song.category == SongCategory.ENTRANCE
        assert song.import_method == "manual"
        assert library.get_song(song.id).title == "Peuple de Dieu"

    def test_to_song(self, library):
        stored = library.create_song("Titre", LYRICS, melody="Air connu")
        song = stored.to_song()
        assert isinstance(song, Song)
        assert song.id == f"library-{stored.id}"
        assert song.subtitle == "Air connu"

    @pytest.mark.parametrize("title,lyrics", [
        ("", LYRICS),
        ("   ", LYRICS),
        ("Titre", ""),
        ("x" * 201, LYRICS),
        ("Titre", "x" * 10001),
    ])
    def test_validation(self, library, title, lyrics):
        with pytest.raises(SongValidationError):
            library.create_song(title, lyrics)

    def test_duplicate_lyrics_rejected(self, library):
        first = library.create_song("Un", LYRICS)
        with pytest.raises(DuplicateSongError) as exc:
            library.create_song("Deux", LYRICS.upper())
        assert exc.value.existing_id == first.id

    def test_deleted_song_can_be_recreated(self, library):
        song = library.create_song("Un", LYRICS)
        assert library.delete_song(song.id) is True
        assert library.get_song(song.id) is None
        assert library.delete_song(song.id) is False
        library.create_song("Un bis", LYRICS)

    def test_update(self, library):
        song = library.create_song("Un", LYRICS)
        updated = library.update_song(song.id, title="Un nouveau", category="final", author="Moi")

        assert updated.title == "Un nouveau"
        assert updated.category == SongCategory.FINAL
        assert updated.author == "Moi"
        assert library.search_by_title("nouveau")[0].id == song.id

    def test_update_missing_song(self, library):
        with pytest.raises(SongNotFoundError):
            library.update_song(999, title="X")

    def test_update_rejects_unknown_fields(self, library):
        song = library.create_song("Un", LYRICS)
        with pytest.raises(SongValidationError):
            library.update_song(song.id, tempo=120)

    def test_update_to_duplicate_lyrics(self, library):
        library.create_song("Un", LYRICS)
        other = library.create_song("Deux", "Autres paroles bien différentes")
        with pytest.raises(DuplicateSongError):
            library.update_song(other.id, lyrics=LYRICS)

    def test_history(self, library):
        song = library.create_song("Un", LYRICS)
        library.update_song(song.id, title="Deux")
        library.delete_song(song.id)

        history = library.history(song.id)
        assert [h["action"] for h in history] == ["created", "updated", "deleted"]
        assert history[1]["old_data"]["title"] == "Un"
        assert history[1]["new_data"]["title"] == "Deux"
        assert history[2]["new_data"] is None


class TestSearch:
    @pytest.fixture(autouse=True)
    def songs(self, library):
        library.create_song("Gloire à Dieu", "Gloire à Dieu au plus haut des cieux", category="gloria")
        library.create_song("Dieu nous accueille", "Dieu nous accueille en sa maison", category="entrance")
        library.create_song("Chant de louange", "Louange et gloire au Seigneur", author="Anonyme")

    def test_title_search_is_accent_insensitive_and_ranked(self, library):
        titles = [s.title for s in library.search_by_title("DIEU")]
        assert titles == ["Dieu nous accueille", "Gloire à Dieu"]

        assert [s.title for s in library.search_by_title("gloire a dieu")] == ["Gloire à Dieu"]

    def test_title_search_treats_underscore_literally(self, library):
        library.create_song("Chant_final", "Allez dans la paix du Christ")
        # "o_a" would match "louange" if the underscore were a wildcard
        assert library.search_by_title("o_a") == []
        assert [s.title for s in library.search_by_title("t_f")] == ["Chant_final"]

    def test_title_search_empty_query(self, library):
        assert library.search_by_title("  ?! ") == []

    def test_full_text_search_covers_lyrics(self, library):
        titles = {s.title for s in library.full_text_search("gloire")}
        assert titles == {"Gloire à Dieu", "Chant de louange"}

    def test_full_text_search_requires_all_terms(self, library):
        assert [s.title for s in library.full_text_search("louange seigneur")] == ["Chant de louange"]

    def test_full_text_search_ignores_operators(self, library):
        assert len(library.full_text_search('gloire* "(')) == 2
        assert library.full_text_search("") == []

    def test_deleted_songs_are_hidden(self, library):
        song = library.search_by_title("Chant de louange")[0]
        library.delete_song(song.id)
        assert library.full_text_search("louange") == []

    def test_by_category(self, library):
        assert [s.title for s in library.songs_by_category("gloria")] == ["Gloire à Dieu"]
        assert len(library.list_songs()) == 3


class TestImportSessions:
    def test_import_songs_collects_failures(self, library):
        session_id = library.start_import_session("chants.txt", 120, ".txt")
        songs = [
            Song.new("Un", "Premier chant"),
            Song.new("Deux", "Premier chant !"),
            Song.new("", "Sans titre"),
            Song.new("Trois", "Troisième chant"),
        ]

        result = library.import_songs(songs, session_id, source_file="chants.txt", import_method="txt_import")

        assert result.success
        assert result.successful_imports == 2
        assert result.failed_imports == 2
        assert len(result.errors) == 2
        assert all(s.source_file == "chants.txt" for s in result.imported_songs)

        session = library.get_import_session(session_id)
        assert session["status"] == "completed"
        assert session["total_songs"] == 4
        assert session["successful_imports"] == 2
        assert session["completed_at"] is not None

    def test_import_with_nothing_imported_fails(self, library):
        session_id = library.start_import_session("vide.txt")
        result = library.import_songs([Song.new("", "x")], session_id)
        assert not result.success
        assert library.get_import_session(session_id)["status"] == "failed"


class TestSeedAndStats:
    def test_seed_is_idempotent(self, library):
        assert library.seed_builtin_songs() == len(BUILTIN_SONGS)
        assert library.seed_builtin_songs() == 0

    def test_statistics(self, library):
        library.seed_builtin_songs()
        stats = library.statistics()
        assert stats["total_songs"] == len(BUILTIN_SONGS)
        assert stats["songs_by_category"]["kyrie"] == 2
        assert stats["recent_imports"] == len(BUILTIN_SONGS)

    def test_context_manager(self, tmp_path):
        with SongLibrary(tmp_path / "nested" / "lib.db") as lib:
            lib.create_song("Un", LYRICS)
        assert (tmp_path / "nested" / "lib.db").exists()


class TestBackupAndJson:
    def test_backup_copies_songs_and_history(self, library, tmp_path):
        song = library.create_song("Un", LYRICS)
        library.update_song(song.id, title="Deux")

        path = library.backup(tmp_path / "copies" / "lib.db")

        with SongLibrary(path) as copy:
            assert [s.title for s in copy.list_songs()] == ["Deux"]
            assert [h["action"] for h in copy.history(song.id)] == ["created", "updated"]

    def test_export_json_skips_deleted_songs(self, library):
        library.create_song("Gloire", "Gloire à Dieu", author="Anonyme", category="gloria")
        gone = library.create_song("Parti", "Ce chant est supprimé")
        library.delete_song(gone.id)

        songs = json.loads(library.export_json())

        assert songs == [{
            "title": "Gloire",
            "lyrics": "Gloire à Dieu",
            "author": "Anonyme",
            "melody": None,
            "category": "gloria",
            "language": "fr",
        }]

    def test_import_json_into_other_library(self, library, tmp_path):
        library.seed_builtin_songs()
        data = library.export_json()

        with SongLibrary(tmp_path / "autre.db") as other:
            result = other.import_json(data, source_file="export.json")
            assert result.success
            assert result.successful_imports == len(BUILTIN_SONGS)
            assert other.statistics()["songs_by_category"]["kyrie"] == 2
            session = other.get_import_session(result.session_id)
            assert session["file_name"] == "export.json"
            assert session["status"] == "completed"

    def test_import_json_reports_bad_entries(self, library):
        library.create_song("Existant", LYRICS)
        data = json.dumps([
            {"title": "Nouveau", "lyrics": "Des paroles neuves", "category": "inconnue"},
            {"title": "Sans paroles"},
            "pas un chant",
            {"title": "Copie", "lyrics": LYRICS},
        ])

        result = library.import_json(data)

        assert result.successful_imports == 1
        assert result.failed_imports == 3
        assert result.imported_songs[0].category == SongCategory.OTHER

    @pytest.mark.parametrize("data", ["{pas du json", '{"title": "Un"}'])
    def test_import_json_rejects_invalid_documents(self, library, data):
        with pytest.raises(SongValidationError, match="Format de données invalide"):
            library.import_json(data)
