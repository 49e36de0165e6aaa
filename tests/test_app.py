"""Tests for the command line interface."""

import json
from unittest.mock import patch

import pytest
import requests
from pptx import Presentation as PptxPresentation

from liturgy_slides import config
from liturgy_slides.app import main
from liturgy_slides.song_library import SongLibrary


@pytest.fixture
def db(tmp_path):
    return str(tmp_path / "songs.db")


@pytest.fixture
def offline():
    with patch("liturgy_slides.aelf_client.requests.get") as mock_get:
        mock_get.side_effect = requests.exceptions.ConnectionError("offline")
        yield mock_get


def test_season(capsys):
    assert main(["season", "2026-05-24"]) == 0
    assert "Pentecôte" in capsys.readouterr().out


def test_bad_date(capsys):
    assert main(["season", "24/05/2026"]) == 1
    assert "Date invalide" in capsys.readouterr().err


def test_readings_offline_uses_samples(offline, capsys):
    assert main(["readings", "2026-10-18"]) == 0
    captured = capsys.readouterr()
    assert "données d'exemple" in captured.err
    assert "Évangile - Mt 13, 1-23" in captured.out


def test_seed_list_search_stats(db, capsys):
    assert main(["--db", db, "seed"]) == 0
    assert "6 chant(s) ajouté(s)" in capsys.readouterr().out

    assert main(["--db", db, "list", "--category", "kyrie"]) == 0
    out = capsys.readouterr().out
    assert "Kyrie Eleison (Taizé)" in out
    assert "Gloria" not in out

    assert main(["--db", db, "search", "gloire"]) == 0
    assert "Gloire à Dieu au plus haut des cieux" in capsys.readouterr().out

    assert main(["--db", db, "search", "alleluia", "--full-text"]) == 0
    assert "Peuple de Dieu, marche joyeux" in capsys.readouterr().out

    assert main(["--db", db, "stats"]) == 0
    assert "Chants: 6" in capsys.readouterr().out


def test_import(db, tmp_path, capsys):
    path = tmp_path / "chants.txt"
    path.write_text("TITRE: Chant un\nPremières paroles\n\nTITRE: Chant deux\nSecondes paroles\n", encoding="utf-8")

    assert main(["--db", db, "import", str(path), "--category", "communion"]) == 0
    assert "chants.txt: 2 importé(s), 0 ignoré(s) sur 2" in capsys.readouterr().out

    # everything is a duplicate the second time
    assert main(["--db", db, "import", str(path)]) == 1


def test_import_unsupported(db, tmp_path, capsys):
    path = tmp_path / "chants.odt"
    path.write_text("x")
    assert main(["--db", db, "import", str(path)]) == 1
    assert "non supporté" in capsys.readouterr().err


def test_export_and_qa(db, tmp_path, offline, capsys):
    main(["--db", db, "seed"])
    out = tmp_path / "messe.pptx"

    code = main(["--db", db, "export", "--date", "2026-10-18", "--song-id", "1", "--output", str(out)])

    assert code == 0
    assert out.exists()
    assert "Présentation exportée" in capsys.readouterr().out
    assert config.load_build_prefs() == {"last_template": None, "last_output": "messe.pptx"}

    assert main(["qa", str(out), "--json"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["slide_count"] == len(PptxPresentation(str(out)).slides)


def test_export_song_file_without_readings(tmp_path, capsys):
    song = tmp_path / "chant.txt"
    song.write_text("TITRE: Mon chant\nR/ Alléluia, alléluia", encoding="utf-8")
    out = tmp_path / "chants.pptx"

    assert main(["export", "--date", "2026-10-18", "--no-readings", "--song-file", str(song), "--output", str(out)]) == 0
    assert "3 diapositives (1 de contenu)" in capsys.readouterr().out
    assert len(PptxPresentation(str(out)).slides) == 3


def test_export_unknown_song(db, capsys):
    assert main(["--db", db, "export", "--date", "2026-10-18", "--no-readings", "--song-id", "42"]) == 1
    assert "Chant introuvable: 42" in capsys.readouterr().err


def test_export_nothing(capsys):
    assert main(["export", "--date", "2026-10-18", "--no-readings"]) == 1
    assert "Rien à exporter" in capsys.readouterr().err


def test_qa_missing_file(tmp_path, capsys):
    assert main(["qa", str(tmp_path / "absent.pptx")]) == 1


def test_add_edit_delete(db, capsys):
    assert main(["--db", db, "add", "--title", "Mon chant", "--lyrics", "R/ Alléluia\nGloire à toi", "--category", "final"]) == 0
    assert "Chant ajouté: 1 Mon chant" in capsys.readouterr().out

    assert main(["--db", db, "edit", "1", "--title", "Chant d'envoi", "--author", "Moi"]) == 0
    assert "Chant modifié: 1 Chant d'envoi" in capsys.readouterr().out

    assert main(["--db", db, "list"]) == 0
    out = capsys.readouterr().out
    assert "Chant d'envoi - Moi  [final]" in out

    assert main(["--db", db, "edit", "1"]) == 1
    assert "Rien à modifier" in capsys.readouterr().err

    assert main(["--db", db, "delete", "1"]) == 0
    assert "Chant supprimé: 1" in capsys.readouterr().out
    assert main(["--db", db, "delete", "1"]) == 1
    assert "Chant introuvable: 1" in capsys.readouterr().err
    assert main(["--db", db, "edit", "1", "--title", "X"]) == 1


def test_add_lyrics_from_file(db, tmp_path, capsys):
    lyrics = tmp_path / "paroles.txt"
    lyrics.write_text("Jubilez, criez de joie\nAcclamez le Dieu trois fois saint", encoding="utf-8")

    assert main(["--db", db, "add", "--title", "Jubilez", "--lyrics-file", str(lyrics)]) == 0
    capsys.readouterr()

    assert main(["--db", db, "search", "acclamez", "--full-text"]) == 0
    assert "Jubilez" in capsys.readouterr().out


def test_add_duplicate_lyrics(db, capsys):
    main(["--db", db, "add", "--title", "Un", "--lyrics", "Même texte"])
    assert main(["--db", db, "add", "--title", "Deux", "--lyrics", "même texte !"]) == 1
    assert "existe déjà" in capsys.readouterr().err


def test_export_with_order_changes(db, tmp_path, offline, capsys):
    main(["--db", db, "seed"])
    capsys.readouterr()
    out = tmp_path / "messe.pptx"

    # readings 1-3, then the song at position 4
    code = main([
        "--db", db, "export", "--date", "2026-10-18", "--song-id", "1",
        "--remove", "2", "--move", "3:up", "--output", str(out),
    ])

    assert code == 0
    lines = [l.strip() for l in capsys.readouterr().out.splitlines() if l.startswith("  ")]
    assert [l.split()[-1] for l in lines] == ["[first-2026-10-18]", "[library-1]", "[gospel-2026-10-18]"]

    texts = [sh.text_frame.text for slide in PptxPresentation(str(out)).slides for sh in slide.shapes if sh.has_text_frame]
    assert not any(t.startswith("Psaume") for t in texts)
    song_title = lines[1].split("  ")[0].split(". ", 1)[1]
    assert texts.index(song_title) < texts.index("Évangile")


def test_export_order_errors(tmp_path, capsys):
    song = tmp_path / "chant.txt"
    song.write_text("TITRE: Mon chant\nR/ Alléluia, alléluia", encoding="utf-8")
    base = ["export", "--date", "2026-10-18", "--no-readings", "--song-file", str(song), "--output", str(tmp_path / "o.pptx")]

    assert main(base + ["--move", "9:up"]) == 1
    assert "Élément introuvable: 9" in capsys.readouterr().err

    assert main(base + ["--move", "1:left"]) == 1
    assert "Déplacement invalide" in capsys.readouterr().err

    # already first: a warning, the export still happens
    assert main(base + ["--move", "1:up"]) == 0
    assert "impossible de déplacer 1" in capsys.readouterr().err

    assert main(base + ["--remove", "1"]) == 1
    assert "Rien à exporter" in capsys.readouterr().err


def test_backup_and_library_json(db, tmp_path, capsys):
    main(["--db", db, "seed"])
    backup = tmp_path / "sauvegardes" / "songs.db"
    exported = tmp_path / "bibliotheque.json"
    other_db = str(tmp_path / "autre.db")

    assert main(["--db", db, "backup", str(backup)]) == 0
    with SongLibrary(backup) as copy:
        assert len(copy.list_songs()) == 6

    assert main(["--db", db, "export-library", str(exported)]) == 0
    assert "6 chant(s) exporté(s)" in capsys.readouterr().out

    assert main(["--db", other_db, "import-library", str(exported)]) == 0
    assert "bibliotheque.json: 6 importé(s), 0 ignoré(s) sur 6" in capsys.readouterr().out

    # second import only finds duplicates
    assert main(["--db", other_db, "import-library", str(exported)]) == 1


def test_import_library_invalid_file(db, tmp_path, capsys):
    path = tmp_path / "casse.json"
    path.write_text("{pas du json", encoding="utf-8")
    assert main(["--db", db, "import-library", str(path)]) == 1
    assert "Format de données invalide" in capsys.readouterr().err
