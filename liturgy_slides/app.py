#!/usr/bin/env python3
"""
Command line front-end.

Usage (examples):
  liturgy-slides readings 2026-10-18
  liturgy-slides seed
  liturgy-slides export --date 2026-10-18 --song-id 1 --song-id 3 --output messe.pptx
  liturgy-slides export --date 2026-10-18 --song-id 1 --move 4:up --remove 2
  liturgy-slides add --title "Mon chant" --lyrics-file chant.txt --category final
  liturgy-slides backup ~/songs-backup.db
  liturgy-slides import chants.docx --category communion
  liturgy-slides qa messe.pptx
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

from liturgy_slides import config
from liturgy_slides.aelf_client import AELFClient
from liturgy_slides.liturgical_calendar import liturgical_season
from liturgy_slides.liturgy import Presentation, SongCategory
from liturgy_slides.pptx_utils import TemplateError
from liturgy_slides.presentation_builder import PresentationBuilder
from liturgy_slides.qa_tools import analyze_pptx
from liturgy_slides.slide_packer import build_reading_slides, count_words
from liturgy_slides.song_importer import ImportFileError, ImportOptions, import_file, parse_text_content, read_song_file
from liturgy_slides.song_library import SongLibrary, SongLibraryError

logger = logging.getLogger(__name__)

CATEGORY_CHOICES = [c.value for c in SongCategory]


class CliError(Exception):
    """A user error reported on stderr with exit code 1."""


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise CliError(f"Date invalide (attendu AAAA-MM-JJ): {value}") from None


def _open_library(args) -> SongLibrary:
    db_path = Path(args.db).expanduser() if args.db else config.database_path()
    library = SongLibrary(db_path)
    library.initialize_schema()
    return library


def _read_lyrics(args):
    if getattr(args, "lyrics_file", None):
        return read_song_file(Path(args.lyrics_file))
    return args.lyrics


def _resolve_item(presentation: Presentation, ref: str) -> str:
    """Item id from a 1-based slide position or an item id."""
    ordered = [item for item, _target in presentation.ordered_items()]
    if ref.isdigit():
        position = int(ref)
        if 1 <= position <= len(ordered):
            return ordered[position - 1].id
    elif any(item.id == ref for item in ordered):
        return ref
    raise CliError(f"Élément introuvable: {ref}")


def _apply_order_changes(presentation: Presentation, removals, moves) -> None:
    # removals first so positions in --move refer to the remaining items
    for item_id in [_resolve_item(presentation, ref) for ref in removals or []]:
        presentation.remove(item_id)

    for move in moves or []:
        ref, sep, direction = move.rpartition(":")
        if not sep or direction not in ("up", "down"):
            raise CliError(f"Déplacement invalide (attendu ÉLÉMENT:up ou ÉLÉMENT:down): {move}")
        if not presentation.move(_resolve_item(presentation, ref), direction):
            print(f"Attention: impossible de déplacer {ref} ({direction})", file=sys.stderr)


def _print_songs(songs) -> None:
    if not songs:
        print("Aucun chant.")
        return
    for s in songs:
        author = f" - {s.author}" if s.author else ""
        print(f"{s.id:>5}  {s.title}{author}  [{s.category.value}]")


# -------------------------
# Commands
# -------------------------

def cmd_readings(args) -> int:
    day = _parse_date(args.date)
    client = AELFClient(**config.load_aelf_settings())
    result = client.get_readings(day)

    if result.is_sample:
        print(f"Attention: {result.error} (données d'exemple)", file=sys.stderr)

    for r in result.readings:
        slides = build_reading_slides(r)
        print(f"{r.title} - {r.reference}")
        print(f"  {count_words(r.text)} mots, {len(slides)} diapositive(s)")
    return 0


def cmd_export(args) -> int:
    day = _parse_date(args.date)

    readings = []
    if not args.no_readings:
        client = AELFClient(**config.load_aelf_settings())
        result = client.get_readings(day)
        if result.is_sample:
            print(f"Attention: {result.error} (données d'exemple)", file=sys.stderr)
        readings = result.readings

    songs = []
    if args.song_id:
        library = _open_library(args)
        try:
            for song_id in args.song_id:
                stored = library.get_song(song_id)
                if stored is None:
                    raise CliError(f"Chant introuvable: {song_id}")
                songs.append(stored.to_song())
        finally:
            library.close()

    for song_file in args.song_file or []:
        songs.extend(parse_text_content(read_song_file(Path(song_file))))

    presentation = Presentation.for_date(day, readings=readings, songs=songs)
    _apply_order_changes(presentation, args.remove, args.move)
    if not presentation.slide_order:
        raise CliError("Rien à exporter: aucune lecture ni aucun chant")

    output = Path(args.output) if args.output else config.output_folder() / f"messe_{day.isoformat()}.pptx"
    template = Path(args.template).expanduser() if args.template else None

    summary = PresentationBuilder(template).build(presentation, output)
    config.save_build_prefs(template.name if template else None, output.name)

    print(f"Présentation exportée: {summary.output_path}")
    print(f"{summary.slide_count} diapositives ({summary.content_slides} de contenu)")
    for position, (item, target) in enumerate(presentation.ordered_items(), start=1):
        print(f"  {position}. {target.title}  [{item.id}]")
    return 0


def cmd_import(args) -> int:
    options = ImportOptions(
        default_category=SongCategory.parse(args.category),
        auto_detect_category=not args.no_detect,
    )
    library = _open_library(args)
    failures = 0
    try:
        for f in args.files:
            result = import_file(Path(f), library, options)
            print(f"{result.file_name}: {result.total_imported} importé(s), {result.skipped} ignoré(s) sur {result.total_found}")
            for err in result.errors:
                print(f"  {err}", file=sys.stderr)
            if not result.success:
                failures += 1
    finally:
        library.close()
    return 1 if failures == len(args.files) else 0


def cmd_search(args) -> int:
    library = _open_library(args)
    try:
        if args.full_text:
            songs = library.full_text_search(args.query, limit=args.limit)
        else:
            songs = library.search_by_title(args.query, limit=args.limit)
    finally:
        library.close()
    _print_songs(songs)
    return 0


def cmd_list(args) -> int:
    library = _open_library(args)
    try:
        songs = library.songs_by_category(args.category) if args.category else library.list_songs()
    finally:
        library.close()
    _print_songs(songs)
    return 0


def cmd_stats(args) -> int:
    library = _open_library(args)
    try:
        stats = library.statistics()
    finally:
        library.close()
    print(f"Chants: {stats['total_songs']}")
    print(f"Ajoutés cette semaine: {stats['recent_imports']}")
    for category, count in sorted(stats["songs_by_category"].items()):
        print(f"  {category}: {count}")
    return 0


def cmd_seed(args) -> int:
    library = _open_library(args)
    try:
        added = library.seed_builtin_songs()
    finally:
        library.close()
    print(f"{added} chant(s) ajouté(s)")
    return 0


def cmd_add(args) -> int:
    library = _open_library(args)
    try:
        song = library.create_song(
            title=args.title,
            lyrics=_read_lyrics(args),
            author=args.author,
            melody=args.melody,
            category=args.category,
        )
    finally:
        library.close()
    print(f"Chant ajouté: {song.id} {song.title}")
    return 0


def cmd_edit(args) -> int:
    changes = {k: getattr(args, k) for k in ("title", "author", "melody", "category") if getattr(args, k) is not None}
    lyrics = _read_lyrics(args)
    if lyrics is not None:
        changes["lyrics"] = lyrics
    if not changes:
        raise CliError("Rien à modifier")

    library = _open_library(args)
    try:
        song = library.update_song(args.song_id, **changes)
    finally:
        library.close()
    print(f"Chant modifié: {song.id} {song.title}")
    return 0


def cmd_delete(args) -> int:
    library = _open_library(args)
    try:
        deleted = library.delete_song(args.song_id)
    finally:
        library.close()
    if not deleted:
        raise CliError(f"Chant introuvable: {args.song_id}")
    print(f"Chant supprimé: {args.song_id}")
    return 0


def cmd_backup(args) -> int:
    library = _open_library(args)
    try:
        path = library.backup(Path(args.path).expanduser())
    finally:
        library.close()
    print(f"Sauvegarde: {path}")
    return 0


def cmd_export_library(args) -> int:
    library = _open_library(args)
    try:
        data = library.export_json()
    finally:
        library.close()
    path = Path(args.path)
    path.write_text(data, encoding="utf-8")
    print(f"{len(json.loads(data))} chant(s) exporté(s) vers {path}")
    return 0


def cmd_import_library(args) -> int:
    path = Path(args.path)
    if not path.is_file():
        raise CliError(f"Fichier introuvable: {path}")
    library = _open_library(args)
    try:
        result = library.import_json(path.read_text(encoding="utf-8"), source_file=path.name)
    finally:
        library.close()
    print(f"{path.name}: {result.successful_imports} importé(s), {result.failed_imports} ignoré(s) sur {result.total_processed}")
    for err in result.errors:
        print(f"  {err}", file=sys.stderr)
    return 0 if result.success or not result.total_processed else 1


def cmd_qa(args) -> int:
    path = Path(args.pptx)
    if not path.is_file():
        raise CliError(f"Fichier introuvable: {path}")
    report = analyze_pptx(path)

    if args.json:
        print(json.dumps(report, indent=2, ensure_ascii=False))
        return 0

    print(f"slides: {report['slide_count']} (contenu: {report['content_slide_count']}, moyenne {report['average_words']} mots)")
    for name, slides in report["flags"].items():
        if slides:
            print(f"  {name} slides: " + ", ".join(map(str, slides[:20])))
    return 0


def cmd_season(args) -> int:
    season = liturgical_season(_parse_date(args.date))
    print(f"{season.name} ({season.color})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="liturgy-slides", description="Diaporamas liturgiques (lectures AELF et chants)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    ap.add_argument("--db", help="Song library database (default: data root songs.db)")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("readings", help="Show the readings of a day")
    p.add_argument("date", help="AAAA-MM-JJ")
    p.set_defaults(func=cmd_readings)

    p = sub.add_parser("export", help="Build a .pptx for a mass")
    p.add_argument("--date", required=True, help="AAAA-MM-JJ")
    p.add_argument("--song-id", type=int, action="append", help="Library song id (repeatable)")
    p.add_argument("--song-file", action="append", help="Song file to include without importing (repeatable)")
    p.add_argument("--no-readings", action="store_true", help="Songs only")
    p.add_argument("--template", help="PPTX template with {{TITLE}}, {{SLIDE TITLE}}, {{CONTENT}}")
    p.add_argument("--output", help="Output .pptx path")
    p.add_argument("--remove", action="append", metavar="ITEM", help="Leave out an item (position or id, repeatable)")
    p.add_argument("--move", action="append", metavar="ITEM:up|down", help="Move an item one place (repeatable, applied in order)")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="Import songs from .txt/.docx/.pdf files")
    p.add_argument("files", nargs="+")
    p.add_argument("--category", default="other", choices=CATEGORY_CHOICES, help="Category when none is detected")
    p.add_argument("--no-detect", action="store_true", help="Do not guess categories from the lyrics")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("search", help="Search the song library")
    p.add_argument("query")
    p.add_argument("--full-text", action="store_true", help="Search lyrics and authors too")
    p.add_argument("--limit", type=int, default=50)
    p.set_defaults(func=cmd_search)

    p = sub.add_parser("list", help="List library songs")
    p.add_argument("--category", choices=CATEGORY_CHOICES)
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("stats", help="Library statistics")
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("seed", help="Add the bundled hymns to the library")
    p.set_defaults(func=cmd_seed)

    p = sub.add_parser("add", help="Write a song into the library")
    p.add_argument("--title", required=True)
    lyrics = p.add_mutually_exclusive_group(required=True)
    lyrics.add_argument("--lyrics", help="Lyrics text (blank lines separate sections)")
    lyrics.add_argument("--lyrics-file", help="Read the lyrics from a .txt/.docx/.pdf file")
    p.add_argument("--author")
    p.add_argument("--melody")
    p.add_argument("--category", default="other", choices=CATEGORY_CHOICES)
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("edit", help="Change a library song")
    p.add_argument("song_id", type=int)
    p.add_argument("--title")
    lyrics = p.add_mutually_exclusive_group()
    lyrics.add_argument("--lyrics")
    lyrics.add_argument("--lyrics-file")
    p.add_argument("--author")
    p.add_argument("--melody")
    p.add_argument("--category", choices=CATEGORY_CHOICES)
    p.set_defaults(func=cmd_edit)

    p = sub.add_parser("delete", help="Remove a song from the library")
    p.add_argument("song_id", type=int)
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("backup", help="Copy the library database")
    p.add_argument("path")
    p.set_defaults(func=cmd_backup)

    p = sub.add_parser("export-library", help="Write the library songs to a JSON file")
    p.add_argument("path")
    p.set_defaults(func=cmd_export_library)

    p = sub.add_parser("import-library", help="Add the songs of a JSON library file")
    p.add_argument("path")
    p.set_defaults(func=cmd_import_library)

    p = sub.add_parser("qa", help="Word-count report for an exported deck")
    p.add_argument("pptx")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_qa)

    p = sub.add_parser("season", help="Liturgical season of a day")
    p.add_argument("date", help="AAAA-MM-JJ")
    p.set_defaults(func=cmd_season)

    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config.ensure_data_root_structure(config.load_data_root())

    try:
        return args.func(args)
    except (CliError, SongLibraryError, ImportFileError, TemplateError) as e:
        print(f"Erreur: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
