"""
Bulk song import from .txt, .docx and .pdf files.

A file may hold several songs. Three parsing strategies are tried in turn:
explicit title markers, blocks separated by two or more blank lines, and
finally the whole text as a single song.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from liturgy_slides.liturgy import Song, SongCategory

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 5 * 1024 * 1024

TEXT_SUFFIXES = {".txt", ".text"}
SUPPORTED_SUFFIXES = TEXT_SUFFIXES | {".docx", ".pdf"}

IMPORT_METHOD_BY_SUFFIX = {
    ".txt": "txt_import",
    ".text": "txt_import",
    ".docx": "docx_import",
    ".pdf": "pdf_import",
}

DEFAULT_TITLE = "Chant importé"

_TITLE_MARKER_RE = re.compile(r"^(?:TITRE\s*:|TITLE\s*:|CHANT\s*:|#)\s*(.+)$", re.IGNORECASE)
_META_RE = re.compile(r"^(AUTEUR|AUTHOR|MÉLODIE|MELODIE|MELODY|CATÉGORIE|CATEGORIE|CATEGORY)\s*:\s*(.+)$", re.IGNORECASE)
_NOT_TITLE_RE = re.compile(r"^(R/|Refrain|Couplet|\d+\.)", re.IGNORECASE)
_SONG_GAP_RE = re.compile(r"\n[ \t]*\n[ \t]*\n\s*")
_BLANK_RUN_RE = re.compile(r"\n(?:[ \t]*\n)+")

CATEGORY_NAMES = {
    "entrée": SongCategory.ENTRANCE,
    "entree": SongCategory.ENTRANCE,
    "entrance": SongCategory.ENTRANCE,
    "kyrie": SongCategory.KYRIE,
    "gloria": SongCategory.GLORIA,
    "gloire": SongCategory.GLORIA,
    "offertoire": SongCategory.OFFERTORY,
    "offertory": SongCategory.OFFERTORY,
    "sanctus": SongCategory.SANCTUS,
    "saint": SongCategory.SANCTUS,
    "communion": SongCategory.COMMUNION,
    "sortie": SongCategory.FINAL,
    "envoi": SongCategory.FINAL,
    "final": SongCategory.FINAL,
}

# First matching category wins, in this order.
CATEGORY_KEYWORDS = {
    SongCategory.ENTRANCE: ["entrée", "accueil", "rassemblement", "venez", "entrons"],
    SongCategory.KYRIE: ["kyrie", "pitié"],
    SongCategory.GLORIA: ["gloria", "gloire à dieu", "gloire au plus haut"],
    SongCategory.OFFERTORY: ["offertoire", "présentation", "pain", "vin", "offrande"],
    SongCategory.SANCTUS: ["sanctus", "saint", "hosanna"],
    SongCategory.COMMUNION: ["communion", "pain de vie", "corps du christ", "goûtez"],
    SongCategory.FINAL: ["envoi", "sortie", "allez", "mission", "marie"],
}


class ImportFileError(Exception):
    """The file cannot be read."""


class UnsupportedFileError(ImportFileError):
    """The file extension is not one we know how to read."""


@dataclass
class ImportOptions:
    default_category: SongCategory = SongCategory.OTHER
    auto_detect_category: bool = True


@dataclass
class FileImportResult:
    success: bool
    session_id: Optional[str]
    file_name: str
    total_found: int = 0
    total_imported: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    songs: list = field(default_factory=list)


# -------------------------
# Reading files
# -------------------------

def read_song_file(path: Path) -> str:
    """
    Returns the full text of a song file.

    Supports:
      - .txt / .text
      - .docx (paragraph text)
      - .pdf (text layer only)
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix not in SUPPORTED_SUFFIXES:
        raise UnsupportedFileError(f"Format de fichier non supporté: {suffix or path.name}")

    if not path.is_file():
        raise ImportFileError(f"Fichier introuvable: {path}")

    size = path.stat().st_size
    if size > MAX_FILE_SIZE:
        raise ImportFileError(
            f"Fichier trop volumineux ({size / (1024 * 1024):.1f} MB, max {MAX_FILE_SIZE // (1024 * 1024)} MB)"
        )

    if suffix in TEXT_SUFFIXES:
        return path.read_text(encoding="utf-8", errors="ignore")

    if suffix == ".docx":
        from docx import Document
        from docx.opc.exceptions import PackageNotFoundError

        try:
            doc = Document(str(path))
        except (PackageNotFoundError, KeyError, ValueError) as e:
            raise ImportFileError(f"Erreur lecture fichier DOCX: {e}") from e
        return "\n".join(p.text for p in doc.paragraphs)

    import pdfplumber
    from pdfminer.pdfparser import PDFSyntaxError
    from pdfminer.psparser import PSException
    from pdfplumber.utils.exceptions import PdfminerException

    try:
        with pdfplumber.open(path) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except (PdfminerException, PDFSyntaxError, PSException, OSError) as e:
        raise ImportFileError(f"Erreur lecture fichier PDF: {e}") from e
    return "\n".join(pages)


# -------------------------
# Parsing
# -------------------------

def looks_like_title(line: str) -> bool:
    line = line.strip()
    return (
        3 < len(line) < 100
        and "\t" not in line
        and not _NOT_TITLE_RE.match(line)
        and len(line.split()) <= 10
    )


def map_category_name(value: str) -> SongCategory:
    return CATEGORY_NAMES.get(value.strip().lower(), SongCategory.OTHER)


def detect_category(title: str, lyrics: str) -> SongCategory:
    content = f"{title} {lyrics}".lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(k in content for k in keywords):
            return category
    return SongCategory.OTHER


def clean_lyrics(text: str) -> str:
    """Trim every line and collapse runs of blank lines to a single one."""
    lines = [line.strip() for line in text.split("\n")]
    return _BLANK_RUN_RE.sub("\n\n", "\n".join(lines)).strip()


def _finalize(title: str, lyrics: str, options: ImportOptions, author=None, melody=None, category=None) -> Song:
    title = title or DEFAULT_TITLE
    lyrics = clean_lyrics(lyrics)
    if category is None:
        category = detect_category(title, lyrics) if options.auto_detect_category else SongCategory.OTHER
        if category == SongCategory.OTHER:
            category = options.default_category
    return Song.new(title=title, lyrics=lyrics, author=author, melody=melody, category=category)


def _title_index(lines: List[str]) -> Optional[int]:
    for i, line in enumerate(lines[:3]):
        if looks_like_title(line):
            return i
    return None


def parse_by_title_markers(text: str, options: ImportOptions) -> List[Song]:
    songs: List[Song] = []
    current = None
    lyrics: List[str] = []

    def _close():
        if current is not None and "".join(lyrics).strip():
            songs.append(_finalize(current.pop("title"), "\n".join(lyrics), options, **current))

    for raw in text.split("\n"):
        line = raw.strip()
        marker = _TITLE_MARKER_RE.match(line)
        if marker:
            _close()
            current = {"title": marker.group(1).strip()}
            lyrics = []
            continue

        if current is None:
            continue

        meta = _META_RE.match(line)
        if meta:
            key = meta.group(1).lower()
            value = meta.group(2).strip()
            if key in ("auteur", "author"):
                current["author"] = value
            elif key in ("mélodie", "melodie", "melody"):
                current["melody"] = value
            else:
                current["category"] = map_category_name(value)
            continue

        lyrics.append(line)

    _close()
    return songs


def parse_by_empty_lines(text: str, options: ImportOptions) -> List[Song]:
    songs: List[Song] = []
    for block in _SONG_GAP_RE.split(text):
        block = block.strip()
        if len(block) < 20:
            continue
        lines = block.split("\n")
        idx = _title_index(lines)
        lyrics = "\n".join(lines[:idx] + lines[idx + 1:]) if idx is not None else block
        if len(lyrics.strip()) <= 10:
            continue
        title = lines[idx].strip() if idx is not None else f"Chant {len(songs) + 1}"
        songs.append(_finalize(title, lyrics, options))
    return songs


def parse_as_single_song(text: str, options: ImportOptions) -> List[Song]:
    content = text.strip()
    if len(content) < 10:
        return []
    lines = content.split("\n")
    idx = _title_index(lines)
    if idx is None:
        return [_finalize(DEFAULT_TITLE, content, options)]
    lyrics = "\n".join(lines[:idx] + lines[idx + 1:])
    if not lyrics.strip():
        return [_finalize(DEFAULT_TITLE, content, options)]
    return [_finalize(lines[idx].strip(), lyrics, options)]


STRATEGIES = [parse_by_title_markers, parse_by_empty_lines, parse_as_single_song]


def parse_text_content(text: str, options: Optional[ImportOptions] = None) -> List[Song]:
    options = options or ImportOptions()
    normalized = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    for strategy in STRATEGIES:
        songs = strategy(normalized, options)
        if songs:
            logger.debug(f"{strategy.__name__} found {len(songs)} song(s)")
            return songs
    return []


# -------------------------
# Import into the library
# -------------------------

def import_file(path: Path, library, options: Optional[ImportOptions] = None) -> FileImportResult:
    """Parse ``path`` and store every song found in ``library``.

    Errors are collected on the result and on the import session; nothing is
    raised for unreadable or empty files.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    size = path.stat().st_size if path.is_file() else 0

    session_id = library.start_import_session(path.name, size, suffix)
    result = FileImportResult(success=False, session_id=session_id, file_name=path.name)

    try:
        songs = parse_text_content(read_song_file(path), options)
    except ImportFileError as e:
        logger.warning(f"Import of {path.name} failed: {e}")
        result.errors.append(str(e))
        library.update_import_session(session_id, status="failed", error_message=str(e))
        return result

    result.total_found = len(songs)
    if not songs:
        msg = "Aucun chant trouvé dans le fichier"
        result.errors.append(msg)
        library.update_import_session(session_id, status="failed", error_message=msg)
        return result

    imported = library.import_songs(
        songs,
        session_id,
        source_file=path.name,
        import_method=IMPORT_METHOD_BY_SUFFIX[suffix],
    )
    result.success = imported.success
    result.total_imported = imported.successful_imports
    result.skipped = imported.failed_imports
    result.errors.extend(imported.errors)
    result.songs = imported.imported_songs
    return result
