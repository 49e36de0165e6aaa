"""Local SQLite library of user-authored and imported songs.

Provides CRUD operations, title and full-text search, import sessions and
simple statistics on top of the schema in ``song_schema``.
"""

import hashlib
import json
import logging
import re
import sqlite3
import unicodedata
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from liturgy_slides.liturgy import Song, SongCategory
from liturgy_slides.song_schema import ALL_SCHEMA_STATEMENTS

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_LYRICS_LENGTH = 10000

IMPORT_METHODS = {"manual", "txt_import", "docx_import", "pdf_import", "json_import", "builtin"}


class SongLibraryError(Exception):
    """Base error for song library operations."""


class SongValidationError(SongLibraryError):
    """Song data is missing or out of bounds."""


class DuplicateSongError(SongLibraryError):
    """An active song already has the same lyrics."""

    def __init__(self, message: str, existing_id: Optional[int] = None):
        super().__init__(message)
        self.existing_id = existing_id


class SongNotFoundError(SongLibraryError):
    """No active song with the requested id."""


def normalize_text(text: str) -> str:
    """Lowercase, accent-free, punctuation-free, single-spaced text."""
    text = unicodedata.normalize("NFD", (text or "").lower())
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = re.sub(r"[^\w\s]", "", text)
    return re.sub(r"\s+", " ", text).strip()


def _like_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def lyrics_hash(lyrics: str) -> str:
    return hashlib.sha256(normalize_text(lyrics).encode("utf-8")).hexdigest()


def validate_song_data(title: str, lyrics: str) -> None:
    if not title or not title.strip():
        raise SongValidationError("Le titre est requis")
    if not lyrics or not lyrics.strip():
        raise SongValidationError("Les paroles sont requises")
    if len(title) > MAX_TITLE_LENGTH:
        raise SongValidationError(f"Le titre est trop long (max {MAX_TITLE_LENGTH} caractères)")
    if len(lyrics) > MAX_LYRICS_LENGTH:
        raise SongValidationError(f"Les paroles sont trop longues (max {MAX_LYRICS_LENGTH} caractères)")


@dataclass
class LibrarySong:
    id: int
    title: str
    lyrics: str
    author: Optional[str]
    melody: Optional[str]
    category: SongCategory
    language: str = "fr"
    source_file: Optional[str] = None
    import_method: str = "manual"
    lyrics_hash: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "LibrarySong":
        return cls(
            id=row["id"],
            title=row["title"],
            lyrics=row["lyrics"],
            author=row["author"],
            melody=row["melody"],
            category=SongCategory.parse(row["category"]),
            language=row["language"],
            source_file=row["source_file"],
            import_method=row["import_method"],
            lyrics_hash=row["lyrics_hash"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            is_active=bool(row["is_active"]),
        )

    def to_song(self) -> Song:
        return Song(
            id=f"library-{self.id}",
            title=self.title,
            lyrics=self.lyrics,
            author=self.author,
            melody=self.melody,
            category=self.category,
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["category"] = self.category.value
        return data


@dataclass
class LibraryImportResult:
    success: bool
    session_id: str
    total_processed: int = 0
    successful_imports: int = 0
    failed_imports: int = 0
    errors: List[str] = field(default_factory=list)
    imported_songs: List[LibrarySong] = field(default_factory=list)


class SongLibrary:
    """SQLite-backed song library.

    Attributes:
        db_path: Path to the SQLite database file
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(self.db_path)
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    def initialize_schema(self) -> None:
        with self.connection:
            for statement in ALL_SCHEMA_STATEMENTS:
                self.connection.execute(statement)
        logger.debug(f"Song library schema ready at {self.db_path}")

    def close(self) -> None:
        if self._connection:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> "SongLibrary":
        self.initialize_schema()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ---------------- Songs ----------------

    def create_song(
        self,
        title: str,
        lyrics: str,
        author: Optional[str] = None,
        melody: Optional[str] = None,
        category=SongCategory.OTHER,
        language: str = "fr",
        source_file: Optional[str] = None,
        import_method: str = "manual",
    ) -> LibrarySong:
        """Insert a new song.

        Raises:
            SongValidationError: if title or lyrics are missing or too long
            DuplicateSongError: if an active song has the same normalised lyrics
        """
        validate_song_data(title, lyrics)
        if import_method not in IMPORT_METHODS:
            raise SongValidationError(f"Unknown import method: {import_method}")

        digest = lyrics_hash(lyrics)
        existing = self._find_by_hash(digest)
        if existing is not None:
            raise DuplicateSongError("Un chant avec des paroles similaires existe déjà", existing_id=existing)

        with self.connection:
            cursor = self.connection.execute(
                """
                INSERT INTO songs (
                    title, normalized_title, lyrics, lyrics_hash, author, melody,
                    category, language, source_file, import_method
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    title.strip(),
                    normalize_text(title),
                    lyrics.strip(),
                    digest,
                    author or None,
                    melody or None,
                    SongCategory.parse(category).value,
                    language or "fr",
                    source_file,
                    import_method,
                ),
            )
            song = self.get_song(cursor.lastrowid)
            self._record_history(song.id, "created", None, song)

        logger.info(f"Created song {song.id}: {song.title!r}")
        return song

    def get_song(self, song_id: int) -> Optional[LibrarySong]:
        row = self.connection.execute(
            "SELECT * FROM songs WHERE id = ? AND is_active = 1", (song_id,)
        ).fetchone()
        return LibrarySong.from_row(row) if row else None

    def list_songs(self, limit: int = 500) -> List[LibrarySong]:
        rows = self.connection.execute(
            "SELECT * FROM songs WHERE is_active = 1 ORDER BY title LIMIT ?", (limit,)
        ).fetchall()
        return [LibrarySong.from_row(r) for r in rows]

    def search_by_title(self, query: str, limit: int = 50) -> List[LibrarySong]:
        """Accent/case-insensitive title search: exact, then prefix, then substring."""
        q = normalize_text(query)
        if not q:
            return []
        pattern = _like_escape(q)
        rows = self.connection.execute(
            """
            SELECT * FROM songs
            WHERE normalized_title LIKE ? ESCAPE '\\' AND is_active = 1
            ORDER BY
                CASE
                    WHEN normalized_title = ? THEN 1
                    WHEN normalized_title LIKE ? ESCAPE '\\' THEN 2
                    ELSE 3
                END,
                title
            LIMIT ?
            """,
            (f"%{pattern}%", q, f"{pattern}%", limit),
        ).fetchall()
        return [LibrarySong.from_row(r) for r in rows]

    def full_text_search(self, query: str, limit: int = 50) -> List[LibrarySong]:
        """Search titles, lyrics and authors; every word of the query must match."""
        terms = [t for t in re.findall(r"\w+", query or "") if t]
        if not terms:
            return []
        match = " ".join(f'"{t}"' for t in terms)
        rows = self.connection.execute(
            """
            SELECT s.* FROM songs s
            JOIN songs_fts ON s.id = songs_fts.rowid
            WHERE songs_fts MATCH ? AND s.is_active = 1
            ORDER BY songs_fts.rank
            LIMIT ?
            """,
            (match, limit),
        ).fetchall()
        return [LibrarySong.from_row(r) for r in rows]

    def songs_by_category(self, category, limit: int = 100) -> List[LibrarySong]:
        rows = self.connection.execute(
            "SELECT * FROM songs WHERE category = ? AND is_active = 1 ORDER BY title LIMIT ?",
            (SongCategory.parse(category).value, limit),
        ).fetchall()
        return [LibrarySong.from_row(r) for r in rows]

    def update_song(self, song_id: int, **changes) -> LibrarySong:
        """Update title, lyrics, author, melody, category or language.

        Raises:
            SongNotFoundError: if the song does not exist or was deleted
            SongValidationError: if the resulting song is invalid
            DuplicateSongError: if new lyrics collide with another active song
        """
        existing = self.get_song(song_id)
        if existing is None:
            raise SongNotFoundError(f"Chant avec l'ID {song_id} non trouvé")

        unknown = set(changes) - {"title", "lyrics", "author", "melody", "category", "language"}
        if unknown:
            raise SongValidationError(f"Unknown song fields: {', '.join(sorted(unknown))}")

        fields: List[str] = []
        values: list = []

        title = changes.get("title")
        lyrics = changes.get("lyrics")
        validate_song_data(title if title is not None else existing.title,
                           lyrics if lyrics is not None else existing.lyrics)

        if title is not None:
            fields += ["title = ?", "normalized_title = ?"]
            values += [title.strip(), normalize_text(title)]

        if lyrics is not None:
            digest = lyrics_hash(lyrics)
            if digest != existing.lyrics_hash:
                other = self._find_by_hash(digest)
                if other is not None and other != song_id:
                    raise DuplicateSongError("Un chant avec ces paroles existe déjà", existing_id=other)
            fields += ["lyrics = ?", "lyrics_hash = ?"]
            values += [lyrics.strip(), digest]

        for name in ("author", "melody", "language"):
            if name in changes:
                fields.append(f"{name} = ?")
                values.append(changes[name] or None)

        if "category" in changes:
            fields.append("category = ?")
            values.append(SongCategory.parse(changes["category"]).value)

        if not fields:
            return existing

        values.append(song_id)
        with self.connection:
            self.connection.execute(
                f"UPDATE songs SET {', '.join(fields)}, updated_at = datetime('now') WHERE id = ?",
                values,
            )
            updated = self.get_song(song_id)
            self._record_history(song_id, "updated", existing, updated)
        return updated

    def delete_song(self, song_id: int) -> bool:
        existing = self.get_song(song_id)
        if existing is None:
            return False
        with self.connection:
            cursor = self.connection.execute(
                "UPDATE songs SET is_active = 0, updated_at = datetime('now') WHERE id = ?", (song_id,)
            )
            if cursor.rowcount:
                self._record_history(song_id, "deleted", existing, None)
        return cursor.rowcount > 0

    def history(self, song_id: int) -> List[Dict]:
        rows = self.connection.execute(
            "SELECT action, old_data, new_data, created_at FROM song_history WHERE song_id = ? ORDER BY id",
            (song_id,),
        ).fetchall()
        return [
            {
                "action": r["action"],
                "old_data": json.loads(r["old_data"]) if r["old_data"] else None,
                "new_data": json.loads(r["new_data"]) if r["new_data"] else None,
                "created_at": r["created_at"],
            }
            for r in rows
        ]

    # ---------------- Import sessions ----------------

    def start_import_session(self, file_name: str, file_size: int = 0, file_type: str = "") -> str:
        session_id = str(uuid.uuid4())
        with self.connection:
            self.connection.execute(
                """
                INSERT INTO import_sessions (session_id, file_name, file_size, file_type, status)
                VALUES (?, ?, ?, ?, 'pending')
                """,
                (session_id, file_name, file_size, file_type),
            )
        return session_id

    def update_import_session(self, session_id: str, **updates) -> None:
        allowed = ("status", "total_songs", "successful_imports", "failed_imports", "error_message", "file_size")
        fields = [f"{k} = ?" for k in allowed if updates.get(k) is not None]
        values = [updates[k] for k in allowed if updates.get(k) is not None]

        if updates.get("status") in ("completed", "failed"):
            fields.append("completed_at = datetime('now')")

        if not fields:
            return

        values.append(session_id)
        with self.connection:
            self.connection.execute(
                f"UPDATE import_sessions SET {', '.join(fields)} WHERE session_id = ?", values
            )

    def get_import_session(self, session_id: str) -> Optional[Dict]:
        row = self.connection.execute(
            "SELECT * FROM import_sessions WHERE session_id = ?", (session_id,)
        ).fetchone()
        return dict(row) if row else None

    def import_songs(
        self,
        songs: Iterable[Song],
        session_id: str,
        source_file: Optional[str] = None,
        import_method: str = "manual",
    ) -> LibraryImportResult:
        """Create every song, collecting per-song failures instead of raising."""
        songs = list(songs)
        result = LibraryImportResult(success=False, session_id=session_id, total_processed=len(songs))

        self.update_import_session(session_id, status="processing", total_songs=len(songs))

        for song in songs:
            try:
                created = self.create_song(
                    title=song.title,
                    lyrics=song.lyrics,
                    author=song.author,
                    melody=song.melody,
                    category=song.category,
                    source_file=source_file,
                    import_method=import_method,
                )
            except SongLibraryError as e:
                result.failed_imports += 1
                result.errors.append(f'Erreur pour "{song.title}": {e}')
                continue
            result.imported_songs.append(created)
            result.successful_imports += 1

        result.success = result.successful_imports > 0
        self.update_import_session(
            session_id,
            status="completed" if result.success else "failed",
            successful_imports=result.successful_imports,
            failed_imports=result.failed_imports,
            error_message="; ".join(result.errors) if result.errors else None,
        )
        logger.info(
            f"Import session {session_id}: {result.successful_imports} imported, "
            f"{result.failed_imports} failed"
        )
        return result

    def seed_builtin_songs(self) -> int:
        """Add the bundled hymn catalogue; songs already present are skipped."""
        from liturgy_slides.builtin_songs import BUILTIN_SONGS

        added = 0
        for song in BUILTIN_SONGS:
            try:
                self.create_song(
                    title=song.title,
                    lyrics=song.lyrics,
                    author=song.author,
                    melody=song.melody,
                    category=song.category,
                    import_method="builtin",
                )
            except DuplicateSongError:
                continue
            added += 1
        return added

    # ---------------- Backup / JSON ----------------

    def backup(self, backup_path: Path) -> Path:
        """Copy the whole database (history and sessions included) to backup_path."""
        backup_path = Path(backup_path)
        backup_path.parent.mkdir(parents=True, exist_ok=True)
        target = sqlite3.connect(backup_path)
        try:
            self.connection.backup(target)
        finally:
            target.close()
        logger.info(f"Song library backed up to {backup_path}")
        return backup_path

    def export_json(self) -> str:
        """Active songs as a JSON array, readable by import_json."""
        rows = self.connection.execute(
            "SELECT * FROM songs WHERE is_active = 1 ORDER BY title"
        ).fetchall()
        fields = ("title", "lyrics", "author", "melody", "category", "language")
        songs = [{k: LibrarySong.from_row(r).to_dict()[k] for k in fields} for r in rows]
        return json.dumps(songs, indent=2, ensure_ascii=False)

    def import_json(self, data: str, source_file: str = "library.json") -> LibraryImportResult:
        """Add the songs of an export_json document; duplicates and invalid entries are reported."""
        try:
            entries = json.loads(data)
        except json.JSONDecodeError as e:
            raise SongValidationError(f"Format de données invalide: {e}") from e
        if not isinstance(entries, list):
            raise SongValidationError("Format de données invalide: une liste de chants est attendue")

        songs = []
        for entry in entries:
            entry = entry if isinstance(entry, dict) else {}
            songs.append(
                Song.new(
                    title=str(entry.get("title") or ""),
                    lyrics=str(entry.get("lyrics") or ""),
                    author=entry.get("author"),
                    melody=entry.get("melody"),
                    category=entry.get("category"),
                )
            )

        session_id = self.start_import_session(source_file, len(data.encode("utf-8")), "json")
        return self.import_songs(songs, session_id, source_file=source_file, import_method="json_import")

    # ---------------- Statistics ----------------

    def statistics(self) -> Dict:
        total = self.connection.execute(
            "SELECT COUNT(*) AS count FROM songs WHERE is_active = 1"
        ).fetchone()["count"]

        by_category = {
            r["category"]: r["count"]
            for r in self.connection.execute(
                "SELECT category, COUNT(*) AS count FROM songs WHERE is_active = 1 GROUP BY category"
            )
        }

        recent = self.connection.execute(
            "SELECT COUNT(*) AS count FROM songs WHERE created_at >= datetime('now', '-7 days') AND is_active = 1"
        ).fetchone()["count"]

        return {
            "total_songs": total,
            "songs_by_category": by_category,
            "recent_imports": recent,
        }

    # ---------------- Helpers ----------------

    def _find_by_hash(self, digest: str) -> Optional[int]:
        row = self.connection.execute(
            "SELECT id FROM songs WHERE lyrics_hash = ? AND is_active = 1", (digest,)
        ).fetchone()
        return row["id"] if row else None

    def _record_history(self, song_id: int, action: str, old: Optional[LibrarySong], new: Optional[LibrarySong]) -> None:
        self.connection.execute(
            "INSERT INTO song_history (song_id, action, old_data, new_data) VALUES (?, ?, ?, ?)",
            (
                song_id,
                action,
                json.dumps(old.to_dict(), ensure_ascii=False) if old else None,
                json.dumps(new.to_dict(), ensure_ascii=False) if new else None,
            ),
        )
