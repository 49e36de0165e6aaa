"""SQL schema for the local song library.

Songs are soft-deleted (``is_active = 0``); lyrics are deduplicated through a
hash of their normalised text. ``songs_fts`` mirrors title/lyrics/author for
full-text search and is kept current by triggers.
"""

CREATE_SONGS_TABLE = """
CREATE TABLE IF NOT EXISTS songs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    normalized_title TEXT NOT NULL,
    lyrics TEXT NOT NULL,
    lyrics_hash TEXT NOT NULL,
    author TEXT,
    melody TEXT,
    category TEXT DEFAULT 'other'
        CHECK (category IN ('entrance', 'kyrie', 'gloria', 'offertory', 'sanctus', 'communion', 'final', 'other')),
    language TEXT DEFAULT 'fr',
    source_file TEXT,
    import_method TEXT DEFAULT 'manual'
        CHECK (import_method IN ('manual', 'txt_import', 'docx_import', 'pdf_import', 'builtin')),
    created_at TEXT DEFAULT (datetime('now')),
    updated_at TEXT DEFAULT (datetime('now')),
    is_active INTEGER DEFAULT 1
);
"""

CREATE_SONG_HISTORY_TABLE = """
CREATE TABLE IF NOT EXISTS song_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    song_id INTEGER NOT NULL REFERENCES songs(id) ON DELETE CASCADE,
    action TEXT NOT NULL,
    old_data TEXT,
    new_data TEXT,
    created_at TEXT DEFAULT (datetime('now'))
);
"""

CREATE_IMPORT_SESSIONS_TABLE = """
CREATE TABLE IF NOT EXISTS import_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id TEXT NOT NULL UNIQUE,
    file_name TEXT,
    file_size INTEGER,
    file_type TEXT,
    total_songs INTEGER DEFAULT 0,
    successful_imports INTEGER DEFAULT 0,
    failed_imports INTEGER DEFAULT 0,
    status TEXT DEFAULT 'pending'
        CHECK (status IN ('pending', 'processing', 'completed', 'failed')),
    error_message TEXT,
    started_at TEXT DEFAULT (datetime('now')),
    completed_at TEXT
);
"""

CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_songs_normalized_title ON songs(normalized_title);",
    "CREATE INDEX IF NOT EXISTS idx_songs_category ON songs(category);",
    "CREATE INDEX IF NOT EXISTS idx_songs_author ON songs(author);",
    # Unique among active rows only, so a deleted song can be re-created.
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_songs_lyrics_hash ON songs(lyrics_hash) WHERE is_active = 1;",
]

CREATE_SONGS_FTS = """
CREATE VIRTUAL TABLE IF NOT EXISTS songs_fts USING fts5(
    title, lyrics, author,
    content='songs', content_rowid='id'
);
"""

CREATE_FTS_TRIGGERS = [
    """
    CREATE TRIGGER IF NOT EXISTS songs_fts_insert AFTER INSERT ON songs BEGIN
        INSERT INTO songs_fts(rowid, title, lyrics, author)
        VALUES (new.id, new.title, new.lyrics, new.author);
    END;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS songs_fts_delete AFTER DELETE ON songs BEGIN
        INSERT INTO songs_fts(songs_fts, rowid, title, lyrics, author)
        VALUES ('delete', old.id, old.title, old.lyrics, old.author);
    END;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS songs_fts_update AFTER UPDATE ON songs BEGIN
        INSERT INTO songs_fts(songs_fts, rowid, title, lyrics, author)
        VALUES ('delete', old.id, old.title, old.lyrics, old.author);
        INSERT INTO songs_fts(rowid, title, lyrics, author)
        VALUES (new.id, new.title, new.lyrics, new.author);
    END;
    """,
]

ALL_SCHEMA_STATEMENTS = [
    CREATE_SONGS_TABLE,
    CREATE_SONG_HISTORY_TABLE,
    CREATE_IMPORT_SESSIONS_TABLE,
    *CREATE_INDEXES,
    CREATE_SONGS_FTS,
    *CREATE_FTS_TRIGGERS,
]
