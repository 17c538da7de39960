"""Database connection, DDL, and low-level CRUD for conlang-editor."""

from __future__ import annotations

import sqlite3


SCHEMA_VERSION = "1.0"

# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Grammar tables
CREATE TABLE IF NOT EXISTS parts_of_speech (
    rowid INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    UNIQUE (name)
);

CREATE TABLE IF NOT EXISTS pos_declensions (
    rowid INTEGER PRIMARY KEY,
    pos_rowid INTEGER NOT NULL REFERENCES parts_of_speech (rowid) ON DELETE CASCADE,
    name TEXT NOT NULL,
    UNIQUE (pos_rowid, name)
);
CREATE INDEX IF NOT EXISTS pos_declension_pos_index ON pos_declensions (pos_rowid);

CREATE TABLE IF NOT EXISTS word_classes (
    rowid INTEGER PRIMARY KEY,
    pos_rowid INTEGER NOT NULL REFERENCES parts_of_speech (rowid) ON DELETE CASCADE,
    name TEXT NOT NULL,
    UNIQUE (pos_rowid, name)
);
CREATE INDEX IF NOT EXISTS word_class_pos_index ON word_classes (pos_rowid);

CREATE TABLE IF NOT EXISTS declensions (
    rowid INTEGER PRIMARY KEY,
    class_rowid INTEGER NOT NULL REFERENCES word_classes (rowid) ON DELETE CASCADE,
    canonical_rowid INTEGER NOT NULL REFERENCES pos_declensions (rowid) ON DELETE CASCADE,
    name TEXT NOT NULL,
    UNIQUE (class_rowid, name)
);
CREATE INDEX IF NOT EXISTS declension_class_index ON declensions (class_rowid);

CREATE TABLE IF NOT EXISTS rules (
    rowid INTEGER PRIMARY KEY,
    declension_rowid INTEGER NOT NULL REFERENCES declensions (rowid) ON DELETE CASCADE,
    pipeline TEXT NOT NULL CHECK( pipeline IN ('form', 'pronunciation', 'rhyme') ),
    guard TEXT NOT NULL,
    pattern TEXT NOT NULL,
    replacement TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS rule_declension_index ON rules (declension_rowid, pipeline);

-- Lexicon tables
CREATE TABLE IF NOT EXISTS entries (
    rowid INTEGER PRIMARY KEY,
    class_rowid INTEGER NOT NULL REFERENCES word_classes (rowid),
    form TEXT NOT NULL,
    pronunciation TEXT NOT NULL,
    rhyme TEXT NOT NULL,
    translation TEXT NOT NULL DEFAULT '',
    definition TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS entry_class_index ON entries (class_rowid);
CREATE INDEX IF NOT EXISTS entry_form_index ON entries (form);
CREATE INDEX IF NOT EXISTS entry_translation_index ON entries (translation);

CREATE TABLE IF NOT EXISTS rhyme_groups (
    rowid INTEGER PRIMARY KEY,
    id TEXT NOT NULL,
    UNIQUE (id)
);

CREATE TABLE IF NOT EXISTS word_forms (
    rowid INTEGER PRIMARY KEY,
    entry_rowid INTEGER NOT NULL REFERENCES entries (rowid),
    declension_rowid INTEGER NOT NULL REFERENCES declensions (rowid),
    form TEXT NOT NULL,
    pronunciation TEXT NOT NULL,
    rhyme_rowid INTEGER NOT NULL REFERENCES rhyme_groups (rowid),
    irregular_form BOOLEAN CHECK( irregular_form IN (0, 1) ) DEFAULT 0 NOT NULL,
    irregular_pronunciation BOOLEAN CHECK( irregular_pronunciation IN (0, 1) ) DEFAULT 0 NOT NULL,
    irregular_rhyme BOOLEAN CHECK( irregular_rhyme IN (0, 1) ) DEFAULT 0 NOT NULL,
    UNIQUE (entry_rowid, declension_rowid)
);
CREATE INDEX IF NOT EXISTS word_form_entry_index ON word_forms (entry_rowid);
CREATE INDEX IF NOT EXISTS word_form_declension_index ON word_forms (declension_rowid);
CREATE INDEX IF NOT EXISTS word_form_rhyme_index ON word_forms (rhyme_rowid);
"""


def connect() -> sqlite3.Connection:
    """Open an in-memory database connection with editor PRAGMA settings."""
    conn = sqlite3.connect(":memory:")
    conn.execute("PRAGMA foreign_keys = ON")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.commit()


# ---------------------------------------------------------------------------
# Rhyme group index
# ---------------------------------------------------------------------------

def assign_rhyme_group(conn: sqlite3.Connection, rhyme_id: str) -> int:
    """Get the rowid of the rhyme group for ``rhyme_id``, creating it if needed."""
    conn.execute(
        "INSERT OR IGNORE INTO rhyme_groups (id) VALUES (?)",
        (rhyme_id,),
    )
    row = conn.execute(
        "SELECT rowid FROM rhyme_groups WHERE id = ?",
        (rhyme_id,),
    ).fetchone()
    return row[0]


def release_rhyme_group(conn: sqlite3.Connection, rhyme_rowid: int) -> bool:
    """Delete the rhyme group if no form belongs to it any more.

    Returns True when the group was deleted.
    """
    cur = conn.execute(
        "DELETE FROM rhyme_groups WHERE rowid = ? AND NOT EXISTS "
        "(SELECT 1 FROM word_forms WHERE rhyme_rowid = ?)",
        (rhyme_rowid, rhyme_rowid),
    )
    return cur.rowcount > 0


def get_rhyme_group_row(
    conn: sqlite3.Connection, rhyme_id: str
) -> sqlite3.Row | None:
    """Get a rhyme group row by its key."""
    return conn.execute(
        "SELECT rowid, id FROM rhyme_groups WHERE id = ?",
        (rhyme_id,),
    ).fetchone()


# ---------------------------------------------------------------------------
# Grammar lookup helpers
# ---------------------------------------------------------------------------

def get_pos_row(conn: sqlite3.Connection, name: str) -> sqlite3.Row | None:
    """Get a part-of-speech row by name."""
    return conn.execute(
        "SELECT rowid, name FROM parts_of_speech WHERE name = ?",
        (name,),
    ).fetchone()


def get_class_row(
    conn: sqlite3.Connection, pos_rowid: int, name: str
) -> sqlite3.Row | None:
    """Get a word-class row by name within a part of speech."""
    return conn.execute(
        "SELECT rowid, pos_rowid, name FROM word_classes "
        "WHERE pos_rowid = ? AND name = ?",
        (pos_rowid, name),
    ).fetchone()


def get_canonical_row(
    conn: sqlite3.Connection, pos_rowid: int, name: str
) -> sqlite3.Row | None:
    """Get a canonical declension-name row within a part of speech."""
    return conn.execute(
        "SELECT rowid, pos_rowid, name FROM pos_declensions "
        "WHERE pos_rowid = ? AND name = ?",
        (pos_rowid, name),
    ).fetchone()


def get_declension_row(
    conn: sqlite3.Connection, class_rowid: int, name: str
) -> sqlite3.Row | None:
    """Get a declension row by name within a word class."""
    return conn.execute(
        "SELECT rowid, class_rowid, canonical_rowid, name FROM declensions "
        "WHERE class_rowid = ? AND name = ?",
        (class_rowid, name),
    ).fetchone()


def get_class_declension_rows(
    conn: sqlite3.Connection, class_rowid: int
) -> list[sqlite3.Row]:
    """All declensions of a class, in canonical order."""
    return conn.execute(
        "SELECT rowid, class_rowid, canonical_rowid, name FROM declensions "
        "WHERE class_rowid = ? ORDER BY canonical_rowid",
        (class_rowid,),
    ).fetchall()


# ---------------------------------------------------------------------------
# Entry and form helpers
# ---------------------------------------------------------------------------

def get_entry_row(conn: sqlite3.Connection, entry_rowid: int) -> sqlite3.Row | None:
    """Get a full entry row, joined with its class and part of speech."""
    return conn.execute(
        "SELECT e.rowid, e.*, c.name AS class_name, c.pos_rowid, "
        "p.name AS pos_name "
        "FROM entries e "
        "JOIN word_classes c ON e.class_rowid = c.rowid "
        "JOIN parts_of_speech p ON c.pos_rowid = p.rowid "
        "WHERE e.rowid = ?",
        (entry_rowid,),
    ).fetchone()


_FORM_SELECT = (
    "SELECT f.rowid, f.entry_rowid, f.declension_rowid, f.form, "
    "f.pronunciation, f.rhyme_rowid, r.id AS rhyme, d.name AS declension, "
    "f.irregular_form, f.irregular_pronunciation, f.irregular_rhyme "
    "FROM word_forms f "
    "JOIN rhyme_groups r ON f.rhyme_rowid = r.rowid "
    "JOIN declensions d ON f.declension_rowid = d.rowid "
)


def get_form_rows(conn: sqlite3.Connection, entry_rowid: int) -> list[sqlite3.Row]:
    """All forms of an entry, in canonical declension order."""
    return conn.execute(
        _FORM_SELECT + "WHERE f.entry_rowid = ? ORDER BY d.canonical_rowid",
        (entry_rowid,),
    ).fetchall()


def get_form_row(
    conn: sqlite3.Connection, entry_rowid: int, declension: str
) -> sqlite3.Row | None:
    """The form of an entry produced by the named declension."""
    return conn.execute(
        _FORM_SELECT + "WHERE f.entry_rowid = ? AND d.name = ?",
        (entry_rowid, declension),
    ).fetchone()


def get_rhyme_member_rows(
    conn: sqlite3.Connection, rhyme_rowid: int
) -> list[sqlite3.Row]:
    """All forms in a rhyme group, in creation order."""
    return conn.execute(
        _FORM_SELECT + "WHERE f.rhyme_rowid = ? ORDER BY f.rowid",
        (rhyme_rowid,),
    ).fetchall()


def get_rule_rows(conn: sqlite3.Connection, decl_rowid: int) -> list[sqlite3.Row]:
    """All rules of a declension, pipelines interleaved, in insertion order."""
    return conn.execute(
        "SELECT rowid, pipeline, guard, pattern, replacement FROM rules "
        "WHERE declension_rowid = ? ORDER BY rowid",
        (decl_rowid,),
    ).fetchall()
