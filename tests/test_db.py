
import pytest
import sqlite3
from conlang_editor import db

@pytest.fixture
def db_conn():
    """Create an initialized in-memory database connection for testing."""
    conn = db.connect()
    db.init_db(conn)
    yield conn
    conn.close()


@pytest.fixture
def form_conn(db_conn):
    """Database with one part of speech, class, declension and entry."""
    db_conn.execute("INSERT INTO parts_of_speech (name) VALUES ('noun')")
    db_conn.execute("INSERT INTO pos_declensions (pos_rowid, name) VALUES (1, 'acc')")
    db_conn.execute("INSERT INTO word_classes (pos_rowid, name) VALUES (1, 'noun')")
    db_conn.execute(
        "INSERT INTO declensions (class_rowid, canonical_rowid, name) VALUES (1, 1, 'acc')"
    )
    db_conn.execute(
        "INSERT INTO entries (class_rowid, form, pronunciation, rhyme) "
        "VALUES (1, 'gleira', 'gli:ra', 'eira')"
    )
    return db_conn


def _add_form(conn, rhyme_rowid):
    cur = conn.execute(
        "INSERT INTO word_forms (entry_rowid, declension_rowid, form, pronunciation, rhyme_rowid) "
        "VALUES (1, 1, 'gleiru', 'gli:rü', ?)",
        (rhyme_rowid,),
    )
    return cur.lastrowid

def test_schema_version_recorded(db_conn):
    """The schema version is written on init."""
    row = db_conn.execute("SELECT value FROM meta WHERE key = 'schema_version'").fetchone()
    assert row[0] == db.SCHEMA_VERSION

def test_init_is_idempotent(db_conn):
    """Initializing twice keeps a single version row."""
    db.init_db(db_conn)
    count = db_conn.execute("SELECT COUNT(*) FROM meta").fetchone()[0]
    assert count == 1

def test_foreign_keys_enforced(db_conn):
    """Rows cannot point at missing parents."""
    with pytest.raises(sqlite3.IntegrityError):
        db_conn.execute("INSERT INTO word_classes (pos_rowid, name) VALUES (99, 'x')")

def test_assign_rhyme_group_reuses_key(db_conn):
    """The same key always maps to the same group."""
    rowid1 = db.assign_rhyme_group(db_conn, "eira")
    rowid2 = db.assign_rhyme_group(db_conn, "eira")
    rowid3 = db.assign_rhyme_group(db_conn, "ógar")
    assert rowid1 == rowid2
    assert rowid3 != rowid1
    count = db_conn.execute("SELECT COUNT(*) FROM rhyme_groups").fetchone()[0]
    assert count == 2

def test_release_empty_rhyme_group(db_conn):
    """A group with no members is deleted on release."""
    rowid = db.assign_rhyme_group(db_conn, "eira")
    assert db.release_rhyme_group(db_conn, rowid) is True
    assert db.get_rhyme_group_row(db_conn, "eira") is None

def test_release_keeps_group_with_members(form_conn):
    """A group that still has a member survives release."""
    rowid = db.assign_rhyme_group(form_conn, "eiru")
    form_rowid = _add_form(form_conn, rowid)
    assert db.release_rhyme_group(form_conn, rowid) is False
    members = db.get_rhyme_member_rows(form_conn, rowid)
    assert [m["rowid"] for m in members] == [form_rowid]
    assert members[0]["rhyme"] == "eiru"
    assert members[0]["declension"] == "acc"

def test_one_form_per_entry_and_declension(form_conn):
    """An entry cannot hold two forms for the same declension."""
    rowid = db.assign_rhyme_group(form_conn, "eiru")
    _add_form(form_conn, rowid)
    with pytest.raises(sqlite3.IntegrityError):
        _add_form(form_conn, rowid)

def test_entry_row_joins_class_and_pos(form_conn):
    """Entry lookups carry their class and part-of-speech names."""
    row = db.get_entry_row(form_conn, 1)
    assert row["form"] == "gleira"
    assert row["class_name"] == "noun"
    assert row["pos_name"] == "noun"
    assert db.get_entry_row(form_conn, 2) is None

def test_rule_rows_in_insertion_order(form_conn):
    """Rules come back in the order they were added."""
    for pipeline, replacement in (("rhyme", "1"), ("form", "2"), ("rhyme", "3")):
        form_conn.execute(
            "INSERT INTO rules (declension_rowid, pipeline, guard, pattern, replacement) "
            "VALUES (1, ?, '.', '$', ?)",
            (pipeline, replacement),
        )
    rows = db.get_rule_rows(form_conn, 1)
    assert [r["replacement"] for r in rows] == ["1", "2", "3"]

def test_unknown_pipeline_rejected(form_conn):
    """The rules table only accepts the three pipelines."""
    with pytest.raises(sqlite3.IntegrityError):
        form_conn.execute(
            "INSERT INTO rules (declension_rowid, pipeline, guard, pattern, replacement) "
            "VALUES (1, 'spelling', '.', '$', 'x')"
        )
