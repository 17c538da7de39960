"""Consistency checks for a conlang lexicon."""

from __future__ import annotations

import sqlite3

from conlang_editor import db as _db
from conlang_editor.derivation import derive, group_rules
from conlang_editor.models import DEFAULT_PIPELINES, ValidationResult


def validate_all(
    conn: sqlite3.Connection,
    *,
    pos: str | None = None,
) -> list[ValidationResult]:
    """Run all validation rules, optionally limited to one part of speech."""
    results: list[ValidationResult] = []
    results.extend(_val_pos_001(conn, pos))
    results.extend(_val_dcl_001(conn, pos))
    results.extend(_val_frm_001(conn, pos))
    results.extend(_val_frm_002(conn, pos))
    results.extend(_val_rhy_001(conn))
    results.extend(_val_ent_001(conn, pos))
    return results


def validate_entry(
    conn: sqlite3.Connection, entry_id: int
) -> list[ValidationResult]:
    """Validate a specific entry and its forms."""
    row = _db.get_entry_row(conn, entry_id)
    if row is None:
        return []
    results = _check_entry_forms(conn, row)
    results.extend(_check_form_derivations(conn, "WHERE f.entry_rowid = ?", [entry_id]))
    if not row["translation"]:
        results.append(_untranslated(row))
    return results


def _pos_filter(pos: str | None, column: str = "p.name") -> tuple[str, list]:
    if pos is None:
        return "", []
    return f" AND {column} = ?", [pos]


def _val_pos_001(
    conn: sqlite3.Connection, pos: str | None
) -> list[ValidationResult]:
    """Parts of speech with no word class."""
    filt, params = _pos_filter(pos)
    sql = (
        "SELECT p.name FROM parts_of_speech p WHERE NOT EXISTS "
        "(SELECT 1 FROM word_classes c WHERE c.pos_rowid = p.rowid)"
        f"{filt}"
    )
    return [
        ValidationResult(
            rule_id="VAL-POS-001",
            severity="ERROR",
            entity_type="part_of_speech",
            entity_id=row["name"],
            message="Part of speech has no word class",
            details=None,
        )
        for row in conn.execute(sql, params).fetchall()
    ]


def _val_dcl_001(
    conn: sqlite3.Connection, pos: str | None
) -> list[ValidationResult]:
    """Word classes whose declensions differ from their part of speech's."""
    results = []
    filt, params = _pos_filter(pos)
    classes = conn.execute(
        "SELECT c.rowid, c.name, c.pos_rowid, p.name AS pos_name "
        "FROM word_classes c JOIN parts_of_speech p ON c.pos_rowid = p.rowid "
        f"WHERE 1=1{filt} ORDER BY c.rowid",
        params,
    ).fetchall()
    for row in classes:
        expected = [
            r["name"] for r in conn.execute(
                "SELECT name FROM pos_declensions WHERE pos_rowid = ? "
                "ORDER BY rowid",
                (row["pos_rowid"],),
            ).fetchall()
        ]
        actual = [
            r["name"] for r in _db.get_class_declension_rows(conn, row["rowid"])
        ]
        if actual != expected:
            results.append(ValidationResult(
                rule_id="VAL-DCL-001",
                severity="ERROR",
                entity_type="word_class",
                entity_id=f"{row['pos_name']}/{row['name']}",
                message="Declensions differ from those of the part of speech",
                details={"expected": expected, "actual": actual},
            ))
    return results


def _check_entry_forms(
    conn: sqlite3.Connection, row: sqlite3.Row
) -> list[ValidationResult]:
    expected = {
        r["rowid"] for r in _db.get_class_declension_rows(conn, row["class_rowid"])
    }
    form_rows = _db.get_form_rows(conn, row["rowid"])
    actual = [r["declension_rowid"] for r in form_rows]
    if len(actual) == len(expected) and set(actual) == expected:
        return []
    return [ValidationResult(
        rule_id="VAL-FRM-001",
        severity="ERROR",
        entity_type="entry",
        entity_id=str(row["rowid"]),
        message=(
            f"Entry {row['form']!r} has {len(actual)} forms "
            f"for {len(expected)} declensions"
        ),
        details={"forms": [r["declension"] for r in form_rows]},
    )]


def _val_frm_001(
    conn: sqlite3.Connection, pos: str | None
) -> list[ValidationResult]:
    """Entries whose forms do not match their class's declensions one to one."""
    results = []
    filt, params = _pos_filter(pos)
    rows = conn.execute(
        "SELECT e.rowid FROM entries e "
        "JOIN word_classes c ON e.class_rowid = c.rowid "
        "JOIN parts_of_speech p ON c.pos_rowid = p.rowid "
        f"WHERE 1=1{filt} ORDER BY e.rowid",
        params,
    ).fetchall()
    for r in rows:
        results.extend(_check_entry_forms(conn, _db.get_entry_row(conn, r["rowid"])))
    return results


def _check_form_derivations(
    conn: sqlite3.Connection, where: str, params: list
) -> list[ValidationResult]:
    results = []
    rules_cache: dict[int, dict] = {}
    rows = conn.execute(
        "SELECT f.rowid, f.declension_rowid, f.form, f.pronunciation, "
        "r.id AS rhyme, f.irregular_form, f.irregular_pronunciation, "
        "f.irregular_rhyme, e.form AS base_form, "
        "e.pronunciation AS base_pronunciation, e.rhyme AS base_rhyme "
        "FROM word_forms f "
        "JOIN entries e ON f.entry_rowid = e.rowid "
        "JOIN rhyme_groups r ON f.rhyme_rowid = r.rowid "
        "JOIN word_classes c ON e.class_rowid = c.rowid "
        "JOIN parts_of_speech p ON c.pos_rowid = p.rowid "
        f"{where} ORDER BY f.rowid",
        params,
    ).fetchall()
    for row in rows:
        decl_rowid = row["declension_rowid"]
        if decl_rowid not in rules_cache:
            rules_cache[decl_rowid] = group_rules(_db.get_rule_rows(conn, decl_rowid))
        rules = rules_cache[decl_rowid]
        for pipeline in DEFAULT_PIPELINES:
            field = pipeline.value
            if row[f"irregular_{field}"]:
                continue
            expected = derive(row[f"base_{field}"], rules[pipeline])
            if row[field] != expected:
                results.append(ValidationResult(
                    rule_id="VAL-FRM-002",
                    severity="WARNING",
                    entity_type="word_form",
                    entity_id=str(row["rowid"]),
                    message=f"Stale {field}: {row[field]!r} != {expected!r}",
                    details={"field": field, "expected": expected},
                ))
    return results


def _val_frm_002(
    conn: sqlite3.Connection, pos: str | None
) -> list[ValidationResult]:
    """Non-irregular form fields that no longer match their derivation."""
    filt, params = _pos_filter(pos)
    return _check_form_derivations(conn, f"WHERE 1=1{filt}", params)


def _val_rhy_001(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Rhyme groups without members."""
    sql = (
        "SELECT r.id FROM rhyme_groups r WHERE NOT EXISTS "
        "(SELECT 1 FROM word_forms f WHERE f.rhyme_rowid = r.rowid)"
    )
    return [
        ValidationResult(
            rule_id="VAL-RHY-001",
            severity="ERROR",
            entity_type="rhyme_group",
            entity_id=row["id"],
            message="Rhyme group has no members",
            details=None,
        )
        for row in conn.execute(sql).fetchall()
    ]


def _untranslated(row: sqlite3.Row) -> ValidationResult:
    return ValidationResult(
        rule_id="VAL-ENT-001",
        severity="WARNING",
        entity_type="entry",
        entity_id=str(row["rowid"]),
        message=f"Entry {row['form']!r} has no translation",
        details=None,
    )


def _val_ent_001(
    conn: sqlite3.Connection, pos: str | None
) -> list[ValidationResult]:
    """Entries with an empty translation."""
    filt, params = _pos_filter(pos)
    rows = conn.execute(
        "SELECT e.rowid, e.form FROM entries e "
        "JOIN word_classes c ON e.class_rowid = c.rowid "
        "JOIN parts_of_speech p ON c.pos_rowid = p.rowid "
        f"WHERE e.translation = ''{filt} ORDER BY e.rowid",
        params,
    ).fetchall()
    return [_untranslated(row) for row in rows]
