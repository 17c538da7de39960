"""LexiconEditor: main entry point for the conlang-editor library."""

from __future__ import annotations

import functools
import logging
import sqlite3
from collections.abc import Callable, Generator, Iterable
from contextlib import contextmanager
from typing import Any, TypeVar

from conlang_editor import db as _db
from conlang_editor.derivation import check_rule, derive, group_rules
from conlang_editor.exceptions import (
    DuplicateNameError,
    InvariantViolationError,
    LastClassError,
    NotFoundError,
    ValidationError,
)
from conlang_editor.models import (
    DEFAULT_PIPELINES,
    DeclensionModel,
    EntryModel,
    PartOfSpeechModel,
    Pipeline,
    RhymeGroupModel,
    TransformRule,
    ValidationResult,
    WordClassModel,
    WordFormModel,
)

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])

# Forms joined with the base data they are derived from
_REDERIVE_SELECT = (
    "SELECT f.rowid, f.declension_rowid, f.rhyme_rowid, "
    "f.irregular_form, f.irregular_pronunciation, f.irregular_rhyme, "
    "e.form AS base_form, e.pronunciation AS base_pronunciation, "
    "e.rhyme AS base_rhyme "
    "FROM word_forms f JOIN entries e ON f.entry_rowid = e.rowid "
)


def _modifies_db(method: _F) -> _F:
    """Decorator: wraps mutation methods in a transaction (unless in batch)."""

    @functools.wraps(method)
    def wrapper(self: LexiconEditor, *args: Any, **kwargs: Any) -> Any:
        if self._in_batch:
            return method(self, *args, **kwargs)
        with self._conn:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def _check_name(name: str, kind: str) -> None:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"{kind} name must be a non-empty string")


def _check_pipeline(pipeline: Pipeline | str) -> Pipeline:
    try:
        return Pipeline(pipeline)
    except ValueError as e:
        valid = ", ".join(p.value for p in Pipeline)
        raise ValidationError(
            f"Unknown pipeline {pipeline!r} (expected one of: {valid})"
        ) from e


class LexiconEditor:
    """A programmatic API for building and editing a conlang lexicon.

    The editor is the lexicon index: it owns every part of speech, entry
    and rhyme group, and every mutation goes through one of its methods.
    Each public mutator runs in a single transaction, so a cascade either
    completes or leaves the lexicon untouched.
    """

    def __init__(self) -> None:
        self._conn = _db.connect()
        _db.init_db(self._conn)
        self._in_batch = False
        self._batch_depth = 0

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> LexiconEditor:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Batch context manager
    # ------------------------------------------------------------------

    @contextmanager
    def batch(self) -> Generator[None, None, None]:
        """Group multiple mutations into a single transaction."""
        self._batch_depth += 1
        if self._batch_depth == 1:
            self._in_batch = True
            self._conn.execute("BEGIN")
        try:
            yield
        except BaseException:
            if self._batch_depth == 1:
                self._conn.rollback()
                self._in_batch = False
            self._batch_depth -= 1
            raise
        else:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self._conn.commit()
                self._in_batch = False

    # ------------------------------------------------------------------
    # Name resolution
    # ------------------------------------------------------------------

    def _resolve_pos(self, name: str) -> sqlite3.Row:
        row = _db.get_pos_row(self._conn, name)
        if row is None:
            raise NotFoundError(f"Part of speech not found: {name!r}")
        return row

    def _resolve_class(self, pos: str, name: str) -> sqlite3.Row:
        pos_row = self._resolve_pos(pos)
        row = _db.get_class_row(self._conn, pos_row["rowid"], name)
        if row is None:
            raise NotFoundError(f"Word class not found: {pos}/{name}")
        return row

    def _resolve_declension(
        self, pos: str, word_class: str, name: str
    ) -> sqlite3.Row:
        class_row = self._resolve_class(pos, word_class)
        row = _db.get_declension_row(self._conn, class_row["rowid"], name)
        if row is None:
            raise NotFoundError(
                f"Declension not found: {pos}/{word_class}/{name}"
            )
        return row

    def _resolve_entry(self, entry_id: int) -> sqlite3.Row:
        row = _db.get_entry_row(self._conn, entry_id)
        if row is None:
            raise NotFoundError(f"Entry not found: {entry_id!r}")
        return row

    def _resolve_form(self, entry_id: int, declension: str) -> sqlite3.Row:
        self._resolve_entry(entry_id)
        row = _db.get_form_row(self._conn, entry_id, declension)
        if row is None:
            raise NotFoundError(
                f"Entry {entry_id} has no form for declension {declension!r}"
            )
        return row

    def _class_rows(self, pos_rowid: int) -> list[sqlite3.Row]:
        return self._conn.execute(
            "SELECT rowid, name FROM word_classes WHERE pos_rowid = ? "
            "ORDER BY rowid",
            (pos_rowid,),
        ).fetchall()

    # ------------------------------------------------------------------
    # Parts of speech
    # ------------------------------------------------------------------

    @_modifies_db
    def add_part_of_speech(self, name: str) -> PartOfSpeechModel:
        """Create a part of speech with a default word class of the same name."""
        _check_name(name, "Part of speech")
        try:
            cur = self._conn.execute(
                "INSERT INTO parts_of_speech (name) VALUES (?)", (name,)
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateNameError(
                f"Part of speech already exists: {name!r}"
            ) from e
        pos_rowid = cur.lastrowid
        self._conn.execute(
            "INSERT INTO word_classes (pos_rowid, name) VALUES (?, ?)",
            (pos_rowid, name),
        )
        logger.debug("Created part of speech %r", name)
        return self._build_pos_model(pos_rowid)

    @_modifies_db
    def remove_part_of_speech(self, name: str, *, cascade: bool = False) -> None:
        pos_row = self._resolve_pos(name)
        entry_rows = self._conn.execute(
            "SELECT e.rowid FROM entries e "
            "JOIN word_classes c ON e.class_rowid = c.rowid "
            "WHERE c.pos_rowid = ?",
            (pos_row["rowid"],),
        ).fetchall()
        if entry_rows and not cascade:
            raise InvariantViolationError(
                f"Part of speech {name!r} has {len(entry_rows)} entries; "
                "use cascade=True to force deletion"
            )
        for er in entry_rows:
            self._remove_entry_internal(er["rowid"])
        # classes, declensions and rules follow through ON DELETE CASCADE
        self._conn.execute(
            "DELETE FROM parts_of_speech WHERE rowid = ?", (pos_row["rowid"],)
        )
        logger.debug(
            "Removed part of speech %r and %d entries", name, len(entry_rows)
        )

    @_modifies_db
    def rename_part_of_speech(self, name: str, new_name: str) -> PartOfSpeechModel:
        pos_row = self._resolve_pos(name)
        _check_name(new_name, "Part of speech")
        if new_name != name and _db.get_pos_row(self._conn, new_name) is not None:
            raise DuplicateNameError(f"Part of speech already exists: {new_name!r}")
        self._conn.execute(
            "UPDATE parts_of_speech SET name = ? WHERE rowid = ?",
            (new_name, pos_row["rowid"]),
        )
        return self._build_pos_model(pos_row["rowid"])

    def get_part_of_speech(self, name: str) -> PartOfSpeechModel:
        return self._build_pos_model(self._resolve_pos(name)["rowid"])

    def list_parts_of_speech(self) -> list[PartOfSpeechModel]:
        rows = self._conn.execute(
            "SELECT rowid FROM parts_of_speech ORDER BY rowid"
        ).fetchall()
        return [self._build_pos_model(r["rowid"]) for r in rows]

    def _build_pos_model(self, pos_rowid: int) -> PartOfSpeechModel:
        row = self._conn.execute(
            "SELECT rowid, name FROM parts_of_speech WHERE rowid = ?",
            (pos_rowid,),
        ).fetchone()
        declensions = self._conn.execute(
            "SELECT name FROM pos_declensions WHERE pos_rowid = ? ORDER BY rowid",
            (pos_rowid,),
        ).fetchall()
        entry_count = self._conn.execute(
            "SELECT COUNT(*) FROM entries e "
            "JOIN word_classes c ON e.class_rowid = c.rowid "
            "WHERE c.pos_rowid = ?",
            (pos_rowid,),
        ).fetchone()[0]
        return PartOfSpeechModel(
            id=row["rowid"],
            name=row["name"],
            word_classes=tuple(c["name"] for c in self._class_rows(pos_rowid)),
            declensions=tuple(d["name"] for d in declensions),
            entry_count=entry_count,
        )

    # ------------------------------------------------------------------
    # Word classes
    # ------------------------------------------------------------------

    @_modifies_db
    def add_word_class(self, pos: str, name: str) -> WordClassModel:
        """Create a word class carrying every declension of its part of speech.

        The new declensions start with empty pipelines.
        """
        pos_row = self._resolve_pos(pos)
        _check_name(name, "Word class")
        if _db.get_class_row(self._conn, pos_row["rowid"], name) is not None:
            raise DuplicateNameError(f"Word class already exists: {pos}/{name}")
        cur = self._conn.execute(
            "INSERT INTO word_classes (pos_rowid, name) VALUES (?, ?)",
            (pos_row["rowid"], name),
        )
        class_rowid = cur.lastrowid
        canonical = self._conn.execute(
            "SELECT rowid, name FROM pos_declensions WHERE pos_rowid = ? "
            "ORDER BY rowid",
            (pos_row["rowid"],),
        ).fetchall()
        for cr in canonical:
            self._add_class_declension(class_rowid, cr["rowid"], cr["name"])
        return self._build_class_model(class_rowid)

    @_modifies_db
    def remove_word_class(
        self, pos: str, name: str, *, cascade: bool = False
    ) -> None:
        class_row = self._resolve_class(pos, name)
        if len(self._class_rows(class_row["pos_rowid"])) <= 1:
            raise LastClassError(
                f"Cannot remove {name!r}: it is the only word class of {pos!r}"
            )
        entry_rows = self._conn.execute(
            "SELECT rowid FROM entries WHERE class_rowid = ?",
            (class_row["rowid"],),
        ).fetchall()
        if entry_rows and not cascade:
            raise InvariantViolationError(
                f"Word class {pos}/{name} has {len(entry_rows)} entries; "
                "use cascade=True to force deletion"
            )
        for er in entry_rows:
            self._remove_entry_internal(er["rowid"])
        self._conn.execute(
            "DELETE FROM word_classes WHERE rowid = ?", (class_row["rowid"],)
        )

    @_modifies_db
    def rename_word_class(
        self, pos: str, name: str, new_name: str
    ) -> WordClassModel:
        class_row = self._resolve_class(pos, name)
        _check_name(new_name, "Word class")
        if (
            new_name != name
            and _db.get_class_row(self._conn, class_row["pos_rowid"], new_name)
            is not None
        ):
            raise DuplicateNameError(f"Word class already exists: {pos}/{new_name}")
        self._conn.execute(
            "UPDATE word_classes SET name = ? WHERE rowid = ?",
            (new_name, class_row["rowid"]),
        )
        return self._build_class_model(class_row["rowid"])

    def get_word_class(self, pos: str, name: str) -> WordClassModel:
        return self._build_class_model(self._resolve_class(pos, name)["rowid"])

    def list_word_classes(self, pos: str) -> list[WordClassModel]:
        pos_row = self._resolve_pos(pos)
        return [
            self._build_class_model(c["rowid"])
            for c in self._class_rows(pos_row["rowid"])
        ]

    def _build_class_model(self, class_rowid: int) -> WordClassModel:
        row = self._conn.execute(
            "SELECT c.rowid, c.name, p.name AS pos_name "
            "FROM word_classes c JOIN parts_of_speech p ON c.pos_rowid = p.rowid "
            "WHERE c.rowid = ?",
            (class_rowid,),
        ).fetchone()
        entry_count = self._conn.execute(
            "SELECT COUNT(*) FROM entries WHERE class_rowid = ?",
            (class_rowid,),
        ).fetchone()[0]
        return WordClassModel(
            id=row["rowid"],
            name=row["name"],
            pos=row["pos_name"],
            declensions=tuple(
                d["name"]
                for d in _db.get_class_declension_rows(self._conn, class_rowid)
            ),
            entry_count=entry_count,
        )

    # ------------------------------------------------------------------
    # Declensions
    # ------------------------------------------------------------------

    @_modifies_db
    def add_declension(self, pos: str, name: str) -> PartOfSpeechModel:
        """Add a declension to every word class of ``pos``.

        Every existing entry of those classes gains one form for it.
        """
        pos_row = self._resolve_pos(pos)
        _check_name(name, "Declension")
        if _db.get_canonical_row(self._conn, pos_row["rowid"], name) is not None:
            raise DuplicateNameError(f"Declension already exists: {pos}/{name}")
        cur = self._conn.execute(
            "INSERT INTO pos_declensions (pos_rowid, name) VALUES (?, ?)",
            (pos_row["rowid"], name),
        )
        for cr in self._class_rows(pos_row["rowid"]):
            self._add_class_declension(cr["rowid"], cur.lastrowid, name)
        return self._build_pos_model(pos_row["rowid"])

    @_modifies_db
    def remove_declension(self, pos: str, name: str) -> PartOfSpeechModel:
        """Remove a declension from every word class of ``pos``, with its forms."""
        pos_row = self._resolve_pos(pos)
        canonical = _db.get_canonical_row(self._conn, pos_row["rowid"], name)
        if canonical is None:
            raise NotFoundError(f"Declension not found: {pos}/{name}")
        for cr in self._class_rows(pos_row["rowid"]):
            decl_row = _db.get_declension_row(self._conn, cr["rowid"], name)
            if decl_row is None:
                raise NotFoundError(
                    f"Declension not found: {pos}/{cr['name']}/{name}"
                )
            self._remove_class_declension(decl_row["rowid"])
        self._conn.execute(
            "DELETE FROM pos_declensions WHERE rowid = ?", (canonical["rowid"],)
        )
        return self._build_pos_model(pos_row["rowid"])

    @_modifies_db
    def rename_declension(
        self, pos: str, name: str, new_name: str
    ) -> PartOfSpeechModel:
        pos_row = self._resolve_pos(pos)
        canonical = _db.get_canonical_row(self._conn, pos_row["rowid"], name)
        if canonical is None:
            raise NotFoundError(f"Declension not found: {pos}/{name}")
        _check_name(new_name, "Declension")
        if new_name == name:
            return self._build_pos_model(pos_row["rowid"])
        if _db.get_canonical_row(self._conn, pos_row["rowid"], new_name) is not None:
            raise DuplicateNameError(f"Declension already exists: {pos}/{new_name}")
        self._conn.execute(
            "UPDATE pos_declensions SET name = ? WHERE rowid = ?",
            (new_name, canonical["rowid"]),
        )
        for cr in self._class_rows(pos_row["rowid"]):
            decl_row = _db.get_declension_row(self._conn, cr["rowid"], name)
            if decl_row is None:
                raise NotFoundError(
                    f"Declension not found: {pos}/{cr['name']}/{name}"
                )
            if _db.get_declension_row(self._conn, cr["rowid"], new_name) is not None:
                raise DuplicateNameError(
                    f"Declension already exists: {pos}/{cr['name']}/{new_name}"
                )
            self._conn.execute(
                "UPDATE declensions SET name = ? WHERE rowid = ?",
                (new_name, decl_row["rowid"]),
            )
        return self._build_pos_model(pos_row["rowid"])

    def get_declension(
        self, pos: str, word_class: str, name: str
    ) -> DeclensionModel:
        return self._build_declension_model(
            self._resolve_declension(pos, word_class, name)["rowid"]
        )

    def list_declensions(self, pos: str, word_class: str) -> list[DeclensionModel]:
        class_row = self._resolve_class(pos, word_class)
        return [
            self._build_declension_model(d["rowid"])
            for d in _db.get_class_declension_rows(self._conn, class_row["rowid"])
        ]

    def _add_class_declension(
        self, class_rowid: int, canonical_rowid: int, name: str
    ) -> int:
        if _db.get_declension_row(self._conn, class_rowid, name) is not None:
            raise DuplicateNameError(
                f"Declension {name!r} already exists in word class {class_rowid}"
            )
        cur = self._conn.execute(
            "INSERT INTO declensions (class_rowid, canonical_rowid, name) "
            "VALUES (?, ?, ?)",
            (class_rowid, canonical_rowid, name),
        )
        decl_rowid = cur.lastrowid
        rules = self._load_rules(decl_rowid)
        entry_rows = self._conn.execute(
            "SELECT rowid, form, pronunciation, rhyme FROM entries "
            "WHERE class_rowid = ? ORDER BY rowid",
            (class_rowid,),
        ).fetchall()
        for er in entry_rows:
            self._create_form(er, decl_rowid, rules)
        logger.debug(
            "Declension %r added to class %d; %d forms created",
            name, class_rowid, len(entry_rows),
        )
        return decl_rowid

    def _remove_class_declension(self, decl_rowid: int) -> None:
        form_rows = self._conn.execute(
            "SELECT rowid, rhyme_rowid FROM word_forms WHERE declension_rowid = ?",
            (decl_rowid,),
        ).fetchall()
        for fr in form_rows:
            self._remove_form(fr["rowid"], fr["rhyme_rowid"])
        # rules follow through ON DELETE CASCADE
        self._conn.execute("DELETE FROM declensions WHERE rowid = ?", (decl_rowid,))
        logger.debug(
            "Declension %d removed; %d forms deleted", decl_rowid, len(form_rows)
        )

    def _build_declension_model(self, decl_rowid: int) -> DeclensionModel:
        row = self._conn.execute(
            "SELECT d.rowid, d.name, c.name AS class_name, p.name AS pos_name "
            "FROM declensions d "
            "JOIN word_classes c ON d.class_rowid = c.rowid "
            "JOIN parts_of_speech p ON c.pos_rowid = p.rowid "
            "WHERE d.rowid = ?",
            (decl_rowid,),
        ).fetchone()
        rules = self._load_rules(decl_rowid)
        return DeclensionModel(
            id=row["rowid"],
            name=row["name"],
            pos=row["pos_name"],
            word_class=row["class_name"],
            form_rules=tuple(rules[Pipeline.FORM]),
            pronunciation_rules=tuple(rules[Pipeline.PRONUNCIATION]),
            rhyme_rules=tuple(rules[Pipeline.RHYME]),
        )

    # ------------------------------------------------------------------
    # Transform rules
    # ------------------------------------------------------------------

    @_modifies_db
    def add_rule(
        self,
        pos: str,
        word_class: str,
        declension: str,
        pipeline: Pipeline | str,
        guard: str,
        pattern: str,
        replacement: str,
    ) -> DeclensionModel:
        """Append a rule to one pipeline and rederive the declension's forms."""
        pipeline = _check_pipeline(pipeline)
        rule = check_rule(guard, pattern, replacement)
        decl_row = self._resolve_declension(pos, word_class, declension)
        self._conn.execute(
            "INSERT INTO rules (declension_rowid, pipeline, guard, pattern, "
            "replacement) VALUES (?, ?, ?, ?, ?)",
            (decl_row["rowid"], pipeline.value,
             rule.guard, rule.pattern, rule.replacement),
        )
        self._rederive_declension(decl_row["rowid"], (pipeline,))
        return self._build_declension_model(decl_row["rowid"])

    @_modifies_db
    def remove_rule(
        self,
        pos: str,
        word_class: str,
        declension: str,
        pipeline: Pipeline | str,
        guard: str,
        pattern: str,
        replacement: str,
    ) -> DeclensionModel:
        """Remove the first rule of a pipeline equal to the one given."""
        pipeline = _check_pipeline(pipeline)
        decl_row = self._resolve_declension(pos, word_class, declension)
        row = self._conn.execute(
            "SELECT rowid FROM rules WHERE declension_rowid = ? "
            "AND pipeline = ? AND guard = ? AND pattern = ? AND replacement = ? "
            "ORDER BY rowid LIMIT 1",
            (decl_row["rowid"], pipeline.value, guard, pattern, replacement),
        ).fetchone()
        if row is None:
            raise NotFoundError(
                f"No {pipeline.value} rule ({guard!r}, {pattern!r}, "
                f"{replacement!r}) in {pos}/{word_class}/{declension}"
            )
        self._conn.execute("DELETE FROM rules WHERE rowid = ?", (row["rowid"],))
        self._rederive_declension(decl_row["rowid"], (pipeline,))
        return self._build_declension_model(decl_row["rowid"])

    @_modifies_db
    def clear_rules(
        self,
        pos: str,
        word_class: str,
        declension: str,
        pipeline: Pipeline | str | None = None,
    ) -> DeclensionModel:
        """Empty one pipeline, or all three when ``pipeline`` is None."""
        decl_row = self._resolve_declension(pos, word_class, declension)
        if pipeline is None:
            pipelines = DEFAULT_PIPELINES
        else:
            pipelines = (_check_pipeline(pipeline),)
        for p in pipelines:
            self._conn.execute(
                "DELETE FROM rules WHERE declension_rowid = ? AND pipeline = ?",
                (decl_row["rowid"], p.value),
            )
        self._rederive_declension(decl_row["rowid"], pipelines)
        return self._build_declension_model(decl_row["rowid"])

    def _load_rules(self, decl_rowid: int) -> dict[Pipeline, list[TransformRule]]:
        return group_rules(_db.get_rule_rows(self._conn, decl_rowid))

    # ------------------------------------------------------------------
    # Derivation and propagation
    # ------------------------------------------------------------------

    def _create_form(
        self,
        entry_row: sqlite3.Row,
        decl_rowid: int,
        rules: dict[Pipeline, list[TransformRule]],
    ) -> None:
        rhyme_rowid = _db.assign_rhyme_group(
            self._conn, derive(entry_row["rhyme"], rules[Pipeline.RHYME])
        )
        self._conn.execute(
            "INSERT INTO word_forms (entry_rowid, declension_rowid, form, "
            "pronunciation, rhyme_rowid) VALUES (?, ?, ?, ?, ?)",
            (
                entry_row["rowid"],
                decl_rowid,
                derive(entry_row["form"], rules[Pipeline.FORM]),
                derive(entry_row["pronunciation"], rules[Pipeline.PRONUNCIATION]),
                rhyme_rowid,
            ),
        )

    def _remove_form(self, form_rowid: int, rhyme_rowid: int) -> None:
        self._conn.execute("DELETE FROM word_forms WHERE rowid = ?", (form_rowid,))
        if _db.release_rhyme_group(self._conn, rhyme_rowid):
            logger.debug("Rhyme group %d emptied and deleted", rhyme_rowid)

    def _build_forms(self, entry_rowid: int, class_rowid: int) -> None:
        existing = self._conn.execute(
            "SELECT COUNT(*) FROM word_forms WHERE entry_rowid = ?",
            (entry_rowid,),
        ).fetchone()[0]
        if existing:
            raise InvariantViolationError(
                f"Entry {entry_rowid} already has {existing} forms"
            )
        entry_row = self._conn.execute(
            "SELECT rowid, form, pronunciation, rhyme FROM entries WHERE rowid = ?",
            (entry_rowid,),
        ).fetchone()
        for decl in _db.get_class_declension_rows(self._conn, class_rowid):
            self._create_form(entry_row, decl["rowid"], self._load_rules(decl["rowid"]))

    def _remove_forms(self, entry_rowid: int) -> None:
        form_rows = self._conn.execute(
            "SELECT rowid, rhyme_rowid FROM word_forms WHERE entry_rowid = ?",
            (entry_rowid,),
        ).fetchall()
        for fr in form_rows:
            self._remove_form(fr["rowid"], fr["rhyme_rowid"])

    def _set_form_field(
        self, form_rowid: int, rhyme_rowid: int, pipeline: Pipeline, value: str
    ) -> None:
        if pipeline is Pipeline.RHYME:
            new_rhyme_rowid = _db.assign_rhyme_group(self._conn, value)
            if new_rhyme_rowid != rhyme_rowid:
                self._conn.execute(
                    "UPDATE word_forms SET rhyme_rowid = ? WHERE rowid = ?",
                    (new_rhyme_rowid, form_rowid),
                )
                _db.release_rhyme_group(self._conn, rhyme_rowid)
        else:
            self._conn.execute(
                f"UPDATE word_forms SET {pipeline.value} = ? WHERE rowid = ?",
                (value, form_rowid),
            )

    def _rederive_form(
        self,
        row: sqlite3.Row,
        rules: dict[Pipeline, list[TransformRule]],
        pipelines: Iterable[Pipeline],
    ) -> None:
        for pipeline in pipelines:
            if row[f"irregular_{pipeline.value}"]:
                continue
            value = derive(row[f"base_{pipeline.value}"], rules[pipeline])
            self._set_form_field(row["rowid"], row["rhyme_rowid"], pipeline, value)

    def _rederive_declension(
        self, decl_rowid: int, pipelines: tuple[Pipeline, ...]
    ) -> None:
        rules = self._load_rules(decl_rowid)
        rows = self._conn.execute(
            _REDERIVE_SELECT + "WHERE f.declension_rowid = ?", (decl_rowid,)
        ).fetchall()
        for row in rows:
            self._rederive_form(row, rules, pipelines)
        logger.debug(
            "Rederived %s of %d forms of declension %d",
            "/".join(p.value for p in pipelines), len(rows), decl_rowid,
        )

    def _rederive_entry(
        self, entry_rowid: int, pipelines: tuple[Pipeline, ...]
    ) -> None:
        rows = self._conn.execute(
            _REDERIVE_SELECT + "WHERE f.entry_rowid = ?", (entry_rowid,)
        ).fetchall()
        for row in rows:
            self._rederive_form(row, self._load_rules(row["declension_rowid"]), pipelines)

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    @_modifies_db
    def add_entry(
        self,
        pos: str,
        word_class: str,
        form: str,
        pronunciation: str,
        rhyme: str,
        *,
        translation: str = "",
        definition: str = "",
    ) -> EntryModel:
        """Create an entry and derive one form per declension of its class."""
        class_row = self._resolve_class(pos, word_class)
        _check_name(form, "Entry")
        cur = self._conn.execute(
            "INSERT INTO entries (class_rowid, form, pronunciation, rhyme, "
            "translation, definition) VALUES (?, ?, ?, ?, ?, ?)",
            (class_row["rowid"], form, pronunciation, rhyme,
             translation, definition),
        )
        self._build_forms(cur.lastrowid, class_row["rowid"])
        logger.debug("Created entry %d (%r) in %s/%s", cur.lastrowid, form, pos, word_class)
        return self._build_entry_model(cur.lastrowid)

    @_modifies_db
    def update_entry(
        self,
        entry_id: int,
        *,
        form: str | None = None,
        pronunciation: str | None = None,
        rhyme: str | None = None,
        translation: str | None = None,
        definition: str | None = None,
    ) -> EntryModel:
        """Edit an entry.

        Changing base data rederives the matching field of every form that
        is not under an irregular override. Translation and definition are
        plain edits.
        """
        self._resolve_entry(entry_id)
        if form is not None:
            _check_name(form, "Entry")
        base = {
            Pipeline.FORM: form,
            Pipeline.PRONUNCIATION: pronunciation,
            Pipeline.RHYME: rhyme,
        }
        changed = tuple(p for p, v in base.items() if v is not None)
        for pipeline in changed:
            self._conn.execute(
                f"UPDATE entries SET {pipeline.value} = ? WHERE rowid = ?",
                (base[pipeline], entry_id),
            )
        if translation is not None:
            self._conn.execute(
                "UPDATE entries SET translation = ? WHERE rowid = ?",
                (translation, entry_id),
            )
        if definition is not None:
            self._conn.execute(
                "UPDATE entries SET definition = ? WHERE rowid = ?",
                (definition, entry_id),
            )
        if changed:
            self._rederive_entry(entry_id, changed)
        return self._build_entry_model(entry_id)

    @_modifies_db
    def change_word_class(self, entry_id: int, word_class: str) -> EntryModel:
        """Move an entry to another class of its part of speech.

        All forms are rebuilt from scratch, which also drops any irregular
        overrides.
        """
        row = self._resolve_entry(entry_id)
        class_row = _db.get_class_row(self._conn, row["pos_rowid"], word_class)
        if class_row is None:
            raise NotFoundError(
                f"Word class not found: {row['pos_name']}/{word_class}"
            )
        if class_row["rowid"] == row["class_rowid"]:
            return self._build_entry_model(entry_id)
        self._remove_forms(entry_id)
        self._conn.execute(
            "UPDATE entries SET class_rowid = ? WHERE rowid = ?",
            (class_row["rowid"], entry_id),
        )
        self._build_forms(entry_id, class_row["rowid"])
        return self._build_entry_model(entry_id)

    @_modifies_db
    def remove_entry(self, entry_id: int) -> None:
        self._resolve_entry(entry_id)
        self._remove_entry_internal(entry_id)

    def _remove_entry_internal(self, entry_rowid: int) -> None:
        self._remove_forms(entry_rowid)
        self._conn.execute("DELETE FROM entries WHERE rowid = ?", (entry_rowid,))

    def get_entry(self, entry_id: int) -> EntryModel:
        return self._build_entry_model(self._resolve_entry(entry_id)["rowid"])

    def find_entries(
        self,
        *,
        form: str | None = None,
        translation: str | None = None,
        pos: str | None = None,
        word_class: str | None = None,
    ) -> list[EntryModel]:
        clauses: list[str] = []
        params: list[Any] = []

        if form is not None:
            clauses.append("e.form = ?")
            params.append(form)
        if translation is not None:
            clauses.append("e.translation = ?")
            params.append(translation)
        if pos is not None:
            clauses.append("p.name = ?")
            params.append(pos)
        if word_class is not None:
            clauses.append("c.name = ?")
            params.append(word_class)

        where = " AND ".join(clauses) if clauses else "1=1"
        sql = (
            "SELECT e.rowid FROM entries e "
            "JOIN word_classes c ON e.class_rowid = c.rowid "
            "JOIN parts_of_speech p ON c.pos_rowid = p.rowid "
            f"WHERE {where} ORDER BY e.rowid"
        )
        rows = self._conn.execute(sql, params).fetchall()
        return [self._build_entry_model(r["rowid"]) for r in rows]

    def _build_entry_model(self, entry_rowid: int) -> EntryModel:
        row = self._resolve_entry(entry_rowid)
        return EntryModel(
            id=row["rowid"],
            form=row["form"],
            pronunciation=row["pronunciation"],
            rhyme=row["rhyme"],
            translation=row["translation"],
            definition=row["definition"],
            pos=row["pos_name"],
            word_class=row["class_name"],
        )

    # ------------------------------------------------------------------
    # Inflected forms
    # ------------------------------------------------------------------

    def get_forms(self, entry_id: int) -> list[WordFormModel]:
        """All forms of an entry, in declension order."""
        self._resolve_entry(entry_id)
        return [
            self._row_to_form(r) for r in _db.get_form_rows(self._conn, entry_id)
        ]

    def get_form(self, entry_id: int, declension: str) -> WordFormModel:
        return self._row_to_form(self._resolve_form(entry_id, declension))

    @_modifies_db
    def set_irregular(
        self,
        entry_id: int,
        declension: str,
        *,
        form: str | None = None,
        pronunciation: str | None = None,
        rhyme: str | None = None,
    ) -> WordFormModel:
        """Fix fields of one form by hand.

        The given fields stop following their pipelines until
        :meth:`clear_irregular` is called for them.
        """
        row = self._resolve_form(entry_id, declension)
        values = {
            Pipeline.FORM: form,
            Pipeline.PRONUNCIATION: pronunciation,
            Pipeline.RHYME: rhyme,
        }
        values = {p: v for p, v in values.items() if v is not None}
        if not values:
            raise ValidationError("set_irregular needs at least one value")
        for pipeline, value in values.items():
            self._set_form_field(row["rowid"], row["rhyme_rowid"], pipeline, value)
            self._conn.execute(
                f"UPDATE word_forms SET irregular_{pipeline.value} = 1 "
                "WHERE rowid = ?",
                (row["rowid"],),
            )
        return self.get_form(entry_id, declension)

    @_modifies_db
    def clear_irregular(
        self, entry_id: int, declension: str, *fields: Pipeline | str
    ) -> WordFormModel:
        """Drop irregular overrides (all of them when no field is named)."""
        pipelines = tuple(_check_pipeline(f) for f in fields) or DEFAULT_PIPELINES
        form_rowid = self._resolve_form(entry_id, declension)["rowid"]
        for pipeline in pipelines:
            self._conn.execute(
                f"UPDATE word_forms SET irregular_{pipeline.value} = 0 "
                "WHERE rowid = ?",
                (form_rowid,),
            )
        row = self._conn.execute(
            _REDERIVE_SELECT + "WHERE f.rowid = ?", (form_rowid,)
        ).fetchone()
        self._rederive_form(row, self._load_rules(row["declension_rowid"]), pipelines)
        return self.get_form(entry_id, declension)

    def _row_to_form(self, row: sqlite3.Row) -> WordFormModel:
        return WordFormModel(
            id=row["rowid"],
            entry_id=row["entry_rowid"],
            declension=row["declension"],
            form=row["form"],
            pronunciation=row["pronunciation"],
            rhyme=row["rhyme"],
            irregular_form=bool(row["irregular_form"]),
            irregular_pronunciation=bool(row["irregular_pronunciation"]),
            irregular_rhyme=bool(row["irregular_rhyme"]),
        )

    # ------------------------------------------------------------------
    # Rhyme groups
    # ------------------------------------------------------------------

    def get_rhyme_group(self, rhyme_id: str) -> RhymeGroupModel:
        row = _db.get_rhyme_group_row(self._conn, rhyme_id)
        if row is None:
            raise NotFoundError(f"Rhyme group not found: {rhyme_id!r}")
        members = _db.get_rhyme_member_rows(self._conn, row["rowid"])
        return RhymeGroupModel(
            id=row["id"], form_ids=tuple(m["rowid"] for m in members)
        )

    def list_rhyme_groups(self) -> list[RhymeGroupModel]:
        rows = self._conn.execute(
            "SELECT id FROM rhyme_groups ORDER BY id"
        ).fetchall()
        return [self.get_rhyme_group(r["id"]) for r in rows]

    def get_rhymes(self, rhyme_id: str) -> list[WordFormModel]:
        """The forms of a rhyme group, in creation order."""
        row = _db.get_rhyme_group_row(self._conn, rhyme_id)
        if row is None:
            raise NotFoundError(f"Rhyme group not found: {rhyme_id!r}")
        return [
            self._row_to_form(m)
            for m in _db.get_rhyme_member_rows(self._conn, row["rowid"])
        ]

    def find_rhymes(self, entry_id: int, declension: str) -> list[WordFormModel]:
        """Other forms sharing the rhyme group of one form."""
        row = self._resolve_form(entry_id, declension)
        return [
            self._row_to_form(m)
            for m in _db.get_rhyme_member_rows(self._conn, row["rhyme_rowid"])
            if m["rowid"] != row["rowid"]
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, *, pos: str | None = None) -> list[ValidationResult]:
        """Run the consistency checks over the lexicon or one part of speech."""
        from conlang_editor.validator import validate_all
        if pos is not None:
            self._resolve_pos(pos)
        return validate_all(self._conn, pos=pos)

    def validate_entry(self, entry_id: int) -> list[ValidationResult]:
        from conlang_editor.validator import validate_entry
        self._resolve_entry(entry_id)
        return validate_entry(self._conn, entry_id)
