"""Tests for word-class operations."""

import pytest

from conlang_editor import (
    DuplicateNameError,
    InvariantViolationError,
    LastClassError,
    NotFoundError,
)


class TestAddWordClass:

    def test_receives_existing_declensions(self, editor_with_noun):
        ed = editor_with_noun
        wc = ed.add_word_class("noun", "strong")
        assert wc.pos == "noun"
        assert wc.declensions == ("nominative", "accusative")
        assert ed.get_part_of_speech("noun").word_classes == ("noun", "strong")

    def test_new_declensions_start_empty(self, editor_with_noun):
        ed = editor_with_noun
        ed.add_word_class("noun", "strong")
        decl = ed.get_declension("noun", "strong", "accusative")
        assert decl.form_rules == ()
        assert decl.pronunciation_rules == ()
        assert decl.rhyme_rules == ()
        # the original class keeps its rules
        assert len(ed.get_declension("noun", "noun", "accusative").form_rules) == 1

    def test_entries_in_new_class_get_all_forms(self, editor_with_noun):
        ed = editor_with_noun
        ed.add_word_class("noun", "strong")
        entry = ed.add_entry("noun", "strong", "gleira", "gli:ra", "eira")
        forms = ed.get_forms(entry.id)
        assert [f.declension for f in forms] == ["nominative", "accusative"]
        assert [f.form for f in forms] == ["gleira", "gleira"]

    def test_duplicate(self, editor_with_noun):
        with pytest.raises(DuplicateNameError):
            editor_with_noun.add_word_class("noun", "noun")

    def test_same_name_in_other_pos(self, editor_with_noun):
        ed = editor_with_noun
        ed.add_part_of_speech("verb")
        wc = ed.add_word_class("verb", "strong")
        ed.add_word_class("noun", "strong")
        assert wc.pos == "verb"

    def test_missing_pos(self, editor):
        with pytest.raises(NotFoundError):
            editor.add_word_class("noun", "strong")


class TestRemoveWordClass:

    def test_last_class_protected(self, editor):
        editor.add_part_of_speech("noun")
        with pytest.raises(LastClassError):
            editor.remove_word_class("noun", "noun")
        assert editor.get_part_of_speech("noun").word_classes == ("noun",)

    def test_last_class_error_is_invariant_violation(self, editor):
        editor.add_part_of_speech("noun")
        with pytest.raises(InvariantViolationError):
            editor.remove_word_class("noun", "noun")

    def test_remove(self, editor_with_noun):
        ed = editor_with_noun
        ed.add_word_class("noun", "strong")
        ed.remove_word_class("noun", "noun")
        assert ed.get_part_of_speech("noun").word_classes == ("strong",)
        with pytest.raises(NotFoundError):
            ed.get_word_class("noun", "noun")

    def test_refuses_with_entries(self, editor_with_data):
        ed, _, _ = editor_with_data
        ed.add_word_class("noun", "strong")
        with pytest.raises(InvariantViolationError):
            ed.remove_word_class("noun", "noun")
        assert ed.get_word_class("noun", "noun").entry_count == 2

    def test_cascade(self, editor_with_data):
        ed, e1, _ = editor_with_data
        ed.add_word_class("noun", "strong")
        kept = ed.add_entry("noun", "strong", "mjógir", "mjou:jir", "ójir")
        ed.remove_word_class("noun", "noun", cascade=True)
        assert [e.id for e in ed.find_entries()] == [kept.id]
        assert [g.id for g in ed.list_rhyme_groups()] == ["ójir"]
        with pytest.raises(NotFoundError):
            ed.get_entry(e1.id)


class TestRenameWordClass:

    def test_rename(self, editor_with_data):
        ed, e1, _ = editor_with_data
        wc = ed.rename_word_class("noun", "noun", "weak")
        assert wc.name == "weak"
        assert wc.entry_count == 2
        assert ed.get_entry(e1.id).word_class == "weak"
        assert ed.get_declension("noun", "weak", "accusative").form_rules

    def test_rename_to_existing(self, editor_with_noun):
        ed = editor_with_noun
        ed.add_word_class("noun", "strong")
        with pytest.raises(DuplicateNameError):
            ed.rename_word_class("noun", "noun", "strong")

    def test_list(self, editor_with_noun):
        ed = editor_with_noun
        ed.add_word_class("noun", "strong")
        assert [c.name for c in ed.list_word_classes("noun")] == ["noun", "strong"]
