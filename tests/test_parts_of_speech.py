"""Tests for part-of-speech operations."""

import pytest

from conlang_editor import (
    DuplicateNameError,
    InvariantViolationError,
    NotFoundError,
    ValidationError,
)


class TestAddPartOfSpeech:

    def test_creates_default_class(self, editor):
        pos = editor.add_part_of_speech("noun")
        assert pos.name == "noun"
        assert pos.word_classes == ("noun",)
        assert pos.declensions == ()
        assert pos.entry_count == 0

    def test_creation_order_preserved(self, editor):
        for name in ("noun", "verb", "adjective", "adverb"):
            editor.add_part_of_speech(name)
        names = [p.name for p in editor.list_parts_of_speech()]
        assert names == ["noun", "verb", "adjective", "adverb"]

    def test_duplicate(self, editor):
        editor.add_part_of_speech("noun")
        with pytest.raises(DuplicateNameError):
            editor.add_part_of_speech("noun")
        assert len(editor.list_parts_of_speech()) == 1

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name(self, editor, name):
        with pytest.raises(ValidationError):
            editor.add_part_of_speech(name)


class TestRemovePartOfSpeech:

    def test_remove(self, editor):
        editor.add_part_of_speech("noun")
        editor.add_part_of_speech("verb")
        editor.remove_part_of_speech("noun")
        assert [p.name for p in editor.list_parts_of_speech()] == ["verb"]
        with pytest.raises(NotFoundError):
            editor.get_part_of_speech("noun")

    def test_remove_missing(self, editor):
        with pytest.raises(NotFoundError):
            editor.remove_part_of_speech("noun")

    def test_refuses_with_entries(self, editor_with_data):
        ed, e1, _ = editor_with_data
        with pytest.raises(InvariantViolationError):
            ed.remove_part_of_speech("noun")
        assert ed.get_entry(e1.id).form == "gleira"

    def test_cascade_removes_entries_and_rhymes(self, editor_with_data):
        ed, e1, e2 = editor_with_data
        ed.remove_part_of_speech("noun", cascade=True)
        assert ed.list_parts_of_speech() == []
        assert ed.find_entries() == []
        assert ed.list_rhyme_groups() == []
        with pytest.raises(NotFoundError):
            ed.get_entry(e1.id)

    def test_name_reusable_after_removal(self, editor_with_noun):
        ed = editor_with_noun
        ed.remove_part_of_speech("noun")
        pos = ed.add_part_of_speech("noun")
        assert pos.declensions == ()


class TestRenamePartOfSpeech:

    def test_rename(self, editor_with_data):
        ed, e1, _ = editor_with_data
        pos = ed.rename_part_of_speech("noun", "substantive")
        assert pos.name == "substantive"
        assert pos.word_classes == ("noun",)
        assert ed.get_entry(e1.id).pos == "substantive"
        with pytest.raises(NotFoundError):
            ed.get_part_of_speech("noun")

    def test_rename_to_existing(self, editor):
        editor.add_part_of_speech("noun")
        editor.add_part_of_speech("verb")
        with pytest.raises(DuplicateNameError):
            editor.rename_part_of_speech("noun", "verb")

    def test_rename_to_same_name(self, editor):
        editor.add_part_of_speech("noun")
        assert editor.rename_part_of_speech("noun", "noun").name == "noun"


class TestGetPartOfSpeech:

    def test_counts(self, editor_with_data):
        ed, _, _ = editor_with_data
        pos = ed.get_part_of_speech("noun")
        assert pos.declensions == ("nominative", "accusative")
        assert pos.entry_count == 2

    def test_missing(self, editor):
        with pytest.raises(NotFoundError):
            editor.get_part_of_speech("verb")
