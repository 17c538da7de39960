"""Tests for entry operations."""

import pytest

from conlang_editor import InvariantViolationError, NotFoundError, ValidationError


class TestAddEntry:

    def test_add_entry(self, editor_with_noun):
        ed = editor_with_noun
        entry = ed.add_entry(
            "noun", "noun", "gleira", "gli:ra", "eira",
            translation="fish", definition="a creature of the water",
        )
        assert entry.form == "gleira"
        assert entry.pronunciation == "gli:ra"
        assert entry.rhyme == "eira"
        assert entry.translation == "fish"
        assert entry.definition == "a creature of the water"
        assert entry.pos == "noun"
        assert entry.word_class == "noun"

    def test_one_form_per_declension(self, editor_with_noun):
        ed = editor_with_noun
        entry = ed.add_entry("noun", "noun", "gleira", "gli:ra", "eira")
        forms = ed.get_forms(entry.id)
        assert [f.declension for f in forms] == ["nominative", "accusative"]
        assert all(f.entry_id == entry.id for f in forms)

    def test_no_declensions_no_forms(self, editor):
        editor.add_part_of_speech("particle")
        entry = editor.add_entry("particle", "particle", "ok", "ok", "ok")
        assert editor.get_forms(entry.id) == []

    def test_defaults(self, editor_with_noun):
        entry = editor_with_noun.add_entry("noun", "noun", "gleira", "gli:ra", "eira")
        assert entry.translation == ""
        assert entry.definition == ""

    def test_duplicate_base_forms_allowed(self, editor_with_noun):
        ed = editor_with_noun
        a = ed.add_entry("noun", "noun", "gleira", "gli:ra", "eira", translation="fish")
        b = ed.add_entry("noun", "noun", "gleira", "gli:ra", "eira", translation="scale")
        assert a.id != b.id
        assert len(ed.find_entries(form="gleira")) == 2

    def test_blank_form(self, editor_with_noun):
        with pytest.raises(ValidationError):
            editor_with_noun.add_entry("noun", "noun", "", "", "")

    def test_missing_class(self, editor_with_noun):
        with pytest.raises(NotFoundError):
            editor_with_noun.add_entry("noun", "strong", "gleira", "gli:ra", "eira")

    def test_building_forms_twice_is_refused(self, editor_with_data):
        ed, e1, _ = editor_with_data
        class_id = ed.get_word_class("noun", "noun").id
        with pytest.raises(InvariantViolationError):
            ed._build_forms(e1.id, class_id)


class TestUpdateEntry:

    def test_edit_base_form_rederives(self, editor_with_data):
        ed, e1, _ = editor_with_data
        entry = ed.update_entry(e1.id, form="gleirna")
        assert entry.form == "gleirna"
        assert ed.get_form(e1.id, "nominative").form == "gleirna"
        assert ed.get_form(e1.id, "accusative").form == "gleirnu"
        # pronunciation untouched
        assert ed.get_form(e1.id, "accusative").pronunciation == "gli:rü"

    def test_edit_pronunciation(self, editor_with_data):
        ed, e1, _ = editor_with_data
        ed.update_entry(e1.id, pronunciation="gleira")
        assert ed.get_form(e1.id, "accusative").pronunciation == "gleirü"
        assert ed.get_form(e1.id, "accusative").form == "gleiru"

    def test_edit_rhyme_moves_groups(self, editor_with_data):
        ed, e1, _ = editor_with_data
        ed.update_entry(e1.id, rhyme="ógar")
        assert ed.get_form(e1.id, "nominative").rhyme == "ógar"
        assert ed.get_form(e1.id, "accusative").rhyme == "ógar"
        assert ed.get_rhyme_group("ógar").size == 4
        for gone in ("eira", "eiru"):
            with pytest.raises(NotFoundError):
                ed.get_rhyme_group(gone)

    def test_edit_translation_and_definition(self, editor_with_data):
        ed, e1, _ = editor_with_data
        before = ed.get_forms(e1.id)
        entry = ed.update_entry(e1.id, translation="trout", definition="a fish")
        assert entry.translation == "trout"
        assert entry.definition == "a fish"
        assert ed.get_forms(e1.id) == before

    def test_missing(self, editor):
        with pytest.raises(NotFoundError):
            editor.update_entry(42, form="x")


class TestChangeWordClass:

    def test_reclassify(self, editor_with_data):
        ed, e1, _ = editor_with_data
        ed.add_word_class("noun", "strong")
        ed.add_rule("noun", "strong", "accusative", "form", "a$", "a$", "ar")
        entry = ed.change_word_class(e1.id, "strong")
        assert entry.word_class == "strong"
        assert ed.get_form(e1.id, "accusative").form == "gleirar"
        assert ed.get_word_class("noun", "noun").entry_count == 1
        assert ed.get_word_class("noun", "strong").entry_count == 1

    def test_reclassify_drops_rhyme_groups(self, editor_with_data):
        ed, e1, _ = editor_with_data
        ed.add_word_class("noun", "strong")
        ed.change_word_class(e1.id, "strong")
        with pytest.raises(NotFoundError):
            ed.get_rhyme_group("eiru")
        assert ed.get_rhyme_group("eira").size == 2

    def test_class_must_be_in_same_pos(self, editor_with_data):
        ed, e1, _ = editor_with_data
        ed.add_part_of_speech("verb")
        with pytest.raises(NotFoundError):
            ed.change_word_class(e1.id, "verb")
        assert ed.get_entry(e1.id).word_class == "noun"


class TestRemoveEntry:

    def test_remove(self, editor_with_data):
        ed, e1, e2 = editor_with_data
        ed.remove_entry(e1.id)
        with pytest.raises(NotFoundError):
            ed.get_entry(e1.id)
        with pytest.raises(NotFoundError):
            ed.get_forms(e1.id)
        assert [e.id for e in ed.find_entries()] == [e2.id]
        assert [g.id for g in ed.list_rhyme_groups()] == ["ógar"]

    def test_remove_missing(self, editor):
        with pytest.raises(NotFoundError):
            editor.remove_entry(1)


class TestFindEntries:

    def test_filters(self, editor_with_data):
        ed, e1, e2 = editor_with_data
        ed.add_part_of_speech("verb")
        v = ed.add_entry("verb", "verb", "gleira", "gli:ra", "eira", translation="swim")
        assert [e.id for e in ed.find_entries()] == [e1.id, e2.id, v.id]
        assert [e.id for e in ed.find_entries(form="gleira")] == [e1.id, v.id]
        assert [e.id for e in ed.find_entries(form="gleira", pos="noun")] == [e1.id]
        assert [e.id for e in ed.find_entries(translation="hill")] == [e2.id]
        assert [e.id for e in ed.find_entries(word_class="verb")] == [v.id]
        assert ed.find_entries(form="nothing") == []
