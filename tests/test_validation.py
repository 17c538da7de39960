"""Tests for the consistency validator."""

import pytest

from conlang_editor import NotFoundError


def _rule_ids(results):
    return {r.rule_id for r in results}


class TestValidateClean:

    def test_validate_clean(self, editor_with_data):
        ed, _, _ = editor_with_data
        assert ed.validate() == []

    def test_clean_after_cascades(self, editor_with_data):
        ed, e1, _ = editor_with_data
        ed.add_word_class("noun", "strong")
        ed.add_declension("noun", "dative")
        ed.set_irregular(e1.id, "accusative", form="gleirun")
        ed.change_word_class(e1.id, "strong")
        ed.rename_declension("noun", "dative", "instrumental")
        assert ed.validate() == []


class TestPartOfSpeechRules:

    def test_pos_without_classes(self, editor):
        editor.add_part_of_speech("particle")
        editor._conn.execute("DELETE FROM word_classes")
        editor._conn.commit()
        results = editor.validate()
        assert [r.rule_id for r in results] == ["VAL-POS-001"]
        assert results[0].entity_id == "particle"
        assert results[0].severity == "ERROR"

    def test_class_declensions_out_of_sync(self, editor_with_noun):
        ed = editor_with_noun
        ed._conn.execute(
            "INSERT INTO pos_declensions (pos_rowid, name) VALUES "
            "((SELECT rowid FROM parts_of_speech WHERE name = 'noun'), 'dative')"
        )
        ed._conn.commit()
        results = ed.validate()
        assert _rule_ids(results) == {"VAL-DCL-001"}
        assert results[0].entity_id == "noun/noun"
        assert results[0].details["actual"] == ["nominative", "accusative"]


class TestFormRules:

    def test_missing_form(self, editor_with_data):
        ed, e1, _ = editor_with_data
        form = ed.get_form(e1.id, "nominative")
        ed._conn.execute("DELETE FROM word_forms WHERE rowid = ?", (form.id,))
        ed._conn.commit()
        results = ed.validate()
        frm = [r for r in results if r.rule_id == "VAL-FRM-001"]
        assert len(frm) == 1
        assert frm[0].entity_id == str(e1.id)
        # the group only held that form
        assert "VAL-RHY-001" in _rule_ids(results)

    def test_stale_form(self, editor_with_data):
        ed, e1, _ = editor_with_data
        form = ed.get_form(e1.id, "accusative")
        ed._conn.execute("UPDATE word_forms SET form = 'gleiri' WHERE rowid = ?", (form.id,))
        ed._conn.commit()
        results = ed.validate()
        assert _rule_ids(results) == {"VAL-FRM-002"}
        assert results[0].severity == "WARNING"
        assert results[0].details == {"field": "form", "expected": "gleiru"}

    def test_irregular_fields_not_reported(self, editor_with_data):
        ed, e1, _ = editor_with_data
        ed.set_irregular(e1.id, "accusative", form="gleiri", rhyme="eiri")
        assert ed.validate() == []


class TestRhymeAndEntryRules:

    def test_empty_rhyme_group(self, editor_with_data):
        ed, _, _ = editor_with_data
        ed._conn.execute("INSERT INTO rhyme_groups (id) VALUES ('orphan')")
        ed._conn.commit()
        results = ed.validate()
        assert [(r.rule_id, r.entity_id) for r in results] == [("VAL-RHY-001", "orphan")]

    def test_untranslated_entry(self, editor_with_noun):
        ed = editor_with_noun
        entry = ed.add_entry("noun", "noun", "gleira", "gli:ra", "eira")
        results = ed.validate()
        assert [r.rule_id for r in results] == ["VAL-ENT-001"]
        assert results[0].entity_id == str(entry.id)


class TestScopedValidation:

    def test_limit_to_pos(self, editor_with_noun):
        ed = editor_with_noun
        ed.add_part_of_speech("verb")
        ed.add_entry("verb", "verb", "kalla", "kalla", "alla")
        assert ed.validate(pos="noun") == []
        assert _rule_ids(ed.validate(pos="verb")) == {"VAL-ENT-001"}

    def test_validate_entry(self, editor_with_data):
        ed, e1, e2 = editor_with_data
        form = ed.get_form(e2.id, "nominative")
        ed._conn.execute("UPDATE word_forms SET pronunciation = 'x' WHERE rowid = ?", (form.id,))
        ed._conn.commit()
        assert ed.validate_entry(e1.id) == []
        assert _rule_ids(ed.validate_entry(e2.id)) == {"VAL-FRM-002"}

    def test_validate_missing_entry(self, editor):
        with pytest.raises(NotFoundError):
            editor.validate_entry(3)

    def test_validate_unknown_pos(self, editor):
        with pytest.raises(NotFoundError):
            editor.validate(pos="noun")
