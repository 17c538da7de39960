"""Shared test fixtures for conlang-editor."""

import pytest

from conlang_editor import LexiconEditor


@pytest.fixture
def editor():
    """Create an empty in-memory lexicon for testing."""
    with LexiconEditor() as ed:
        yield ed


@pytest.fixture
def editor_with_noun(editor):
    """Editor with part of speech 'noun' (one class, two declensions).

    The accusative turns a final 'a' into 'u' (form, rhyme) or 'ü'
    (pronunciation); the nominative has no rules.
    """
    editor.add_part_of_speech("noun")
    editor.add_declension("noun", "nominative")
    editor.add_declension("noun", "accusative")
    for pipeline, replacement in (
        ("form", "u"), ("pronunciation", "ü"), ("rhyme", "u"),
    ):
        editor.add_rule(
            "noun", "noun", "accusative", pipeline, "a$", ".$", replacement,
        )
    return editor


@pytest.fixture
def editor_with_data(editor_with_noun):
    """Editor with the noun setup and two entries."""
    ed = editor_with_noun
    e1 = ed.add_entry("noun", "noun", "gleira", "gli:ra", "eira", translation="fish")
    e2 = ed.add_entry("noun", "noun", "hógar", "hou:ɣar", "ógar", translation="hill")
    return ed, e1, e2
