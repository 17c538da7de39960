"""Domain model dataclasses and enums for conlang-editor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Pipeline(str, Enum):
    """The three rewrite pipelines every declension carries."""

    FORM = "form"
    PRONUNCIATION = "pronunciation"
    RHYME = "rhyme"


# Pipelines in the order they are listed and rederived
DEFAULT_PIPELINES = (Pipeline.FORM, Pipeline.PRONUNCIATION, Pipeline.RHYME)


class ValidationSeverity(str, Enum):
    """Severity level for validation results."""

    ERROR = "ERROR"
    WARNING = "WARNING"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TransformRule:
    """One guarded regex rewrite step within a pipeline."""

    guard: str
    pattern: str
    replacement: str


@dataclass(frozen=True, slots=True)
class PartOfSpeechModel:
    """A top-level grammatical category (noun, verb, ...)."""

    id: int
    name: str
    word_classes: tuple[str, ...]
    declensions: tuple[str, ...]
    entry_count: int


@dataclass(frozen=True, slots=True)
class WordClassModel:
    """A grammatical class within a part of speech."""

    id: int
    name: str
    pos: str
    declensions: tuple[str, ...]
    entry_count: int


@dataclass(frozen=True, slots=True)
class DeclensionModel:
    """A named inflection of one word class and its three pipelines."""

    id: int
    name: str
    pos: str
    word_class: str
    form_rules: tuple[TransformRule, ...]
    pronunciation_rules: tuple[TransformRule, ...]
    rhyme_rules: tuple[TransformRule, ...]

    def rules(self, pipeline: Pipeline | str) -> tuple[TransformRule, ...]:
        """Return the rules of one pipeline."""
        return getattr(self, f"{Pipeline(pipeline).value}_rules")


@dataclass(frozen=True, slots=True)
class EntryModel:
    """A lexical entry (headword) with its base data."""

    id: int
    form: str
    pronunciation: str
    rhyme: str
    translation: str
    definition: str
    pos: str
    word_class: str


@dataclass(frozen=True, slots=True)
class WordFormModel:
    """An inflected form: one declension applied to one entry."""

    id: int
    entry_id: int
    declension: str
    form: str
    pronunciation: str
    rhyme: str
    irregular_form: bool
    irregular_pronunciation: bool
    irregular_rhyme: bool

    @property
    def is_irregular(self) -> bool:
        return (
            self.irregular_form
            or self.irregular_pronunciation
            or self.irregular_rhyme
        )


@dataclass(frozen=True, slots=True)
class RhymeGroupModel:
    """An equivalence class of forms sharing one derived rhyme key."""

    id: str
    form_ids: tuple[int, ...]

    @property
    def size(self) -> int:
        return len(self.form_ids)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """A single validation finding (error or warning)."""

    rule_id: str
    severity: str
    entity_type: str
    entity_id: str
    message: str
    details: dict[str, Any] | None
