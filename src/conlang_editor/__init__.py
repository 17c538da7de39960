"""conlang-editor: derive and index the inflected forms of a conlang lexicon."""

from conlang_editor.derivation import check_rule, derive
from conlang_editor.editor import LexiconEditor
from conlang_editor.exceptions import (
    ConlangEditorError,
    DuplicateNameError,
    InvariantViolationError,
    LastClassError,
    NotFoundError,
    RuleError,
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
    ValidationSeverity,
    WordClassModel,
    WordFormModel,
)

__version__ = "0.1.0"

__all__ = [
    "LexiconEditor",
    "check_rule",
    "derive",
    # Exceptions
    "ConlangEditorError",
    "DuplicateNameError",
    "InvariantViolationError",
    "LastClassError",
    "NotFoundError",
    "RuleError",
    "ValidationError",
    # Models
    "DEFAULT_PIPELINES",
    "DeclensionModel",
    "EntryModel",
    "PartOfSpeechModel",
    "Pipeline",
    "RhymeGroupModel",
    "TransformRule",
    "ValidationResult",
    "ValidationSeverity",
    "WordClassModel",
    "WordFormModel",
]
