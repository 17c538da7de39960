"""Custom exception hierarchy for conlang-editor."""


class ConlangEditorError(Exception):
    """Base exception for all conlang-editor errors."""


class ValidationError(ConlangEditorError):
    """Invalid input (blank name, unknown pipeline, bad field)."""


class RuleError(ValidationError):
    """A transform rule whose guard, pattern or replacement does not compile."""


class NotFoundError(ConlangEditorError):
    """A name or handle does not resolve within its scope."""


class DuplicateNameError(ConlangEditorError):
    """A name collides within its uniqueness scope."""


class InvariantViolationError(ConlangEditorError):
    """The operation would break a structural invariant of the lexicon."""


class LastClassError(InvariantViolationError):
    """Removing the only word class of a part of speech."""
