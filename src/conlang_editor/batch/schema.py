"""
Data classes and constants for the batch change request system.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# =============================================================================
# Operation Types
# =============================================================================

class OperationType(str, Enum):
    """Supported batch operations."""
    ADD_PART_OF_SPEECH = "add_part_of_speech"
    REMOVE_PART_OF_SPEECH = "remove_part_of_speech"
    RENAME_PART_OF_SPEECH = "rename_part_of_speech"
    ADD_WORD_CLASS = "add_word_class"
    REMOVE_WORD_CLASS = "remove_word_class"
    RENAME_WORD_CLASS = "rename_word_class"
    ADD_DECLENSION = "add_declension"
    REMOVE_DECLENSION = "remove_declension"
    RENAME_DECLENSION = "rename_declension"
    ADD_RULE = "add_rule"
    REMOVE_RULE = "remove_rule"
    CLEAR_RULES = "clear_rules"
    ADD_ENTRY = "add_entry"
    UPDATE_ENTRY = "update_entry"
    CHANGE_WORD_CLASS = "change_word_class"
    REMOVE_ENTRY = "remove_entry"
    SET_IRREGULAR = "set_irregular"
    CLEAR_IRREGULAR = "clear_irregular"


# =============================================================================
# Field Requirements
# =============================================================================

_RULE_FIELDS = ["pos", "class", "declension", "pipeline", "guard", "pattern", "replacement"]

# Required fields for each operation
REQUIRED_FIELDS: Dict[str, List[str]] = {
    OperationType.ADD_PART_OF_SPEECH.value: ["name"],
    OperationType.REMOVE_PART_OF_SPEECH.value: ["name"],
    OperationType.RENAME_PART_OF_SPEECH.value: ["name", "new_name"],
    OperationType.ADD_WORD_CLASS.value: ["pos", "name"],
    OperationType.REMOVE_WORD_CLASS.value: ["pos", "name"],
    OperationType.RENAME_WORD_CLASS.value: ["pos", "name", "new_name"],
    OperationType.ADD_DECLENSION.value: ["pos", "name"],
    OperationType.REMOVE_DECLENSION.value: ["pos", "name"],
    OperationType.RENAME_DECLENSION.value: ["pos", "name", "new_name"],
    OperationType.ADD_RULE.value: _RULE_FIELDS,
    OperationType.REMOVE_RULE.value: _RULE_FIELDS,
    OperationType.CLEAR_RULES.value: ["pos", "class", "declension"],
    OperationType.ADD_ENTRY.value: ["pos", "class", "form", "pronunciation", "rhyme"],
    OperationType.UPDATE_ENTRY.value: ["entry"],
    OperationType.CHANGE_WORD_CLASS.value: ["entry", "class"],
    OperationType.REMOVE_ENTRY.value: ["entry"],
    OperationType.SET_IRREGULAR.value: ["entry", "declension"],
    OperationType.CLEAR_IRREGULAR.value: ["entry", "declension"],
}

# Optional fields for each operation
OPTIONAL_FIELDS: Dict[str, List[str]] = {
    OperationType.ADD_PART_OF_SPEECH.value: [],
    OperationType.REMOVE_PART_OF_SPEECH.value: ["cascade"],
    OperationType.RENAME_PART_OF_SPEECH.value: [],
    OperationType.ADD_WORD_CLASS.value: [],
    OperationType.REMOVE_WORD_CLASS.value: ["cascade"],
    OperationType.RENAME_WORD_CLASS.value: [],
    OperationType.ADD_DECLENSION.value: [],
    OperationType.REMOVE_DECLENSION.value: [],
    OperationType.RENAME_DECLENSION.value: [],
    OperationType.ADD_RULE.value: [],
    OperationType.REMOVE_RULE.value: [],
    OperationType.CLEAR_RULES.value: ["pipeline"],
    OperationType.ADD_ENTRY.value: ["translation", "definition"],
    OperationType.UPDATE_ENTRY.value: [
        "pos", "form", "pronunciation", "rhyme", "translation", "definition",
    ],
    OperationType.CHANGE_WORD_CLASS.value: ["pos"],
    OperationType.REMOVE_ENTRY.value: ["pos"],
    OperationType.SET_IRREGULAR.value: ["pos", "form", "pronunciation", "rhyme"],
    OperationType.CLEAR_IRREGULAR.value: ["pos", "fields"],
}

# Fields holding a flag rather than a string
BOOLEAN_FIELDS = {"cascade"}

# Fields holding a list of pipeline names
LIST_FIELDS = {"fields"}


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class Change:
    """Single change operation."""
    operation: str
    params: Dict[str, Any]

    @property
    def pos(self) -> Optional[str]:
        """Get the part of speech if present in params."""
        return self.params.get("pos")

    @property
    def entry(self) -> Optional[str]:
        """Get the base form of the referenced entry, if any."""
        return self.params.get("entry")


@dataclass
class ChangeRequest:
    """Parsed change request from YAML."""
    changes: List[Change]
    session_name: Optional[str] = None
    session_description: Optional[str] = None


@dataclass
class ValidationError:
    """Validation error for a specific change."""
    index: int
    operation: str
    field: str
    message: str


@dataclass
class ValidationWarning:
    """Validation warning for a specific change."""
    index: int
    operation: str
    message: str


@dataclass
class ValidationResult:
    """Result of validating a change request."""
    is_valid: bool
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[ValidationWarning] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)


@dataclass
class ChangeResult:
    """Result of executing a single change."""
    index: int
    operation: str
    success: bool
    message: str
    target: Optional[str] = None
    created_id: Optional[int] = None
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Result of executing a batch change request."""
    session_name: Optional[str]
    total_count: int
    success_count: int
    failure_count: int
    changes: List[ChangeResult]
    duration_seconds: float
    rolled_back: bool = False

    @property
    def skipped_count(self) -> int:
        return self.total_count - self.success_count - self.failure_count
