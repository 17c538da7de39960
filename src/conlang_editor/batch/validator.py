"""
Validation for batch change requests.

Provides both schema validation (required fields, types, pipeline names,
rule regexes) and, when a lexicon editor is supplied, referential checks
(parts of speech and entries named by a change exist by the time it runs).
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, List, Optional, Set, Tuple

from ..derivation import check_rule
from ..exceptions import RuleError
from ..models import Pipeline
from .schema import (
    BOOLEAN_FIELDS,
    LIST_FIELDS,
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
    Change,
    ChangeRequest,
    OperationType,
    ValidationError,
    ValidationResult,
    ValidationWarning,
)

if TYPE_CHECKING:
    from ..editor import LexiconEditor

logger = logging.getLogger(__name__)

_VALID_PIPELINES = {p.value for p in Pipeline}


def validate_change_request(
    request: ChangeRequest,
    editor: Optional[LexiconEditor] = None,
) -> ValidationResult:
    """Validate a change request.

    Args:
        request: The change request to validate
        editor: If given, check that referenced parts of speech and entries
            exist in this lexicon or are created earlier in the request

    Returns:
        ValidationResult with errors and warnings
    """
    errors: List[ValidationError] = []
    warnings: List[ValidationWarning] = []

    refs = _References(editor) if editor is not None else None

    for i, change in enumerate(request.changes):
        change_errors, change_warnings = _validate_change(change, index=i)
        errors.extend(change_errors)
        warnings.extend(change_warnings)
        if refs is not None and not change_errors:
            warnings.extend(refs.check(change, i))

    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _validate_change(
    change: Change,
    index: int,
) -> tuple[List[ValidationError], List[ValidationWarning]]:
    """Validate a single change operation.

    Returns:
        Tuple of (errors, warnings)
    """
    errors: List[ValidationError] = []
    warnings: List[ValidationWarning] = []

    def error(field: str, message: str) -> None:
        errors.append(
            ValidationError(
                index=index,
                operation=change.operation,
                field=field,
                message=message,
            )
        )

    valid_operations = {op.value for op in OperationType}
    if change.operation not in valid_operations:
        error(
            "operation",
            f"Unknown operation '{change.operation}'. "
            f"Valid: {', '.join(sorted(valid_operations))}",
        )
        return errors, warnings

    required = REQUIRED_FIELDS[change.operation]
    optional = OPTIONAL_FIELDS[change.operation]

    for field in required:
        if field not in change.params or change.params[field] is None:
            error(field, f"Missing required field '{field}'")

    for field, value in change.params.items():
        if field not in required and field not in optional:
            warnings.append(
                ValidationWarning(
                    index=index,
                    operation=change.operation,
                    message=f"Unknown field '{field}' will be ignored",
                )
            )
            continue
        if value is None:
            continue
        if field in BOOLEAN_FIELDS:
            if not isinstance(value, bool):
                error(field, f"Field '{field}' must be true or false")
        elif field in LIST_FIELDS:
            if not isinstance(value, list) or not all(
                isinstance(v, str) for v in value
            ):
                error(field, f"Field '{field}' must be a list of strings")
        elif not isinstance(value, str):
            error(field, f"Field '{field}' must be a string")

    if errors:
        return errors, warnings

    op = change.operation
    params = change.params

    pipelines = list(params.get("fields") or [])
    if params.get("pipeline") is not None:
        pipelines.append(params["pipeline"])
    for name in pipelines:
        if name not in _VALID_PIPELINES:
            error(
                "pipeline" if "pipeline" in params else "fields",
                f"Unknown pipeline '{name}'. "
                f"Valid: {', '.join(sorted(_VALID_PIPELINES))}",
            )

    if op in (OperationType.ADD_RULE.value, OperationType.REMOVE_RULE.value):
        try:
            check_rule(params["guard"], params["pattern"], params["replacement"])
        except RuleError as e:
            error("pattern", str(e))

    elif op == OperationType.UPDATE_ENTRY.value:
        editable = set(OPTIONAL_FIELDS[op]) - {"pos"}
        if not editable & set(params):
            error("entry", "Nothing to update")

    elif op == OperationType.SET_IRREGULAR.value:
        if not _VALID_PIPELINES & set(params):
            error(
                "entry",
                "At least one of 'form', 'pronunciation' or 'rhyme' is required",
            )

    return errors, warnings


class _References:
    """Tracks names known to exist at each point of a request.

    Entries are keyed by (part of speech, base form) and counted, since
    base forms may repeat.
    """

    def __init__(self, editor: LexiconEditor) -> None:
        self.pos: Set[str] = {p.name for p in editor.list_parts_of_speech()}
        self.entries: Counter = Counter(
            (e.pos, e.form) for e in editor.find_entries()
        )

    def _find_entry(self, form: str, pos: Optional[str]) -> Optional[Tuple[str, str]]:
        for key in self.entries:
            if key[1] == form and (pos is None or key[0] == pos):
                return key
        return None

    def _drop_entry(self, key: Tuple[str, str]) -> None:
        self.entries[key] -= 1
        if self.entries[key] <= 0:
            del self.entries[key]

    def _rekey_pos(self, name: str, new_name: Optional[str]) -> None:
        for key in [k for k in self.entries if k[0] == name]:
            count = self.entries.pop(key)
            if new_name is not None:
                self.entries[(new_name, key[1])] += count

    def check(self, change: Change, index: int) -> List[ValidationWarning]:
        warnings: List[ValidationWarning] = []
        params = change.params
        op = change.operation

        def warn(message: str) -> None:
            warnings.append(
                ValidationWarning(
                    index=index,
                    operation=op,
                    message=message,
                )
            )

        if op == OperationType.ADD_PART_OF_SPEECH.value:
            self.pos.add(params["name"])
            return warnings
        if op in (
            OperationType.REMOVE_PART_OF_SPEECH.value,
            OperationType.RENAME_PART_OF_SPEECH.value,
        ):
            name = params["name"]
            if name not in self.pos:
                warn(f"Part of speech '{name}' does not exist")
                return warnings
            self.pos.discard(name)
            new_name = params.get("new_name")
            if op == OperationType.RENAME_PART_OF_SPEECH.value:
                self.pos.add(new_name)
            self._rekey_pos(name, new_name)
            return warnings

        pos = change.pos
        if pos is not None and pos not in self.pos:
            warn(f"Part of speech '{pos}' does not exist")

        if op == OperationType.ADD_ENTRY.value:
            self.entries[(params["pos"], params["form"])] += 1
        elif change.entry is not None:
            key = self._find_entry(change.entry, pos)
            if key is None:
                warn(f"Entry '{change.entry}' does not exist")
            elif op == OperationType.REMOVE_ENTRY.value:
                self._drop_entry(key)
            elif op == OperationType.UPDATE_ENTRY.value and params.get("form"):
                self._drop_entry(key)
                self.entries[(key[0], params["form"])] += 1

        if warnings:
            logger.debug("Change #%d has unresolved references", index + 1)
        return warnings
