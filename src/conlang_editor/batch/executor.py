"""
Executor for batch change requests.

Applies changes to a lexicon through the public LexiconEditor API.
"""
from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import TYPE_CHECKING, Callable, Dict, List

from ..exceptions import NotFoundError, ValidationError
from ..models import EntryModel
from .schema import (
    BatchResult,
    Change,
    ChangeRequest,
    ChangeResult,
    OperationType,
)

if TYPE_CHECKING:
    from ..editor import LexiconEditor

logger = logging.getLogger(__name__)


class _AtomicAbort(Exception):
    """Raised inside an atomic run to roll the whole request back."""


def execute_change_request(
    request: ChangeRequest,
    editor: LexiconEditor,
    *,
    dry_run: bool = False,
    atomic: bool = False,
) -> BatchResult:
    """Execute a batch change request.

    Args:
        request: The change request to execute
        editor: The lexicon to apply the changes to
        dry_run: If True, only simulate execution without making changes
        atomic: If True, stop at the first failure and roll back every
            change of the request

    Returns:
        BatchResult with details of each change
    """
    start_time = time.time()
    results: List[ChangeResult] = []
    rolled_back = False

    if atomic and not dry_run:
        try:
            with editor.batch():
                for i, change in enumerate(request.changes):
                    result = _execute_change(change, i, editor, dry_run=False)
                    results.append(result)
                    if not result.success:
                        raise _AtomicAbort(result.message)
        except _AtomicAbort as e:
            logger.warning("Atomic batch rolled back: %s", e)
            rolled_back = True
            results = [
                replace(r, success=False, message="Rolled back") if r.success else r
                for r in results
            ]
    else:
        for i, change in enumerate(request.changes):
            results.append(_execute_change(change, i, editor, dry_run=dry_run))

    success_count = sum(1 for r in results if r.success)
    failure_count = sum(1 for r in results if r.error is not None)

    return BatchResult(
        session_name=request.session_name,
        total_count=len(request.changes),
        success_count=success_count,
        failure_count=failure_count,
        changes=results,
        duration_seconds=time.time() - start_time,
        rolled_back=rolled_back,
    )


def _execute_change(
    change: Change,
    index: int,
    editor: LexiconEditor,
    dry_run: bool,
) -> ChangeResult:
    """Execute a single change operation.

    Returns:
        ChangeResult with success/failure status
    """
    op = change.operation

    try:
        if dry_run:
            return _dry_run_change(change, index)

        handler = _HANDLERS.get(op)
        if handler is None:
            return ChangeResult(
                index=index,
                operation=op,
                success=False,
                message=f"Unknown operation: {op}",
                error=f"Unknown operation: {op}",
            )
        return handler(change, index, editor)

    except Exception as e:
        logger.exception("Error executing change #%d (%s)", index + 1, op)
        return ChangeResult(
            index=index,
            operation=op,
            success=False,
            message=f"Error: {e}",
            error=str(e),
        )


def _dry_run_change(change: Change, index: int) -> ChangeResult:
    """Simulate a change without actually executing it."""
    params = change.params
    target = change.entry or params.get("name") or params.get("form") or change.pos

    return ChangeResult(
        index=index,
        operation=change.operation,
        success=True,
        message=f"Would execute {change.operation}",
        target=target,
    )


def _find_entry(change: Change, editor: LexiconEditor) -> EntryModel:
    """Resolve the entry a change refers to by its base form."""
    matches = editor.find_entries(form=change.entry, pos=change.pos)
    if not matches:
        raise NotFoundError(f"Entry not found: {change.entry!r}")
    if len(matches) > 1:
        raise ValidationError(
            f"Entry reference {change.entry!r} is ambiguous "
            f"({len(matches)} entries); add 'pos' to narrow it"
        )
    return matches[0]


def _ok(change: Change, index: int, message: str, target: str, **kwargs) -> ChangeResult:
    return ChangeResult(
        index=index,
        operation=change.operation,
        success=True,
        message=message,
        target=target,
        **kwargs,
    )


# =============================================================================
# Grammar operations
# =============================================================================

def _exec_add_part_of_speech(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    pos = editor.add_part_of_speech(change.params["name"])
    return _ok(change, index, f"Created part of speech '{pos.name}'", pos.name, created_id=pos.id)


def _exec_remove_part_of_speech(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    name = change.params["name"]
    editor.remove_part_of_speech(name, cascade=change.params.get("cascade", False))
    return _ok(change, index, f"Removed part of speech '{name}'", name)


def _exec_rename_part_of_speech(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    name, new_name = change.params["name"], change.params["new_name"]
    editor.rename_part_of_speech(name, new_name)
    return _ok(change, index, f"Renamed part of speech '{name}' to '{new_name}'", new_name)


def _exec_add_word_class(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    wc = editor.add_word_class(change.pos, change.params["name"])
    return _ok(
        change, index,
        f"Created word class '{wc.name}' with {len(wc.declensions)} declensions",
        f"{wc.pos}/{wc.name}", created_id=wc.id,
    )


def _exec_remove_word_class(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    name = change.params["name"]
    editor.remove_word_class(change.pos, name, cascade=change.params.get("cascade", False))
    return _ok(change, index, f"Removed word class '{name}'", f"{change.pos}/{name}")


def _exec_rename_word_class(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    name, new_name = change.params["name"], change.params["new_name"]
    editor.rename_word_class(change.pos, name, new_name)
    return _ok(change, index, f"Renamed word class '{name}' to '{new_name}'", f"{change.pos}/{new_name}")


def _exec_add_declension(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    name = change.params["name"]
    pos = editor.add_declension(change.pos, name)
    return _ok(
        change, index,
        f"Added declension '{name}' to {len(pos.word_classes)} word classes",
        f"{pos.name}/{name}",
    )


def _exec_remove_declension(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    name = change.params["name"]
    editor.remove_declension(change.pos, name)
    return _ok(change, index, f"Removed declension '{name}'", f"{change.pos}/{name}")


def _exec_rename_declension(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    name, new_name = change.params["name"], change.params["new_name"]
    editor.rename_declension(change.pos, name, new_name)
    return _ok(change, index, f"Renamed declension '{name}' to '{new_name}'", f"{change.pos}/{new_name}")


# =============================================================================
# Rule operations
# =============================================================================

def _rule_args(change: Change) -> tuple:
    p = change.params
    return (
        p["pos"], p["class"], p["declension"],
        p["pipeline"], p["guard"], p["pattern"], p["replacement"],
    )


def _exec_add_rule(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    decl = editor.add_rule(*_rule_args(change))
    pipeline = change.params["pipeline"]
    return _ok(
        change, index,
        f"Added {pipeline} rule #{len(decl.rules(pipeline))} to '{decl.name}'",
        f"{decl.pos}/{decl.word_class}/{decl.name}",
    )


def _exec_remove_rule(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    decl = editor.remove_rule(*_rule_args(change))
    return _ok(
        change, index,
        f"Removed {change.params['pipeline']} rule from '{decl.name}'",
        f"{decl.pos}/{decl.word_class}/{decl.name}",
    )


def _exec_clear_rules(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    p = change.params
    decl = editor.clear_rules(p["pos"], p["class"], p["declension"], p.get("pipeline"))
    return _ok(
        change, index,
        f"Cleared {p.get('pipeline') or 'all'} rules of '{decl.name}'",
        f"{decl.pos}/{decl.word_class}/{decl.name}",
    )


# =============================================================================
# Entry operations
# =============================================================================

def _exec_add_entry(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    p = change.params
    entry = editor.add_entry(
        p["pos"], p["class"], p["form"], p["pronunciation"], p["rhyme"],
        translation=p.get("translation") or "",
        definition=p.get("definition") or "",
    )
    return _ok(change, index, f"Created entry '{entry.form}' (#{entry.id})", entry.form, created_id=entry.id)


def _exec_update_entry(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    p = change.params
    entry = _find_entry(change, editor)
    updated = editor.update_entry(
        entry.id,
        form=p.get("form"),
        pronunciation=p.get("pronunciation"),
        rhyme=p.get("rhyme"),
        translation=p.get("translation"),
        definition=p.get("definition"),
    )
    return _ok(change, index, f"Updated entry #{entry.id}", updated.form)


def _exec_change_word_class(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    entry = _find_entry(change, editor)
    updated = editor.change_word_class(entry.id, change.params["class"])
    return _ok(
        change, index,
        f"Moved '{entry.form}' from '{entry.word_class}' to '{updated.word_class}'",
        entry.form,
    )


def _exec_remove_entry(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    entry = _find_entry(change, editor)
    editor.remove_entry(entry.id)
    return _ok(change, index, f"Removed entry '{entry.form}' (#{entry.id})", entry.form)


def _exec_set_irregular(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    p = change.params
    entry = _find_entry(change, editor)
    form = editor.set_irregular(
        entry.id, p["declension"],
        form=p.get("form"),
        pronunciation=p.get("pronunciation"),
        rhyme=p.get("rhyme"),
    )
    return _ok(
        change, index,
        f"Set irregular {p['declension']} of '{entry.form}': {form.form}",
        entry.form,
    )


def _exec_clear_irregular(change: Change, index: int, editor: LexiconEditor) -> ChangeResult:
    p = change.params
    entry = _find_entry(change, editor)
    form = editor.clear_irregular(entry.id, p["declension"], *(p.get("fields") or []))
    return _ok(
        change, index,
        f"Cleared irregular {p['declension']} of '{entry.form}': {form.form}",
        entry.form,
    )


_HANDLERS: Dict[str, Callable[[Change, int, "LexiconEditor"], ChangeResult]] = {
    OperationType.ADD_PART_OF_SPEECH.value: _exec_add_part_of_speech,
    OperationType.REMOVE_PART_OF_SPEECH.value: _exec_remove_part_of_speech,
    OperationType.RENAME_PART_OF_SPEECH.value: _exec_rename_part_of_speech,
    OperationType.ADD_WORD_CLASS.value: _exec_add_word_class,
    OperationType.REMOVE_WORD_CLASS.value: _exec_remove_word_class,
    OperationType.RENAME_WORD_CLASS.value: _exec_rename_word_class,
    OperationType.ADD_DECLENSION.value: _exec_add_declension,
    OperationType.REMOVE_DECLENSION.value: _exec_remove_declension,
    OperationType.RENAME_DECLENSION.value: _exec_rename_declension,
    OperationType.ADD_RULE.value: _exec_add_rule,
    OperationType.REMOVE_RULE.value: _exec_remove_rule,
    OperationType.CLEAR_RULES.value: _exec_clear_rules,
    OperationType.ADD_ENTRY.value: _exec_add_entry,
    OperationType.UPDATE_ENTRY.value: _exec_update_entry,
    OperationType.CHANGE_WORD_CLASS.value: _exec_change_word_class,
    OperationType.REMOVE_ENTRY.value: _exec_remove_entry,
    OperationType.SET_IRREGULAR.value: _exec_set_irregular,
    OperationType.CLEAR_IRREGULAR.value: _exec_clear_irregular,
}
