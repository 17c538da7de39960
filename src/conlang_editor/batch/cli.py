"""
Command-line interface for batch change requests.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from ..editor import LexiconEditor
from ..models import ValidationSeverity
from .parser import load_change_request, ParseError
from .validator import validate_change_request
from .executor import execute_change_request
from .schema import ChangeRequest, ValidationResult, BatchResult


def main(argv: Optional[list] = None) -> int:
    """Main entry point for conlang-batch CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="conlang-batch",
        description="Build a conlang lexicon from YAML change requests",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s (conlang-editor)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log derivation cascades and failures to stderr",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a change request file",
    )
    validate_parser.add_argument(
        "file",
        type=Path,
        help="YAML file containing change request",
    )
    validate_parser.set_defaults(func=cmd_validate)

    # apply command
    apply_parser = subparsers.add_parser(
        "apply",
        help="Build a lexicon from a request file and report the result",
    )
    apply_parser.add_argument(
        "file",
        type=Path,
        help="YAML file containing change request",
    )
    apply_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Simulate execution without making changes",
    )
    apply_parser.add_argument(
        "--atomic",
        action="store_true",
        help="Stop at the first failure and roll every change back",
    )
    apply_parser.add_argument(
        "--check",
        action="store_true",
        help="Run the consistency validator on the resulting lexicon",
    )
    apply_parser.add_argument(
        "--rhymes",
        action="store_true",
        help="List the rhyme groups of the resulting lexicon",
    )
    apply_parser.set_defaults(func=cmd_apply)

    return parser


def _load(path: Path) -> Optional[ChangeRequest]:
    try:
        return load_change_request(path)
    except ParseError as e:
        print(f"\n  [PARSE ERROR] {e}")
        if e.line:
            print(f"               Line: {e.line}")
    except FileNotFoundError as e:
        print(f"\n  [ERROR] {e}")
    return None


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    print(f"\nValidating {args.file}...")

    request = _load(args.file)
    if request is None:
        return 1

    print(f"  Changes: {len(request.changes)}")
    if request.session_name:
        print(f"  Session: {request.session_name}")

    with LexiconEditor() as editor:
        result = validate_change_request(request, editor)

    print("\nValidation Results:")
    _print_validation_result(result)

    if result.is_valid:
        print("\nValidation passed!")
        return 0
    print(f"\nFound {result.error_count} error(s), {result.warning_count} warning(s)")
    return 1


def cmd_apply(args: argparse.Namespace) -> int:
    """Handle apply command."""
    print(f"\nLoading {args.file}...")

    request = _load(args.file)
    if request is None:
        return 1

    print(f"  Changes: {len(request.changes)}")
    if request.session_name:
        print(f"  Session: \"{request.session_name}\"")

    with LexiconEditor() as editor:
        print("\nValidating...")
        validation = validate_change_request(request, editor)

        if not validation.is_valid:
            print("\nValidation failed:")
            _print_validation_result(validation)
            print(f"\nFound {validation.error_count} error(s). Fix errors before applying.")
            return 1

        if validation.warning_count > 0:
            print("\nWarnings:")
            _print_validation_result(validation, warnings_only=True)

        if args.dry_run:
            print("\n[DRY RUN] Simulating execution...")
        else:
            print("\nApplying changes...")
        result = execute_change_request(
            request, editor, dry_run=args.dry_run, atomic=args.atomic,
        )
        _print_batch_result(result)

        status = 0 if result.failure_count == 0 else 1

        if not args.dry_run:
            _print_summary(editor)
            if args.check:
                status = max(status, _print_check(editor))
            if args.rhymes:
                _print_rhymes(editor)

    return status


def _print_validation_result(
    result: ValidationResult,
    warnings_only: bool = False,
) -> None:
    """Print validation errors and warnings."""
    if not warnings_only:
        for error in result.errors:
            print(f"  [ERROR] Change #{error.index + 1} ({error.operation}): {error.message}")
            if error.field:
                print(f"          Field: {error.field}")

    for warning in result.warnings:
        print(f"  [WARN]  Change #{warning.index + 1} ({warning.operation}): {warning.message}")


def _print_batch_result(result: BatchResult) -> None:
    """Print batch execution result."""
    print()
    for change in result.changes:
        if change.success:
            status = "OK"
        elif change.error:
            status = "FAILED"
        else:
            status = "ROLLED BACK"
        print(f"  [{change.index + 1}/{result.total_count}] {change.operation}: {status}")
        if change.message:
            print(f"         {change.message}")

    print("\nResults:")
    print(f"  Total:   {result.total_count}")
    print(f"  Success: {result.success_count}")
    print(f"  Failed:  {result.failure_count}")
    if result.skipped_count:
        print(f"  Skipped: {result.skipped_count}")
    print(f"  Time:    {result.duration_seconds:.2f}s")
    if result.rolled_back:
        print("\nAll changes were rolled back.")


def _print_summary(editor: LexiconEditor) -> None:
    print("\nLexicon:")
    for pos in editor.list_parts_of_speech():
        print(
            f"  {pos.name}: {len(pos.word_classes)} class(es), "
            f"{len(pos.declensions)} declension(s), {pos.entry_count} entries"
        )
        for entry in editor.find_entries(pos=pos.name):
            forms = ", ".join(
                f"{f.declension}={f.form}{'*' if f.is_irregular else ''}"
                for f in editor.get_forms(entry.id)
            )
            line = f"    {entry.form} [{entry.word_class}]"
            if entry.translation:
                line += f" '{entry.translation}'"
            print(f"{line}: {forms}" if forms else line)


def _print_check(editor: LexiconEditor) -> int:
    findings = editor.validate()
    print(f"\nConsistency check: {len(findings)} finding(s)")
    for f in findings:
        print(f"  [{f.severity}] {f.rule_id} {f.entity_type} {f.entity_id}: {f.message}")
    return 1 if any(f.severity == ValidationSeverity.ERROR for f in findings) else 0


def _print_rhymes(editor: LexiconEditor) -> None:
    print("\nRhyme groups:")
    for group in editor.list_rhyme_groups():
        members = ", ".join(f.form for f in editor.get_rhymes(group.id))
        print(f"  {group.id} ({group.size}): {members}")


if __name__ == "__main__":
    sys.exit(main())
