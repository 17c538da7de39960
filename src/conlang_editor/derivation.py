"""Transform pipelines: ordered, guarded regex rewrites."""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable, Mapping

from conlang_editor.exceptions import RuleError
from conlang_editor.models import Pipeline, TransformRule


@functools.lru_cache(maxsize=1024)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def check_rule(guard: str, pattern: str, replacement: str) -> TransformRule:
    """Compile a rule's parts, raising RuleError if any is invalid."""
    for label, value in (("guard", guard), ("pattern", pattern)):
        try:
            _compile(value)
        except re.error as e:
            raise RuleError(f"Invalid {label} {value!r}: {e}") from e
    # Template errors (bad group references) surface on the first sub call,
    # even against an empty string.
    try:
        _compile(pattern).sub(replacement, "")
    except (re.error, IndexError) as e:
        raise RuleError(f"Invalid replacement {replacement!r}: {e}") from e
    return TransformRule(guard=guard, pattern=pattern, replacement=replacement)


def derive(base: str, rules: Iterable[TransformRule]) -> str:
    """Apply ``rules`` to ``base`` in order.

    A rule fires only when its guard matches the current, already partially
    transformed string; it then replaces every match of its pattern. Rules
    whose guard does not match leave the string untouched.
    """
    current = base
    for rule in rules:
        if _compile(rule.guard).search(current):
            current = _compile(rule.pattern).sub(rule.replacement, current)
    return current


def group_rules(
    rows: Iterable[Mapping[str, str]],
) -> dict[Pipeline, list[TransformRule]]:
    """Split stored rule rows into one ordered rule list per pipeline."""
    rules: dict[Pipeline, list[TransformRule]] = {p: [] for p in Pipeline}
    for r in rows:
        rules[Pipeline(r["pipeline"])].append(
            TransformRule(r["guard"], r["pattern"], r["replacement"])
        )
    return rules
