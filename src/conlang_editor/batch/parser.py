"""
YAML parser for batch change requests.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .schema import Change, ChangeRequest


class ParseError(Exception):
    """Error parsing a change request file."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        super().__init__(message)


def load_change_request(
    source: Union[str, Path, Dict[str, Any]],
) -> ChangeRequest:
    """Load a change request from a YAML file, YAML string or dictionary.

    Args:
        source: Path to YAML file, YAML string, or parsed dictionary

    Returns:
        ChangeRequest object

    Raises:
        ParseError: If the content cannot be parsed or is malformed
        FileNotFoundError: If the file does not exist
    """
    if isinstance(source, dict):
        data = source
    elif isinstance(source, Path) or _is_file_path(source):
        source_path = Path(source)
        if not source_path.exists():
            raise FileNotFoundError(f"File not found: {source_path}")
        data = _load_yaml_file(source_path)
    else:
        data = _load_yaml_string(source)

    return _parse_change_request(data)


def _is_file_path(s: str) -> bool:
    """Check if a string looks like a file path rather than YAML content."""
    if "\n" in s:
        return False
    if "/" in s or "\\" in s:
        return True
    return s.endswith((".yaml", ".yml"))


def _safe_load(stream: Any, empty_message: str) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line_num = mark.line + 1 if mark else None
        raise ParseError(f"Invalid YAML: {e}", line=line_num) from e

    if data is None:
        raise ParseError(empty_message)
    if not isinstance(data, dict):
        raise ParseError("YAML root must be a mapping (dictionary)")

    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load YAML from a file."""
    with open(path, "r", encoding="utf-8") as f:
        return _safe_load(f, "Empty YAML file")


def _load_yaml_string(s: str) -> Dict[str, Any]:
    """Load YAML from a string."""
    return _safe_load(s, "Empty YAML content")


def _parse_change_request(data: Dict[str, Any]) -> ChangeRequest:
    """Parse a dictionary into a ChangeRequest object."""
    session = data.get("session") or {}
    if not isinstance(session, dict):
        raise ParseError("Field 'session' must be a mapping")

    changes_data = data.get("changes")
    if changes_data is None:
        raise ParseError("Missing required field: 'changes'")
    if not isinstance(changes_data, list):
        raise ParseError("Field 'changes' must be a list")
    if len(changes_data) == 0:
        raise ParseError("Field 'changes' cannot be empty")

    return ChangeRequest(
        changes=_parse_changes(changes_data),
        session_name=session.get("name"),
        session_description=session.get("description"),
    )


def _parse_changes(changes_data: List[Any]) -> List[Change]:
    """Parse a list of change dictionaries into Change objects."""
    changes = []

    for i, change_data in enumerate(changes_data):
        if not isinstance(change_data, dict):
            raise ParseError(f"Change #{i + 1} must be a mapping (dictionary)")

        operation = change_data.get("operation")
        if not operation:
            raise ParseError(
                f"Change #{i + 1}: Missing required field 'operation'"
            )
        if not isinstance(operation, str):
            raise ParseError(
                f"Change #{i + 1}: Field 'operation' must be a string"
            )

        params = {k: v for k, v in change_data.items() if k != "operation"}
        changes.append(Change(operation=operation, params=params))

    return changes
