"""Diagnostics and error reporting for expectest.

Provides usage errors with actionable suggestions and the diff helpers used
to render failed expectations.
"""

import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass
class DiagnosticContext:
    """Accumulated context for a usage error."""

    target: str  # The construct that was misused
    notes: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def add_note(self, note: str) -> None:
        """Record something observed about the invocation."""
        self.notes.append(note)

    def add_suggestion(self, suggestion: str) -> None:
        """Add a suggested fix."""
        self.suggestions.append(suggestion)

    def format_error(self, summary: str) -> str:
        """Format a detailed error message.

        Args:
            summary: The main error message.

        Returns:
            Formatted error with notes and suggestions.
        """
        lines = [summary, ""]

        if self.notes:
            lines.append(f"In {self.target}:")
            for note in self.notes:
                lines.append(f"  ✗ {note}")
            lines.append("")

        if self.suggestions:
            lines.append("Suggestions:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"  {i}. {suggestion}")

        return "\n".join(lines).rstrip()


class UsageError(Exception):
    """Raised when an expectest construct is invoked incorrectly.

    Usage errors are never recorded as test failures; they abort immediately.
    """

    def __init__(self, message: str, context: DiagnosticContext | None = None):
        self.context = context
        if context:
            message = context.format_error(message)
        super().__init__(message)


class ExpectationFailed(AssertionError):
    """Raised at the end of a test unit when any expectation failed."""

    def __init__(self, message: str, reports: list[Any] | None = None):
        self.reports = reports or []
        super().__init__(message)


def debug(message: str) -> None:
    """Write a debug line when debug mode is enabled."""
    from expectest.config import get_config

    if get_config().debug_mode or os.environ.get("EXPECTEST_DEBUG") == "1":
        print(f"[DEBUG] {message}", file=sys.stderr)


def string_diff(expected: str, actual: str) -> str:
    """Three-way diff of two strings: common prefix and the diverging tails."""
    i = 0
    limit = min(len(expected), len(actual))
    while i < limit and expected[i] == actual[i]:
        i += 1

    return (
        f"matches: {expected[:i]!r}\n"
        f">>>  expected diverges: {expected[i:]!r}\n"
        f">>>    actual diverges: {actual[i:]!r}"
    )


def value_diff(expected: Any, actual: Any) -> tuple[Any, Any]:
    """Structural diff of two values.

    Returns:
        Tuple of (added, removed): the parts only present in ``actual`` and the
        parts only present in ``expected``. Equal parts are None.
    """
    if expected == actual:
        return None, None

    if isinstance(expected, Mapping) and isinstance(actual, Mapping):
        added: dict[Any, Any] = {}
        removed: dict[Any, Any] = {}
        for key in actual:
            if key not in expected:
                added[key] = actual[key]
        for key in expected:
            if key not in actual:
                removed[key] = expected[key]
            elif expected[key] != actual[key]:
                # Recurse for nested values
                sub_added, sub_removed = value_diff(expected[key], actual[key])
                added[key] = sub_added
                removed[key] = sub_removed
        return added or None, removed or None

    if _is_sequence(expected) and _is_sequence(actual):
        added_items: list[Any] = []
        removed_items: list[Any] = []
        for i in range(max(len(expected), len(actual))):
            if i >= len(expected):
                added_items.append(actual[i])
                removed_items.append(None)
            elif i >= len(actual):
                added_items.append(None)
                removed_items.append(expected[i])
            else:
                sub_added, sub_removed = value_diff(expected[i], actual[i])
                added_items.append(sub_added)
                removed_items.append(sub_removed)
        return _trim(added_items), _trim(removed_items)

    if isinstance(expected, (set, frozenset)) and isinstance(actual, (set, frozenset)):
        return (set(actual) - set(expected)) or None, (set(expected) - set(actual)) or None

    return actual, expected


def format_value_diff(expected: Any, actual: Any, max_length: int = 100) -> str:
    """Format expected and actual values one above the other.

    Args:
        expected: The expected value.
        actual: The actual value.
        max_length: Max length for value repr before truncation.

    Returns:
        Formatted diff string.
    """
    expected_repr = truncate_repr(expected, max_length)
    actual_repr = truncate_repr(actual, max_length)

    return f"expected: {expected_repr}\n  actual: {actual_repr}"


def truncate_repr(value: Any, max_length: int = 100) -> str:
    """Get repr of value, truncating if too long."""
    r = repr(value)
    if len(r) > max_length:
        return r[: max_length - 3] + "..."
    return r


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _trim(items: list[Any]) -> list[Any] | None:
    """Drop trailing Nones; an all-None list collapses to None."""
    while items and items[-1] is None:
        items.pop()
    return items or None
