"""Predicate helpers for expected forms.

Each helper returns a plain function with a readable ``__name__`` so that
failure reports show what was being checked.
"""

from typing import Any, Callable


def truthy(value: Any) -> bool:
    """Whether value is truthy."""
    return bool(value)


def approximately(value: float, delta: float = 0.001) -> Callable[[Any], bool]:
    """Match any number within ``delta`` of ``value``."""

    def check(actual: Any) -> bool:
        return abs(actual - value) <= delta

    check.__name__ = f"approximately({value!r}, {delta!r})"
    return check


def between(a: Any, b: Any) -> Callable[[Any], bool]:
    """Match values in the inclusive range [a, b]."""

    def check(actual: Any) -> bool:
        return a <= actual <= b

    check.__name__ = f"between({a!r}, {b!r})"
    return check


def between_(a: Any, b: Any) -> Callable[[Any], bool]:
    """Match values in the exclusive range (a, b)."""

    def check(actual: Any) -> bool:
        return a < actual < b

    check.__name__ = f"between_({a!r}, {b!r})"
    return check


def functionally(
    expected_fn: Callable[[Any], Any],
    actual_fn: Callable[[Any], Any],
    difference_fn: Callable[[Any, Any], Any] | None = None,
) -> Callable[[Any], bool]:
    """Match inputs for which both functions produce equal results.

    When ``difference_fn`` is given, the last mismatch it describes is kept on
    the predicate as ``last_difference``.
    """

    def check(actual: Any) -> bool:
        e = expected_fn(actual)
        a = actual_fn(actual)
        if e == a:
            return True
        if difference_fn is not None:
            check.last_difference = difference_fn(e, a)  # type: ignore[attr-defined]
        return False

    name_e = getattr(expected_fn, "__name__", repr(expected_fn))
    name_a = getattr(actual_fn, "__name__", repr(actual_fn))
    check.__name__ = f"functionally({name_e}, {name_a})"
    check.last_difference = None  # type: ignore[attr-defined]
    return check
