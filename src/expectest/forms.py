"""Surface forms for expectations.

These are the building blocks test authors write inside ``expect``: compound
expected forms (``more``, ``more_arrow``, ``more_of``) and actual wrappers
(``lazy``, ``from_each``, ``in_``). They carry no behavior of their own; the
parser classifies them and the expander gives them meaning.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable


def render(value: Any) -> str:
    """Render a value the way it would appear in an expectation's source."""
    if isinstance(value, type):
        return value.__qualname__
    if isinstance(value, re.Pattern):
        return f"re.compile({value.pattern!r})"
    if isinstance(value, (More, MoreArrow, MoreOf, Lazy, FromEach, In, _ThreadLast)):
        return repr(value)
    if isinstance(value, tuple) and value and callable(value[0]):
        return "(" + ", ".join(render(v) for v in value) + ")"
    if isinstance(value, list) and any(callable(v) for v in value):
        return "[" + ", ".join(render(v) for v in value) + "]"
    if callable(value) and hasattr(value, "__name__"):
        return value.__name__
    r = repr(value)
    if len(r) > 100:
        return r[:97] + "..."
    return r


class _ThreadLast:
    """Marker placed at the head of a transform tuple to thread the value last."""

    def __repr__(self) -> str:
        return "thread_last"


thread_last = _ThreadLast()


@dataclass(frozen=True)
class More:
    """Every sub-expectation must hold against the same actual."""

    expected: tuple[Any, ...]

    def __repr__(self) -> str:
        return "more(" + ", ".join(render(e) for e in self.expected) + ")"


@dataclass(frozen=True)
class MoreArrow:
    """Pairs of (expected, transform) applied to the threaded actual."""

    pairs: tuple[tuple[Any, Any], ...]

    def __repr__(self) -> str:
        flat = ", ".join(f"{render(e)}, {render(t)}" for e, t in self.pairs)
        return f"more_arrow({flat})"


@dataclass(frozen=True)
class MoreOf:
    """Destructure the actual, then check alternating expected/actual pairs."""

    destructure: Callable[..., Any]

    def __repr__(self) -> str:
        return f"more_of({render(self.destructure)})"


@dataclass(frozen=True)
class Lazy:
    """An actual expression evaluated only when the expectation runs."""

    fn: Callable[..., Any]
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)

    def force(self) -> Any:
        return self.fn(*self.args, **self.kwargs)

    def __repr__(self) -> str:
        parts = [render(a) for a in self.args]
        parts.extend(f"{k}={render(v)}" for k, v in self.kwargs.items())
        return f"{render(self.fn)}({', '.join(parts)})"


@dataclass(frozen=True)
class FromEach:
    """Evaluate ``body`` once per binding; each result is checked separately."""

    bindings: Any
    body: Callable[..., Any] | None = None
    when: Callable[..., Any] | None = None

    def __repr__(self) -> str:
        parts = [render(self.bindings)]
        if self.body is not None:
            parts.append(render(self.body))
        if self.when is not None:
            parts.append(f"when={render(self.when)}")
        return f"from_each({', '.join(parts)})"


@dataclass(frozen=True)
class In:
    """The expected value must appear in (or be a sub-map of) the collection."""

    collection: Any

    def __repr__(self) -> str:
        return f"in_({render(self.collection)})"


def more(*expected: Any) -> More:
    """Combine several expected forms against one actual."""
    return More(tuple(expected))


def more_arrow(*forms: Any) -> MoreArrow:
    """Alternating ``expected, transform`` forms applied to the actual.

    A transform is a callable, a ``(fn, *args)`` tuple (the value is threaded
    as the first argument), a ``(thread_last, fn, *args)`` tuple, an
    accessor path string such as ``"['items'][0].name"``, or a list of these
    applied in order (``[str.split, len]``).
    """
    from expectest.diagnostics import DiagnosticContext, UsageError

    if len(forms) % 2 != 0:
        ctx = DiagnosticContext(target="more_arrow")
        ctx.add_note(f"got {len(forms)} forms")
        ctx.add_suggestion("Pass alternating expected, transform pairs")
        raise UsageError("more_arrow requires an even number of forms", context=ctx)
    return MoreArrow(tuple(zip(forms[0::2], forms[1::2])))


def more_of(destructure: Callable[..., Any]) -> MoreOf:
    """Bind the actual with ``destructure``, which returns ``expected, actual, ...`` pairs."""
    return MoreOf(destructure)


def lazy(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Lazy:
    """Defer ``fn(*args, **kwargs)`` until the expectation is checked."""
    return Lazy(fn, args, kwargs)


def from_each(bindings: Any, body: Callable[..., Any] | None = None, when: Callable[..., Any] | None = None) -> FromEach:
    """Check the expectation against ``body(binding)`` for every binding."""
    return FromEach(bindings, body, when)


def in_(collection: Any) -> In:
    """Check membership (sequences, sets) or a sub-map (mappings)."""
    return In(collection)
