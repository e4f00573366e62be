"""Intermediate Representation (IR) models for expectest.

The parser classifies the objects passed to ``expect`` into these tagged
variants; the expander consumes them. Each expected form carries exactly one
kind.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from expectest.forms import render


class ExpectedKind(str, Enum):
    """Classification of an expected form."""

    LITERAL = "literal"  # Structural equality
    PREDICATE = "predicate"  # Truthy when applied to actual
    TYPE = "type"  # isinstance check
    EXCEPTION_TYPE = "exception_type"  # Actual must raise
    REGEX = "regex"  # Pattern found in actual
    SPEC = "spec"  # Registered spec accepts actual
    ALL_OF = "all_of"  # more(...)
    THREADED = "threaded"  # more_arrow(...)
    DESTRUCTURED = "destructured"  # more_of(...)


class ActualKind(str, Enum):
    """Classification of an actual form."""

    PLAIN = "plain"  # Already evaluated value
    LAZY = "lazy"  # Thunk evaluated at check time
    FROM_EACH = "from_each"  # One actual per binding
    IN = "in"  # Membership / sub-map


COMPOUND_KINDS = frozenset({ExpectedKind.ALL_OF, ExpectedKind.THREADED, ExpectedKind.DESTRUCTURED})


class ExpectedForm(BaseModel):
    """A classified expected form."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: ExpectedKind
    value: Any = None  # The raw object the author wrote
    children: list["ExpectedForm"] = Field(default_factory=list)  # all_of members
    steps: list["ThreadStep"] = Field(default_factory=list)  # threaded steps
    destructure: Any = None  # more_of binding callable

    @property
    def is_compound(self) -> bool:
        return self.kind in COMPOUND_KINDS

    def surface(self) -> str:
        return render(self.value)


class ThreadStep(BaseModel):
    """One (expected, transform) pair of a threaded chain."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    expected: ExpectedForm
    transform: Any  # callable, (fn, *args) tuple, or accessor path string

    def surface(self) -> str:
        return f"{self.expected.surface()} <- {render(self.transform)}"


class ActualForm(BaseModel):
    """A classified actual form."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: ActualKind = ActualKind.PLAIN
    value: Any = None  # Plain value, Lazy thunk, collection, or bindings
    body: Any = None  # from_each body
    when: Any = None  # from_each filter
    source: Any = None  # The wrapper the author wrote, if any

    def surface(self) -> str:
        return render(self.source if self.source is not None else self.value)


class ExpectationIR(BaseModel):
    """Root node for one expectation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    expected: ExpectedForm
    actual: ActualForm
    message: str | None = None
    within: str | None = None  # Surface of the enclosing form when expansion rewrote it

    def surface(self) -> str:
        return f"expect({self.expected.surface()}, {self.actual.surface()})"


ExpectedForm.model_rebuild()
