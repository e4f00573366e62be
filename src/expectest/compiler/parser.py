"""expectest parser - classifies expectation forms into IR.

Structural forms (more, more_arrow, more_of) are recognized first since their
parts are not values on their own; the remaining forms are classified by the
kind of object the author wrote.
"""

import re
from typing import Any

from expectest.diagnostics import DiagnosticContext, UsageError, debug
from expectest.forms import FromEach, In, Lazy, More, MoreArrow, MoreOf, render
from expectest.specs import SpecRegistry, get_registry

from .ir import (
    ActualForm,
    ActualKind,
    ExpectationIR,
    ExpectedForm,
    ExpectedKind,
    ThreadStep,
)

# Kinds that may be forced on a value through an explicit tag
TAGGABLE_KINDS = frozenset(
    {
        ExpectedKind.LITERAL,
        ExpectedKind.PREDICATE,
        ExpectedKind.TYPE,
        ExpectedKind.EXCEPTION_TYPE,
    }
)


class ExpectationParser:
    """Classifier for expect(expected, actual, message) triples."""

    def __init__(self, registry: SpecRegistry | None = None) -> None:
        """Initialize the parser.

        Args:
            registry: Spec registry consulted for keyword-shaped forms. Defaults
                to the module-level registry.
        """
        self._registry = registry
        # Explicit (object, kind) tags; compared by identity
        self._tags: list[tuple[Any, ExpectedKind]] = []

    @property
    def registry(self) -> SpecRegistry:
        return self._registry if self._registry is not None else get_registry()

    def tag(self, obj: Any, kind: ExpectedKind) -> None:
        """Force ``obj`` to classify as ``kind`` (e.g. a class used as a predicate)."""
        if kind not in TAGGABLE_KINDS:
            raise UsageError(f"Cannot tag a value as {kind.value!r}")
        self._tags = [(o, k) for o, k in self._tags if o is not obj]
        self._tags.append((obj, kind))

    def untag(self, obj: Any) -> None:
        self._tags = [(o, k) for o, k in self._tags if o is not obj]

    # =========================================================================
    # Entry point
    # =========================================================================

    def parse(self, expected: Any, actual: Any, message: str | None = None) -> ExpectationIR:
        """Classify an expectation into IR."""
        if message is not None and not isinstance(message, str):
            message = str(message)
        return ExpectationIR(
            expected=self.parse_expected(expected),
            actual=self.parse_actual(actual),
            message=message,
        )

    # =========================================================================
    # Expected forms
    # =========================================================================

    def parse_expected(self, expected: Any) -> ExpectedForm:
        """Classify an expected form; first match wins."""
        form = self._classify(expected)
        debug(f"classified {render(expected)} as {form.kind.value}")
        return form

    def _classify(self, expected: Any) -> ExpectedForm:
        # Structural forms
        if isinstance(expected, More):
            if not expected.expected:
                raise UsageError("more requires at least one expected form")
            return ExpectedForm(
                kind=ExpectedKind.ALL_OF,
                value=expected,
                children=[self._classify(e) for e in expected.expected],
            )

        if isinstance(expected, MoreArrow):
            return ExpectedForm(
                kind=ExpectedKind.THREADED,
                value=expected,
                steps=[ThreadStep(expected=self._classify(e), transform=t) for e, t in expected.pairs],
            )

        if isinstance(expected, MoreOf):
            if not callable(expected.destructure):
                ctx = DiagnosticContext(target=repr(expected))
                ctx.add_suggestion("Pass a function returning expected, actual pairs")
                raise UsageError("more_of requires a callable", context=ctx)
            return ExpectedForm(
                kind=ExpectedKind.DESTRUCTURED,
                value=expected,
                destructure=expected.destructure,
            )

        if isinstance(expected, (FromEach, In, Lazy)):
            ctx = DiagnosticContext(target=render(expected))
            ctx.add_note("actual wrappers are only valid in the actual position")
            ctx.add_suggestion("Swap the arguments: expect(expected, actual)")
            raise UsageError(f"{type(expected).__name__} used as an expected form", context=ctx)

        # Explicit tags
        for obj, kind in self._tags:
            if obj is expected:
                return ExpectedForm(kind=kind, value=expected)

        # Types are resolved before predicates
        if isinstance(expected, type):
            if issubclass(expected, BaseException):
                return ExpectedForm(kind=ExpectedKind.EXCEPTION_TYPE, value=expected)
            return ExpectedForm(kind=ExpectedKind.TYPE, value=expected)

        if self.registry.is_registered(expected):
            return ExpectedForm(kind=ExpectedKind.SPEC, value=expected)

        if isinstance(expected, re.Pattern):
            return ExpectedForm(kind=ExpectedKind.REGEX, value=expected)

        if callable(expected):
            return ExpectedForm(kind=ExpectedKind.PREDICATE, value=expected)

        return ExpectedForm(kind=ExpectedKind.LITERAL, value=expected)

    # =========================================================================
    # Actual forms
    # =========================================================================

    def parse_actual(self, actual: Any) -> ActualForm:
        """Classify an actual form."""
        if isinstance(actual, FromEach):
            if actual.body is not None and not callable(actual.body):
                raise UsageError("from_each body must be callable")
            return ActualForm(
                kind=ActualKind.FROM_EACH,
                value=actual.bindings,
                body=actual.body,
                when=actual.when,
                source=actual,
            )

        if isinstance(actual, In):
            return ActualForm(kind=ActualKind.IN, value=actual.collection, source=actual)

        if isinstance(actual, Lazy):
            return ActualForm(kind=ActualKind.LAZY, value=actual)

        return ActualForm(kind=ActualKind.PLAIN, value=actual)


# Module-level parser instance for convenience
_parser: ExpectationParser | None = None


def get_parser() -> ExpectationParser:
    """Get or create the module-level parser instance."""
    global _parser
    if _parser is None:
        _parser = ExpectationParser()
    return _parser


def parse(expected: Any, actual: Any, message: str | None = None) -> ExpectationIR:
    """Classify an expectation into IR."""
    return get_parser().parse(expected, actual, message)
