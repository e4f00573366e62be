"""Expectation expander - lowers classified expectations to reports.

Compound forms are expanded recursively into independent expectations; simple
forms end in exactly one call to the report sink.
"""

from __future__ import annotations

import inspect
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Callable

from expectest.compiler.ir import ActualForm, ActualKind, ExpectationIR, ExpectedKind
from expectest.compiler.parser import ExpectationParser, get_parser
from expectest.compiler.path import compile_path
from expectest.config import get_config
from expectest.diagnostics import (
    DiagnosticContext,
    UsageError,
    debug,
    string_diff,
    truncate_repr,
    value_diff,
)
from expectest.forms import Lazy, MoreArrow, render, thread_last
from expectest.reporting import Report, ReportStatus, Source, collecting, report


class Expander:
    """Checks expectations by interpreting their IR."""

    def __init__(self, parser: ExpectationParser | None = None):
        self._parser = parser

    @property
    def parser(self) -> ExpectationParser:
        return self._parser if self._parser is not None else get_parser()

    def expect(self, expected: Any, actual: Any, message: str | None = None) -> None:
        """Classify and check one expectation."""
        self.check(self.parser.parse(expected, actual, message))

    def check(self, ir: ExpectationIR) -> None:
        """Check a classified expectation; the first matching rule wins."""
        if ir.actual.kind == ActualKind.FROM_EACH:
            self._check_from_each(ir)
        elif ir.actual.kind == ActualKind.IN:
            self._check_in(ir)
        elif ir.expected.kind == ExpectedKind.ALL_OF:
            within = ir.within or ir.surface()
            for child in ir.expected.children:
                self.check(ir.model_copy(update={"expected": child, "within": within}))
        elif ir.expected.kind == ExpectedKind.THREADED:
            self._check_threaded(ir)
        elif ir.expected.kind == ExpectedKind.DESTRUCTURED:
            self._check_destructured(ir)
        else:
            self._check_simple(ir)

    # =========================================================================
    # Actual wrappers
    # =========================================================================

    def _check_from_each(self, ir: ExpectationIR) -> None:
        """One expectation per binding."""
        actual = ir.actual
        within = ir.within or ir.surface()

        for binding in actual.value:
            if actual.when is not None and not call_with(actual.when, binding):
                continue
            value = call_with(actual.body, binding) if actual.body is not None else binding
            self.check(
                ExpectationIR(
                    expected=ir.expected,
                    actual=self.parser.parse_actual(value),
                    message=join_message(ir.message, f"from each: {truncate_repr(binding)}"),
                    within=within,
                )
            )

    def _check_in(self, ir: ExpectationIR) -> None:
        """Membership in a sequence/set, or sub-map of a mapping."""
        collection = ir.actual.value
        if isinstance(collection, Lazy):
            collection = collection.force()
        within = ir.within or ir.surface()

        if isinstance(collection, Mapping):
            expected = ir.expected.value
            if ir.expected.kind != ExpectedKind.LITERAL or not isinstance(expected, Mapping):
                ctx = DiagnosticContext(target=ir.surface())
                ctx.add_note(f"expected is {type(expected).__name__}, the collection is a mapping")
                ctx.add_suggestion("Pass a dict of the keys and values that must be present")
                raise UsageError("'in' against a mapping requires a mapping as expected", context=ctx)

            submap = {k: collection[k] for k in expected if k in collection}
            self._check_simple(
                ExpectationIR(
                    expected=ir.expected,
                    actual=ActualForm(kind=ActualKind.PLAIN, value=submap),
                    message=ir.message,
                    within=within,
                )
            )
            return

        if isinstance(collection, Iterable) and not isinstance(collection, (str, bytes)):
            # Iterators are consumed once
            self._check_each_element(ir, list(collection), within)
            return

        ctx = DiagnosticContext(target=ir.surface())
        ctx.add_note(f"got {type(collection).__name__}")
        raise UsageError("'in' requires map or sequence", context=ctx)

    def _check_each_element(self, ir: ExpectationIR, collection: Any, within: str) -> None:
        """Aggregate element checks: first failure and first error, or every pass."""
        with collecting() as inner:
            for element in collection:
                sub = ExpectationIR(
                    expected=ir.expected,
                    actual=ActualForm(kind=ActualKind.PLAIN, value=element),
                    message=ir.message,
                    within=within,
                )
                try:
                    self.check(sub)
                except UsageError:
                    raise
                except Exception as e:
                    report(
                        Report(
                            type=ReportStatus.ERROR,
                            message=join_message(ir.message, f"{type(e).__name__}: {e}", f"within: {within}"),
                            expected=Source(sub.surface()),
                            actual=e,
                            exception=e,
                        )
                    )

        failures = inner.failures()
        errors = inner.errors()
        debug(f"in_: {len(inner.passes())} passed, {len(failures)} failed, {len(errors)} errors")
        if failures or errors:
            if failures:
                report(failures[0])
            if errors:
                report(errors[0])
        else:
            for passed in inner.passes():
                report(passed)

    # =========================================================================
    # Compound expected forms
    # =========================================================================

    def _check_threaded(self, ir: ExpectationIR) -> None:
        """Apply each transform to the actual value and check the paired expected."""
        within = ir.within or ir.surface()
        value = evaluate(ir.actual, catch=True)

        for step in ir.expected.steps:
            transformed = apply_transform(step.transform, value)
            self.check(
                ExpectationIR(
                    expected=step.expected,
                    actual=ActualForm(kind=ActualKind.PLAIN, value=transformed),
                    message=join_message(ir.message, f"via: {render(step.transform)}"),
                    within=within,
                )
            )

    def _check_destructured(self, ir: ExpectationIR) -> None:
        """Bind the actual, then check each returned expected/actual pair."""
        within = ir.within or ir.surface()
        value = evaluate(ir.actual)
        forms = list(call_with(ir.expected.destructure, value))

        if len(forms) % 2 != 0:
            ctx = DiagnosticContext(target=ir.expected.surface())
            ctx.add_note(f"the binding function returned {len(forms)} forms")
            ctx.add_suggestion("Return alternating expected, actual pairs")
            raise UsageError("more_of requires an even number of forms", context=ctx)

        for expected, actual in zip(forms[0::2], forms[1::2]):
            sub = self.parser.parse(expected, actual, ir.message)
            self.check(sub.model_copy(update={"within": within}))

    # =========================================================================
    # Simple expected forms
    # =========================================================================

    def _check_simple(self, ir: ExpectationIR) -> None:
        kind = ir.expected.kind

        if kind == ExpectedKind.EXCEPTION_TYPE:
            self._check_raises(ir)
            return

        value = evaluate(ir.actual)
        expected = ir.expected.value
        subject = ir.actual.surface()

        if kind == ExpectedKind.TYPE:
            ok = isinstance(value, expected)
            form = f"isinstance({subject}, {render(expected)})"
            self._report(ir, ok, Source(form), value if ok else Source(f"not {form}: {type(value).__qualname__}"))

        elif kind == ExpectedKind.SPEC:
            registry = self.parser.registry
            ok = registry.is_valid(expected, value)
            explanation = None if ok else registry.explain(expected, value)
            self._report(ir, ok, Source(f"{expected} conforms"), value, explanation)

        elif kind == ExpectedKind.REGEX:
            ok = isinstance(value, str) and expected.search(value) is not None
            self._report(ir, ok, Source(f"{render(expected)}.search({subject})"), value)

        elif kind == ExpectedKind.PREDICATE:
            result = expected(value)
            form = f"{render(expected)}({subject})"
            # functionally() keeps a description of its last mismatch
            difference = getattr(expected, "last_difference", None)
            self._report(
                ir,
                bool(result),
                Source(form),
                value if result else Source(f"not {render(expected)}({truncate_repr(value)}) -> {result!r}"),
                None if result or difference is None else str(difference),
            )

        else:
            self._check_equal(ir, expected, value)

    def _check_raises(self, ir: ExpectationIR) -> None:
        exc_type = ir.expected.value
        form = Source(f"{ir.actual.surface()} raises {render(exc_type)}")

        if ir.actual.kind == ActualKind.LAZY:
            try:
                result = ir.actual.value.force()
            except exc_type as e:
                self._report(ir, True, form, e)
                return
            self._report(ir, False, form, result, f"expected {render(exc_type)} to be raised")
            return

        # Already evaluated: an exception instance (e.g. threaded) or its type
        value = ir.actual.value
        ok = isinstance(value, exc_type) or (isinstance(value, type) and issubclass(value, exc_type))
        self._report(ir, ok, form, value)

    def _check_equal(self, ir: ExpectationIR, expected: Any, value: Any) -> None:
        ok = expected == value
        if ok:
            self._report(ir, True, expected, value)
            return

        details = None
        if isinstance(expected, str) and isinstance(value, str):
            details = string_diff(expected, value)

        diffs: list[Any] = []
        if get_config().diff.enhanced:
            diffs = [(value, value_diff(expected, value))]

        self._report(ir, False, expected, value, details, diffs)

    def _report(
        self,
        ir: ExpectationIR,
        ok: bool,
        expected: Any,
        actual: Any,
        details: str | None = None,
        diffs: list[Any] | None = None,
    ) -> None:
        if ok:
            report(Report(type=ReportStatus.PASS, message=ir.message, expected=expected, actual=actual))
            return

        within = f"within: {ir.within}" if ir.within else None
        report(
            Report(
                type=ReportStatus.FAIL,
                message=join_message(ir.message, details, within),
                expected=expected,
                actual=actual,
                diffs=diffs or [],
            )
        )


def evaluate(actual: ActualForm, catch: bool = False) -> Any:
    """Evaluate an actual form; with ``catch`` an exception becomes the value."""
    if actual.kind != ActualKind.LAZY:
        return actual.value
    if not catch:
        return actual.value.force()
    try:
        return actual.value.force()
    except Exception as e:
        debug(f"threading caught {type(e).__name__}: {e}")
        return e


def apply_transform(transform: Any, value: Any) -> Any:
    """Thread ``value`` through one transform of a chain."""
    if isinstance(transform, str):
        return compile_path(transform)(value)

    # A pipeline threads the value through each of its transforms in turn
    if isinstance(transform, list):
        for t in transform:
            value = apply_transform(t, value)
        return value

    if isinstance(transform, MoreArrow):
        ctx = DiagnosticContext(target=render(transform))
        ctx.add_note("more_arrow is an expected form, not a transform")
        ctx.add_suggestion("Write a pipeline as a list of transforms, e.g. [str.split, len]")
        raise UsageError(f"Invalid transform: {render(transform)}", context=ctx)

    if isinstance(transform, tuple) and transform:
        if transform[0] is thread_last:
            fn, *args = transform[1:]
            return fn(*args, value)
        if callable(transform[0]):
            fn, *args = transform
            return fn(value, *args)

    if callable(transform):
        return transform(value)

    ctx = DiagnosticContext(target=render(transform))
    ctx.add_suggestion("Use a callable, a (fn, *args) tuple, an accessor path string or a list of these")
    raise UsageError(f"Invalid transform: {render(transform)}", context=ctx)


def call_with(fn: Callable[..., Any], value: Any) -> Any:
    """Call ``fn`` with ``value``, unpacking sequences into multi-parameter functions."""
    if (
        isinstance(value, Sequence)
        and not isinstance(value, (str, bytes))
        and positional_arity(fn) > 1
    ):
        return fn(*value)
    return fn(value)


def positional_arity(fn: Callable[..., Any]) -> int:
    """Number of required positional parameters ``fn`` takes (1 when unknown)."""
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return 1
    count = 0
    for p in params:
        if p.kind == inspect.Parameter.VAR_POSITIONAL:
            return 1
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            if p.default is inspect.Parameter.empty:
                count += 1
    return count


def join_message(*parts: str | None) -> str | None:
    lines = [p for p in parts if p]
    return "\n".join(lines) if lines else None


# Module-level expander used by expect()
_expander = Expander()


def expect(expected: Any, actual: Any, message: str | None = None) -> None:
    """Check that ``actual`` satisfies ``expected``.

    ``expected`` may be a literal, a predicate, a type, an exception type, a
    compiled regex, a registered spec name, or a compound form built with
    ``more``, ``more_arrow`` or ``more_of``. ``actual`` may be a value or one
    of ``lazy``, ``from_each`` and ``in_``.
    """
    _expander.expect(expected, actual, message)
