"""Test units for expectest.

``defexpect`` turns a function (or one or two forms) into a pytest test whose
expectations are all checked before any failure is raised. ``use_fixtures``
registers before/after behavior through pytest's fixture machinery.
"""

from __future__ import annotations

import functools
import inspect
import itertools
import re
from collections.abc import Mapping
from contextlib import ExitStack, contextmanager
from typing import Any, Callable, ContextManager, Generator

import pytest
from pydantic import BaseModel, ConfigDict, ValidationError

from expectest.diagnostics import DiagnosticContext, UsageError, debug
from expectest.expander import expect
from expectest.predicates import truthy
from expectest.reporting import collecting, current_collector, testing_context

# Fixture kinds and the pytest scope they map to
FIXTURE_SCOPES = {
    "each": "function",
    "once": "module",
}

_fixture_ids = itertools.count(1)


def defexpect(name_or_fn: Any = None, *forms: Any) -> Any:
    """Declare a test unit.

    Usage:
        @defexpect
        def test_addition():
            expect(2, 1 + 1)
            expect(int, 2)

        @defexpect("addition works")
        def test_addition_with_a_name():
            expect(2, 1 + 1)

        test_two = defexpect("two", 2, lazy(add, 1, 1))   # one expectation
        test_true = defexpect("true", lazy(is_ready))     # one truthy check

    Every expectation in the body is checked; failures are raised together
    when the body returns.
    """
    if callable(name_or_fn) and not isinstance(name_or_fn, str) and not forms:
        return _wrap(name_or_fn, None)

    if not isinstance(name_or_fn, str) or not name_or_fn:
        ctx = DiagnosticContext(target="defexpect")
        ctx.add_note(f"got {type(name_or_fn).__name__} as the first argument")
        ctx.add_suggestion("Use @defexpect on a function, or defexpect('name', expected, actual)")
        raise UsageError("defexpect requires a function or a test name", context=ctx)

    name = name_or_fn

    if not forms:
        return lambda fn: _wrap(fn, name)

    if len(forms) == 1:
        form = forms[0]
        if inspect.isfunction(form):
            return _wrap(_truthy_unless_checked(form), name)

        def body() -> None:
            expect(truthy, form)

        return _wrap(body, name)

    if len(forms) == 2:
        expected, actual = forms

        def body() -> None:
            expect(expected, actual)

        return _wrap(body, name)

    ctx = DiagnosticContext(target=f"defexpect({name!r}, ...)")
    ctx.add_note(f"got {len(forms)} forms")
    ctx.add_suggestion("Write several expectations inside a decorated function instead")
    raise UsageError("defexpect shorthand takes one or two forms", context=ctx)


def expecting(*strings: Any) -> ContextManager[None]:
    """Add context strings to every failure reported inside the block (or decorated function)."""
    return testing_context(*strings)


def _wrap(fn: Callable[..., Any], name: str | None) -> Callable[..., Any]:
    test_name = _test_name(name or fn.__name__)

    @functools.wraps(fn)
    def test(*args: Any, **kwargs: Any) -> Any:
        with collecting(test_name) as collector:
            result = fn(*args, **kwargs)
        debug(f"{test_name}: {collector.counts}")
        collector.raise_if_failed()
        return result

    test.__name__ = test_name
    test.__qualname__ = test_name
    return test


def _truthy_unless_checked(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Check the result of a body that records no expectations of its own."""

    @functools.wraps(fn)
    def body(*args: Any, **kwargs: Any) -> Any:
        collector = current_collector()
        before = len(collector.reports) if collector is not None else 0
        result = fn(*args, **kwargs)
        if collector is None or len(collector.reports) == before:
            expect(truthy, result)
        return result

    return body


def _test_name(name: str) -> str:
    name = re.sub(r"\W+", "_", name).strip("_") or "expectation"
    if name.startswith("test"):
        return name
    return f"test_{name}"


# =============================================================================
# Fixtures
# =============================================================================


class FixtureSpec(BaseModel):
    """A before/after pair, run around each test (or once per module)."""

    model_config = ConfigDict(extra="forbid")

    before: Callable[[], Any] | None = None
    after: Callable[[], Any] | None = None


def use_fixtures(kind: str, *fixtures: Any) -> Any:
    """Register fixtures for the module the result is assigned in.

    Usage:
        db_fixtures = use_fixtures("each", {"before": connect, "after": disconnect})
        env_fixtures = use_fixtures("once", temporary_environment)

    Args:
        kind: "each" (around every test) or "once" (around the module).
        fixtures: Generator functions yielding once, context-manager
            factories, or before/after records (FixtureSpec or mapping).

    Returns:
        An autouse pytest fixture; assign it to a module-level name.
    """
    if kind not in FIXTURE_SCOPES:
        ctx = DiagnosticContext(target="use_fixtures")
        ctx.add_note(f"unknown kind {kind!r}")
        ctx.add_suggestion(f"Use one of: {', '.join(FIXTURE_SCOPES)}")
        raise UsageError(f"Invalid fixture kind: {kind!r}", context=ctx)

    if not fixtures:
        raise UsageError("use_fixtures requires at least one fixture")

    factories = [_as_context_factory(f) for f in fixtures]
    fixture_name = f"expectest_{kind}_fixtures_{next(_fixture_ids)}"

    @pytest.fixture(scope=FIXTURE_SCOPES[kind], autouse=True, name=fixture_name)
    def run_fixtures() -> Generator[None, None, None]:
        with ExitStack() as stack:
            for factory in factories:
                stack.enter_context(factory())
            yield

    return run_fixtures


def _as_context_factory(fixture: Any) -> Callable[[], ContextManager[Any]]:
    if isinstance(fixture, (FixtureSpec, Mapping)):
        spec = _fixture_spec(fixture)
        return lambda: _before_after(spec)

    if inspect.isgeneratorfunction(fixture):
        return contextmanager(fixture)

    if callable(fixture):
        return lambda: _entered(fixture)

    raise UsageError(f"Invalid fixture {fixture!r}: expected a generator function, context manager factory or before/after record")


def _fixture_spec(fixture: Any) -> FixtureSpec:
    if isinstance(fixture, FixtureSpec):
        return fixture
    try:
        return FixtureSpec.model_validate(dict(fixture))
    except ValidationError as e:
        ctx = DiagnosticContext(target="use_fixtures")
        ctx.add_note(f"got keys {sorted(fixture)}")
        ctx.add_suggestion("Only 'before' and 'after' zero-argument callables are recognized")
        raise UsageError("Invalid fixture record", context=ctx) from e


@contextmanager
def _before_after(spec: FixtureSpec) -> Generator[None, None, None]:
    if spec.before is not None:
        debug("fixture: before")
        spec.before()
    try:
        yield
    finally:
        if spec.after is not None:
            debug("fixture: after")
            spec.after()


def _entered(factory: Callable[[], Any]) -> ContextManager[Any]:
    manager = factory()
    if not hasattr(manager, "__enter__") or not hasattr(manager, "__exit__"):
        raise UsageError(f"Fixture {getattr(factory, '__name__', factory)!r} did not return a context manager")
    return manager
