"""Report sink for expectest.

Every expanded expectation ends in ``report``. Inside a test unit reports are
collected and raised together at the end; outside one, a failure raises
``AssertionError`` straight away so plain pytest tests work unchanged.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Any, Generator

from pydantic import BaseModel, ConfigDict, Field
from rich.pretty import pretty_repr

from expectest.diagnostics import ExpectationFailed, format_value_diff


class Source(str):
    """Source text shown verbatim in a report (e.g. a predicate application)."""

    def __repr__(self) -> str:
        return str(self)


class ReportStatus(str, Enum):
    """Outcome of one primitive assertion."""

    PASS = "pass"
    FAIL = "fail"
    ERROR = "error"  # Exception raised while checking


class Report(BaseModel):
    """Result of one primitive assertion.

    Field names follow the humane diff payload: type, message, expected,
    actual, diffs.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: ReportStatus
    message: str | None = None
    expected: Any = None
    actual: Any = None
    diffs: list[Any] = Field(default_factory=list)  # [(actual, (added, removed)), ...]
    context: list[str] = Field(default_factory=list)  # expecting(...) strings
    exception: BaseException | None = None

    @property
    def passed(self) -> bool:
        return self.type == ReportStatus.PASS


class ReportCollector:
    """Records reports for one test unit (or one aggregate check)."""

    def __init__(self, name: str | None = None):
        self.name = name
        self.reports: list[Report] = []

    def record(self, report: Report) -> None:
        self.reports.append(report)

    @property
    def counts(self) -> dict[ReportStatus, int]:
        counts = {status: 0 for status in ReportStatus}
        for r in self.reports:
            counts[r.type] += 1
        return counts

    def passes(self) -> list[Report]:
        return [r for r in self.reports if r.type == ReportStatus.PASS]

    def failures(self) -> list[Report]:
        return [r for r in self.reports if r.type == ReportStatus.FAIL]

    def errors(self) -> list[Report]:
        return [r for r in self.reports if r.type == ReportStatus.ERROR]

    def raise_if_failed(self) -> None:
        """Raise ExpectationFailed summarising every failure and error."""
        bad = [r for r in self.reports if r.type != ReportStatus.PASS]
        if not bad:
            return

        where = f" in {self.name}" if self.name else ""
        lines = [f"{len(bad)} of {len(self.reports)} expectations failed{where}", ""]
        for i, r in enumerate(bad, 1):
            lines.append(f"{i}. {format_report(r)}")
            lines.append("")
        raise ExpectationFailed("\n".join(lines).rstrip(), reports=bad)


_collector: ContextVar[ReportCollector | None] = ContextVar("expectest_collector", default=None)
_contexts: ContextVar[tuple[str, ...]] = ContextVar("expectest_contexts", default=())


@contextmanager
def collecting(name: str | None = None) -> Generator[ReportCollector, None, None]:
    """Install a fresh collector for the duration of the block.

    Usage:
        with collecting() as collector:
            expect(1, 2)

        assert collector.counts[ReportStatus.FAIL] == 1
    """
    collector = ReportCollector(name)
    token = _collector.set(collector)
    try:
        yield collector
    finally:
        _collector.reset(token)


@contextmanager
def testing_context(*strings: str) -> Generator[None, None, None]:
    """Add context strings to every report made inside the block."""
    token = _contexts.set(_contexts.get() + tuple(str(s) for s in strings))
    try:
        yield
    finally:
        _contexts.reset(token)


def current_collector() -> ReportCollector | None:
    return _collector.get()


def report(r: Report) -> None:
    """The primitive assertion sink."""
    contexts = _contexts.get()
    if contexts and not r.context:
        r = r.model_copy(update={"context": list(contexts)})

    collector = _collector.get()
    if collector is not None:
        collector.record(r)
        return

    if r.type == ReportStatus.PASS:
        return

    error = AssertionError(format_report(r))
    if r.exception is not None:
        raise error from r.exception
    raise error


def format_report(r: Report) -> str:
    """Render a report for display."""
    from expectest.config import get_config

    diff_config = get_config().diff
    heading = "FAIL" if r.type == ReportStatus.FAIL else r.type.value.upper()
    lines = [heading + (f" ({' '.join(r.context)})" if r.context else "")]

    if r.message:
        lines.extend(r.message.splitlines())

    if r.diffs and diff_config.enhanced:
        lines.append(f"expected: {pretty_repr(r.expected, max_width=80)}")
        for actual, (added, removed) in r.diffs:
            lines.append(f"  actual: {pretty_repr(actual, max_width=80)}")
            lines.append(f"    diff: - {pretty_repr(removed, max_width=80)}")
            lines.append(f"          + {pretty_repr(added, max_width=80)}")
    else:
        lines.extend(format_value_diff(r.expected, r.actual, diff_config.max_repr_length).splitlines())

    return "\n".join(lines)

