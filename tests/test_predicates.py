"""Predicate helpers."""

from expectest import approximately, between, between_, collecting, expect, functionally
from expectest.reporting import ReportStatus


def run(expected, actual):
    with collecting() as collector:
        expect(expected, actual)
    return collector.reports[0]


class TestApproximately:
    def test_within_delta(self):
        assert run(approximately(1.0), 1.0005).passed

    def test_outside_delta(self):
        assert not run(approximately(1.0, 0.1), 1.2).passed

    def test_name(self):
        assert str(run(approximately(1.0, 0.1), 1.2).expected) == "approximately(1.0, 0.1)(1.2)"


class TestBetween:
    def test_inclusive(self):
        assert run(between(1, 10), 10).passed
        assert not run(between(1, 10), 11).passed

    def test_exclusive(self):
        assert run(between_(1, 10), 5).passed
        assert not run(between_(1, 10), 10).passed


class TestFunctionally:
    def test_equal_results(self):
        assert run(functionally(lambda x: x * 2, lambda x: x + x), 21).passed

    def test_difference(self):
        check = functionally(str.upper, str.lower, lambda e, a: f"{e} != {a}")
        report = run(check, "Ab")
        assert report.type == ReportStatus.FAIL
        assert "AB != ab" in report.message
