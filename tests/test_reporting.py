"""Report collection and rendering."""

import pytest

from expectest import ExpectationFailed, collecting, expect, expecting
from expectest.config import DiffConfig, ExpectestConfig, set_config
from expectest.reporting import Report, ReportStatus, current_collector, format_report, report


class TestCollector:
    def test_no_collector_by_default(self):
        assert current_collector() is None

    def test_collecting_installs_and_restores(self):
        with collecting("outer") as outer:
            assert current_collector() is outer
            with collecting() as inner:
                assert current_collector() is inner
            assert current_collector() is outer
        assert current_collector() is None

    def test_counts(self):
        with collecting() as c:
            expect(1, 1)
            expect(1, 2)
            report(Report(type=ReportStatus.ERROR, message="boom"))
        assert c.counts == {ReportStatus.PASS: 1, ReportStatus.FAIL: 1, ReportStatus.ERROR: 1}
        assert len(c.passes()) == 1

    def test_raise_if_failed_summarises(self):
        with collecting("test_numbers") as c:
            expect(1, 1)
            expect(1, 2)
            expect("a", "b")
        with pytest.raises(ExpectationFailed, match="2 of 3 expectations failed in test_numbers") as info:
            c.raise_if_failed()
        assert len(info.value.reports) == 2
        assert isinstance(info.value, AssertionError)

    def test_raise_if_failed_passes(self):
        with collecting() as c:
            expect(1, 1)
        c.raise_if_failed()


class TestSink:
    def test_fail_outside_collector_raises(self):
        with pytest.raises(AssertionError, match="FAIL"):
            report(Report(type=ReportStatus.FAIL, expected=1, actual=2))

    def test_error_keeps_cause(self):
        cause = ValueError("bad")
        with pytest.raises(AssertionError) as info:
            report(Report(type=ReportStatus.ERROR, exception=cause))
        assert info.value.__cause__ is cause

    def test_context_strings(self):
        with collecting() as c:
            with expecting("outer"):
                with expecting("inner"):
                    expect(1, 2)
                expect(1, 2)
        assert [r.context for r in c.reports] == [["outer", "inner"], ["outer"]]


class TestFormatReport:
    def test_plain(self):
        text = format_report(Report(type=ReportStatus.FAIL, message="numbers", expected=1, actual=2))
        assert text.splitlines() == ["FAIL", "numbers", "expected: 1", "  actual: 2"]

    def test_context_heading(self):
        text = format_report(Report(type=ReportStatus.FAIL, expected=1, actual=2, context=["math", "add"]))
        assert text.splitlines()[0] == "FAIL (math add)"

    def test_truncates_long_values(self):
        set_config(ExpectestConfig(diff=DiffConfig(max_repr_length=10)))
        text = format_report(Report(type=ReportStatus.FAIL, expected="x" * 50, actual=1))
        assert "expected: 'xxxxxx..." in text

    def test_enhanced_diffs(self):
        set_config(ExpectestConfig(diff=DiffConfig(enhanced=True)))
        r = Report(
            type=ReportStatus.FAIL,
            expected={"a": 1},
            actual={"a": 2},
            diffs=[({"a": 2}, ({"a": 2}, {"a": 1}))],
        )
        lines = format_report(r).splitlines()
        assert "    diff: - {'a': 1}" in lines
        assert "          + {'a': 2}" in lines
