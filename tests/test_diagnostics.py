"""Diff helpers and usage errors."""

from expectest.diagnostics import (
    DiagnosticContext,
    UsageError,
    format_value_diff,
    string_diff,
    truncate_repr,
    value_diff,
)


class TestStringDiff:
    def test_common_prefix_and_tails(self):
        assert string_diff("foobar", "foobaz") == (
            "matches: 'fooba'\n"
            ">>>  expected diverges: 'r'\n"
            ">>>    actual diverges: 'z'"
        )

    def test_prefix_of_the_other(self):
        assert "actual diverges: 'bar'" in string_diff("foo", "foobar")


class TestValueDiff:
    def test_equal(self):
        assert value_diff({"a": 1}, {"a": 1}) == (None, None)

    def test_scalars(self):
        assert value_diff(1, 2) == (2, 1)

    def test_nested_mappings(self):
        added, removed = value_diff({"a": {"x": 1}, "b": 2}, {"a": {"x": 2}})
        assert added == {"a": {"x": 2}}
        assert removed == {"a": {"x": 1}, "b": 2}

    def test_sequences(self):
        assert value_diff([1, 2, 3], [1, 5]) == ([None, 5], [None, 2, 3])

    def test_sets(self):
        assert value_diff({1, 2}, {2, 3}) == ({3}, {1})


class TestFormatting:
    def test_truncate(self):
        assert truncate_repr("x" * 200, 10) == "'xxxxxx..."

    def test_format_value_diff(self):
        assert format_value_diff(1, 2) == "expected: 1\n  actual: 2"

    def test_usage_error_with_context(self):
        ctx = DiagnosticContext(target="side_effects")
        ctx.add_note("got int")
        ctx.add_suggestion("Wrap the specs in a list")
        message = str(UsageError("bad call", context=ctx))
        assert message.startswith("bad call")
        assert "  ✗ got int" in message
        assert "  1. Wrap the specs in a list" in message
