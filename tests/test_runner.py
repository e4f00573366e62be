"""Test units declared with defexpect."""

import operator

import pytest

from expectest import ExpectationFailed, UsageError, defexpect, expect, expecting, lazy, more


def is_even(n):
    return n % 2 == 0


# Collected and run by pytest like any other test
test_shorthand_equality = defexpect("shorthand equality", 4, lazy(operator.add, 2, 2))
test_shorthand_truthy = defexpect("shorthand truthy", lazy(bool, [1]))


@defexpect
def test_decorated_unit():
    expect(more(int, is_even), 42)
    with expecting("strings"):
        expect("abc", "a" + "bc")


class TestDefexpect:
    def test_passing_unit_returns(self):
        @defexpect
        def test_ok():
            expect(1, 1)
            return "done"

        assert test_ok() == "done"

    def test_failures_are_collected(self):
        reached = []

        @defexpect
        def test_bad():
            expect(1, 2)
            reached.append(True)
            expect(is_even, 3)

        with pytest.raises(ExpectationFailed) as info:
            test_bad()

        assert reached == [True]
        assert len(info.value.reports) == 2
        assert "2 of 2 expectations failed in test_bad" in str(info.value)

    def test_failure_is_an_assertion_error(self):
        with pytest.raises(AssertionError):
            defexpect("fails", 1, 2)()

    def test_body_exceptions_propagate(self):
        @defexpect
        def test_error():
            raise KeyError("missing")

        with pytest.raises(KeyError):
            test_error()

    def test_name_from_string(self):
        assert defexpect("addition works", 2, 2).__name__ == "test_addition_works"

    def test_named_decorator(self):
        @defexpect("named")
        def body():
            expect(1, 1)

        assert body.__name__ == "test_named"
        body()

    def test_existing_test_prefix_kept(self):
        assert defexpect("test_thing", 1).__name__ == "test_thing"

    def test_one_form_truthy(self):
        defexpect("one", 1)()
        with pytest.raises(ExpectationFailed):
            defexpect("zero", 0)()

    def test_one_function_form_is_a_body(self):
        calls = []

        def body():
            calls.append(1)
            expect(1, len(calls))

        defexpect("body", body)()
        assert calls == [1]

    def test_unchecked_function_form_result_must_be_truthy(self):
        defexpect("truthy result", lambda: 1 + 1)()
        with pytest.raises(ExpectationFailed):
            defexpect("falsey", lambda: False)()
        with pytest.raises(ExpectationFailed):
            defexpect("no result", lambda: None)()

    def test_checked_function_form_ignores_result(self):
        def body():
            expect(2, 1 + 1)
            return False

        defexpect("checked", body)()

    def test_too_many_forms(self):
        with pytest.raises(UsageError, match="one or two forms"):
            defexpect("many", 1, 2, 3)

    def test_requires_name_or_function(self):
        with pytest.raises(UsageError):
            defexpect(42)

    def test_fixture_arguments_pass_through(self, tmp_path):
        @defexpect
        def test_with_fixture(tmp_path):
            expect(True, tmp_path.exists())

        test_with_fixture(tmp_path)
