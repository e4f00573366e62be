"""Fixtures registered with use_fixtures."""

import pytest

from expectest import FixtureSpec, UsageError, use_fixtures

EACH_EVENTS = []
ONCE_EVENTS = []


def once_setup():
    ONCE_EVENTS.append("setup")
    yield
    ONCE_EVENTS.append("teardown")


each_fixtures = use_fixtures(
    "each",
    {"before": lambda: EACH_EVENTS.append("before"), "after": lambda: EACH_EVENTS.append("after")},
)
once_fixtures = use_fixtures("once", once_setup)


class TestUseFixtures:
    def test_each_runs_before_the_test(self):
        assert EACH_EVENTS[-1] == "before"

    def test_each_runs_after_the_previous_test(self):
        assert EACH_EVENTS[-2:] == ["after", "before"]

    def test_once_runs_a_single_time(self):
        assert ONCE_EVENTS == ["setup"]

    def test_unknown_kind(self):
        with pytest.raises(UsageError, match="Invalid fixture kind"):
            use_fixtures("always", {"before": print})

    def test_unknown_keys(self):
        with pytest.raises(UsageError, match="Invalid fixture record"):
            use_fixtures("each", {"before": print, "around": print})

    def test_requires_a_fixture(self):
        with pytest.raises(UsageError):
            use_fixtures("each")

    def test_spec_record(self):
        assert use_fixtures("each", FixtureSpec(before=print)) is not None
