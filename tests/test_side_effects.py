"""Call capture with recording stand-ins."""

import pytest

import notifier
from expectest import UsageError, capturing, defexpect, expect, side_effects


class TestSideEffects:
    def test_records_calls_in_order(self):
        calls = side_effects(["notifier.send", "notifier.log_event"], lambda: notifier.notify(42))
        assert calls == [["user-42@example.com", "hello"], ["notified"]]

    def test_interleaved_across_functions(self):
        def body():
            notifier.send(1, 2)
            notifier.log_event("a")
            notifier.send(3, 4)

        calls = side_effects(["notifier.send", "notifier.log_event"], body)
        assert calls == [[1, 2], ["a"], [3, 4]]

    def test_fixed_return_value(self):
        results = []

        def body():
            results.append(notifier.send("a", "b"))
            results.append(notifier.send("c", "d"))

        calls = side_effects([("notifier.send", True)], body)
        assert calls == [["a", "b"], ["c", "d"]]
        assert results == [True, True]

    def test_no_arguments(self):
        def body():
            notifier.send()
            notifier.send()

        assert side_effects([["notifier.send", True]], body) == [[], []]

    def test_default_return_is_none(self):
        with capturing(["notifier.send", "notifier.log_event"]):
            assert notifier.notify(1) is None

    def test_no_calls_is_empty_list(self):
        assert side_effects(["notifier.send"], lambda: None) == []

    def test_keyword_arguments(self):
        calls = side_effects(["notifier.log_event"], lambda: notifier.log_event("x", level=2))
        assert calls == [["x", {"level": 2}]]

    def test_function_identifiers(self):
        calls = side_effects([notifier.send, (notifier.log_event, None)], lambda: notifier.notify(7))
        assert calls == [["user-7@example.com", "hello"], ["notified"]]

    def test_restored_after_exception(self):
        original = notifier.send

        def body():
            notifier.send("a", "b")
            raise ValueError("boom")

        with pytest.raises(ValueError):
            side_effects(["notifier.send"], body)
        assert notifier.send is original

    def test_injected_stand_ins(self):
        def deliver(send):
            send("a")
            send("b")

        assert side_effects(["send"], lambda stubs: deliver(stubs.send)) == [["a"], ["b"]]

    def test_stand_ins_named_like_mapping_methods(self):
        def body(stubs):
            stubs.get("k")
            stubs.items()
            stubs.pop(1)

        calls = side_effects(["get", "items", ("pop", 0)], body)
        assert calls == [["k"], [], [1]]

    def test_stand_ins_by_identifier(self):
        with capturing(["notifier.send", "copy"]) as log:
            assert "notifier.send" in log.stubs
            assert log.stubs["notifier.send"] is log.stubs.send
            assert sorted(log.stubs) == ["copy", "notifier.send"]
            log.stubs.copy()
        assert log.calls == [[]]

    def test_capturing_log(self):
        with capturing(["notifier.send"]) as log:
            notifier.send("x", "y")
            assert len(log) == 1
        assert log.snapshot() == [["x", "y"]]


class TestUsageErrors:
    def test_string_instead_of_sequence(self):
        with pytest.raises(UsageError, match="sequence of function specs"):
            side_effects("notifier.send", lambda: None)

    def test_not_a_sequence(self):
        with pytest.raises(UsageError):
            side_effects(42, lambda: None)

    def test_empty(self):
        with pytest.raises(UsageError, match="at least one"):
            side_effects([], lambda: None)

    def test_duplicates(self):
        with pytest.raises(UsageError, match="more than once"):
            side_effects(["notifier.send", ("notifier.send", 1)], lambda: None)

    def test_local_function(self):
        def local():
            pass

        with pytest.raises(UsageError, match="local function"):
            side_effects([local], lambda: None)


@defexpect
def test_side_effects_inside_expectations():
    expect(
        [["user-3@example.com", "hello"], ["notified"]],
        side_effects(["notifier.send", "notifier.log_event"], lambda: notifier.notify(3)),
    )
