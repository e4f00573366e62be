"""Accessor path grammar."""

from types import SimpleNamespace

import pytest

from expectest import UsageError
from expectest.compiler import compile_path


class TestAccessorPath:
    def test_item_and_attribute(self):
        data = {"users": [SimpleNamespace(name="ada")]}
        assert compile_path("['users'][0].name")(data) == "ada"

    def test_double_quoted_key_and_negative_index(self):
        assert compile_path('["xs"][-1]')({"xs": [1, 2, 3]}) == 3

    def test_method_call(self):
        assert compile_path(".upper()")("abc") == "ABC"

    def test_pipe(self):
        assert compile_path("['xs'] | len")({"xs": [1, 2]}) == 2

    def test_round_trip_text(self):
        assert str(compile_path(".items()|sorted")) == ".items()|sorted"

    def test_cached(self):
        assert compile_path("[0]") is compile_path("[0]")

    def test_syntax_error(self):
        with pytest.raises(UsageError, match="Invalid accessor path"):
            compile_path("[")

    def test_unknown_pipe(self):
        with pytest.raises(UsageError, match="Unknown pipe function"):
            compile_path("|explode")
