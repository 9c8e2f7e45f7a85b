"""
Tests for script text detranslation and Lua value conversion.
"""

import pytest
from lupa import LuaRuntime

from alcollector.runtime import TextTranslator, has_tokens, to_python


@pytest.fixture
def translator():
    codes = {"torp": "Torpedo", "gun": "Gun"}
    names = {12: "Enterprise", 7: "Belfast"}
    return TextTranslator(codes.get, names.get)


class TestTextTranslator:

    def test_plain_text_unchanged(self, translator):
        assert translator.translate("Nothing to do") == "Nothing to do"

    def test_name_codes(self, translator):
        assert translator.translate("{namecode:12} and {namecode:7}") == "Enterprise and Belfast"

    def test_name_code_with_trailing_text(self, translator):
        assert translator.translate("{namecode:12:Big E}!") == "Enterprise!"

    def test_cross_references(self, translator):
        assert translator.translate("<[torp]> / <[gun]>") == "Torpedo / Gun"

    def test_misses_become_empty(self, translator):
        assert translator.translate("a{namecode:99}b<[none]>c") == "abc"

    def test_cross_references_first(self):
        # a cross-reference may expand into a name code
        t = TextTranslator({"ref": "{namecode:1}"}.get, {1: "Name"}.get)
        assert t.translate("<[ref]>") == "Name"

    def test_none_is_empty(self, translator):
        assert translator.translate(None) == ""

    def test_has_tokens(self):
        assert has_tokens("{namecode:3}")
        assert has_tokens("x <[a]> y")
        assert not has_tokens("{namecode:} <[]")


class TestToPython:

    @pytest.fixture
    def lua(self):
        return LuaRuntime(unpack_returned_tuples=True)

    def test_sequence(self, lua):
        assert to_python(lua.eval("{1, 2, {3, 4}}")) == [1, 2, [3, 4]]

    def test_map(self, lua):
        assert to_python(lua.eval('{name = "x", [5] = true}')) == {"name": "x", 5: True}

    def test_sparse_integer_keys_are_map(self, lua):
        assert to_python(lua.eval("{[1] = 'a', [3] = 'c'}")) == {1: "a", 3: "c"}

    def test_empty_table(self, lua):
        assert to_python(lua.eval("{}")) == []

    def test_functions_dropped(self, lua):
        assert to_python(lua.eval("{f = function() end}")) == {"f": None}

    def test_scalars_pass_through(self):
        assert to_python("s") == "s"
        assert to_python(3) == 3
        assert to_python(None) is None

    def test_metatables_not_triggered(self, lua):
        table = lua.eval("setmetatable({a = 1}, {__index = function() error('boom') end})")
        assert to_python(table) == {"a": 1}
