# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for key filters."""

import pytest

from kvmodel.filters import KeyFilter, escape_glob, fnmatch_to_redis, parse_filter


class TestKeyFilter:
    def test_glob_match(self):
        f = KeyFilter(match="abc*")
        assert f.matches("abc")
        assert f.matches("abc123")
        assert not f.matches("xabc")

    def test_match_is_case_sensitive(self):
        assert not KeyFilter(match="abc*").matches("ABC1")

    def test_prefix(self):
        f = KeyFilter(prefix="user:")
        assert f.matches("user:1")
        assert not f.matches("session:1")

    def test_prefix_and_match_both_apply(self):
        f = KeyFilter(prefix="user:", match="*:admin")
        assert f.matches("user:1:admin")
        assert not f.matches("user:1:guest")
        assert not f.matches("group:1:admin")

    def test_prefix_is_literal(self):
        f = KeyFilter(prefix="a*")
        assert f.matches("a*b")
        assert not f.matches("ab")

    def test_redis_pattern(self):
        assert KeyFilter(match="abc*").redis_pattern() == "abc*"
        assert KeyFilter(prefix="a?b").redis_pattern() == "a\\?b*"
        assert KeyFilter().redis_pattern() == "*"

    def test_extra_fields_rejected(self):
        with pytest.raises(ValueError):
            KeyFilter(where="x")


class TestEscapeGlob:
    def test_escapes_specials(self):
        assert escape_glob("a*b?c[d]\\") == "a\\*b\\?c\\[d\\]\\\\"

    def test_plain_text_unchanged(self):
        assert escape_glob("kvmodel:ns:") == "kvmodel:ns:"


class TestFnmatchToRedis:
    @pytest.mark.parametrize(
        ("pattern", "expected"),
        [
            ("abc*", "abc*"),
            ("user:?", "user:?"),
            ("[a-c]x", "[a-c]x"),
            ("[!a]", "[^a]"),
            ("[^x]", "[\\^x]"),
            ("[]a]", "[\\]a]"),
            ("[!]a]", "[^\\]a]"),
            ("a\\b", "a\\\\b"),
            ("[a\\]", "[a\\\\]"),
            ("[abc", "\\[abc"),
            ("[-a]", "[\\-a]"),
        ],
    )
    def test_translation(self, pattern, expected):
        assert fnmatch_to_redis(pattern) == expected

    def test_untranslatable_range(self):
        assert fnmatch_to_redis("[\\-z]") is None

    def test_untranslatable_match_falls_back_to_prefix(self):
        f = KeyFilter(match="[\\-z]*", prefix="a*")
        assert f.redis_pattern() == "a\\**"
        assert KeyFilter(match="[\\-z]").redis_pattern() == "*"

    def test_negated_class_pattern(self):
        assert KeyFilter(match="[!a]").redis_pattern() == "[^a]"


class TestParseFilter:
    @pytest.mark.parametrize("value", [None, "", "   ", {}, "{}", KeyFilter()])
    def test_empty_means_all_keys(self, value):
        assert parse_filter(value) is None

    def test_plain_string_is_glob(self):
        assert parse_filter("abc*") == KeyFilter(match="abc*")

    def test_json_object_string(self):
        assert parse_filter('{"prefix": "user:"}') == KeyFilter(prefix="user:")

    def test_mapping(self):
        assert parse_filter({"match": "a*"}) == KeyFilter(match="a*")

    def test_key_filter_passthrough(self):
        f = KeyFilter(match="x*")
        assert parse_filter(f) is f

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError, match="not valid JSON"):
            parse_filter("{nope")

    def test_unknown_field_raises(self):
        with pytest.raises(ValueError, match="not a valid key filter"):
            parse_filter({"where": {"key": "x"}})

    def test_wrong_type_raises(self):
        with pytest.raises(ValueError, match="string or an object"):
            parse_filter(42)  # type: ignore[arg-type]

    def test_list_raises(self):
        with pytest.raises(ValueError, match="string or an object"):
            parse_filter(["a"])  # type: ignore[arg-type]
