from concurrent.futures import ThreadPoolExecutor

import pytest

from linedissect.errors import MatchError, PatternCompileError
from linedissect.key import Modifier
from linedissect.pattern import cached_compile, compile_pattern


def test_leading_delimiter():
    pattern = compile_pattern("foo%{a}")
    assert pattern.leading_delimiter == "foo"
    assert pattern.parse("foobar") == {"a": "bar"}
    with pytest.raises(MatchError):
        pattern.parse("xbar")


def test_multiple_keys_and_delimiters():
    pattern = compile_pattern("%{a} %{b},%{c}")
    assert [pair.delimiter for pair in pattern.pairs] == [" ", ",", ""]
    assert pattern.parse("foo bar,baz") == {"a": "foo", "b": "bar", "c": "baz"}


def test_all_or_nothing_when_delimiter_missing():
    pattern = compile_pattern("%{a} %{b},%{c}")
    with pytest.raises(MatchError) as exc_info:
        pattern.parse("foo bar baz")
    assert exc_info.value.pattern == "%{a} %{b},%{c}"
    assert exc_info.value.text == "foo bar baz"


def test_right_padding_collapses_repeated_delimiters():
    pattern = compile_pattern("%{a->} %{b} %{c}")
    assert pattern.parse("foo         bar baz") == {"a": "foo", "b": "bar", "c": "baz"}


def test_right_padding_with_multi_char_delimiter():
    pattern = compile_pattern("%{a->},%{b}")
    assert pattern.parse("foo,,,,bar") == {"a": "foo", "b": "bar"}


def test_append():
    pattern = compile_pattern("%{a} %{+a} %{+a}", "")
    assert pattern.parse("foo bar baz") == {"a": "foobarbaz"}


def test_append_with_separator():
    pattern = compile_pattern("%{a} %{+a} %{+a}", " ")
    assert pattern.parse("foo bar baz") == {"a": "foo bar baz"}


def test_append_with_explicit_order():
    pattern = compile_pattern("%{a} %{+a/2} %{+a/1}")
    assert pattern.parse("foo bar baz") == {"a": "foobazbar"}


def test_unordered_members_keep_scan_order_ahead_of_ordered_ones():
    pattern = compile_pattern("%{+a/2} %{a} %{+a}", "-")
    assert pattern.parse("foo bar baz") == {"a": "bar-baz-foo"}


def test_association():
    pattern = compile_pattern("%{?a} %{b} %{&a}")
    assert pattern.parse("foo bar baz") == {"foo": "baz", "b": "bar"}


def test_association_alias_prefix():
    pattern = compile_pattern("%{*a} %{&a}")
    assert pattern.parse("level info") == {"level": "info"}


def test_plain_field_overrides_association_with_same_name():
    pattern = compile_pattern("%{?a} %{b} %{&a}")
    assert pattern.parse("b x y") == {"b": "x"}


def test_append_and_association_together():
    pattern = compile_pattern("%{a} %{+a} %{?k} %{&k}")
    assert pattern.parse("x y name val") == {"a": "xy", "name": "val"}


def test_skip_key():
    pattern = compile_pattern("%{a} %{} %{c}")
    assert pattern.parse("foo bar baz") == {"a": "foo", "c": "baz"}


def test_several_skip_keys():
    pattern = compile_pattern("%{} %{} %{c}")
    assert pattern.parse("x y z") == {"c": "z"}
    with pytest.raises(MatchError):
        compile_pattern("%{} %{}").parse("x")


def test_consecutive_delimiters_yield_empty_values():
    pattern = compile_pattern("%{a},%{b},%{c},%{d}")
    assert pattern.parse("foo,,,") == {"a": "foo", "b": "", "c": "", "d": ""}
    assert pattern.parse("foo,,bar,baz") == {"a": "foo", "b": "", "c": "bar", "d": "baz"}


def test_value_cannot_start_with_next_delimiter():
    pattern = compile_pattern("%{a},%{b}:%{c}")
    with pytest.raises(MatchError):
        pattern.parse("x,:y")


def test_value_may_begin_with_its_own_delimiter():
    pattern = compile_pattern("%{a} %{b}-%{c}")
    assert pattern.parse("x --y") == {"a": "x", "b": "-", "c": "y"}


def test_repeats_stop_when_keys_run_out():
    pattern = compile_pattern("%{a},%{b}")
    assert pattern.parse("x,,,") == {"a": "x", "b": ""}


def test_multi_character_delimiter():
    pattern = compile_pattern("%{a} -- %{b}")
    assert pattern.parse("foo -- bar -- baz") == {"a": "foo", "b": "bar -- baz"}


def test_final_padding_key_trims_trailing_whitespace():
    assert compile_pattern("%{a} %{b->}").parse("foo bar   ") == {"a": "foo", "b": "bar"}
    assert compile_pattern("%{a} %{b}").parse("foo bar   ") == {"a": "foo", "b": "bar   "}


def test_intermediate_padding_key_is_not_trimmed():
    pattern = compile_pattern("%{a->},%{b}")
    assert pattern.parse("foo  ,bar") == {"a": "foo  ", "b": "bar"}


def test_input_after_final_delimiter_is_ignored():
    pattern = compile_pattern("%{a} [%{b}]")
    assert pattern.parse("x [y] trailing") == {"a": "x", "b": "y"}


def test_final_key_takes_remainder_when_its_delimiter_is_absent():
    pattern = compile_pattern("[%{a}]")
    assert pattern.parse("[foo") == {"a": "foo"}


def test_unicode_delimiters_and_values():
    pattern = compile_pattern("%{a}→%{b}")
    assert pattern.parse("ä→ö") == {"a": "ä", "b": "ö"}


def test_empty_input():
    assert compile_pattern("%{a}").parse("") == {"a": ""}
    with pytest.raises(MatchError):
        compile_pattern("%{a} %{b}").parse("")


def test_none_input_is_a_match_error():
    with pytest.raises(MatchError):
        compile_pattern("%{a}").parse(None)  # type: ignore[arg-type]


def test_parse_is_deterministic():
    pattern = compile_pattern("%{a} %{+a/2} %{+a/1} %{?k} %{&k}")
    first = pattern.parse("foo bar baz name value")
    assert pattern.parse("foo bar baz name value") == first
    assert list(pattern.parse("foo bar baz name value")) == list(first)


def test_shared_pattern_across_threads():
    pattern = compile_pattern("%{a} %{+a} %{b}", "-")
    lines = [f"x{i} y{i} z{i}" for i in range(200)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(pattern.parse, lines))
    assert results == [{"a": f"x{i}-y{i}", "b": f"z{i}"} for i in range(200)]


@pytest.mark.parametrize("text", ["", "no keys here", "100%", "%{unclosed"])
def test_pattern_without_keys_is_rejected(text):
    with pytest.raises(PatternCompileError):
        compile_pattern(text)


def test_unclosed_trailing_key_is_rejected():
    with pytest.raises(PatternCompileError) as exc_info:
        compile_pattern("%{a} %{b")
    assert "Unclosed" in exc_info.value.reason


def test_unmatched_field_name_is_rejected():
    with pytest.raises(PatternCompileError) as exc_info:
        compile_pattern("%{?x} %{y}")
    assert "'x'" in exc_info.value.reason


def test_duplicated_references_are_rejected():
    with pytest.raises(PatternCompileError):
        compile_pattern("%{?a} %{&a} %{&a}")
    with pytest.raises(PatternCompileError):
        compile_pattern("%{?a} %{?a}")


def test_invalid_append_order_is_rejected():
    with pytest.raises(PatternCompileError) as exc_info:
        compile_pattern("%{a} %{+a/x}")
    assert exc_info.value.pattern == "%{a} %{+a/x}"


def test_compiled_pattern_metadata():
    pattern = compile_pattern("<%{a}> %{+a} %{?k} %{&k} %{} %{c}", append_separator=None)
    assert pattern.leading_delimiter == "<"
    assert pattern.pairs[0].delimiter == "> "
    assert pattern.append_separator == ""
    assert pattern.needs_post_processing
    assert Modifier.APPEND in pattern.modifiers
    assert pattern.field_names == ["a", "c"]
    assert len(pattern.keys) == 6


def test_plain_pattern_needs_no_post_processing():
    pattern = compile_pattern("%{a} %{b}")
    assert not pattern.needs_post_processing
    assert pattern.modifiers == frozenset({Modifier.NONE})


def test_cached_compile_reuses_patterns():
    assert cached_compile("%{a} %{b}") is cached_compile("%{a} %{b}")
    assert cached_compile("%{a} %{b}", " ") is not cached_compile("%{a} %{b}")
