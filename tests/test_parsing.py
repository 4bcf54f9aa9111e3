import json

import pytest

from agents.parsing import extract_json_object, try_parse_json


@pytest.mark.parametrize("text", [
    "",
    "no braces here",
    "} backwards {",
    "only an opening { brace",
    "only a closing } brace",
])
def test_extract_returns_none_without_object(text):
    assert extract_json_object(text) is None


def test_extract_strips_prefix_and_suffix():
    body = '"theme": "Billing", "tags": ["a", "b"]'
    assert extract_json_object("Sure! Here you go: {" + body + "} Hope that helps.") == "{" + body + "}"


def test_extract_ignores_braces_inside_strings():
    raw = '{"theme": "curly } brace", "nested": {"a": 1}}'
    assert extract_json_object(f"prefix {raw} and a stray }} later") == raw


def test_extract_returns_first_of_several_objects():
    assert extract_json_object('{"a": 1} then {"b": 2}') == '{"a": 1}'


def test_extract_markdown_fence():
    text = '```json\n{"theme": "UI"}\n```'
    assert extract_json_object(text) == '{"theme": "UI"}'


def test_extract_unclosed_object_falls_back_to_last_brace():
    text = 'answer: {"theme": "UI", "meta": {"x": 1}'
    assert extract_json_object(text) == '{"theme": "UI", "meta": {"x": 1}'


@pytest.mark.parametrize("raw", [
    '{"a": "x", "b": 1}',
    '[1, 2, {"c": null}]',
    '"plain string"',
    "42",
    '{"unicode": "caf\\u00e9", "nested": {"list": [true, false]}}',
])
def test_parse_valid_json_matches_json_loads(raw):
    assert try_parse_json(raw) == json.loads(raw)


def test_parse_repairs_trailing_comma():
    assert try_parse_json('{"a": "x", "b": 1,}') == {"a": "x", "b": 1}


def test_parse_repairs_trailing_comma_in_array():
    assert try_parse_json('{"tags": ["x", "y",], }') == {"tags": ["x", "y"]}


def test_parse_repairs_smart_quotes():
    assert try_parse_json("{“theme”: “Billing”}") == {"theme": "Billing"}


def test_parse_returns_none_for_garbage():
    assert try_parse_json("not json at all") is None


def test_parse_returns_none_for_non_string():
    assert try_parse_json(None) is None
