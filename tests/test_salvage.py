from __future__ import annotations

import json

import pytest

from leadchat.salvage import (
    MalformedJson,
    NoStructureFound,
    SalvageError,
    extract_json,
    repair_json,
)

LEAD_DOC = {
    "mode": "LEAD",
    "leads": [
        {"name": "Acme", "tags": ["a", "b"], "matchScore": 91},
        {"name": "Beta [Labs]", "description": "uses {braces} in text"},
    ],
    "summary": "Two matches",
}


def test_truncated_string_and_object_are_closed() -> None:
    raw = '{"mode":"TEXT","summary":"Hello'

    assert extract_json(raw) == {"mode": "TEXT", "summary": "Hello"}


@pytest.mark.parametrize(
    "prefix, suffix",
    [
        ("", ""),
        ("Sure! Here you go:\n", ""),
        ("", "\nHope that helps."),
        ("```json\n", "\n```"),
        ("Result follows. ", " (see note [3] and {4})"),
    ],
)
def test_embedded_json_is_returned_unchanged(prefix: str, suffix: str) -> None:
    payload = json.dumps(LEAD_DOC)

    assert extract_json(prefix + payload + suffix) == LEAD_DOC


def test_bracketed_prose_prefix_does_not_hide_payload() -> None:
    raw = "Here are leads per note [1]: " + json.dumps(LEAD_DOC)

    assert extract_json(raw) == LEAD_DOC


def test_bracketed_prose_on_both_sides_keeps_payload() -> None:
    raw = "Sources [1], [2]:\n" + json.dumps(LEAD_DOC) + "\nSee [3] and [4, 5"

    assert extract_json(raw) == LEAD_DOC


def test_truncated_payload_after_bracketed_prose_is_repaired() -> None:
    raw = 'As noted [1]: {"mode":"TEXT","summary":"Hello'

    assert extract_json(raw) == {"mode": "TEXT", "summary": "Hello"}


def test_top_level_array_is_supported() -> None:
    assert extract_json('leads: [{"name": "A"}, {"name": "B"}] done') == [
        {"name": "A"},
        {"name": "B"},
    ]


@pytest.mark.parametrize("raw", ["", "no json here", "just (parentheses) and quotes \""])
def test_no_structure_found(raw: str) -> None:
    with pytest.raises(NoStructureFound):
        extract_json(raw)


def test_truncated_lead_list_keeps_complete_leads() -> None:
    raw = '{"mode":"LEAD","leads":[{"name":"A"},{"name":"B'

    assert extract_json(raw) == {"mode": "LEAD", "leads": [{"name": "A"}]}


def test_brackets_inside_strings_do_not_confuse_repair() -> None:
    raw = '{"note":"use [brackets] and {braces}","x":"y'

    assert extract_json(raw) == {"note": "use [brackets] and {braces}", "x": "y"}


def test_unrecoverable_text_raises_malformed_json_with_cause() -> None:
    with pytest.raises(MalformedJson) as excinfo:
        extract_json('{"a": tru')

    assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)
    assert isinstance(excinfo.value, SalvageError)
    assert isinstance(excinfo.value, ValueError)


def test_dangling_key_is_not_recoverable() -> None:
    with pytest.raises(MalformedJson):
        extract_json('{"mode": "TEXT", "summary"')


def test_repair_closes_brackets_innermost_first() -> None:
    assert repair_json('{"a":[{"b":1') == '{"a":[{"b":1}]}'


def test_repair_drops_trailing_comma() -> None:
    assert repair_json("[1, 2, ") == "[1, 2]"


def test_repair_ignores_brackets_inside_strings() -> None:
    assert repair_json('{"note":"a [b] {c","x":[1') == '{"note":"a [b] {c","x":[1]}'


def test_repair_drops_dangling_escape() -> None:
    repaired = repair_json('{"a":"line\\')

    assert repaired == '{"a":"line"}'
    assert json.loads(repaired) == {"a": "line"}


def test_repair_leaves_balanced_text_alone() -> None:
    text = '{"a": [1, 2], "b": "}"}'

    assert repair_json(text) == text


def test_repair_is_idempotent_on_every_truncation() -> None:
    doc = json.dumps(LEAD_DOC)
    for i in range(1, len(doc) + 1):
        once = repair_json(doc[:i])
        assert repair_json(once) == once


def test_every_truncation_repairs_to_an_object_or_raises() -> None:
    doc = json.dumps(LEAD_DOC)
    recovered = 0
    for i in range(1, len(doc) + 1):
        try:
            value = extract_json(doc[:i])
        except MalformedJson:
            continue
        assert isinstance(value, dict)
        assert set(value) <= set(LEAD_DOC)
        recovered += 1

    assert recovered > 0
    assert extract_json(doc) == LEAD_DOC
