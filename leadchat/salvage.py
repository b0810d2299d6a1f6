"""
Salvage a JSON value out of raw model output.

Model responses are expected to be JSON but can arrive with leading prose,
trailing chatter, or cut off mid-stream when the output token cap is hit.
`extract_json` finds the payload and, when strict decoding fails, runs
`repair_json` to close whatever the truncation left open.

Only truncation at a string or container boundary is recoverable. Anything
else raises `MalformedJson`.
"""
from __future__ import annotations

import json
from typing import Any, List, Optional, Tuple

_decoder = json.JSONDecoder()

_CLOSERS = {"{": "}", "[": "]"}


class SalvageError(ValueError):
    """Raised when no JSON value can be recovered from the model text."""


class NoStructureFound(SalvageError):
    pass


class MalformedJson(SalvageError):
    pass


# ----------------------------
# Utilities
# ----------------------------
def _find_start(text: str, begin: int = 0) -> int:
    brace = text.find("{", begin)
    bracket = text.find("[", begin)
    if brace == -1:
        return bracket
    if bracket == -1:
        return brace
    return min(brace, bracket)


def _strict(candidate: str) -> Any:
    # raw_decode stops at the end of the first value, so trailing text is ignored
    value, _ = _decoder.raw_decode(candidate)
    return value


def _repair(candidate: str) -> Any:
    """Repair a truncated value, cut after its last closer first, then whole."""
    last_close = _scan(candidate)[3]
    trimmed = candidate[: last_close + 1] if last_close != -1 else candidate
    attempts = [trimmed]
    if trimmed != candidate:
        attempts.append(candidate)

    last_error: Optional[json.JSONDecodeError] = None
    for attempt in attempts:
        try:
            return _strict(repair_json(attempt))
        except json.JSONDecodeError as exc:
            last_error = exc

    assert last_error is not None
    raise MalformedJson(f"Could not repair model JSON: {last_error.msg}") from last_error


def _scan(text: str) -> tuple[List[str], bool, bool, int]:
    """
    Walk `text` outside of string literals.

    Returns (open brackets, ends inside a string, ends on an escape,
    index of the last structural closer or -1).
    """
    stack: List[str] = []
    in_string = False
    escaped = False
    last_close = -1
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(ch)
        elif ch in "}]":
            last_close = i
            if stack and _CLOSERS[stack[-1]] == ch:
                stack.pop()
    return stack, in_string, escaped, last_close


# ----------------------------
# Public API
# ----------------------------
def repair_json(text: str) -> str:
    """
    Close a truncated JSON document.

    - a dangling string literal gets its closing quote (a dangling escape is dropped)
    - a trailing comma left by the cut is removed
    - every still-open bracket is closed, innermost first

    Brackets inside string literals are ignored, and a closer only pops the
    stack when it matches the innermost open bracket. Balanced input comes
    back unchanged, so repairing twice equals repairing once.
    """
    stack, in_string, escaped, _ = _scan(text)
    if not stack and not in_string:
        return text

    fixed = text
    if in_string:
        if escaped:
            fixed = fixed[:-1]
        fixed += '"'
    else:
        fixed = fixed.rstrip()
        if fixed.endswith(","):
            fixed = fixed[:-1]

    while stack:
        fixed += _CLOSERS[stack.pop()]
    return fixed


def extract_json(text: str) -> Any:
    """
    Parse the JSON object/array in `text`, repairing truncation if needed.

    Every `{` / `[` outside an already decoded value is tried in order, so
    bracketed prose before or after the payload (`note [1]:`) does not hide
    it. The longest value wins. The first start that does not decode is
    treated as a truncated payload and repaired; its span competes with the
    complete values decoded before it.

    Raises NoStructureFound when there is no `{` or `[` at all, and
    MalformedJson (chained to the decoder error) when nothing decodes and
    repair does not help.
    """
    t = text or ""
    pos = _find_start(t)
    if pos == -1:
        raise NoStructureFound("No JSON structure found in response")

    found: List[Tuple[int, Any]] = []
    while pos != -1:
        try:
            value, end = _decoder.raw_decode(t, pos)
        except json.JSONDecodeError:
            break
        found.append((end - pos, value))
        pos = _find_start(t, end)

    if pos != -1:
        tail = t[pos:].strip()
        try:
            found.append((len(tail), _repair(tail)))
        except MalformedJson:
            if not found:
                raise

    return max(found, key=lambda item: item[0])[1]
