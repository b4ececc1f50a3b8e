"""Pure helpers for pulling structure out of free-form LLM replies.

Models like to wrap JSON in prose or fenced blocks, and to decorate code with
fences and ``// filepath:`` banners. Nothing here touches the network.
"""

from __future__ import annotations

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"^\s*```")
_FILEPATH_RE = re.compile(r"^\s*//\s*filepath:", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Balanced scanning
# ---------------------------------------------------------------------------


def _balanced_slice(text: str, start: int, opener: str, closer: str) -> str | None:
    """Return ``text[start:end]`` where *end* closes the bracket at *start*.

    Brackets inside JSON string literals (including escaped quotes) are
    ignored. Returns ``None`` if the bracket is never closed.
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def first_json_object(text: str) -> str | None:
    """Return the balanced slice starting at the first ``{`` in *text*."""
    start = text.find("{")
    if start == -1:
        return None
    return _balanced_slice(text, start, "{", "}")


def first_json_array(text: str) -> str | None:
    """Return the balanced slice starting at the first ``[`` in *text*."""
    start = text.find("[")
    if start == -1:
        return None
    return _balanced_slice(text, start, "[", "]")


def _parse_first(text: str, opener: str, closer: str, kind: type) -> Any:
    start = text.find(opener)
    while start != -1:
        candidate = _balanced_slice(text, start, opener, closer)
        if candidate is not None:
            try:
                value = json.loads(candidate)
            except json.JSONDecodeError:
                value = None
            if isinstance(value, kind):
                return value
        start = text.find(opener, start + 1)
    return None


def parse_json_object(text: str) -> dict[str, Any] | None:
    """Parse the first balanced ``{...}`` in *text* that is valid JSON.

    Prose such as ``"use {braces} carefully"`` before the real payload is
    skipped by retrying from the next ``{``.
    """
    return _parse_first(text, "{", "}", dict)


def parse_json_array(text: str) -> list[Any] | None:
    """Parse the first balanced ``[...]`` in *text* that is valid JSON."""
    return _parse_first(text, "[", "]", list)


# ---------------------------------------------------------------------------
# Code sanitising
# ---------------------------------------------------------------------------


def strip_code_fences(code: str) -> str:
    """Remove fence lines and ``// filepath:`` banners from generated code.

    Every line starting with triple backticks is dropped, paired or not,
    at any position. Blank lines left at either end are trimmed and the
    result ends with exactly one newline. Other whitespace is untouched.

    Example::

        strip_code_fences("```javascript\\nconst x=1;\\n```") -> "const x=1;\\n"
    """
    kept = [
        line
        for line in code.splitlines()
        if not _FENCE_RE.match(line) and not _FILEPATH_RE.match(line)
    ]
    while kept and not kept[0].strip():
        kept.pop(0)
    while kept and not kept[-1].strip():
        kept.pop()
    if not kept:
        return ""
    return "\n".join(kept) + "\n"
