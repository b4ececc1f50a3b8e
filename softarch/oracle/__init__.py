"""LLM oracle: prompts, reply extraction and the typed ``Oracle`` facade."""

from softarch.oracle.client import Oracle, cache_key
from softarch.oracle.extract import (
    first_json_array,
    first_json_object,
    parse_json_array,
    parse_json_object,
    strip_code_fences,
)

__all__ = [
    "Oracle",
    "cache_key",
    "first_json_array",
    "first_json_object",
    "parse_json_array",
    "parse_json_object",
    "strip_code_fences",
]
