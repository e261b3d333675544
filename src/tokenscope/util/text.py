"""String helpers for ordering token identifiers and naming media files."""

from __future__ import annotations

import re
from typing import Any, Tuple

_DIGIT_RUN = re.compile(r"([0-9]+)")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_BOUNDARY = re.compile(r"([A-Z])([A-Z][a-z])")
_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]+")


def numeric_sort_key(value: Any) -> Tuple[Tuple[Tuple[int, int, str], ...], str]:
    """Return a sort key that compares digit runs as integers.

    ``"2"`` sorts before ``"10"`` and ``"Gen 9"`` before ``"Gen 10"``. Digit
    runs order ahead of text and text compares case-insensitively, with the
    raw string as the final tie-breaker so the ordering stays total.
    """

    text = "" if value is None else str(value)
    parts = []
    for chunk in _DIGIT_RUN.split(text):
        if not chunk:
            continue
        if _DIGIT_RUN.fullmatch(chunk):
            parts.append((0, int(chunk), ""))
        else:
            parts.append((1, 0, chunk.casefold()))
    return tuple(parts), text


def param_case(value: str | None) -> str:
    """Convert ``value`` to lower-case words joined by dashes.

    ``"Pancake Bunny #12"`` becomes ``"pancake-bunny-12"`` and ``"GoldenEgg"``
    becomes ``"golden-egg"``.
    """

    if not value:
        return ""
    text = _CAMEL_BOUNDARY.sub(r"\1 \2", value)
    text = _ACRONYM_BOUNDARY.sub(r"\1 \2", text)
    return "-".join(word.lower() for word in _NON_ALPHANUMERIC.split(text) if word)


__all__ = ["numeric_sort_key", "param_case"]
