# backend/quizforge/core/extraction.py
"""
Locate the JSON array inside free-form model output.

Models wrap their answer in prose or markdown fences often enough that
rejecting such output outright would waste attempts. Instead we scan for the
first bracket-delimited block whose delimiters balance, tracking string and
escape state so that brackets inside string values do not count.
"""

from typing import Tuple

_OPENERS = {"[": "]", "{": "}"}
_CLOSERS = {"]", "}"}


def _scan_balanced(text: str, start: int) -> int | None:
    """Return the end index (exclusive) of the block opened at ``start``.

    None means the candidate cannot be completed: a closer did not match its
    opener, or the text ran out first.
    """
    stack = []
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]

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
        elif ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in _CLOSERS:
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return i + 1

    return None


def find_array_span(text: str, start: int = 0) -> Tuple[int, int] | None:
    """Bounds of the first balanced ``[...]`` block at or after ``start``."""
    if not text:
        return None

    pos = text.find("[", start)
    while pos != -1:
        end = _scan_balanced(text, pos)
        if end is not None:
            return pos, end
        pos = text.find("[", pos + 1)
    return None


def extract_first_array(text: str) -> str | None:
    """
    Extract the first complete JSON-array-shaped substring.

    Surrounding prose is dropped and the array text is returned as-is.
    Only the first array is returned; see ``has_trailing_array``.
    """
    span = find_array_span(text)
    if span is None:
        return None
    start, end = span
    return text[start:end]


def has_trailing_array(text: str, end: int) -> bool:
    """True when another balanced array follows position ``end``."""
    return find_array_span(text, end) is not None
