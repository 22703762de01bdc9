"""Redis-style glob patterns: escaping and matching."""

import functools
import re
from typing import List, Pattern, Tuple

GLOB_SPECIAL_CHARS = "*?[]\\"


def escape_glob(text: str) -> str:
    """
    Backslash-escape glob metacharacters so text only matches itself.

    Use it for untrusted fragments (IDs, user input) spliced into a pattern,
    e.g. f"cache:room:{escape_glob(room_id)}:*".
    """
    return "".join("\\" + char if char in GLOB_SPECIAL_CHARS else char for char in text)


def _class_end(pattern: str, start: int) -> int:
    i = start
    while i < len(pattern):
        if pattern[i] == "\\":
            i += 2
            continue
        if pattern[i] == "]":
            return i
        i += 1
    return -1


def _translate_class(body: str) -> str:
    negate = body.startswith("^")
    if negate:
        body = body[1:]

    # (char, escaped) pairs so an escaped "-" is never read as a range
    tokens: List[Tuple[str, bool]] = []
    i = 0
    while i < len(body):
        if body[i] == "\\" and i + 1 < len(body):
            tokens.append((body[i + 1], True))
            i += 2
        else:
            tokens.append((body[i], False))
            i += 1

    items = []
    j = 0
    while j < len(tokens):
        char = tokens[j][0]
        if j + 2 < len(tokens) and tokens[j + 1] == ("-", False):
            low, high = sorted((char, tokens[j + 2][0]))
            items.append(f"{re.escape(low)}-{re.escape(high)}")
            j += 3
        else:
            items.append(re.escape(char))
            j += 1

    if not items:
        return "." if negate else "(?!)"
    return "[" + ("^" if negate else "") + "".join(items) + "]"


@functools.lru_cache(maxsize=256)
def compile_glob(pattern: str) -> Pattern[str]:
    """
    Translate a Redis glob into a compiled regular expression.

    Supports *, ?, [abc], [^abc], [a-z] and backslash escapes, matching the
    semantics of KEYS / SCAN MATCH. An unterminated "[" matches itself.
    """
    parts = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\" and i + 1 < len(pattern):
            parts.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        elif char == "[":
            end = _class_end(pattern, i + 1)
            if end >= 0:
                parts.append(_translate_class(pattern[i + 1:end]))
                i = end + 1
                continue
            parts.append(re.escape(char))
        else:
            parts.append(re.escape(char))
        i += 1
    return re.compile("".join(parts), re.DOTALL)


def glob_match(pattern: str, key: str) -> bool:
    return compile_glob(pattern).fullmatch(key) is not None
