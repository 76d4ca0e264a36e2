"""Compiled-pattern primitives used by providers and the cleaner.

Every pattern is case-insensitive. Field patterns (``rules`` and
``referralMarketing``) are anchored to the whole field name; everything else
matches anywhere in the text.
"""

from __future__ import annotations

import re

Pattern = re.Pattern[str]

# Rule documents are written for JavaScript RegExp, which spells named groups
# without the "P".
_JS_NAMED_GROUP_RE = re.compile(r"(?<!\\)\(\?<(?![=!])")


def translate_js_pattern(source: str) -> str:
    return _JS_NAMED_GROUP_RE.sub("(?P<", source)


def compile_pattern(source: str, *, anchored: bool = False) -> Pattern:
    """Compile a rule pattern.

    Raises ValueError when the source is not a string or is not a valid
    regular expression, so callers building pydantic models get a
    ValidationError.
    """
    if not isinstance(source, str):
        raise ValueError(f"Pattern must be a string, got {type(source).__name__}")
    body = translate_js_pattern(source)
    if anchored:
        body = rf"^(?:{body})\Z"
    try:
        return re.compile(body, re.IGNORECASE)
    except re.error as e:
        raise ValueError(f"Invalid pattern {source!r}: {e}") from e


def matches(pattern: Pattern, text: str) -> bool:
    return pattern.search(text) is not None


def find_capture(pattern: Pattern, text: str) -> str | None:
    """Return the first capture group of the first match, if it took part."""
    if pattern.groups < 1:
        return None
    m = pattern.search(text)
    if m is None:
        return None
    return m.group(1)


def remove_all(pattern: Pattern, text: str) -> str:
    return pattern.sub("", text)
