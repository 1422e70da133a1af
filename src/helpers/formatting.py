"""Text formatting utilities for chat messages."""

import re


_MARKDOWN_V2_SPECIAL = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")
_MARKDOWN_V2_URL_SPECIAL = re.compile(r"([)\\])")

# Largest unit first
_TIME_UNITS = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("week", 7 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def escape_markdown_v2(text: str) -> str:
    """Escape Telegram MarkdownV2 special characters in literal text."""
    return _MARKDOWN_V2_SPECIAL.sub(r"\\\1", text)


def escape_markdown_v2_url(url: str) -> str:
    """Escape the characters MarkdownV2 reserves inside a link target."""
    return _MARKDOWN_V2_URL_SPECIAL.sub(r"\\\1", url)


def plural(count: int, singular: str, plural_form: str | None = None) -> str:
    """Count with a thousands separator and the matching noun form.

    Example:
        >>> plural(1, "validator")
        '1 validator'
        >>> plural(1200, "validator")
        '1,200 validators'
    """
    word = singular if count == 1 else (plural_form or f"{singular}s")
    return f"{count:,} {word}"


def relative_time(seconds: float, parts: int = 1) -> str:
    """Coarse human duration, e.g. `3 days` or, with parts=2, `3 days 4 hours`."""
    remaining = max(int(seconds), 0)
    pieces: list[str] = []
    for unit, size in _TIME_UNITS:
        if remaining >= size:
            pieces.append(plural(remaining // size, unit))
            remaining %= size
            if len(pieces) == parts:
                break
    return " ".join(pieces) if pieces else "0 seconds"


__all__ = [
    "escape_markdown_v2",
    "escape_markdown_v2_url",
    "plural",
    "relative_time",
]
