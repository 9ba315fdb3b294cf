"""Escaping and punctuation helpers shared by the renderers"""

import re

_LINE_BREAK = re.compile(r"\r?\n")
_TRAILING_COMMA = re.compile(r",\s*$")


def escape_markup(text: str) -> str:
    """Escape ``&``, ``<`` and ``>`` for inclusion in markup.

    Not idempotent: escape each piece of text exactly once per render.
    """
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def to_markup_lines(text: str) -> str:
    """Escape text and turn every line break into ``<br/>``."""
    return _LINE_BREAK.sub("<br/>", escape_markup(text))


def ensure_trailing_comma(text: str) -> str:
    """Append a comma unless the literal last character already is one."""
    if not text or text.endswith(","):
        return text
    return f"{text},"


def strip_trailing_comma(text: str) -> str:
    """Drop one trailing comma (and whitespace around it) and trim."""
    return _TRAILING_COMMA.sub("", text).strip()
