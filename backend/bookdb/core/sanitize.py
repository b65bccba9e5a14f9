"""Input sanitization helpers for request payloads."""

from __future__ import annotations

import re
import unicodedata

_WHITESPACE_RE = re.compile(r"\s+")


def _strip_control_chars(value: str) -> str:
    return "".join(ch for ch in value if unicodedata.category(ch) != "Cc")


def has_control_chars(value: str) -> bool:
    return any(unicodedata.category(ch) == "Cc" for ch in value)


def clean_single_line(value: str | None) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    return _WHITESPACE_RE.sub(" ", _strip_control_chars(value)).strip()


def clean_email(value: str | None) -> str:
    return clean_single_line(value).lower()


def clean_token(value: str | None) -> str:
    # Tokens never legitimately contain whitespace; base64 padding survives.
    if value is None:
        return ""
    return _WHITESPACE_RE.sub("", _strip_control_chars(str(value)))
