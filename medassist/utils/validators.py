"""Deterministic validators and sanitizers used by the invoicing services."""

from __future__ import annotations

import re

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_FILENAME_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9-]")


def sanitize_text(value: str | None, max_len: int = 20000) -> str:
    """Sanitize free-form content before persistence/display."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    cleaned = cleaned[:max_len]
    return cleaned


def is_valid_email(email: str | None) -> bool:
    if not email or not isinstance(email, str):
        return False
    return bool(EMAIL_RE.match(email.strip()))


def filter_valid_emails(emails: list[str] | None) -> list[str]:
    """Keep only syntactically valid addresses, trimmed, in their original order."""
    if not emails:
        return []
    return [email.strip() for email in emails if isinstance(email, str) and is_valid_email(email)]


def sanitize_filename_component(value: str | None) -> str:
    """Replace everything except ASCII letters, digits and dashes with underscores."""
    return _FILENAME_UNSAFE_RE.sub("_", value or "")
