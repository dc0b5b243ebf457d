from __future__ import annotations

from medassist.utils.validators import (
    filter_valid_emails,
    is_valid_email,
    sanitize_filename_component,
    sanitize_text,
)


def test_is_valid_email():
    assert is_valid_email("a@b.com") is True
    assert is_valid_email(" a@b.com ") is True
    assert is_valid_email("a@b") is False
    assert is_valid_email("no spaces@b.com") is False
    assert is_valid_email(None) is False


def test_filter_valid_emails_keeps_order_and_trims():
    assert filter_valid_emails([" x@y.io", "bad", "z@w.org", 42]) == ["x@y.io", "z@w.org"]
    assert filter_valid_emails(None) == []


def test_sanitize_filename_component_replaces_unsafe_characters():
    assert sanitize_filename_component("INV-202603-0001") == "INV-202603-0001"
    assert sanitize_filename_component("INV/2026 #1") == "INV_2026__1"
    assert sanitize_filename_component("ინვ-1") == "___-1"


def test_sanitize_text_strips_null_and_trims():
    assert sanitize_text("  hello\x00world  ") == "helloworld"
    assert sanitize_text(None) == ""
