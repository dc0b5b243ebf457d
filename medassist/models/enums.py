"""Canonical enum values for the invoicing schema."""

from __future__ import annotations

import enum


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    UNPAID = "unpaid"
    PAID = "paid"
    CANCELLED = "cancelled"


class CurrencyCode(str, enum.Enum):
    GEL = "GEL"
    USD = "USD"
    EUR = "EUR"


class InvoiceLanguage(str, enum.Enum):
    EN = "en"
    KA = "ka"


class SendStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    BOUNCED = "bounced"
    FAILED = "failed"


class CaseDocumentType(str, enum.Enum):
    PATIENT = "patient"
    ORIGINAL = "original"
    MEDICAL = "medical"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Persist enum values rather than member names."""
    return [member.value for member in enum_cls]
