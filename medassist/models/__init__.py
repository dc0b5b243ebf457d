"""Modular SQLAlchemy model package for the invoicing schema."""

from medassist.models.base import Base
from medassist.models.case import Case, CaseAction, CaseDocument
from medassist.models.enums import (
    CaseDocumentType,
    CurrencyCode,
    InvoiceLanguage,
    InvoiceStatus,
    SendStatus,
)
from medassist.models.invoice import Invoice, InvoiceLineItem
from medassist.models.our_company import OurCompany
from medassist.models.partner import Partner
from medassist.models.send_event import SendEvent

__all__ = [
    "Base",
    "Case",
    "CaseAction",
    "CaseDocument",
    "CaseDocumentType",
    "CurrencyCode",
    "Invoice",
    "InvoiceLanguage",
    "InvoiceLineItem",
    "InvoiceStatus",
    "OurCompany",
    "Partner",
    "SendEvent",
    "SendStatus",
]
