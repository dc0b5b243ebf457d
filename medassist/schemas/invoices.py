"""Invoice request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from medassist.models.enums import CurrencyCode, InvoiceLanguage, InvoiceStatus


class LineItemRequest(BaseModel):
    description: str = Field(min_length=1, max_length=2000)
    quantity: int = Field(default=1, ge=1)
    unit_price: Decimal = Field(default=Decimal("0.00"), ge=0)


class InvoiceCreateRequest(BaseModel):
    """Wizard submission. Omitted line items are suggested from the case actions."""

    case_id: int = Field(ge=1)
    recipient_id: int = Field(ge=1)
    sender_id: int | None = Field(default=None, ge=1)
    line_items: list[LineItemRequest] | None = None
    currency: CurrencyCode | None = None
    language: InvoiceLanguage = InvoiceLanguage.EN
    franchise_amount: Decimal = Field(default=Decimal("0.00"), ge=0)
    recipient_email: str | None = Field(default=None, max_length=320)
    cc_emails: list[str] = Field(default_factory=list)
    email_subject: str | None = Field(default=None, max_length=500)
    email_body: str | None = Field(default=None, max_length=20000)
    attach_patient_docs: bool = False
    attach_original_docs: bool = False
    attach_medical_docs: bool = False
    notes: str | None = Field(default=None, max_length=5000)


class InvoiceUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sender_id: int | None = Field(default=None, ge=1)
    recipient_id: int | None = Field(default=None, ge=1)
    case_id: int | None = Field(default=None, ge=1)
    currency: CurrencyCode | None = None
    language: InvoiceLanguage | None = None
    line_items: list[LineItemRequest] | None = None
    franchise_amount: Decimal | None = Field(default=None, ge=0)
    recipient_email: str | None = Field(default=None, max_length=320)
    cc_emails: list[str] | None = None
    email_subject: str | None = Field(default=None, max_length=500)
    email_body: str | None = Field(default=None, max_length=20000)
    attach_patient_docs: bool | None = None
    attach_original_docs: bool | None = None
    attach_medical_docs: bool | None = None
    notes: str | None = Field(default=None, max_length=5000)


class MarkPaidRequest(BaseModel):
    paid_at: datetime | None = None
    payment_reference: str | None = Field(default=None, max_length=100)


class LineItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    quantity: int
    unit_price: Decimal
    total: Decimal
    sort_order: int


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_number: str
    status: InvoiceStatus
    case_id: int
    sender_id: int
    recipient_id: int
    recipient_email: str | None = None
    cc_emails: list[str] | None = None
    language: InvoiceLanguage
    currency: CurrencyCode
    subtotal: Decimal
    franchise_amount: Decimal
    total: Decimal
    email_subject: str | None = None
    email_body: str | None = None
    attach_patient_docs: bool
    attach_original_docs: bool
    attach_medical_docs: bool
    notes: str | None = None
    paid_at: datetime | None = None
    payment_reference: str | None = None
    send_count: int
    last_sent_at: datetime | None = None
    pdf_generated_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    line_items: list[LineItemResponse] = Field(default_factory=list)
