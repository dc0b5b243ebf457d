"""Email preview, send and delivery-callback schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from medassist.models.enums import CurrencyCode, InvoiceLanguage, SendStatus


class AttachmentDescriptorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    type: str


class EmailPreviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    from_address: str
    from_name: str | None = None
    to: str | None = None
    cc: list[str]
    subject: str
    body: str
    attachments: list[AttachmentDescriptorResponse]
    language: InvoiceLanguage
    invoice_id: int | None = None
    invoice_number: str
    currency: CurrencyCode
    total: Decimal


class SendRequest(BaseModel):
    email: str | None = Field(default=None, max_length=320)
    cc_emails: list[str] | None = None
    subject: str | None = Field(default=None, max_length=500)
    body: str | None = Field(default=None, max_length=20000)
    attach_patient_docs: bool | None = None
    attach_original_docs: bool | None = None
    attach_medical_docs: bool | None = None


class SendResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    send_id: int
    message_id: str | None = None
    email: str
    cc: list[str]
    is_resend: bool
    sent_at: datetime | None = None
    attachments_count: int
    failed_attachments: list[str]


class SendEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_id: int
    email: str
    cc_emails: list[str] | None = None
    subject: str
    body: str
    status: SendStatus
    is_resend: bool
    provider_message_id: str | None = None
    opened_at: datetime | None = None
    clicked_at: datetime | None = None
    error_message: str | None = None
    created_at: datetime


class ProviderCallbackRequest(BaseModel):
    """Delivery fields only; identity fields of a send can never be changed."""

    model_config = ConfigDict(extra="forbid")

    status: SendStatus | None = None
    opened_at: datetime | None = None
    clicked_at: datetime | None = None
    error_message: str | None = Field(default=None, max_length=2000)
