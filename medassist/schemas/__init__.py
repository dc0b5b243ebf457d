"""Pydantic schema package for API contracts."""

from medassist.schemas.common import ErrorEnvelope
from medassist.schemas.invoices import (
    InvoiceCreateRequest,
    InvoiceResponse,
    InvoiceUpdateRequest,
    LineItemRequest,
    LineItemResponse,
    MarkPaidRequest,
)
from medassist.schemas.sends import (
    AttachmentDescriptorResponse,
    EmailPreviewResponse,
    ProviderCallbackRequest,
    SendEventResponse,
    SendRequest,
    SendResponse,
)

__all__ = [
    "AttachmentDescriptorResponse",
    "EmailPreviewResponse",
    "ErrorEnvelope",
    "InvoiceCreateRequest",
    "InvoiceResponse",
    "InvoiceUpdateRequest",
    "LineItemRequest",
    "LineItemResponse",
    "MarkPaidRequest",
    "ProviderCallbackRequest",
    "SendEventResponse",
    "SendRequest",
    "SendResponse",
]
