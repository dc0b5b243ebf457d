"""Compose invoice emails: preview data, editable drafts and outbound messages."""

from __future__ import annotations

import html
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from medassist.core.config import Config, get_config
from medassist.core.exceptions import ValidationError
from medassist.models.enums import CaseDocumentType, CurrencyCode, InvoiceLanguage
from medassist.pdf.renderer import document_filename
from medassist.pdf.translations import label, resolve_language
from medassist.services.case_documents import DOCUMENT_BUNDLES
from medassist.services.email_templates import EmailContent, default_email_content
from medassist.services.email_transport import EmailAttachment, OutboundEmail
from medassist.services.totals import compute_totals
from medassist.utils.validators import filter_valid_emails, is_valid_email


@dataclass(frozen=True)
class AttachmentDescriptor:
    name: str
    type: str


@dataclass(frozen=True)
class EmailPreview:
    from_address: str
    from_name: str | None
    to: str | None
    cc: list[str]
    subject: str
    body: str
    attachments: list[AttachmentDescriptor]
    language: InvoiceLanguage
    invoice_id: int | None
    invoice_number: str
    currency: CurrencyCode
    total: Decimal


@dataclass
class SendOverrides:
    """Per-send values supplied by the caller; ``None`` keeps the invoice's own value."""

    email: str | None = None
    cc_emails: list[str] | None = None
    subject: str | None = None
    body: str | None = None
    attach_patient_docs: bool | None = None
    attach_original_docs: bool | None = None
    attach_medical_docs: bool | None = None


@dataclass(frozen=True)
class ResolvedSend:
    to: str
    cc: list[str]
    subject: str
    body: str
    document_types: list[CaseDocumentType] = field(default_factory=list)


class EmailDraft:
    """Subject/body pair that tracks manual edits across language switches.

    Switching language regenerates a field from the new template only while
    that field still holds generated text; once edited it is left alone.
    """

    def __init__(
        self,
        content_for: Callable[[InvoiceLanguage], EmailContent],
        language: InvoiceLanguage | str,
        subject: str | None = None,
        body: str | None = None,
    ) -> None:
        self._content_for = content_for
        self.language = resolve_language(language)
        default = content_for(self.language)
        self.subject = subject or default.subject
        self.body = body or default.body
        self.subject_edited = bool(subject) and subject != default.subject
        self.body_edited = bool(body) and body != default.body

    def edit_subject(self, subject: str) -> None:
        self.subject = subject
        self.subject_edited = True

    def edit_body(self, body: str) -> None:
        self.body = body
        self.body_edited = True

    def change_language(self, language: InvoiceLanguage | str) -> None:
        resolved = resolve_language(language)
        if resolved == self.language:
            return
        default = self._content_for(resolved)
        if not self.subject_edited:
            self.subject = default.subject
        if not self.body_edited:
            self.body = default.body
        self.language = resolved


def requested_document_types(invoice: Any, overrides: SendOverrides | None = None) -> list[CaseDocumentType]:
    types = []
    for flag, document_type, _label_key in DOCUMENT_BUNDLES:
        override = getattr(overrides, flag, None) if overrides else None
        enabled = override if override is not None else bool(getattr(invoice, flag, False))
        if enabled:
            types.append(document_type)
    return types


def _text_to_html(text: str) -> str:
    paragraphs = html.escape(text).replace("\r\n", "\n").replace("\n", "<br/>")
    return f'<div style="font-family: Arial, sans-serif; font-size: 14px; line-height: 1.5;">{paragraphs}</div>'


class EmailComposer:
    def __init__(self, config: Config | None = None) -> None:
        self.config = config or get_config()

    def from_name(self, sender: Any) -> str | None:
        return self.config.EMAIL_FROM_NAME or getattr(sender, "name", None)

    def start_draft(self, invoice: Any, sender: Any, case: Any) -> EmailDraft:
        """Draft seeded from the invoice's stored subject/body in its own language."""
        return EmailDraft(
            lambda language: default_email_content(invoice, sender, case, language),
            invoice.language or InvoiceLanguage.EN,
            subject=invoice.email_subject,
            body=invoice.email_body,
        )

    def compose_preview(
        self,
        invoice: Any,
        sender: Any,
        recipient: Any,
        case: Any,
        language: InvoiceLanguage | str | None = None,
    ) -> EmailPreview:
        draft = self.start_draft(invoice, sender, case)
        if language:
            draft.change_language(language)

        attachments = [AttachmentDescriptor(name=document_filename(invoice.invoice_number, draft.language), type="application/pdf")]
        enabled = requested_document_types(invoice)
        for _flag, document_type, label_key in DOCUMENT_BUNDLES:
            if document_type in enabled:
                attachments.append(AttachmentDescriptor(name=label(draft.language, label_key), type="folder"))

        currency = CurrencyCode(invoice.currency or CurrencyCode.EUR)
        return EmailPreview(
            from_address=self.config.EMAIL_FROM_ADDRESS,
            from_name=self.from_name(sender),
            to=invoice.recipient_email or getattr(recipient, "email", None),
            cc=list(invoice.cc_emails or []),
            subject=draft.subject,
            body=draft.body,
            attachments=attachments,
            language=draft.language,
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            currency=currency,
            total=compute_totals(invoice.line_items or [], invoice.franchise_amount).total,
        )

    def resolve_send(
        self,
        invoice: Any,
        sender: Any,
        recipient: Any,
        case: Any,
        overrides: SendOverrides | None = None,
    ) -> ResolvedSend:
        overrides = overrides or SendOverrides()
        to = (overrides.email or invoice.recipient_email or getattr(recipient, "email", None) or "").strip()
        if not to:
            raise ValidationError("Recipient email is not set", field="email")
        if not is_valid_email(to):
            raise ValidationError(f"Invalid recipient email: {to}", field="email")

        cc = filter_valid_emails(overrides.cc_emails) or filter_valid_emails(invoice.cc_emails)
        default = None
        if not (overrides.subject or invoice.email_subject) or not (overrides.body or invoice.email_body):
            default = default_email_content(invoice, sender, case)
        return ResolvedSend(
            to=to,
            cc=cc,
            subject=overrides.subject or invoice.email_subject or default.subject,
            body=overrides.body or invoice.email_body or default.body,
            document_types=requested_document_types(invoice, overrides),
        )

    def build_message(
        self,
        sender: Any,
        resolved: ResolvedSend,
        attachments: list[EmailAttachment],
    ) -> OutboundEmail:
        reply_to = getattr(sender, "email", None)
        return OutboundEmail(
            from_address=self.config.EMAIL_FROM_ADDRESS,
            from_name=self.from_name(sender),
            to=resolved.to,
            cc=list(resolved.cc),
            subject=resolved.subject,
            text=resolved.body,
            html=_text_to_html(resolved.body),
            reply_to=reply_to if is_valid_email(reply_to) else None,
            attachments=list(attachments),
        )
