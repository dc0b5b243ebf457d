"""Invoice service: creation, numbering, line-item maintenance and lifecycle actions.

Every mutation that touches line items or the franchise amount recomputes the
stored line totals, subtotal and total before committing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.exc import IntegrityError

from medassist.core.config import get_config
from medassist.core.exceptions import MissingEntityError, ValidationError
from medassist.models import Case, Invoice, InvoiceLineItem, OurCompany, Partner
from medassist.models.base import utcnow
from medassist.models.enums import CurrencyCode, InvoiceLanguage, InvoiceStatus
from medassist.services.base_service import BaseService
from medassist.services.email_templates import default_email_content
from medassist.services.invoice_state import ensure_editable, transition
from medassist.services.totals import compute_totals, line_total
from medassist.utils.formatting import to_money
from medassist.utils.validators import filter_valid_emails, is_valid_email, sanitize_text

logger = logging.getLogger(__name__)

NUMBER_ATTEMPTS = 3

UPDATABLE_FIELDS = frozenset(
    {
        "sender_id",
        "recipient_id",
        "recipient_email",
        "cc_emails",
        "language",
        "franchise_amount",
        "email_subject",
        "email_body",
        "attach_patient_docs",
        "attach_original_docs",
        "attach_medical_docs",
        "notes",
        "line_items",
    }
)
IMMUTABLE_FIELDS = frozenset({"case_id", "currency", "invoice_number"})


@dataclass
class LineItemData:
    description: str
    quantity: int = 1
    unit_price: Decimal | int | float | str = Decimal("0.00")


@dataclass(frozen=True)
class InvoiceBundle:
    """An invoice with every related record the renderer and composer need."""

    invoice: Invoice
    sender: OurCompany
    recipient: Partner
    case: Case


def _validate_quantity(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        try:
            value = int(str(value))
        except (TypeError, ValueError):
            raise ValidationError("Quantity must be a whole number", field="quantity") from None
    if value < 1:
        raise ValidationError("Quantity must be at least 1", field="quantity")
    return value


def validate_amount(value: Any, field: str) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")
    try:
        amount = Decimal(repr(value) if isinstance(value, float) else str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", field=field) from None
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number", field=field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    return to_money(amount)


def validate_line_item(data: LineItemData | dict) -> LineItemData:
    if isinstance(data, dict):
        data = LineItemData(**data)
    description = sanitize_text(data.description, 2000)
    if not description:
        raise ValidationError("Line item description is required", field="description")
    return LineItemData(
        description=description,
        quantity=_validate_quantity(data.quantity),
        unit_price=validate_amount(data.unit_price, "unit_price"),
    )


def _validate_recipient_email(value: str | None) -> str | None:
    value = (value or "").strip()
    if not value:
        return None
    if not is_valid_email(value):
        raise ValidationError(f"Invalid recipient email: {value}", field="recipient_email")
    return value


class InvoiceService(BaseService):
    """Service for invoice CRUD and lifecycle transitions."""

    # ----- lookups -----

    def get_invoice(self, invoice_id: int) -> Invoice | None:
        return (
            self.db.query(Invoice)
            .filter(Invoice.id == invoice_id, Invoice.deleted_at.is_(None))
            .first()
        )

    def require_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        if invoice is None:
            raise MissingEntityError("Invoice", invoice_id)
        return invoice

    def list_invoices(self, status: InvoiceStatus | str | None = None, case_id: int | None = None) -> list[Invoice]:
        query = self.db.query(Invoice).filter(Invoice.deleted_at.is_(None))
        if status is not None:
            query = query.filter(Invoice.status == InvoiceStatus(status))
        if case_id is not None:
            query = query.filter(Invoice.case_id == case_id)
        return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()

    def require_entity(self, model: type, entity: str, entity_id: int | None) -> Any:
        row = self.db.get(model, entity_id) if entity_id is not None else None
        if row is None or getattr(row, "deleted_at", None) is not None:
            raise MissingEntityError(entity, entity_id)
        return row

    def load_bundle(self, invoice_id: int) -> InvoiceBundle:
        invoice = self.require_invoice(invoice_id)
        return InvoiceBundle(
            invoice=invoice,
            sender=self.require_entity(OurCompany, "Sender company", invoice.sender_id),
            recipient=self.require_entity(Partner, "Recipient", invoice.recipient_id),
            case=self.require_entity(Case, "Case", invoice.case_id),
        )

    # ----- numbering -----

    def next_invoice_number(self, sender: OurCompany, now: datetime | None = None) -> str:
        """``<PREFIX>-<YYYYMM>-<NNNN>``; the sequence restarts every month."""
        prefix = (sender.invoice_prefix or "").strip() or get_config().DEFAULT_INVOICE_PREFIX
        base = f"{prefix}-{(now or utcnow()).strftime('%Y%m')}-"
        pattern = re.compile(rf"^{re.escape(base)}(\d+)$")
        existing = self.db.query(Invoice.invoice_number).filter(Invoice.invoice_number.like(f"{base}%")).all()
        highest = 0
        for (number,) in existing:
            match = pattern.match(number or "")
            if match:
                highest = max(highest, int(match.group(1)))
        return f"{base}{highest + 1:04d}"

    # ----- totals -----

    def _recalculate(self, invoice: Invoice) -> None:
        for item in invoice.line_items:
            item.total = line_total(item.quantity, item.unit_price)
        totals = compute_totals(invoice.line_items, invoice.franchise_amount)
        invoice.subtotal = totals.subtotal
        invoice.total = totals.total

    def _replace_line_items(self, invoice: Invoice, items: list[LineItemData | dict]) -> None:
        validated = [validate_line_item(item) for item in items]
        invoice.line_items = [
            InvoiceLineItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total=line_total(item.quantity, item.unit_price),
                sort_order=index,
            )
            for index, item in enumerate(validated)
        ]

    # ----- creation -----

    def create_invoice(
        self,
        case_id: int,
        sender_id: int,
        recipient_id: int,
        line_items: list[LineItemData | dict],
        currency: CurrencyCode | str = CurrencyCode.EUR,
        language: InvoiceLanguage | str = InvoiceLanguage.EN,
        franchise_amount: Decimal | int | float | str | None = None,
        recipient_email: str | None = None,
        cc_emails: list[str] | None = None,
        email_subject: str | None = None,
        email_body: str | None = None,
        attach_patient_docs: bool = False,
        attach_original_docs: bool = False,
        attach_medical_docs: bool = False,
        notes: str | None = None,
    ) -> Invoice:
        case = self.require_entity(Case, "Case", case_id)
        sender = self.require_entity(OurCompany, "Sender company", sender_id)
        recipient = self.require_entity(Partner, "Recipient", recipient_id)
        try:
            currency = CurrencyCode(currency)
        except ValueError:
            raise ValidationError(f"Unsupported currency: {currency}", field="currency") from None
        try:
            language = InvoiceLanguage(language)
        except ValueError:
            raise ValidationError(f"Unsupported language: {language}", field="language") from None

        attempt = 0
        while True:
            attempt += 1
            invoice = Invoice(
                invoice_number=self.next_invoice_number(sender),
                status=InvoiceStatus.DRAFT,
                case_id=case.id,
                sender_id=sender.id,
                recipient_id=recipient.id,
                recipient_email=_validate_recipient_email(recipient_email),
                cc_emails=filter_valid_emails(cc_emails),
                language=language,
                currency=currency,
                franchise_amount=validate_amount(franchise_amount, "franchise_amount"),
                attach_patient_docs=bool(attach_patient_docs),
                attach_original_docs=bool(attach_original_docs),
                attach_medical_docs=bool(attach_medical_docs),
                notes=sanitize_text(notes) or None,
                send_count=0,
                created_at=utcnow(),
            )
            self._replace_line_items(invoice, line_items)
            self._recalculate(invoice)
            default = default_email_content(invoice, sender, case, language)
            invoice.email_subject = sanitize_text(email_subject, 500) or default.subject
            invoice.email_body = sanitize_text(email_body) or default.body

            self.db.add(invoice)
            try:
                self.commit()
            except IntegrityError:
                # Another writer took the same number; pick the next one.
                if attempt == NUMBER_ATTEMPTS:
                    raise
                logger.warning(
                    "invoice.number.collision",
                    extra={"event": "invoice.number.collision", "invoice_number": invoice.invoice_number, "attempt": attempt},
                )
                continue
            self.db.refresh(invoice)
            logger.info(
                "invoice.created",
                extra={"event": "invoice.created", "invoice_id": invoice.id, "invoice_number": invoice.invoice_number},
            )
            return invoice

    # ----- editing -----

    def update_invoice(self, invoice_id: int, **changes: Any) -> Invoice:
        """Full-record update of a draft or unpaid invoice.

        Stored subject/body are regenerated (for a new language or new totals)
        only where they are empty or still hold the previous default text.
        """
        invoice = self.require_invoice(invoice_id)
        ensure_editable(invoice.status)

        for field in IMMUTABLE_FIELDS & changes.keys():
            requested, current = changes[field], getattr(invoice, field)
            if requested is not None and str(getattr(requested, "value", requested)) != str(getattr(current, "value", current)):
                raise ValidationError(f"{field} cannot be changed after creation", field=field)
        unknown = changes.keys() - UPDATABLE_FIELDS - IMMUTABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown invoice fields: {', '.join(sorted(unknown))}", field=sorted(unknown)[0])

        previous_language = InvoiceLanguage(invoice.language)
        bundle = self.load_bundle(invoice_id)
        previous_default = default_email_content(invoice, bundle.sender, bundle.case, previous_language)

        sender = bundle.sender
        if "sender_id" in changes and changes["sender_id"] is not None:
            sender = self.require_entity(OurCompany, "Sender company", changes["sender_id"])
            invoice.sender_id = sender.id
        if "recipient_id" in changes and changes["recipient_id"] is not None:
            invoice.recipient_id = self.require_entity(Partner, "Recipient", changes["recipient_id"]).id
        if "recipient_email" in changes:
            invoice.recipient_email = _validate_recipient_email(changes["recipient_email"])
        if "cc_emails" in changes:
            invoice.cc_emails = filter_valid_emails(changes["cc_emails"])
        if "franchise_amount" in changes:
            invoice.franchise_amount = validate_amount(changes["franchise_amount"], "franchise_amount")
        if "email_subject" in changes:
            invoice.email_subject = sanitize_text(changes["email_subject"], 500) or None
        if "email_body" in changes:
            invoice.email_body = sanitize_text(changes["email_body"]) or None
        for flag in ("attach_patient_docs", "attach_original_docs", "attach_medical_docs"):
            if flag in changes and changes[flag] is not None:
                setattr(invoice, flag, bool(changes[flag]))
        if "notes" in changes:
            invoice.notes = sanitize_text(changes["notes"]) or None
        if "line_items" in changes and changes["line_items"] is not None:
            self._replace_line_items(invoice, changes["line_items"])
        if "language" in changes and changes["language"] is not None:
            try:
                invoice.language = InvoiceLanguage(changes["language"])
            except ValueError:
                raise ValidationError(f"Unsupported language: {changes['language']}", field="language") from None

        self._recalculate(invoice)

        regenerated = default_email_content(invoice, sender, bundle.case, invoice.language)
        if "email_subject" not in changes and invoice.email_subject == previous_default.subject:
            invoice.email_subject = regenerated.subject
        if "email_body" not in changes and invoice.email_body == previous_default.body:
            invoice.email_body = regenerated.body
        invoice.email_subject = invoice.email_subject or regenerated.subject
        invoice.email_body = invoice.email_body or regenerated.body

        self.commit()
        self.db.refresh(invoice)
        logger.info("invoice.updated", extra={"event": "invoice.updated", "invoice_id": invoice.id})
        return invoice

    def add_line_item(self, invoice_id: int, data: LineItemData | dict) -> Invoice:
        invoice = self.require_invoice(invoice_id)
        ensure_editable(invoice.status)
        item = validate_line_item(data)
        next_order = max((row.sort_order for row in invoice.line_items), default=-1) + 1
        invoice.line_items.append(
            InvoiceLineItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total=line_total(item.quantity, item.unit_price),
                sort_order=next_order,
            )
        )
        self._recalculate(invoice)
        self.commit()
        self.db.refresh(invoice)
        return invoice

    def update_line_item(
        self,
        invoice_id: int,
        item_id: int,
        description: str | None = None,
        quantity: int | None = None,
        unit_price: Decimal | int | float | str | None = None,
    ) -> Invoice:
        invoice = self.require_invoice(invoice_id)
        ensure_editable(invoice.status)
        item = next((row for row in invoice.line_items if row.id == item_id), None)
        if item is None:
            raise MissingEntityError("Line item", item_id)

        if description is not None:
            cleaned = sanitize_text(description, 2000)
            if not cleaned:
                raise ValidationError("Line item description is required", field="description")
            item.description = cleaned
        if quantity is not None:
            item.quantity = _validate_quantity(quantity)
        if unit_price is not None:
            item.unit_price = validate_amount(unit_price, "unit_price")
        self._recalculate(invoice)
        self.commit()
        self.db.refresh(invoice)
        return invoice

    def remove_line_item(self, invoice_id: int, item_id: int) -> Invoice:
        invoice = self.require_invoice(invoice_id)
        ensure_editable(invoice.status)
        item = next((row for row in invoice.line_items if row.id == item_id), None)
        if item is None:
            raise MissingEntityError("Line item", item_id)
        invoice.line_items.remove(item)
        self._recalculate(invoice)
        self.commit()
        self.db.refresh(invoice)
        return invoice

    def set_franchise(self, invoice_id: int, amount: Decimal | int | float | str | None) -> Invoice:
        invoice = self.require_invoice(invoice_id)
        ensure_editable(invoice.status)
        invoice.franchise_amount = validate_amount(amount, "franchise_amount")
        self._recalculate(invoice)
        self.commit()
        self.db.refresh(invoice)
        return invoice

    # ----- lifecycle -----

    def mark_paid(
        self,
        invoice_id: int,
        paid_at: datetime | None = None,
        payment_reference: str | None = None,
    ) -> Invoice:
        invoice = self.require_invoice(invoice_id)
        invoice.status = transition(invoice.status, InvoiceStatus.PAID)
        invoice.paid_at = paid_at or utcnow()
        invoice.payment_reference = sanitize_text(payment_reference, 100) or None
        self.commit()
        self.db.refresh(invoice)
        logger.info("invoice.paid", extra={"event": "invoice.paid", "invoice_id": invoice.id})
        return invoice

    def cancel(self, invoice_id: int) -> Invoice:
        invoice = self.require_invoice(invoice_id)
        invoice.status = transition(invoice.status, InvoiceStatus.CANCELLED)
        self.commit()
        self.db.refresh(invoice)
        logger.info("invoice.cancelled", extra={"event": "invoice.cancelled", "invoice_id": invoice.id})
        return invoice

    def delete_invoice(self, invoice_id: int) -> None:
        """Soft delete; the row and its send history stay in place."""
        invoice = self.require_invoice(invoice_id)
        invoice.deleted_at = utcnow()
        self.commit()
        logger.info("invoice.deleted", extra={"event": "invoice.deleted", "invoice_id": invoice.id})

    def duplicate(self, invoice_id: int) -> Invoice:
        """New draft with a fresh number; send history and payment data are not copied."""
        bundle = self.load_bundle(invoice_id)
        source = bundle.invoice
        source_default = default_email_content(source, bundle.sender, bundle.case)
        # Generated text mentions the old number, so only hand-edited text carries over.
        subject = source.email_subject if source.email_subject != source_default.subject else None
        body = source.email_body if source.email_body != source_default.body else None
        copy = self.create_invoice(
            case_id=source.case_id,
            sender_id=source.sender_id,
            recipient_id=source.recipient_id,
            line_items=[
                LineItemData(description=item.description, quantity=item.quantity, unit_price=item.unit_price)
                for item in source.line_items
            ],
            currency=source.currency,
            language=source.language,
            franchise_amount=source.franchise_amount,
            recipient_email=source.recipient_email,
            cc_emails=list(source.cc_emails or []),
            email_subject=subject,
            email_body=body,
            attach_patient_docs=source.attach_patient_docs,
            attach_original_docs=source.attach_original_docs,
            attach_medical_docs=source.attach_medical_docs,
            notes=source.notes,
        )
        logger.info(
            "invoice.duplicated",
            extra={"event": "invoice.duplicated", "invoice_id": copy.id, "source_invoice_id": source.id},
        )
        return copy
