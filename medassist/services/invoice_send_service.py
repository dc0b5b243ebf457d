"""Send an invoice by email and record the attempt in the send ledger.

Rendering, attachment downloads and the transport call happen outside any
lock. Recording the outcome is serialized per invoice: the send event insert,
the ``send_count`` increment and the draft -> unpaid move commit together.
The increment only applies while the invoice is still sendable, so a cancel
or payment that lands during the transport call is never overridden.
"""

from __future__ import annotations

import logging
import threading
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from medassist.models import Invoice, SendEvent
from medassist.models.base import utcnow
from medassist.models.enums import InvoiceLanguage, InvoiceStatus, SendStatus
from medassist.pdf.fonts import FontPair
from medassist.services.asset_fetcher import AssetFetcher
from medassist.services.base_service import BaseService
from medassist.services.case_documents import CaseDocumentService
from medassist.services.document_service import InvoiceDocumentService
from medassist.services.email_composer import EmailComposer, EmailPreview, ResolvedSend, SendOverrides
from medassist.services.email_transport import EmailAttachment, EmailTransport, TransportResult, build_transport
from medassist.services.invoice_service import InvoiceService
from medassist.services.invoice_state import SENDABLE_STATUSES, ensure_sendable
from medassist.services.send_ledger import SendLedger

logger = logging.getLogger(__name__)

# Entries vanish once no caller holds the lock.
_INVOICE_LOCKS: weakref.WeakValueDictionary[int, threading.Lock] = weakref.WeakValueDictionary()
_INVOICE_LOCKS_GUARD = threading.Lock()


def invoice_lock(invoice_id: int) -> threading.Lock:
    with _INVOICE_LOCKS_GUARD:
        lock = _INVOICE_LOCKS.get(invoice_id)
        if lock is None:
            lock = threading.Lock()
            _INVOICE_LOCKS[invoice_id] = lock
        return lock


@dataclass(frozen=True)
class SendResult:
    success: bool
    send_id: int
    email: str
    is_resend: bool
    message_id: str | None = None
    error: str | None = None
    cc: list[str] = field(default_factory=list)
    attachments_count: int = 0
    failed_attachments: list[str] = field(default_factory=list)
    sent_at: datetime | None = None


class InvoiceSendService(BaseService):
    def __init__(
        self,
        db: Session | None = None,
        transport: EmailTransport | None = None,
        asset_fetcher: AssetFetcher | None = None,
        composer: EmailComposer | None = None,
        http: Any = None,
        fonts: FontPair | None = None,
    ) -> None:
        super().__init__(db)
        self.transport = transport or build_transport()
        self.asset_fetcher = asset_fetcher or AssetFetcher(http=http)
        self.composer = composer or EmailComposer()
        self.http = http
        self.fonts = fonts

    def preview(self, invoice_id: int, language: InvoiceLanguage | str | None = None) -> EmailPreview:
        bundle = InvoiceService(self.db).load_bundle(invoice_id)
        return self.composer.compose_preview(bundle.invoice, bundle.sender, bundle.recipient, bundle.case, language)

    def send(self, invoice_id: int, overrides: SendOverrides | None = None) -> SendResult:
        bundle = InvoiceService(self.db).load_bundle(invoice_id)
        invoice = bundle.invoice
        ensure_sendable(invoice.status)
        resolved = self.composer.resolve_send(invoice, bundle.sender, bundle.recipient, bundle.case, overrides)

        document = InvoiceDocumentService(self.db, self.asset_fetcher, self.fonts).render_bundle(bundle)
        collected = CaseDocumentService(self.db, http=self.http).collect_attachments(invoice.case_id, resolved.document_types)
        attachments = [EmailAttachment(filename=document.filename, content=document.content), *collected.attachments]
        message = self.composer.build_message(bundle.sender, resolved, attachments)

        outcome = self.transport.send(message)
        event, outcome = self._record(invoice.id, resolved, outcome)
        self.db.refresh(invoice)

        if outcome.ok:
            logger.info(
                "invoice.send.sent",
                extra={
                    "event": "invoice.send.sent",
                    "invoice_id": invoice.id,
                    "send_id": event.id,
                    "is_resend": event.is_resend,
                    "attachments_count": len(attachments),
                },
            )
        else:
            logger.warning(
                "invoice.send.failed",
                extra={"event": "invoice.send.failed", "invoice_id": invoice.id, "send_id": event.id, "error": outcome.error},
            )
        return SendResult(
            success=outcome.ok,
            send_id=event.id,
            email=resolved.to,
            is_resend=event.is_resend,
            message_id=outcome.message_id,
            error=outcome.error,
            cc=list(resolved.cc),
            attachments_count=len(attachments),
            failed_attachments=list(collected.failed),
            sent_at=event.created_at if outcome.ok else None,
        )

    def _record(
        self, invoice_id: int, resolved: ResolvedSend, outcome: TransportResult
    ) -> tuple[SendEvent, TransportResult]:
        ledger = SendLedger(self.db)
        with invoice_lock(invoice_id):
            try:
                if outcome.ok:
                    counted = self.db.execute(
                        update(Invoice)
                        .where(Invoice.id == invoice_id, Invoice.status.in_(tuple(SENDABLE_STATUSES)))
                        .values(send_count=Invoice.send_count + 1, last_sent_at=utcnow())
                        .execution_options(synchronize_session=False)
                    )
                    if counted.rowcount == 0:
                        outcome = self._locked_outcome(invoice_id, outcome)
                event = ledger.append_send(
                    invoice_id=invoice_id,
                    email=resolved.to,
                    cc_emails=resolved.cc,
                    subject=resolved.subject,
                    body=resolved.body,
                    status=SendStatus.SENT if outcome.ok else SendStatus.FAILED,
                    is_resend=ledger.count_sends(invoice_id) > 0,
                    provider_message_id=outcome.message_id,
                    error_message=outcome.error,
                )
                if outcome.ok:
                    self.db.execute(
                        update(Invoice)
                        .where(Invoice.id == invoice_id, Invoice.status == InvoiceStatus.DRAFT)
                        .values(status=InvoiceStatus.UNPAID)
                        .execution_options(synchronize_session=False)
                    )
                self.commit()
            except Exception:
                self.rollback()
                raise
        return event, outcome

    def _locked_outcome(self, invoice_id: int, outcome: TransportResult) -> TransportResult:
        status = self.db.execute(select(Invoice.status).where(Invoice.id == invoice_id)).scalar_one()
        logger.warning(
            "invoice.send.state_changed",
            extra={
                "event": "invoice.send.state_changed",
                "invoice_id": invoice_id,
                "status": status.value,
                "provider_message_id": outcome.message_id,
            },
        )
        return TransportResult(
            message_id=outcome.message_id,
            error=f"Invoice became {status.value} while sending; the send was not counted.",
        )
