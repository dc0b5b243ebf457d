"""Append-only history of invoice email sends.

Rows are written once by the send flow. Afterwards only delivery fields
(status, opened/clicked timestamps, error message) change, through provider
callbacks.
"""

from __future__ import annotations

import logging
from datetime import datetime

from medassist.core.exceptions import SendEventNotFoundError, ValidationError
from medassist.models import SendEvent
from medassist.models.enums import SendStatus
from medassist.services.base_service import BaseService
from medassist.utils.validators import sanitize_text

logger = logging.getLogger(__name__)


class SendLedger(BaseService):
    def list_sends(self, invoice_id: int) -> list[SendEvent]:
        """All send events for an invoice, oldest first."""
        return (
            self.db.query(SendEvent)
            .filter(SendEvent.invoice_id == invoice_id)
            .order_by(SendEvent.created_at.asc(), SendEvent.id.asc())
            .all()
        )

    def count_sends(self, invoice_id: int) -> int:
        return self.db.query(SendEvent).filter(SendEvent.invoice_id == invoice_id).count()

    def get_send(self, send_id: int) -> SendEvent:
        event = self.db.get(SendEvent, send_id)
        if event is None:
            raise SendEventNotFoundError(send_id)
        return event

    def find_by_provider_message_id(self, provider_message_id: str) -> SendEvent | None:
        return (
            self.db.query(SendEvent)
            .filter(SendEvent.provider_message_id == provider_message_id)
            .first()
        )

    def append_send(
        self,
        invoice_id: int,
        email: str,
        subject: str,
        body: str,
        status: SendStatus,
        cc_emails: list[str] | None = None,
        is_resend: bool = False,
        provider_message_id: str | None = None,
        error_message: str | None = None,
    ) -> SendEvent:
        """Stage a new event in the caller's transaction (flushed, not committed)."""
        event = SendEvent(
            invoice_id=invoice_id,
            email=email,
            cc_emails=list(cc_emails or []),
            subject=sanitize_text(subject, 500),
            body=sanitize_text(body),
            status=SendStatus(status),
            is_resend=is_resend,
            provider_message_id=provider_message_id,
            error_message=sanitize_text(error_message, 2000) or None,
        )
        self.db.add(event)
        self.db.flush()
        return event

    def apply_provider_callback(
        self,
        send_id: int,
        *,
        status: SendStatus | str | None = None,
        opened_at: datetime | None = None,
        clicked_at: datetime | None = None,
        error_message: str | None = None,
    ) -> SendEvent:
        """Idempotently record delivery information for an existing send.

        Replaying a callback changes nothing; the first opened/clicked
        timestamps win.
        """
        event = self.get_send(send_id)
        if status is not None:
            try:
                status = SendStatus(status)
            except ValueError:
                raise ValidationError(f"Unsupported send status: {status}", field="status") from None
            if status == SendStatus.PENDING:
                raise ValidationError("Callbacks cannot reset a send to pending", field="status")
            event.status = status
        if opened_at is not None and event.opened_at is None:
            event.opened_at = opened_at
        if clicked_at is not None and event.clicked_at is None:
            event.clicked_at = clicked_at
        if error_message:
            event.error_message = sanitize_text(error_message, 2000)

        self.commit()
        self.db.refresh(event)
        logger.info(
            "invoice.send.callback",
            extra={"event": "invoice.send.callback", "send_id": event.id, "status": event.status.value},
        )
        return event

    def apply_provider_callback_for_message(self, provider_message_id: str, **fields) -> SendEvent:
        """Same as ``apply_provider_callback`` for providers that only know their own message id."""
        event = self.find_by_provider_message_id(provider_message_id)
        if event is None:
            raise SendEventNotFoundError(provider_message_id)
        return self.apply_provider_callback(event.id, **fields)
