from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from medassist.core.exceptions import MissingEntityError, SendEventNotFoundError, ValidationError
from medassist.models.enums import SendStatus
from medassist.services.invoice_service import InvoiceService, LineItemData
from medassist.services.send_ledger import SendLedger


@pytest.fixture
def invoice(db_session, seeded):
    return InvoiceService(db=db_session).create_invoice(
        case_id=seeded.case.id,
        sender_id=seeded.sender.id,
        recipient_id=seeded.recipient.id,
        line_items=[LineItemData(description="Consultation", quantity=1, unit_price="80.00")],
    )


def _append(ledger, invoice, **kwargs):
    params = dict(
        invoice_id=invoice.id,
        email="claims@allianz.example",
        subject="Subject",
        body="Body",
        status=SendStatus.SENT,
    )
    params.update(kwargs)
    event = ledger.append_send(**params)
    ledger.commit()
    return event


def test_sends_are_listed_oldest_first(db_session, invoice):
    ledger = SendLedger(db_session)
    first = _append(ledger, invoice, provider_message_id="m-1")
    second = _append(ledger, invoice, is_resend=True, provider_message_id="m-2")
    third = _append(ledger, invoice, status=SendStatus.FAILED, error_message="bounced")

    assert [e.id for e in ledger.list_sends(invoice.id)] == [first.id, second.id, third.id]
    assert ledger.count_sends(invoice.id) == 3
    assert ledger.find_by_provider_message_id("m-2").id == second.id
    assert ledger.find_by_provider_message_id("unknown") is None


def test_callback_is_idempotent_and_keeps_first_timestamps(db_session, invoice):
    ledger = SendLedger(db_session)
    event = _append(ledger, invoice)
    opened = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)

    ledger.apply_provider_callback(event.id, status="delivered", opened_at=opened)
    snapshot = (event.status, event.opened_at, event.clicked_at)
    ledger.apply_provider_callback(event.id, status="delivered", opened_at=opened)
    assert (event.status, event.opened_at, event.clicked_at) == snapshot

    ledger.apply_provider_callback(event.id, opened_at=opened + timedelta(hours=1), clicked_at=opened)
    assert event.status == SendStatus.DELIVERED
    assert event.opened_at.replace(tzinfo=timezone.utc) == opened
    assert event.clicked_at is not None


def test_callback_can_mark_a_bounce(db_session, invoice):
    ledger = SendLedger(db_session)
    event = _append(ledger, invoice)
    ledger.apply_provider_callback(event.id, status=SendStatus.BOUNCED, error_message="Mailbox full")
    assert event.status == SendStatus.BOUNCED
    assert event.error_message == "Mailbox full"


def test_callback_rejects_pending_and_unknown_status(db_session, invoice):
    ledger = SendLedger(db_session)
    event = _append(ledger, invoice)
    with pytest.raises(ValidationError):
        ledger.apply_provider_callback(event.id, status="pending")
    with pytest.raises(ValidationError):
        ledger.apply_provider_callback(event.id, status="teleported")
    assert event.status == SendStatus.SENT


def test_unknown_send_id_is_not_found(db_session):
    with pytest.raises(SendEventNotFoundError) as exc:
        SendLedger(db_session).apply_provider_callback(404, status="delivered")
    assert isinstance(exc.value, MissingEntityError)


def test_callback_by_provider_message_id(db_session, invoice):
    ledger = SendLedger(db_session)
    event = _append(ledger, invoice, provider_message_id="re_123")

    updated = ledger.apply_provider_callback_for_message("re_123", status="delivered")
    assert updated.id == event.id
    assert updated.status == SendStatus.DELIVERED

    with pytest.raises(SendEventNotFoundError):
        ledger.apply_provider_callback_for_message("re_missing", status="delivered")
