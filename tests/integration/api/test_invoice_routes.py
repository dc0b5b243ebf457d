from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medassist.core.dependencies import get_db_session, get_email_transport
from medassist.main import create_app
from medassist.models import Base
from medassist.services.email_transport import SandboxTransport

PREFIX = "/api/v1"


@pytest.fixture
def api(seed_parties):
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

    setup = TestingSessionLocal()
    seeded = seed_parties(setup)
    setup.close()

    def override_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    transport = SandboxTransport()
    app = create_app(run_bootstrap=False)
    app.dependency_overrides[get_db_session] = override_db
    app.dependency_overrides[get_email_transport] = lambda: transport

    with TestClient(app) as client:
        yield client, seeded, transport, app
    engine.dispose()


def _create(client, seeded, **overrides):
    payload = {
        "case_id": seeded.case.id,
        "recipient_id": seeded.recipient.id,
        "line_items": [
            {"description": "Hospitalization - 3 nights", "quantity": 2, "unit_price": "50.00"},
            {"description": "Ambulance transfer", "quantity": 1, "unit_price": "25.50"},
        ],
        "franchise_amount": "10.00",
    }
    payload.update(overrides)
    response = client.post(f"{PREFIX}/invoices", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(api):
    client, *_ = api
    response = client.get(f"{PREFIX}/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_and_fetch_invoice(api):
    client, seeded, *_ = api
    created = _create(client, seeded)

    assert created["status"] == "draft"
    assert created["sender_id"] == seeded.sender.id
    assert created["currency"] == "EUR"
    assert Decimal(created["total"]) == Decimal("115.50")
    assert [item["sort_order"] for item in created["line_items"]] == [0, 1]

    fetched = client.get(f"{PREFIX}/invoices/{created['id']}").json()
    assert fetched["invoice_number"] == created["invoice_number"]
    listed = client.get(f"{PREFIX}/invoices", params={"status": "draft"}).json()
    assert [invoice["id"] for invoice in listed] == [created["id"]]


def test_create_without_items_uses_case_actions(api):
    client, seeded, *_ = api
    created = _create(client, seeded, line_items=None)
    assert [item["description"] for item in created["line_items"]] == [
        "Hospitalization - 3 nights",
        "Ambulance transfer",
    ]
    assert Decimal(created["subtotal"]) == Decimal("75.50")


def test_update_rejects_currency_change(api):
    client, seeded, *_ = api
    created = _create(client, seeded)
    response = client.put(f"{PREFIX}/invoices/{created['id']}", json={"currency": "USD"})
    assert response.status_code == 422
    assert response.json()["field"] == "currency"

    response = client.put(f"{PREFIX}/invoices/{created['id']}", json={"notes": "Checked"})
    assert response.status_code == 200
    assert response.json()["notes"] == "Checked"


def test_pdf_headers(api):
    client, seeded, *_ = api
    created = _create(client, seeded)
    response = client.get(f"{PREFIX}/invoices/{created['id']}/pdf", params={"download": "true"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"].startswith(
        f"attachment; filename=\"Invoice-{created['invoice_number']}.pdf\""
    )
    assert response.content.startswith(b"%PDF")
    assert client.get(f"{PREFIX}/invoices/{created['id']}").json()["pdf_generated_at"] is not None


def test_preview_send_and_history(api):
    client, seeded, transport, _app = api
    created = _create(client, seeded)

    preview = client.get(f"{PREFIX}/invoices/{created['id']}/preview", params={"language": "ka"}).json()
    assert preview["to"] == "claims@allianz.example"
    assert preview["language"] == "ka"
    assert preview["attachments"][0] == {"name": f"ინვოისი-{created['invoice_number']}.pdf", "type": "application/pdf"}

    sent = client.post(f"{PREFIX}/invoices/{created['id']}/send", json={"cc_emails": ["ops@allianz.example"]})
    assert sent.status_code == 200, sent.text
    body = sent.json()
    assert body["success"] is True
    assert body["is_resend"] is False
    assert body["cc"] == ["ops@allianz.example"]
    assert len(transport.outbox) == 1

    invoice = client.get(f"{PREFIX}/invoices/{created['id']}").json()
    assert invoice["status"] == "unpaid"
    assert invoice["send_count"] == 1

    history = client.get(f"{PREFIX}/invoices/{created['id']}/sends").json()
    assert [event["id"] for event in history] == [body["send_id"]]

    callback = client.post(f"{PREFIX}/invoice-sends/{body['send_id']}/events", json={"status": "delivered"})
    assert callback.status_code == 200
    assert callback.json()["status"] == "delivered"


def test_callback_errors(api):
    client, seeded, *_ = api
    created = _create(client, seeded)
    send_id = client.post(f"{PREFIX}/invoices/{created['id']}/send", json={}).json()["send_id"]

    missing = client.post(f"{PREFIX}/invoice-sends/999/events", json={"status": "delivered"})
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "send_event_not_found"

    pending = client.post(f"{PREFIX}/invoice-sends/{send_id}/events", json={"status": "pending"})
    assert pending.status_code == 422

    identity = client.post(f"{PREFIX}/invoice-sends/{send_id}/events", json={"email": "x@y.com"})
    assert identity.status_code == 422


def test_callback_by_provider_message_id(api):
    client, seeded, *_ = api
    created = _create(client, seeded)
    sent = client.post(f"{PREFIX}/invoices/{created['id']}/send", json={}).json()

    opened = client.post(
        f"{PREFIX}/invoice-sends/by-message/{sent['message_id']}/events",
        json={"status": "delivered", "opened_at": "2026-03-02T09:30:00Z"},
    )
    assert opened.status_code == 200
    assert opened.json()["id"] == sent["send_id"]
    assert opened.json()["status"] == "delivered"
    assert opened.json()["opened_at"] is not None

    unknown = client.post(f"{PREFIX}/invoice-sends/by-message/re_unknown/events", json={"status": "delivered"})
    assert unknown.status_code == 404
    assert unknown.json()["error_code"] == "send_event_not_found"


def test_error_envelopes(api):
    client, seeded, _transport, app = api
    missing = client.get(f"{PREFIX}/invoices/999")
    assert missing.status_code == 404
    assert missing.json()["status"] == "error"

    created = _create(client, seeded)
    bad_email = client.post(f"{PREFIX}/invoices/{created['id']}/send", json={"email": "not-an-email"})
    assert bad_email.status_code == 422
    assert bad_email.json()["field"] == "email"

    failing = SandboxTransport(error="Mailbox unavailable")
    app.dependency_overrides[get_email_transport] = lambda: failing
    failed = client.post(f"{PREFIX}/invoices/{created['id']}/send", json={})
    assert failed.status_code == 502
    assert failed.json()["detail"] == "Mailbox unavailable"
    assert failed.json()["send_id"] >= 1

    paid = client.post(f"{PREFIX}/invoices/{created['id']}/mark-paid", json={"payment_reference": "TRX-1"})
    assert paid.json()["status"] == "paid"
    conflict = client.post(f"{PREFIX}/invoices/{created['id']}/send", json={})
    assert conflict.status_code == 409


def test_duplicate_cancel_and_delete(api):
    client, seeded, *_ = api
    created = _create(client, seeded)

    copy = client.post(f"{PREFIX}/invoices/{created['id']}/duplicate")
    assert copy.status_code == 201
    assert copy.json()["invoice_number"] != created["invoice_number"]
    assert copy.json()["send_count"] == 0

    cancelled = client.post(f"{PREFIX}/invoices/{created['id']}/cancel").json()
    assert cancelled["status"] == "cancelled"

    assert client.delete(f"{PREFIX}/invoices/{copy.json()['id']}").status_code == 204
    assert client.get(f"{PREFIX}/invoices/{copy.json()['id']}").status_code == 404
