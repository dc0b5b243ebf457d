from __future__ import annotations

import base64
from dataclasses import replace

import pytest
import requests

from medassist.core.config import get_config
from medassist.services.email_transport import (
    EmailAttachment,
    OutboundEmail,
    ResendTransport,
    SandboxTransport,
    SmtpTransport,
    build_transport,
)


def _message(**kwargs):
    params = dict(
        from_address="invoices@medassist.ge",
        from_name="MedAssist Georgia",
        to="claims@allianz.example",
        cc=["ops@allianz.example"],
        subject="Invoice MAG-202603-0001",
        text="Dear Partner,",
        html="<div>Dear Partner,</div>",
        reply_to="billing@medassist.ge",
        attachments=[EmailAttachment(filename="Invoice-MAG-202603-0001.pdf", content=b"%PDF-1.4")],
    )
    params.update(kwargs)
    return OutboundEmail(**params)


class _Response:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class _FakeHttp:
    def __init__(self, outcome):
        self.outcome = outcome
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers})
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def test_resend_posts_payload_and_returns_message_id():
    http = _FakeHttp(_Response(200, {"id": "re_123"}))
    result = ResendTransport("key", "https://api.example/emails", http=http).send(_message())

    assert result.ok
    assert result.message_id == "re_123"
    sent = http.requests[0]
    assert sent["headers"]["Authorization"] == "Bearer key"
    assert sent["json"]["from"] == "MedAssist Georgia <invoices@medassist.ge>"
    assert sent["json"]["cc"] == ["ops@allianz.example"]
    assert sent["json"]["reply_to"] == "billing@medassist.ge"
    assert base64.b64decode(sent["json"]["attachments"][0]["content"]) == b"%PDF-1.4"


@pytest.mark.parametrize(
    ("outcome", "error"),
    [
        (_Response(422, {"message": "Invalid `to` field"}), "Invalid `to` field"),
        (_Response(503), "Email provider returned HTTP 503"),
        (requests.exceptions.ConnectionError("connection refused"), "connection refused"),
    ],
)
def test_resend_failures_become_results(outcome, error):
    result = ResendTransport("key", "https://api.example/emails", http=_FakeHttp(outcome)).send(_message())
    assert not result.ok
    assert result.message_id is None
    assert result.error == error


def test_smtp_message_has_alternative_bodies_and_attachment():
    mime = SmtpTransport("smtp.example", 587)._build_mime(_message(), "<id@medassist.ge>")

    assert mime["From"] == "MedAssist Georgia <invoices@medassist.ge>"
    assert mime["Cc"] == "ops@allianz.example"
    assert mime["Reply-To"] == "billing@medassist.ge"
    alternative, attachment = mime.get_payload()
    assert [part.get_content_type() for part in alternative.get_payload()] == ["text/plain", "text/html"]
    assert attachment.get_filename() == "Invoice-MAG-202603-0001.pdf"
    assert attachment.get_payload(decode=True) == b"%PDF-1.4"


def test_sandbox_keeps_messages():
    transport = SandboxTransport()
    result = transport.send(_message())
    assert result.message_id.startswith("sandbox-")
    assert transport.outbox[0].to == "claims@allianz.example"


def test_build_transport_follows_config():
    config = get_config()
    assert isinstance(build_transport(replace(config, EMAIL_TRANSPORT="sandbox")), SandboxTransport)
    smtp = build_transport(replace(config, EMAIL_TRANSPORT="smtp", SMTP_SERVER="smtp.example"))
    assert isinstance(smtp, SmtpTransport)
    resend = build_transport(replace(config, EMAIL_TRANSPORT="resend", RESEND_API_KEY="key"))
    assert isinstance(resend, ResendTransport)
