"""Outbound email transports.

A transport never raises for delivery problems: it returns a
``TransportResult`` carrying either the provider's message id or its error
message, and the caller records the outcome.
"""

from __future__ import annotations

import base64
import logging
import smtplib
import threading
import uuid
from dataclasses import dataclass, field
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Protocol

import requests

from medassist.core.config import Config, get_config
from medassist.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailAttachment:
    filename: str
    content: bytes = field(repr=False)
    content_type: str = "application/pdf"


@dataclass(frozen=True)
class OutboundEmail:
    from_address: str
    from_name: str | None
    to: str
    subject: str
    text: str
    html: str
    cc: list[str] = field(default_factory=list)
    reply_to: str | None = None
    attachments: list[EmailAttachment] = field(default_factory=list)

    @property
    def from_header(self) -> str:
        if self.from_name:
            return formataddr((self.from_name, self.from_address))
        return self.from_address


@dataclass(frozen=True)
class TransportResult:
    message_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class EmailTransport(Protocol):
    def send(self, message: OutboundEmail) -> TransportResult: ...


class SandboxTransport:
    """Keeps messages in memory; used for local development and tests."""

    def __init__(self, error: str | None = None) -> None:
        self.error = error
        self.outbox: list[OutboundEmail] = []
        self._lock = threading.Lock()

    def send(self, message: OutboundEmail) -> TransportResult:
        if self.error:
            return TransportResult(error=self.error)
        with self._lock:
            self.outbox.append(message)
        message_id = f"sandbox-{uuid.uuid4().hex}"
        logger.info("email.sandbox.sent", extra={"event": "email.sandbox.sent", "to_email": message.to, "message_id": message_id})
        return TransportResult(message_id=message_id)


class SmtpTransport:
    def __init__(self, server: str, port: int, username: str | None = None, password: str | None = None) -> None:
        self.server = server
        self.port = port
        self.username = username
        self.password = password

    def _build_mime(self, message: OutboundEmail, message_id: str) -> MIMEMultipart:
        mime = MIMEMultipart("mixed")
        mime["Subject"] = message.subject
        mime["From"] = message.from_header
        mime["To"] = message.to
        mime["Message-ID"] = message_id
        if message.cc:
            mime["Cc"] = ", ".join(message.cc)
        if message.reply_to:
            mime["Reply-To"] = message.reply_to

        alternative = MIMEMultipart("alternative")
        alternative.attach(MIMEText(message.text, "plain", "utf-8"))
        alternative.attach(MIMEText(message.html, "html", "utf-8"))
        mime.attach(alternative)

        for attachment in message.attachments:
            _maintype, _, subtype = attachment.content_type.partition("/")
            part = MIMEApplication(attachment.content, _subtype=subtype or "octet-stream")
            part.add_header("Content-Disposition", "attachment", filename=("utf-8", "", attachment.filename))
            mime.attach(part)
        return mime

    def send(self, message: OutboundEmail) -> TransportResult:
        domain = message.from_address.rpartition("@")[2] or "localhost"
        message_id = f"<{uuid.uuid4().hex}@{domain}>"
        try:
            mime = self._build_mime(message, message_id)
            with smtplib.SMTP(self.server, self.port, timeout=30) as server:
                server.starttls()
                if self.username:
                    server.login(self.username, self.password or "")
                server.send_message(mime, to_addrs=[message.to, *message.cc])
            return TransportResult(message_id=message_id)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("email.smtp.failed", extra={"event": "email.smtp.failed", "to_email": message.to, "error": str(exc)})
            return TransportResult(error=str(exc))


class ResendTransport:
    """JSON POST to a Resend-compatible transactional email API."""

    def __init__(self, api_key: str, api_url: str, timeout: float = 30, http=None) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self.http = http or requests

    def _payload(self, message: OutboundEmail) -> dict:
        payload = {
            "from": message.from_header,
            "to": [message.to],
            "subject": message.subject,
            "text": message.text,
            "html": message.html,
            "attachments": [
                {
                    "filename": attachment.filename,
                    "content": base64.b64encode(attachment.content).decode("ascii"),
                }
                for attachment in message.attachments
            ],
        }
        if message.cc:
            payload["cc"] = list(message.cc)
        if message.reply_to:
            payload["reply_to"] = message.reply_to
        return payload

    def send(self, message: OutboundEmail) -> TransportResult:
        try:
            response = self.http.post(
                self.api_url,
                json=self._payload(message),
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=(5, self.timeout),
            )
        except requests.exceptions.RequestException as exc:
            logger.warning("email.resend.failed", extra={"event": "email.resend.failed", "to_email": message.to, "error": str(exc)})
            return TransportResult(error=str(exc))

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not response.ok:
            error = body.get("message") if isinstance(body, dict) else None
            error = error or f"Email provider returned HTTP {response.status_code}"
            logger.warning("email.resend.rejected", extra={"event": "email.resend.rejected", "to_email": message.to, "error": error})
            return TransportResult(error=error)
        return TransportResult(message_id=body.get("id") if isinstance(body, dict) else None)


def build_transport(config: Config | None = None) -> EmailTransport:
    config = config or get_config()
    if config.EMAIL_TRANSPORT == "smtp":
        return SmtpTransport(config.SMTP_SERVER, config.SMTP_PORT, config.SMTP_USERNAME, config.SMTP_PASSWORD)
    if config.EMAIL_TRANSPORT == "resend":
        if not config.RESEND_API_KEY:
            raise ConfigurationError("RESEND_API_KEY is required for the resend transport.")
        return ResendTransport(config.RESEND_API_KEY, config.RESEND_API_URL)
    return SandboxTransport()
