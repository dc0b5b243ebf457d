"""Read-side access to case documents bundled with invoice emails."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import requests
from sqlalchemy.orm import Session

from medassist.core.config import get_config
from medassist.models import CaseDocument
from medassist.models.enums import CaseDocumentType
from medassist.services.base_service import BaseService
from medassist.services.email_transport import EmailAttachment

logger = logging.getLogger(__name__)

# Order in which bundles are listed and attached.
DOCUMENT_BUNDLES = (
    ("attach_patient_docs", CaseDocumentType.PATIENT, "patient_documents"),
    ("attach_original_docs", CaseDocumentType.ORIGINAL, "original_documents"),
    ("attach_medical_docs", CaseDocumentType.MEDICAL, "medical_documents"),
)


@dataclass
class CollectedAttachments:
    attachments: list[EmailAttachment] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class CaseDocumentService(BaseService):
    def __init__(self, db: Session | None = None, http: Any = None, timeout: float | None = None) -> None:
        super().__init__(db)
        self.http = http or requests
        self.timeout = timeout or get_config().ASSET_FETCH_TIMEOUT_SECONDS

    def list_documents(self, case_id: int, document_type: CaseDocumentType) -> list[CaseDocument]:
        return (
            self.db.query(CaseDocument)
            .filter(CaseDocument.case_id == case_id, CaseDocument.type == document_type)
            .order_by(CaseDocument.created_at, CaseDocument.id)
            .all()
        )

    def _download(self, document: CaseDocument) -> EmailAttachment | None:
        try:
            response = self.http.get(document.file_url, timeout=(2, self.timeout))
        except requests.exceptions.RequestException as exc:
            logger.warning(
                "case_document.fetch.failed",
                extra={"event": "case_document.fetch.failed", "document_id": document.id, "error": str(exc)},
            )
            return None
        if not response.ok:
            logger.warning(
                "case_document.fetch.failed",
                extra={"event": "case_document.fetch.failed", "document_id": document.id, "status_code": response.status_code},
            )
            return None
        return EmailAttachment(
            filename=document.file_name,
            content=response.content,
            content_type=document.mime_type or response.headers.get("Content-Type") or "application/octet-stream",
        )

    def collect_attachments(self, case_id: int, document_types: list[CaseDocumentType]) -> CollectedAttachments:
        """Download every document of the requested types; failures are reported, not raised."""
        collected = CollectedAttachments()
        for document_type in document_types:
            for document in self.list_documents(case_id, document_type):
                if not document.file_url:
                    continue
                attachment = self._download(document)
                if attachment is None:
                    collected.failed.append(document.file_name)
                else:
                    collected.attachments.append(attachment)
        return collected
