"""Load an invoice bundle, resolve sender images and render the PDF."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from medassist.models.base import utcnow
from medassist.models.enums import InvoiceLanguage
from medassist.pdf.fonts import FontPair
from medassist.pdf.renderer import content_disposition, document_filename, render_invoice_pdf
from medassist.pdf.translations import resolve_language
from medassist.services.asset_fetcher import AssetFetcher
from medassist.services.base_service import BaseService
from medassist.services.invoice_service import InvoiceBundle, InvoiceService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedDocument:
    content: bytes = field(repr=False)
    filename: str
    language: InvoiceLanguage
    media_type: str = "application/pdf"

    def content_disposition(self, inline: bool = True) -> str:
        return content_disposition(self.filename, inline=inline)


class InvoiceDocumentService(BaseService):
    def __init__(
        self,
        db: Session | None = None,
        asset_fetcher: AssetFetcher | None = None,
        fonts: FontPair | None = None,
    ) -> None:
        super().__init__(db)
        self.asset_fetcher = asset_fetcher or AssetFetcher()
        self.fonts = fonts

    def render_bundle(self, bundle: InvoiceBundle, language: InvoiceLanguage | str | None = None) -> RenderedDocument:
        resolved = resolve_language(language or bundle.invoice.language)
        assets = self.asset_fetcher.fetch_sender_assets(bundle.sender)
        content = render_invoice_pdf(
            bundle.invoice,
            bundle.sender,
            bundle.recipient,
            bundle.case,
            language=resolved,
            assets=assets,
            fonts=self.fonts,
        )
        logger.info(
            "invoice.pdf.rendered",
            extra={
                "event": "invoice.pdf.rendered",
                "invoice_id": bundle.invoice.id,
                "language": resolved.value,
                "size_bytes": len(content),
            },
        )
        return RenderedDocument(
            content=content,
            filename=document_filename(bundle.invoice.invoice_number, resolved),
            language=resolved,
        )

    def render(self, invoice_id: int, language: InvoiceLanguage | str | None = None) -> RenderedDocument:
        bundle = InvoiceService(self.db).load_bundle(invoice_id)
        document = self.render_bundle(bundle, language)
        bundle.invoice.pdf_generated_at = utcnow()
        self.commit()
        return document
