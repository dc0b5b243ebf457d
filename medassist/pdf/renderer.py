"""Draw an invoice layout onto a reportlab canvas and return the PDF bytes."""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Any
from urllib.parse import quote

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from medassist.core.exceptions import MedAssistException, MissingEntityError, RenderFailure
from medassist.models.enums import InvoiceLanguage
from medassist.pdf.fonts import BUILTIN_FONTS, FontPair, get_document_fonts
from medassist.pdf.layout import (
    ImageBlock,
    InvoiceAssets,
    InvoiceLayout,
    LineBlock,
    RectBlock,
    TextBlock,
    build_invoice_layout,
)
from medassist.pdf.translations import label, resolve_language
from medassist.utils.validators import sanitize_filename_component

logger = logging.getLogger(__name__)

PDF_CREATOR = "MedAssist Invoicing"


def document_filename(invoice_number: str | None, language: InvoiceLanguage | str | None) -> str:
    """``<localized prefix>-<sanitized number>.pdf``."""
    prefix = label(language, "filename_prefix")
    return f"{prefix}-{sanitize_filename_component(invoice_number or '')}.pdf"


def content_disposition(filename: str, inline: bool = True) -> str:
    """Header value carrying both an ASCII-safe and an RFC 5987 encoded name."""
    disposition = "inline" if inline else "attachment"
    ascii_name = filename.encode("ascii", "replace").decode("ascii").replace('"', "")
    return f"{disposition}; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _draw_text(pdf: canvas.Canvas, block: TextBlock, fonts: FontPair, page_height: float) -> None:
    if not block.text:
        return
    pdf.setFont(fonts.bold if block.bold else fonts.regular, block.size)
    pdf.setFillColor(HexColor(block.color))
    y = page_height - block.y
    if block.align == "right":
        pdf.drawRightString(block.x, y, block.text)
    elif block.align == "center":
        pdf.drawCentredString(block.x, y, block.text)
    else:
        pdf.drawString(block.x, y, block.text)


def _draw_rect(pdf: canvas.Canvas, block: RectBlock, page_height: float) -> None:
    fill = 1 if block.fill else 0
    stroke = 1 if block.stroke else 0
    if block.fill:
        pdf.setFillColor(HexColor(block.fill))
    if block.stroke:
        pdf.setStrokeColor(HexColor(block.stroke))
        pdf.setLineWidth(block.stroke_width)
    bottom = page_height - block.y - block.height
    if block.radius and block.radius * 2 >= min(block.width, block.height):
        pdf.circle(block.x + block.width / 2, bottom + block.height / 2, block.width / 2, stroke=stroke, fill=fill)
    elif block.radius:
        pdf.roundRect(block.x, bottom, block.width, block.height, block.radius, stroke=stroke, fill=fill)
    else:
        pdf.rect(block.x, bottom, block.width, block.height, stroke=stroke, fill=fill)


def _draw_line(pdf: canvas.Canvas, block: LineBlock, page_height: float) -> None:
    pdf.setStrokeColor(HexColor(block.color))
    pdf.setLineWidth(block.width)
    pdf.line(block.x1, page_height - block.y1, block.x2, page_height - block.y2)


def _draw_image(pdf: canvas.Canvas, block: ImageBlock, page_height: float) -> None:
    try:
        pdf.drawImage(
            ImageReader(BytesIO(block.data)),
            block.x,
            page_height - block.y - block.height,
            width=block.width,
            height=block.height,
            preserveAspectRatio=True,
            anchor="c",
            mask="auto",
        )
    except Exception as exc:
        # Unreadable artwork leaves the slot empty rather than failing the document.
        logger.warning(
            "invoice.pdf.image_skipped",
            extra={"event": "invoice.pdf.image_skipped", "region": block.region, "error": str(exc)},
        )


def draw_layout(layout: InvoiceLayout) -> bytes:
    buffer = BytesIO()
    # invariant=1 pins the document id and timestamps so identical input gives identical bytes.
    pdf = canvas.Canvas(buffer, pagesize=(layout.width, layout.height), invariant=1)
    pdf.setTitle(layout.title)
    pdf.setAuthor(layout.author)
    pdf.setCreator(PDF_CREATOR)

    for page in range(layout.page_count):
        for block in layout.blocks_on(page):
            if isinstance(block, TextBlock):
                _draw_text(pdf, block, layout.fonts, layout.height)
            elif isinstance(block, RectBlock):
                _draw_rect(pdf, block, layout.height)
            elif isinstance(block, LineBlock):
                _draw_line(pdf, block, layout.height)
            elif isinstance(block, ImageBlock):
                _draw_image(pdf, block, layout.height)
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def render_invoice_pdf(
    invoice: Any,
    sender: Any,
    recipient: Any,
    case: Any,
    language: InvoiceLanguage | str | None = None,
    assets: InvoiceAssets | None = None,
    fonts: FontPair | None = None,
) -> bytes:
    """Render an A4 invoice, one page unless the item table needs more.

    Missing optional fields print as empty text, missing images print as
    placeholders. Only an absent invoice, sender, recipient or case is an error.
    """
    for entity, value in (("Invoice", invoice), ("Sender company", sender), ("Recipient", recipient), ("Case", case)):
        if value is None:
            raise MissingEntityError(entity)

    try:
        fonts = fonts or get_document_fonts()
        resolved = resolve_language(language or invoice.language)
        if resolved == InvoiceLanguage.KA and fonts == BUILTIN_FONTS:
            logger.warning(
                "invoice.pdf.missing_glyphs",
                extra={
                    "event": "invoice.pdf.missing_glyphs",
                    "invoice_number": getattr(invoice, "invoice_number", None),
                    "language": resolved.value,
                    "font": fonts.regular,
                },
            )
        layout = build_invoice_layout(invoice, sender, recipient, case, language=resolved, assets=assets, fonts=fonts)
        return draw_layout(layout)
    except MedAssistException:
        raise
    except Exception as exc:
        logger.exception(
            "invoice.pdf.render_failed",
            extra={"event": "invoice.pdf.render_failed", "invoice_number": getattr(invoice, "invoice_number", None)},
        )
        raise RenderFailure(f"Failed to render invoice PDF: {exc}") from exc
