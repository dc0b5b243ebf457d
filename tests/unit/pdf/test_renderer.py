from __future__ import annotations

import logging
import re

import pytest

from medassist.core.exceptions import MissingEntityError
from medassist.models.enums import InvoiceLanguage
from medassist.pdf.fonts import BUILTIN_FONTS
from medassist.pdf.layout import InvoiceAssets, build_invoice_layout
from medassist.pdf.renderer import content_disposition, document_filename, render_invoice_pdf
from medassist.services.invoice_service import InvoiceService, LineItemData


@pytest.fixture
def invoice(db_session, seeded):
    return InvoiceService(db=db_session).create_invoice(
        case_id=seeded.case.id,
        sender_id=seeded.sender.id,
        recipient_id=seeded.recipient.id,
        line_items=[
            LineItemData(description="Hospitalization - 3 nights", quantity=2, unit_price="50.00"),
            LineItemData(description="Ambulance transfer", quantity=1, unit_price="25.50"),
        ],
        franchise_amount="10.00",
    )


def _render(invoice, seeded, **kwargs):
    kwargs.setdefault("fonts", BUILTIN_FONTS)
    return render_invoice_pdf(invoice, seeded.sender, seeded.recipient, seeded.case, **kwargs)


def test_renders_a_pdf_document(invoice, seeded):
    content = _render(invoice, seeded)
    assert content.startswith(b"%PDF")
    assert content.rstrip().endswith(b"%%EOF")


def test_identical_input_gives_identical_bytes(invoice, seeded, png_pixel):
    assets = InvoiceAssets(logo=png_pixel, stamp=png_pixel)
    assert _render(invoice, seeded, assets=assets) == _render(invoice, seeded, assets=assets)


def test_language_changes_the_document(invoice, seeded):
    assert _render(invoice, seeded, language=InvoiceLanguage.EN) != _render(invoice, seeded, language=InvoiceLanguage.KA)


def test_unreadable_image_is_skipped(invoice, seeded, caplog):
    with caplog.at_level(logging.WARNING, logger="medassist.pdf.renderer"):
        content = _render(invoice, seeded, assets=InvoiceAssets(logo=b"definitely not an image"))
    assert content.startswith(b"%PDF")
    assert any(record.getMessage() == "invoice.pdf.image_skipped" for record in caplog.records)


def test_missing_optional_fields_still_render(invoice, seeded):
    seeded.recipient.legal_name = None
    seeded.recipient.address = None
    seeded.case.patient_id = None
    seeded.sender.bank_name = None
    seeded.sender.account_eur = None
    assert _render(invoice, seeded).startswith(b"%PDF")


@pytest.mark.parametrize("missing", ["invoice", "sender", "recipient", "case"])
def test_missing_entity_is_rejected(invoice, seeded, missing):
    entities = {"invoice": invoice, "sender": seeded.sender, "recipient": seeded.recipient, "case": seeded.case}
    entities[missing] = None
    with pytest.raises(MissingEntityError):
        render_invoice_pdf(**entities, fonts=BUILTIN_FONTS)


def test_document_filename_is_localized_and_sanitized():
    assert document_filename("MAG-202603-0001", InvoiceLanguage.EN) == "Invoice-MAG-202603-0001.pdf"
    assert document_filename("MAG-202603-0001", "ka") == "ინვოისი-MAG-202603-0001.pdf"
    assert document_filename("A/B 7", "en") == "Invoice-A_B_7.pdf"


def test_content_disposition_carries_encoded_name():
    header = content_disposition("ინვოისი-MAG-1.pdf")
    assert header.startswith('inline; filename="')
    assert "filename*=UTF-8''%E1%83%98" in header
    assert content_disposition("Invoice-MAG-1.pdf", inline=False) == (
        "attachment; filename=\"Invoice-MAG-1.pdf\"; filename*=UTF-8''Invoice-MAG-1.pdf"
    )


def test_long_invoice_renders_every_page(db_session, seeded):
    invoice = InvoiceService(db=db_session).create_invoice(
        case_id=seeded.case.id,
        sender_id=seeded.sender.id,
        recipient_id=seeded.recipient.id,
        line_items=[LineItemData(description=f"Service {n}", quantity=1, unit_price="10.00") for n in range(1, 41)],
    )
    layout = build_invoice_layout(invoice, seeded.sender, seeded.recipient, seeded.case)
    content = _render(invoice, seeded)

    assert layout.page_count >= 2
    assert len(re.findall(rb"/Type /Page\b", content)) == layout.page_count


def test_georgian_with_builtin_fonts_logs_missing_glyphs(invoice, seeded, caplog):
    with caplog.at_level(logging.WARNING, logger="medassist.pdf.renderer"):
        _render(invoice, seeded, language=InvoiceLanguage.EN)
        assert not any(record.getMessage() == "invoice.pdf.missing_glyphs" for record in caplog.records)
        content = _render(invoice, seeded, language=InvoiceLanguage.KA)

    assert content.startswith(b"%PDF")
    warnings = [record for record in caplog.records if record.getMessage() == "invoice.pdf.missing_glyphs"]
    assert len(warnings) == 1
    assert warnings[0].language == "ka"
