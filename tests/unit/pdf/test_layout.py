from __future__ import annotations

import pytest

from medassist.models.enums import CurrencyCode, InvoiceLanguage
from medassist.pdf.layout import (
    CONTENT_BOTTOM,
    PAGE_HEIGHT,
    ImageBlock,
    InvoiceAssets,
    LineBlock,
    RectBlock,
    bank_account_for,
    build_invoice_layout,
    sender_initials,
)
from medassist.services.invoice_service import InvoiceService, LineItemData

ITEMS = [
    LineItemData(description="Hospitalization - 3 nights", quantity=2, unit_price="50.00"),
    LineItemData(description="Ambulance transfer", quantity=1, unit_price="25.50"),
]


def _layout(db_session, seeded, franchise="10.00", **kwargs):
    invoice = InvoiceService(db=db_session).create_invoice(
        case_id=seeded.case.id,
        sender_id=seeded.sender.id,
        recipient_id=seeded.recipient.id,
        line_items=ITEMS,
        franchise_amount=franchise,
    )
    return invoice, build_invoice_layout(invoice, seeded.sender, seeded.recipient, seeded.case, **kwargs)


def test_regions_follow_document_order(db_session, seeded):
    _invoice, layout = _layout(db_session, seeded)
    assert layout.regions() == [
        "accent",
        "sender",
        "invoice_info",
        "parties",
        "line_items",
        "franchise_row",
        "totals",
        "bank_details",
        "signatures",
        "footer",
    ]


def test_franchise_row_only_when_positive(db_session, seeded):
    _invoice, layout = _layout(db_session, seeded, franchise="0")
    assert "franchise_row" not in layout.regions()
    assert not any(text.startswith("Franchise") for text in layout.texts("totals"))


def test_totals_print_amounts_with_currency_code(db_session, seeded):
    _invoice, layout = _layout(db_session, seeded)
    totals = layout.texts("totals")
    assert "125.50 EUR" in totals
    assert "-10.00 EUR" in totals
    assert "115.50 EUR" in totals
    assert "-10.00 EUR" in layout.texts("franchise_row")


def test_line_items_are_numbered_and_totalled(db_session, seeded):
    _invoice, layout = _layout(db_session, seeded)
    texts = layout.texts("line_items")
    assert "01" in texts and "02" in texts
    assert "100.00 EUR" in texts
    assert "Ambulance transfer" in texts


def test_only_invoice_currency_account_is_printed(db_session, seeded):
    _invoice, layout = _layout(db_session, seeded)
    texts = layout.texts("bank_details")
    assert "GE00BG0000000000000003" in texts
    assert "GE00BG0000000000000001" not in texts
    assert "Account (EUR)" in texts
    assert bank_account_for(seeded.sender, CurrencyCode.GEL) == "GE00BG0000000000000001"


def test_placeholders_when_no_images(db_session, seeded):
    _invoice, layout = _layout(db_session, seeded)
    assert layout.images() == []
    assert "MG" in layout.texts("sender")
    assert "Company Seal" in layout.texts("signatures")


def test_images_replace_placeholders(db_session, seeded, png_pixel):
    assets = InvoiceAssets(logo=png_pixel, signature=png_pixel, stamp=png_pixel)
    _invoice, layout = _layout(db_session, seeded, assets=assets)
    assert [image.region for image in layout.images()] == ["sender", "signatures", "signatures"]
    assert "MG" not in layout.texts("sender")
    assert "Company Seal" not in layout.texts("signatures")


def test_georgian_labels_and_dates(db_session, seeded):
    invoice, layout = _layout(db_session, seeded, language=InvoiceLanguage.KA)
    info = layout.texts("invoice_info")
    assert info[0] == "ინვოისი"
    assert info[2] == f"თარიღი: {invoice.created_at:%d.%m.%Y}"
    assert "SWIFT/BIC" in layout.texts("bank_details")
    assert layout.title == f"ინვოისი {invoice.invoice_number}"


def test_footer_uses_custom_text_then_contact_line(db_session, seeded):
    seeded.sender.invoice_footer_text = "Payment due on receipt"
    _invoice, layout = _layout(db_session, seeded)
    assert layout.texts("footer") == [
        "Payment due on receipt",
        "Thank you for your business",
        "MedAssist Georgia • billing@medassist.ge • +995 32 200 00 00",
    ]


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("MedAssist Georgia", "MG"),
        ("global care network group", "GCN"),
        ("Medassist", "MED"),
        ("", ""),
        (None, ""),
    ],
)
def test_sender_initials(name, expected):
    assert sender_initials(name) == expected


def _bottom(block):
    if isinstance(block, (RectBlock, ImageBlock)):
        return block.y + block.height
    if isinstance(block, LineBlock):
        return max(block.y1, block.y2)
    return block.y


def test_long_item_tables_continue_on_further_pages(db_session, seeded):
    invoice = InvoiceService(db=db_session).create_invoice(
        case_id=seeded.case.id,
        sender_id=seeded.sender.id,
        recipient_id=seeded.recipient.id,
        line_items=[LineItemData(description=f"Service {n}", quantity=1, unit_price="10.00") for n in range(1, 41)],
        franchise_amount="10.00",
    )
    layout = build_invoice_layout(invoice, seeded.sender, seeded.recipient, seeded.case)

    assert layout.page_count >= 2
    assert all(0 <= block.page < layout.page_count for block in layout.blocks)
    assert all(_bottom(block) <= PAGE_HEIGHT for block in layout.blocks)
    assert all(_bottom(block) <= CONTENT_BOTTOM for block in layout.blocks if block.region != "footer")

    texts = layout.texts("line_items")
    assert [f"{n:02d}" for n in range(1, 41)] == [text for text in texts if text.isdigit() and len(text) == 2]

    last_page = layout.page_count - 1
    for region in ("totals", "bank_details", "signatures", "footer"):
        assert {block.page for block in layout.blocks if block.region == region} == {last_page}
    assert "400.00 EUR" in layout.texts("totals")
    assert "390.00 EUR" in layout.texts("totals")
    assert layout.texts("page_header")[0] == f"INVOICE #{invoice.invoice_number}"


def test_short_invoice_stays_on_one_page(db_session, seeded):
    _invoice, layout = _layout(db_session, seeded)
    assert layout.page_count == 1
    assert "page_header" not in layout.regions()


def test_missing_quantity_prints_zero_and_matches_totals(db_session, seeded):
    invoice = InvoiceService(db=db_session).create_invoice(
        case_id=seeded.case.id,
        sender_id=seeded.sender.id,
        recipient_id=seeded.recipient.id,
        line_items=ITEMS,
        franchise_amount="10.00",
    )
    invoice.line_items[0].quantity = None
    layout = build_invoice_layout(invoice, seeded.sender, seeded.recipient, seeded.case)

    rows = layout.texts("line_items")
    first_row = rows[rows.index("01") :]
    assert first_row[1:5] == ["Hospitalization - 3 nights", "0", "50.00 EUR", "0.00 EUR"]
    totals = layout.texts("totals")
    assert "25.50 EUR" in totals
    assert "15.50 EUR" in totals
