"""Backend-neutral layout description of an A4 invoice.

The layout is a flat, ordered tuple of positioned blocks (text, image,
rectangle, line), each tagged with its page. Coordinates are in PDF points with
the origin at the top left corner of the page; text ``y`` is the baseline.
Item tables that outgrow the first page continue on further pages; totals,
bank details and signatures always stay together on the last one. A rendering backend only
has to know how to draw these four primitives.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit

from medassist.models.enums import CurrencyCode, InvoiceLanguage
from medassist.pdf.fonts import BUILTIN_FONTS, FontPair
from medassist.pdf.translations import labels_for, resolve_language
from medassist.services.totals import compute_totals, line_total
from medassist.utils.formatting import format_date, format_document_amount, to_money

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 40.0
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
FOOTER_TOP = PAGE_HEIGHT - MARGIN - 44
# Nothing but the footer is drawn below this line.
CONTENT_BOTTOM = FOOTER_TOP - 12

ACCENT = "#3b82f6"
TEXT = "#111827"
TEXT_BODY = "#374151"
MUTED = "#6b7280"
FAINT = "#9ca3af"
BORDER = "#e5e7eb"
BORDER_LIGHT = "#f3f4f6"
DANGER = "#dc2626"
DANGER_BG = "#fef2f2"
DANGER_BORDER = "#fecaca"
PANEL_BG = "#f9fafb"
STAMP_BORDER = "#93c5fd"
STAMP_BG = "#eff6ff"
WHITE = "#ffffff"


@dataclass(frozen=True)
class InvoiceAssets:
    """Resolved sender images; ``None`` means the placeholder is drawn."""

    logo: bytes | None = None
    signature: bytes | None = None
    stamp: bytes | None = None


@dataclass(frozen=True)
class TextBlock:
    x: float
    y: float
    text: str
    size: float = 10
    bold: bool = False
    color: str = TEXT
    align: str = "left"
    region: str = ""
    page: int = 0


@dataclass(frozen=True)
class ImageBlock:
    x: float
    y: float
    width: float
    height: float
    data: bytes = field(repr=False)
    region: str = ""
    page: int = 0


@dataclass(frozen=True)
class RectBlock:
    x: float
    y: float
    width: float
    height: float
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float = 1.0
    radius: float = 0.0
    region: str = ""
    page: int = 0


@dataclass(frozen=True)
class LineBlock:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str = BORDER
    width: float = 1.0
    region: str = ""
    page: int = 0


Block = TextBlock | ImageBlock | RectBlock | LineBlock


@dataclass(frozen=True)
class InvoiceLayout:
    width: float
    height: float
    title: str
    author: str
    fonts: FontPair
    blocks: tuple[Block, ...]
    page_count: int = 1

    def blocks_on(self, page: int) -> list[Block]:
        return [block for block in self.blocks if block.page == page]

    def regions(self) -> list[str]:
        seen: list[str] = []
        for block in self.blocks:
            if block.region and block.region not in seen:
                seen.append(block.region)
        return seen

    def texts(self, region: str | None = None) -> list[str]:
        return [
            block.text
            for block in self.blocks
            if isinstance(block, TextBlock) and (region is None or block.region == region)
        ]

    def images(self, region: str | None = None) -> list[ImageBlock]:
        return [
            block
            for block in self.blocks
            if isinstance(block, ImageBlock) and (region is None or block.region == region)
        ]


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def sender_initials(name: str | None) -> str:
    """Up to three initials from the company name for the logo placeholder."""
    words = [word for word in _text(name).split() if word[:1].isalnum()]
    if len(words) >= 2:
        return "".join(word[0] for word in words[:3]).upper()
    if words:
        return words[0][:3].upper()
    return ""


def bank_account_for(sender: Any, currency: CurrencyCode | str) -> str:
    """Exactly one account is printed: the one matching the invoice currency."""
    accounts = {
        CurrencyCode.GEL: sender.account_gel,
        CurrencyCode.USD: sender.account_usd,
        CurrencyCode.EUR: sender.account_eur,
    }
    return _text(accounts[CurrencyCode(currency)])


class _LayoutBuilder:
    def __init__(self, fonts: FontPair, labels: dict[str, str], heading: str = "") -> None:
        self.fonts = fonts
        self.labels = labels
        self.heading = heading
        self.blocks: list[Block] = []
        self.page = 0

    def text(self, x: float, y: float, text: str, region: str, **style: Any) -> None:
        self.blocks.append(TextBlock(x=x, y=y, text=text, region=region, page=self.page, **style))

    def rect(self, x: float, y: float, width: float, height: float, region: str, **style: Any) -> None:
        self.blocks.append(RectBlock(x=x, y=y, width=width, height=height, region=region, page=self.page, **style))

    def line(self, x1: float, y1: float, x2: float, y2: float, region: str, **style: Any) -> None:
        self.blocks.append(LineBlock(x1=x1, y1=y1, x2=x2, y2=y2, region=region, page=self.page, **style))

    def image(self, x: float, y: float, width: float, height: float, data: bytes, region: str) -> None:
        self.blocks.append(ImageBlock(x=x, y=y, width=width, height=height, data=data, region=region, page=self.page))

    def wrap(self, text: str, size: float, width: float, bold: bool = False) -> list[str]:
        font = self.fonts.bold if bold else self.fonts.regular
        return simpleSplit(text, font, size, width) or [""]

    def new_page(self) -> float:
        """Start a continuation page and return the first free y position."""
        self.page += 1
        self.rect(0, 0, PAGE_WIDTH, 6, "accent", fill=ACCENT)
        self.text(PAGE_WIDTH - MARGIN, MARGIN + 10, self.heading, "page_header", size=9, bold=True, color=MUTED, align="right")
        return MARGIN + 20


def _sender_section(b: _LayoutBuilder, sender: Any, logo: bytes | None) -> float:
    region = "sender"
    top = MARGIN + 10
    if logo:
        b.image(MARGIN, top, 100, 40, logo, region)
    else:
        b.rect(MARGIN, top, 100, 40, region, fill=ACCENT, radius=6)
        b.text(MARGIN + 50, top + 26, sender_initials(sender.name), region, size=16, bold=True, color=WHITE, align="center")

    y = top + 40 + 8 + 12
    b.text(MARGIN, y, _text(sender.legal_name) or _text(sender.name), region, size=12, bold=True)
    details = [
        f"{b.labels['id_code']}: {_text(sender.id_code)}",
        _text(sender.address),
        ", ".join(part for part in (_text(sender.city), _text(sender.country)) if part),
        _text(sender.email),
        _text(sender.phone),
    ]
    for detail in details:
        if not detail:
            continue
        y += 12
        b.text(MARGIN, y, detail, region, size=9, color=MUTED)
    return y


def _invoice_info_section(b: _LayoutBuilder, invoice: Any, case: Any, language: InvoiceLanguage) -> float:
    region = "invoice_info"
    right = PAGE_WIDTH - MARGIN
    y = MARGIN + 10 + 24
    b.text(right, y, b.labels["invoice"], region, size=28, bold=True, align="right")
    y += 20
    b.text(right, y, f"#{_text(invoice.invoice_number)}", region, size=14, bold=True, color=ACCENT, align="right")
    y += 16
    b.text(right, y, f"{b.labels['date']}: {format_date(invoice.created_at, language)}", region, size=9, color=MUTED, align="right")
    y += 12
    b.text(right, y, f"{b.labels['case']}: {_text(case.case_number)}", region, size=9, color=MUTED, align="right")
    return y


def _parties_section(b: _LayoutBuilder, recipient: Any, case: Any, top: float) -> float:
    region = "parties"
    column_width = CONTENT_WIDTH / 2

    left_y = top + 8
    b.text(MARGIN, left_y, b.labels["bill_to"].upper(), region, size=8, bold=True, color=FAINT)
    left_y += 16
    b.text(MARGIN, left_y, _text(recipient.legal_name) or _text(recipient.name), region, size=11, bold=True)
    recipient_details = [
        f"{b.labels['id_code']}: {_text(recipient.id_code)}" if _text(recipient.id_code) else "",
        _text(recipient.address),
        ", ".join(part for part in (_text(recipient.city), _text(recipient.country)) if part),
    ]
    for detail in recipient_details:
        if detail:
            left_y += 12
            b.text(MARGIN, left_y, detail, region, size=9, color=MUTED)

    right_x = MARGIN + column_width
    right_y = top + 8
    b.text(right_x, right_y, b.labels["patient"].upper(), region, size=8, bold=True, color=FAINT)
    right_y += 16
    b.text(right_x, right_y, _text(case.patient_name), region, size=11, bold=True)
    if _text(case.patient_id):
        right_y += 12
        b.text(right_x, right_y, f"{b.labels['patient_id']}: {_text(case.patient_id)}", region, size=9, color=MUTED)

    bottom = max(left_y, right_y) + 16
    b.line(MARGIN, bottom, PAGE_WIDTH - MARGIN, bottom, region, color=BORDER_LIGHT)
    return bottom


# (label key, share of content width, alignment)
_COLUMNS = (
    ("#", 0.08, "left"),
    ("service", 0.52, "left"),
    ("qty", 0.10, "center"),
    ("unit_price", 0.15, "right"),
    ("amount", 0.15, "right"),
)


def _column_anchors() -> list[tuple[float, float, str]]:
    anchors = []
    x = MARGIN
    for _key, share, align in _COLUMNS:
        width = CONTENT_WIDTH * share
        if align == "left":
            anchor = x
        elif align == "center":
            anchor = x + width / 2
        else:
            anchor = x + width
        anchors.append((anchor, width, align))
        x += width
    return anchors


def _item_table_header(b: _LayoutBuilder, anchors: list[tuple[float, float, str]], top: float) -> float:
    y = top + 24
    for (key, _share, _align), (anchor, _width, align) in zip(_COLUMNS, anchors):
        header = key if key == "#" else b.labels[key].upper()
        b.text(anchor, y, header, "line_items", size=8, bold=True, color=FAINT, align=align)
    y += 8
    b.line(MARGIN, y, PAGE_WIDTH - MARGIN, y, "line_items", color=BORDER, width=2)
    return y


def _line_items_section(
    b: _LayoutBuilder,
    line_items: list[Any],
    franchise: Any,
    currency: CurrencyCode,
    top: float,
) -> float:
    region = "line_items"
    anchors = _column_anchors()
    y = _item_table_header(b, anchors, top)

    for index, item in enumerate(line_items, start=1):
        quantity = item.quantity or 0
        description_lines = b.wrap(_text(item.description), 10, anchors[1][1] - 6)
        if y + 16 + 12 * len(description_lines) > CONTENT_BOTTOM:
            y = _item_table_header(b, anchors, b.new_page())
        row_top = y
        baseline = row_top + 8 + 10
        b.text(anchors[0][0], baseline, f"{index:02d}", region, color=TEXT_BODY)
        for offset, line in enumerate(description_lines):
            b.text(anchors[1][0], baseline + offset * 12, line, region, color=TEXT_BODY)
        b.text(anchors[2][0], baseline, str(quantity), region, color=TEXT_BODY, align="center")
        b.text(anchors[3][0], baseline, format_document_amount(item.unit_price, currency), region, color=TEXT_BODY, align="right")
        b.text(
            anchors[4][0],
            baseline,
            format_document_amount(line_total(quantity, item.unit_price), currency),
            region,
            bold=True,
            align="right",
        )
        y = row_top + 16 + 12 * len(description_lines)
        b.line(MARGIN, y, PAGE_WIDTH - MARGIN, y, region, color=BORDER_LIGHT)

    franchise_amount = to_money(franchise)
    if franchise_amount > 0:
        if y + 28 > CONTENT_BOTTOM:
            y = _item_table_header(b, anchors, b.new_page())
        row_top = y
        b.rect(MARGIN, row_top, CONTENT_WIDTH, 28, "franchise_row", fill=DANGER_BG)
        baseline = row_top + 18
        b.text(anchors[1][0], baseline, b.labels["franchise"], "franchise_row", bold=True, color=DANGER)
        b.text(
            anchors[4][0],
            baseline,
            f"-{format_document_amount(franchise_amount, currency)}",
            "franchise_row",
            bold=True,
            color=DANGER,
            align="right",
        )
        y = row_top + 28
        b.line(MARGIN, y, PAGE_WIDTH - MARGIN, y, "franchise_row", color=DANGER_BORDER)
    return y


def _totals_section(b: _LayoutBuilder, line_items: list[Any], franchise: Any, currency: CurrencyCode, top: float) -> float:
    region = "totals"
    totals = compute_totals(line_items, franchise)
    franchise_amount = to_money(franchise)
    left = PAGE_WIDTH - MARGIN - 200
    right = PAGE_WIDTH - MARGIN

    y = top + 16 + 14
    b.text(left, y, b.labels["subtotal"], region, color=MUTED)
    b.text(right, y, format_document_amount(totals.subtotal, currency), region, align="right")
    if franchise_amount > 0:
        y += 22
        b.text(left, y, b.labels["franchise"], region, color=MUTED)
        b.text(right, y, f"-{format_document_amount(franchise_amount, currency)}", region, color=DANGER, align="right")
    y += 14
    b.line(left, y, right, y, region, color=TEXT, width=2)
    y += 22
    b.text(left, y, b.labels["total"], region, size=12, bold=True)
    b.text(right, y, format_document_amount(totals.total, currency), region, size=14, bold=True, color=ACCENT, align="right")
    return y + 10


def _bank_section(b: _LayoutBuilder, sender: Any, currency: CurrencyCode, top: float) -> float:
    region = "bank_details"
    box_top = top + 24
    height = 64
    b.rect(MARGIN, box_top, CONTENT_WIDTH, height, region, fill=PANEL_BG, radius=8)
    b.text(MARGIN + 16, box_top + 20, b.labels["bank_details"].upper(), region, size=8, bold=True, color=FAINT)

    column = (CONTENT_WIDTH - 32) / 4
    cells = (
        (0, b.labels["bank"], _text(sender.bank_name)),
        (1, b.labels["swift_bic"], _text(sender.bank_code)),
        (2, f"{b.labels['account']} ({currency.value})", bank_account_for(sender, currency)),
    )
    for position, caption, value in cells:
        x = MARGIN + 16 + column * position
        b.text(x, box_top + 38, caption, region, size=8, color=FAINT)
        b.text(x, box_top + 52, value, region, bold=True)
    return box_top + height


def _signature_section(b: _LayoutBuilder, assets: InvoiceAssets, top: float) -> float:
    region = "signatures"
    stamp_size = 64
    stamp_left = PAGE_WIDTH - MARGIN - stamp_size
    signature_width = 120
    signature_left = stamp_left - 24 - signature_width
    row_top = top + 36

    line_y = row_top + 50
    if assets.signature:
        b.image(signature_left + 10, row_top + 6, 100, 40, assets.signature, region)
    b.line(signature_left, line_y, signature_left + signature_width, line_y, region, color="#d1d5db", width=2)
    b.text(signature_left + signature_width / 2, line_y + 14, b.labels["signature"], region, size=8, color=FAINT, align="center")

    stamp_top = line_y + 20 - stamp_size
    if assets.stamp:
        b.image(stamp_left + 2, stamp_top + 2, 60, 60, assets.stamp, region)
    else:
        b.rect(
            stamp_left,
            stamp_top,
            stamp_size,
            stamp_size,
            region,
            fill=STAMP_BG,
            stroke=STAMP_BORDER,
            stroke_width=2,
            radius=stamp_size / 2,
        )
        b.text(stamp_left + stamp_size / 2, stamp_top + stamp_size / 2 + 3, b.labels["stamp"], region, size=7, color=STAMP_BORDER, align="center")
    return line_y + 20


def _closing_sections(
    b: _LayoutBuilder,
    line_items: list[Any],
    franchise: Any,
    currency: CurrencyCode,
    sender: Any,
    assets: InvoiceAssets,
    top: float,
) -> float:
    y = _totals_section(b, line_items, franchise, currency, top)
    y = _bank_section(b, sender, currency, y)
    return _signature_section(b, assets, y)


def _footer_section(b: _LayoutBuilder, sender: Any) -> None:
    region = "footer"
    top = FOOTER_TOP
    b.line(MARGIN, top, PAGE_WIDTH - MARGIN, top, region, color=BORDER_LIGHT)
    center = PAGE_WIDTH / 2
    b.text(center, top + 14, _text(sender.invoice_footer_text) or b.labels["payment_terms"], region, size=8, color=FAINT, align="center")
    b.text(center, top + 28, b.labels["thank_you"], region, size=9, color=FAINT, align="center")
    contact = " • ".join(part for part in (_text(sender.name), _text(sender.email), _text(sender.phone)) if part)
    if contact:
        b.text(center, top + 40, contact, region, size=8, color=FAINT, align="center")


def build_invoice_layout(
    invoice: Any,
    sender: Any,
    recipient: Any,
    case: Any,
    language: InvoiceLanguage | str | None = None,
    assets: InvoiceAssets | None = None,
    fonts: FontPair = BUILTIN_FONTS,
) -> InvoiceLayout:
    """Lay out the invoice top to bottom: sender and invoice info, parties,
    line items with the franchise row, totals, bank details, signature/stamp
    and footer. Pure function of its inputs."""
    resolved_language = resolve_language(language or invoice.language)
    currency = CurrencyCode(invoice.currency or CurrencyCode.EUR)
    assets = assets or InvoiceAssets()
    line_items = sorted(invoice.line_items or [], key=lambda item: item.sort_order or 0)
    franchise = invoice.franchise_amount

    labels = labels_for(resolved_language)
    b = _LayoutBuilder(fonts, labels, heading=f"{labels['invoice']} #{_text(invoice.invoice_number)}")
    b.rect(0, 0, PAGE_WIDTH, 6, "accent", fill=ACCENT)

    sender_bottom = _sender_section(b, sender, assets.logo)
    info_bottom = _invoice_info_section(b, invoice, case, resolved_language)
    y = _parties_section(b, recipient, case, max(sender_bottom, info_bottom) + 20)
    y = _line_items_section(b, line_items, franchise, currency, y)
    closing_height = _closing_sections(_LayoutBuilder(fonts, labels), line_items, franchise, currency, sender, assets, 0.0)
    if y + closing_height > CONTENT_BOTTOM:
        y = b.new_page()
    _closing_sections(b, line_items, franchise, currency, sender, assets, y)
    _footer_section(b, sender)

    return InvoiceLayout(
        width=PAGE_WIDTH,
        height=PAGE_HEIGHT,
        title=f"{b.labels['filename_prefix']} {_text(invoice.invoice_number)}",
        author=_text(sender.legal_name) or _text(sender.name),
        fonts=fonts,
        blocks=tuple(b.blocks),
        page_count=b.page + 1,
    )
