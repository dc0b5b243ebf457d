"""Locale-aware money and date formatting for screens, emails and documents."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from medassist.models.enums import CurrencyCode, InvoiceLanguage

CENT = Decimal("0.01")
PLACEHOLDER = "-"


@dataclass(frozen=True)
class CurrencyFormat:
    symbol: str
    symbol_before: bool
    group_separator: str
    decimal_separator: str


# Separators follow each currency's canonical locale: ka-GE, en-US, en-IE.
CURRENCY_FORMATS: dict[CurrencyCode, CurrencyFormat] = {
    CurrencyCode.GEL: CurrencyFormat(symbol="₾", symbol_before=False, group_separator="\u00a0", decimal_separator=","),
    CurrencyCode.USD: CurrencyFormat(symbol="$", symbol_before=True, group_separator=",", decimal_separator="."),
    CurrencyCode.EUR: CurrencyFormat(symbol="€", symbol_before=True, group_separator=",", decimal_separator="."),
}


def to_money(value: Decimal | int | float | str | None) -> Decimal:
    """Coerce a numeric value to a two-place Decimal; None and junk become zero."""
    if value is None:
        return Decimal("0.00")
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return Decimal("0.00")


def format_number(amount: Decimal | int | float | str, currency: CurrencyCode | str) -> str:
    """Format an amount with exactly two decimals using the currency's separators."""
    fmt = CURRENCY_FORMATS[CurrencyCode(currency)]
    value = to_money(amount)
    grouped = f"{abs(value):,.2f}"
    integer_part, fraction = grouped.split(".")
    formatted = f"{integer_part.replace(',', fmt.group_separator)}{fmt.decimal_separator}{fraction}"
    return f"-{formatted}" if value < 0 else formatted


def format_currency(amount: Decimal | int | float | str | None, currency: CurrencyCode | str = CurrencyCode.EUR) -> str:
    """On-screen display: symbol before for USD/EUR, after for GEL; None renders as a dash."""
    if amount is None:
        return PLACEHOLDER
    fmt = CURRENCY_FORMATS[CurrencyCode(currency)]
    number = format_number(amount, currency)
    sign = ""
    if number.startswith("-"):
        sign, number = "-", number[1:]
    if fmt.symbol_before:
        return f"{sign}{fmt.symbol}{number}"
    return f"{sign}{number} {fmt.symbol}"


def format_document_amount(amount: Decimal | int | float | str | None, currency: CurrencyCode | str) -> str:
    """Printed documents use the literal currency code as a suffix instead of a symbol."""
    code = CurrencyCode(currency)
    return f"{format_number(to_money(amount), code)} {code.value}"


def format_date(value: date | datetime | str | None, language: InvoiceLanguage | str = InvoiceLanguage.EN) -> str:
    """dd/mm/yyyy for English, dd.mm.yyyy for Georgian."""
    if value is None or value == "":
        return PLACEHOLDER
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return PLACEHOLDER
    if InvoiceLanguage(language) == InvoiceLanguage.KA:
        return value.strftime("%d.%m.%Y")
    return value.strftime("%d/%m/%Y")
