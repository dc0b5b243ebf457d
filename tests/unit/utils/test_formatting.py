from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from medassist.models.enums import CurrencyCode, InvoiceLanguage
from medassist.utils.formatting import format_currency, format_date, format_document_amount, to_money


def test_format_currency_places_symbol_per_currency():
    assert format_currency(Decimal("115.5"), CurrencyCode.EUR) == "€115.50"
    assert format_currency(1234.5, CurrencyCode.USD) == "$1,234.50"
    assert format_currency(Decimal("1234.56"), CurrencyCode.GEL) == "1\u00a0234,56 ₾"


def test_format_currency_none_is_placeholder_dash():
    assert format_currency(None, CurrencyCode.USD) == "-"


def test_format_currency_negative_sign_precedes_symbol():
    assert format_currency(Decimal("-10"), CurrencyCode.EUR) == "-€10.00"
    assert format_currency(Decimal("-10"), CurrencyCode.GEL) == "-10,00 ₾"


def test_document_amount_uses_currency_code_suffix():
    assert format_document_amount(Decimal("115.5"), CurrencyCode.EUR) == "115.50 EUR"
    assert format_document_amount(None, CurrencyCode.GEL) == "0,00 GEL"


def test_to_money_rounds_half_up_and_tolerates_junk():
    assert to_money("2.005") == Decimal("2.01")
    assert to_money(0.1 + 0.2) == Decimal("0.30")
    assert to_money("not a number") == Decimal("0.00")
    assert to_money(None) == Decimal("0.00")


def test_format_date_per_language():
    assert format_date(date(2026, 3, 5), InvoiceLanguage.EN) == "05/03/2026"
    assert format_date(datetime(2026, 3, 5, 14, 30), InvoiceLanguage.KA) == "05.03.2026"
    assert format_date("2026-03-05T10:00:00Z", "en") == "05/03/2026"
    assert format_date(None) == "-"
    assert format_date("garbage") == "-"
