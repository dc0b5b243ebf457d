"""Label tables for printed invoices.

Lookups are total: a key missing from a language's table falls back to the
English label, and an unknown language uses the English table outright.
"""

from __future__ import annotations

from medassist.models.enums import InvoiceLanguage

LABELS: dict[InvoiceLanguage, dict[str, str]] = {
    InvoiceLanguage.EN: {
        "invoice": "INVOICE",
        "date": "Date",
        "case": "Case",
        "bill_to": "Bill To",
        "id_code": "ID",
        "patient": "Patient",
        "patient_id": "Patient ID",
        "service": "Service Description",
        "qty": "Qty",
        "unit_price": "Unit Price",
        "amount": "Amount",
        "subtotal": "Subtotal",
        "franchise": "Franchise (Deductible)",
        "total": "Total Due",
        "bank_details": "Bank Details",
        "bank": "Bank",
        "swift_bic": "SWIFT/BIC",
        "account": "Account",
        "signature": "Authorized Signature",
        "stamp": "Company Seal",
        "thank_you": "Thank you for your business",
        "payment_terms": "Please process this invoice within 30 days of receipt.",
        "filename_prefix": "Invoice",
        "patient_documents": "Patient documents",
        "original_documents": "Original documents",
        "medical_documents": "Medical documents",
    },
    InvoiceLanguage.KA: {
        "invoice": "ინვოისი",
        "date": "თარიღი",
        "case": "ქეისი",
        "bill_to": "ადრესატი",
        "id_code": "საიდ. კოდი",
        "patient": "პაციენტი",
        "patient_id": "პირადი №",
        "service": "სერვისის აღწერა",
        "qty": "რაოდ.",
        "unit_price": "ფასი",
        "amount": "თანხა",
        "subtotal": "ჯამი",
        "franchise": "ფრანშიზა",
        "total": "სულ გადასახდელი",
        "bank_details": "საბანკო რეკვიზიტები",
        "bank": "ბანკი",
        "account": "ანგარიში",
        "signature": "ხელმოწერა",
        "stamp": "ბეჭედი",
        "thank_you": "გმადლობთ თანამშრომლობისთვის",
        "payment_terms": "გთხოვთ დაამუშაოთ ეს ინვოისი მიღებიდან 30 დღის განმავლობაში.",
        "filename_prefix": "ინვოისი",
        # swift_bic and the attachment folder names intentionally reuse English text.
    },
}


def resolve_language(language: InvoiceLanguage | str | None) -> InvoiceLanguage:
    try:
        return InvoiceLanguage(language)
    except ValueError:
        return InvoiceLanguage.EN


def label(language: InvoiceLanguage | str | None, key: str) -> str:
    table = LABELS[resolve_language(language)]
    if key in table:
        return table[key]
    return LABELS[InvoiceLanguage.EN][key]


def labels_for(language: InvoiceLanguage | str | None) -> dict[str, str]:
    """Full label set for a language with English fallbacks applied."""
    merged = dict(LABELS[InvoiceLanguage.EN])
    merged.update(LABELS[resolve_language(language)])
    return merged
