"""Language-specific default subject and body for invoice emails."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from medassist.models.enums import CurrencyCode, InvoiceLanguage
from medassist.pdf.layout import bank_account_for
from medassist.pdf.translations import resolve_language
from medassist.services.totals import compute_totals
from medassist.utils.formatting import format_currency, format_date, to_money

EN_SUBJECT = "Invoice {invoice_number} for Case {case_number}"
EN_BODY = """Dear Partner,

Please find attached the invoice {invoice_number} for the medical assistance services provided.

Case Details:
- Case Number: {case_number}
- Patient: {patient_name}
- Service Date: {invoice_date}

Invoice Summary:
- Subtotal: {subtotal}
- Franchise: {franchise}
- Total Due: {total}

Payment Details:
Bank: {bank_name}
SWIFT: {bank_code}
IBAN: {iban}

Please process this invoice within 30 days of receipt.

If you have any questions regarding this invoice, please don't hesitate to contact us.

Best regards,
{sender_name}
{company_name}
{company_email}
{company_phone}"""

KA_SUBJECT = "ინვოისი {invoice_number} ქეისის {case_number} თაობაზე"
KA_BODY = """პატივცემულო პარტნიორო,

გთხოვთ იხილოთ თანდართული ინვოისი {invoice_number} გაწეული სამედიცინო დახმარების მომსახურებისთვის.

ქეისის დეტალები:
- ქეისის ნომერი: {case_number}
- პაციენტი: {patient_name}
- მომსახურების თარიღი: {invoice_date}

ინვოისის შეჯამება:
- ჯამი: {subtotal}
- ფრანშიზა: {franchise}
- გადასახდელი: {total}

გადახდის რეკვიზიტები:
ბანკი: {bank_name}
SWIFT: {bank_code}
IBAN: {iban}

გთხოვთ დაამუშავოთ ეს ინვოისი მიღებიდან 30 დღის განმავლობაში.

კითხვების შემთხვევაში, გთხოვთ დაგვიკავშირდეთ.

პატივისცემით,
{sender_name}
{company_name}
{company_email}
{company_phone}"""

TEMPLATES: dict[InvoiceLanguage, tuple[str, str]] = {
    InvoiceLanguage.EN: (EN_SUBJECT, EN_BODY),
    InvoiceLanguage.KA: (KA_SUBJECT, KA_BODY),
}


@dataclass(frozen=True)
class EmailContent:
    subject: str
    body: str


def build_template_variables(invoice: Any, sender: Any, case: Any, language: InvoiceLanguage | str) -> dict[str, str]:
    currency = CurrencyCode(invoice.currency or CurrencyCode.EUR)
    franchise = to_money(invoice.franchise_amount)
    totals = compute_totals(invoice.line_items or [], franchise)
    return {
        "invoice_number": invoice.invoice_number or "",
        "case_number": getattr(case, "case_number", None) or "",
        "patient_name": getattr(case, "patient_name", None) or "",
        "invoice_date": format_date(invoice.created_at, language),
        "subtotal": format_currency(totals.subtotal, currency),
        "franchise": format_currency(franchise, currency) if franchise > 0 else "-",
        "total": format_currency(totals.total, currency),
        "bank_name": sender.bank_name or "",
        "bank_code": sender.bank_code or "",
        "iban": bank_account_for(sender, currency),
        "sender_name": sender.name or "",
        "company_name": sender.legal_name or sender.name or "",
        "company_email": sender.email or "",
        "company_phone": sender.phone or "",
    }


def default_email_content(
    invoice: Any,
    sender: Any,
    case: Any,
    language: InvoiceLanguage | str | None = None,
) -> EmailContent:
    """Render the default subject/body for ``language`` (invoice language if omitted)."""
    resolved = resolve_language(language or invoice.language)
    subject_template, body_template = TEMPLATES[resolved]
    variables = build_template_variables(invoice, sender, case, resolved)
    return EmailContent(
        subject=subject_template.format(**variables),
        body=body_template.format(**variables),
    )
