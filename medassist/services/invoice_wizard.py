"""Headless two-step invoice creation wizard.

Step 1 picks the case, recipient and sender; step 2 fills line items, email
defaults and notes; ``submit`` creates the draft invoice.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from medassist.core.exceptions import ValidationError
from medassist.models import Case, CaseAction, Invoice, OurCompany, Partner
from medassist.models.enums import CurrencyCode, InvoiceLanguage
from medassist.services.invoice_service import InvoiceService, LineItemData, validate_amount, validate_line_item
from medassist.services.totals import Totals, compute_totals
from medassist.utils.formatting import to_money

_UNSET: Any = object()


def describe_action(action: CaseAction) -> str:
    if action.service_description:
        return f"{action.service_name} - {action.service_description}"
    return action.service_name


class InvoiceWizard:
    def __init__(self, db: Session | None = None, invoice_service: InvoiceService | None = None) -> None:
        self.invoice_service = invoice_service or InvoiceService(db)
        self.db = self.invoice_service.db

        self.case: Case | None = None
        self.sender: OurCompany | None = None
        self.recipient: Partner | None = None
        self.currency = CurrencyCode.EUR
        self.language = InvoiceLanguage.EN
        self.recipient_email: str | None = None
        self.cc_emails: list[str] = []
        self.line_items: list[LineItemData] = []
        self.franchise_amount = Decimal("0.00")
        self.email_subject: str | None = None
        self.email_body: str | None = None
        self.attach_patient_docs = False
        self.attach_original_docs = False
        self.attach_medical_docs = False
        self.notes: str | None = None

    @property
    def step(self) -> int:
        return 2 if self.parties_selected else 1

    @property
    def parties_selected(self) -> bool:
        return self.case is not None and self.recipient is not None and self.sender is not None

    def default_sender(self) -> OurCompany | None:
        """The only company, or the one flagged as default."""
        companies = (
            self.db.query(OurCompany)
            .filter(OurCompany.deleted_at.is_(None))
            .order_by(OurCompany.id)
            .all()
        )
        if len(companies) == 1:
            return companies[0]
        return next((company for company in companies if company.is_default), None)

    def relevant_actions(self) -> list[CaseAction]:
        if self.case is None or self.recipient is None:
            return []
        return [action for action in self.case.actions if action.executor_id == self.recipient.id]

    def detected_currency(self) -> CurrencyCode:
        actions = self.relevant_actions()
        if not actions:
            return CurrencyCode.EUR
        return CurrencyCode(actions[0].commission_currency or CurrencyCode.EUR)

    def suggested_line_items(self) -> list[LineItemData]:
        return [
            LineItemData(description=describe_action(action), quantity=1, unit_price=to_money(action.commission_cost))
            for action in self.relevant_actions()
        ]

    def select_case_and_parties(self, case_id: int, recipient_id: int, sender_id: int | None = None) -> "InvoiceWizard":
        case = self.invoice_service.require_entity(Case, "Case", case_id)
        recipient = self.invoice_service.require_entity(Partner, "Recipient", recipient_id)
        if sender_id is not None:
            sender = self.invoice_service.require_entity(OurCompany, "Sender company", sender_id)
        else:
            sender = self.default_sender()
            if sender is None:
                raise ValidationError("Select the issuing company", field="sender_id")

        changed = (
            self.case is None
            or self.recipient is None
            or self.case.id != case.id
            or self.recipient.id != recipient.id
        )
        self.case, self.recipient, self.sender = case, recipient, sender
        if changed:
            # Items were suggested for the previous recipient.
            self.line_items = []
            if recipient.email:
                self.recipient_email = recipient.email
            self.currency = self.detected_currency()
        return self

    def fill_details_and_services(
        self,
        line_items: list[LineItemData | dict] | None = None,
        franchise_amount: Decimal | int | float | str | None = None,
        language: InvoiceLanguage | str | None = None,
        currency: CurrencyCode | str | None = None,
        recipient_email: str | None = _UNSET,
        cc_emails: list[str] | None = None,
        email_subject: str | None = None,
        email_body: str | None = None,
        attach_patient_docs: bool | None = None,
        attach_original_docs: bool | None = None,
        attach_medical_docs: bool | None = None,
        notes: str | None = None,
    ) -> "InvoiceWizard":
        if not self.parties_selected:
            raise ValidationError("Select a case, recipient and sender first", field="case_id")

        if line_items is not None:
            self.line_items = [validate_line_item(item) for item in line_items]
        elif not self.line_items:
            self.line_items = self.suggested_line_items()

        if franchise_amount is not None:
            self.franchise_amount = validate_amount(franchise_amount, "franchise_amount")
        if language is not None:
            self.language = language
        if currency is not None:
            self.currency = currency
        if recipient_email is not _UNSET:
            self.recipient_email = recipient_email
        if cc_emails is not None:
            self.cc_emails = list(cc_emails)
        if email_subject is not None:
            self.email_subject = email_subject
        if email_body is not None:
            self.email_body = email_body
        if attach_patient_docs is not None:
            self.attach_patient_docs = attach_patient_docs
        if attach_original_docs is not None:
            self.attach_original_docs = attach_original_docs
        if attach_medical_docs is not None:
            self.attach_medical_docs = attach_medical_docs
        if notes is not None:
            self.notes = notes
        return self

    def totals(self) -> Totals:
        return compute_totals(self.line_items, self.franchise_amount)

    def submit(self) -> Invoice:
        if not self.parties_selected:
            raise ValidationError("Select a case, recipient and sender first", field="case_id")
        if not self.line_items:
            raise ValidationError("At least one line item is required", field="line_items")
        return self.invoice_service.create_invoice(
            case_id=self.case.id,
            sender_id=self.sender.id,
            recipient_id=self.recipient.id,
            line_items=self.line_items,
            currency=self.currency,
            language=self.language,
            franchise_amount=self.franchise_amount,
            recipient_email=self.recipient_email,
            cc_emails=self.cc_emails,
            email_subject=self.email_subject,
            email_body=self.email_body,
            attach_patient_docs=self.attach_patient_docs,
            attach_original_docs=self.attach_original_docs,
            attach_medical_docs=self.attach_medical_docs,
            notes=self.notes,
        )
