"""Invoice and invoice line item model module."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medassist.models.base import AuditMixin, Base, utcnow
from medassist.models.enums import CurrencyCode, InvoiceLanguage, InvoiceStatus, enum_values


class Invoice(Base, AuditMixin):
    __tablename__ = "invoices"
    __table_args__ = (
        Index("idx_invoices_status", "status"),
        Index("idx_invoices_case", "case_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    invoice_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        Enum(InvoiceStatus, values_callable=enum_values, native_enum=False, length=20),
        default=InvoiceStatus.DRAFT,
        nullable=False,
    )
    case_id: Mapped[int] = mapped_column(ForeignKey("cases.id", ondelete="RESTRICT"), nullable=False)
    sender_id: Mapped[int] = mapped_column(ForeignKey("our_companies.id", ondelete="RESTRICT"), nullable=False)
    recipient_id: Mapped[int] = mapped_column(ForeignKey("partners.id", ondelete="RESTRICT"), nullable=False)
    recipient_email: Mapped[str | None] = mapped_column(String(320))
    cc_emails: Mapped[list[str] | None] = mapped_column(JSON)
    language: Mapped[InvoiceLanguage] = mapped_column(
        Enum(InvoiceLanguage, values_callable=enum_values, native_enum=False, length=2),
        default=InvoiceLanguage.EN,
        nullable=False,
    )
    currency: Mapped[CurrencyCode] = mapped_column(
        Enum(CurrencyCode, values_callable=enum_values, native_enum=False, length=3),
        default=CurrencyCode.EUR,
        nullable=False,
    )
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    franchise_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    email_subject: Mapped[str | None] = mapped_column(String(500))
    email_body: Mapped[str | None] = mapped_column(Text)
    attach_patient_docs: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    attach_original_docs: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    attach_medical_docs: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    payment_reference: Mapped[str | None] = mapped_column(String(100))
    send_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    pdf_generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    case = relationship("Case")
    sender = relationship("OurCompany")
    recipient = relationship("Partner")
    line_items = relationship(
        "InvoiceLineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineItem.sort_order",
    )
    sends = relationship(
        "SendEvent",
        back_populates="invoice",
        order_by="SendEvent.id",
    )


class InvoiceLineItem(Base):
    __tablename__ = "invoice_line_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    invoice_id: Mapped[int] = mapped_column(ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    invoice = relationship("Invoice", back_populates="line_items")
