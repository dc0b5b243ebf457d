"""Case, case action and case document model module."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medassist.models.base import AuditMixin, Base, utcnow
from medassist.models.enums import CaseDocumentType, CurrencyCode, enum_values


def _currency() -> Enum:
    return Enum(CurrencyCode, values_callable=enum_values, native_enum=False, length=3)


class Case(Base, AuditMixin):
    __tablename__ = "cases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    case_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(String(30), default="in_progress", nullable=False)
    patient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    patient_id: Mapped[str | None] = mapped_column(String(64))
    opened_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    actions = relationship("CaseAction", back_populates="case", order_by="CaseAction.sort_order")
    documents = relationship("CaseDocument", back_populates="case")


class CaseAction(Base):
    __tablename__ = "case_actions"
    __table_args__ = (Index("idx_case_actions_case_executor", "case_id", "executor_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    case_id: Mapped[int] = mapped_column(ForeignKey("cases.id", ondelete="CASCADE"), nullable=False)
    executor_id: Mapped[int | None] = mapped_column(ForeignKey("partners.id", ondelete="SET NULL"))
    service_name: Mapped[str] = mapped_column(String(255), nullable=False)
    service_description: Mapped[str | None] = mapped_column(Text)
    service_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    service_currency: Mapped[CurrencyCode] = mapped_column(_currency(), default=CurrencyCode.GEL, nullable=False)
    assistance_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    assistance_currency: Mapped[CurrencyCode] = mapped_column(_currency(), default=CurrencyCode.EUR, nullable=False)
    commission_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    commission_currency: Mapped[CurrencyCode] = mapped_column(_currency(), default=CurrencyCode.EUR, nullable=False)
    service_date: Mapped[date | None] = mapped_column(Date)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    case = relationship("Case", back_populates="actions")
    executor = relationship("Partner")


class CaseDocument(Base):
    __tablename__ = "case_documents"
    __table_args__ = (Index("idx_case_documents_case_type", "case_id", "type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    case_id: Mapped[int] = mapped_column(ForeignKey("cases.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[CaseDocumentType] = mapped_column(
        Enum(CaseDocumentType, values_callable=enum_values, native_enum=False, length=20), nullable=False
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str | None] = mapped_column(String(1000))
    mime_type: Mapped[str | None] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    case = relationship("Case", back_populates="documents")
