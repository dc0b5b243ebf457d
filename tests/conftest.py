from __future__ import annotations

import base64
from dataclasses import dataclass
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from medassist.models import Base, Case, CaseAction, OurCompany, Partner
from medassist.models.enums import CurrencyCode

# 1x1 transparent PNG.
PNG_PIXEL = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


@dataclass
class Seed:
    sender: OurCompany
    recipient: Partner
    other_partner: Partner
    case: Case


def _seed(session) -> Seed:
    sender = OurCompany(
        name="MedAssist Georgia",
        legal_name="MedAssist Georgia LLC",
        id_code="405123456",
        country="Georgia",
        city="Tbilisi",
        address="12 Rustaveli Ave",
        email="billing@medassist.ge",
        phone="+995 32 200 00 00",
        bank_name="Bank of Georgia",
        bank_code="BAGAGE22",
        account_gel="GE00BG0000000000000001",
        account_usd="GE00BG0000000000000002",
        account_eur="GE00BG0000000000000003",
        invoice_prefix="MAG",
        is_default=True,
    )
    recipient = Partner(
        name="Allianz Care",
        legal_name="Allianz Care Ltd",
        id_code="IE998877",
        country="Ireland",
        city="Dublin",
        address="15 Grand Canal St",
        email="claims@allianz.example",
    )
    other_partner = Partner(name="Tbilisi Clinic", email="clinic@example.ge")
    session.add_all([sender, recipient, other_partner])
    session.flush()

    case = Case(case_number="CASE-2026-0042", patient_name="John Smith", patient_id="P-1001")
    case.actions = [
        CaseAction(
            executor_id=recipient.id,
            service_name="Hospitalization",
            service_description="3 nights",
            commission_cost=Decimal("50.00"),
            commission_currency=CurrencyCode.EUR,
            sort_order=0,
        ),
        CaseAction(
            executor_id=recipient.id,
            service_name="Ambulance transfer",
            commission_cost=Decimal("25.50"),
            commission_currency=CurrencyCode.EUR,
            sort_order=1,
        ),
        CaseAction(
            executor_id=other_partner.id,
            service_name="Consultation",
            commission_cost=Decimal("80.00"),
            commission_currency=CurrencyCode.GEL,
            sort_order=2,
        ),
    ]
    session.add(case)
    session.commit()
    return Seed(sender=sender, recipient=recipient, other_partner=other_partner, case=case)


@pytest.fixture
def db_session():
    engine = create_engine("sqlite:///:memory:")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def file_session_factory(tmp_path):
    """Session factory over a file database shared by several threads."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'medassist_test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    engine.dispose()


@pytest.fixture
def seed_parties():
    return _seed


@pytest.fixture
def seeded(db_session) -> Seed:
    return _seed(db_session)


@pytest.fixture
def png_pixel() -> bytes:
    return PNG_PIXEL
