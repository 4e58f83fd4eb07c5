"""Shared fixtures: a throwaway SQLite ledger database per test."""

import os

# Settings are cached on first use, so point them at SQLite before any
# ledger_core import creates the default engine.
os.environ.setdefault("DATABASE_URL", "sqlite:///./ledger_core_test.db")

from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from ledger_core.core.config import get_settings
from ledger_core.core.logging import configure_logging
from ledger_core.domain.ledger.enums import InvoiceType
from ledger_core.domain.ledger.expense_service import create_expense_category
from ledger_core.domain.ledger.invoice_service import approve_invoice, create_invoice
from ledger_core.domain.ledger.types import InvoiceHeader, LineItem
from ledger_core.models import Base

configure_logging("DEBUG")


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so sessions on other threads see the same data."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=True, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    """Provide database session for tests."""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def other_tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def actor_id() -> UUID:
    return uuid4()


@pytest.fixture
def customer_id() -> UUID:
    return uuid4()


@pytest.fixture
def supplier_id() -> UUID:
    return uuid4()


@pytest.fixture
def revenue_account_id() -> UUID:
    return uuid4()


@pytest.fixture
def travel_category(db: Session, tenant_id: UUID, actor_id: UUID):
    """Active expense category in the test tenant."""
    return create_expense_category(
        db,
        tenant_id,
        name="Travel",
        description="Flights, hotels and ground transport",
        gl_account_id=uuid4(),
        actor_id=actor_id,
    )


def make_header(number: str = "INV-001", invoice_date: date = date(2025, 1, 15), days: int = 30) -> InvoiceHeader:
    return InvoiceHeader(
        invoice_number=number,
        invoice_date=invoice_date,
        due_date=invoice_date + timedelta(days=days),
        currency="USD",
    )


def make_line(account_id: UUID, unit_price: str, quantity: str = "1", tax_rate: str = "0", description: str = "Consulting") -> LineItem:
    return LineItem(
        account_id=account_id,
        description=description,
        quantity=Decimal(quantity),
        unit_price=Decimal(unit_price),
        tax_rate=Decimal(tax_rate),
    )


@pytest.fixture
def issue_invoice(db: Session, tenant_id: UUID, customer_id: UUID, revenue_account_id: UUID, actor_id: UUID):
    """Factory creating a SENT invoice for a single priced line."""
    counter = {"n": 0}

    def _issue(
        unit_price: str = "100.00",
        invoice_type: InvoiceType = InvoiceType.RECEIVABLE,
        party_id: UUID | None = None,
        organization_id: UUID | None = None,
        invoice_date: date = date(2025, 1, 15),
    ):
        counter["n"] += 1
        org = organization_id or tenant_id
        invoice = create_invoice(
            db,
            org,
            invoice_type=invoice_type,
            party_id=party_id or customer_id,
            header=make_header(f"INV-{counter['n']:03d}", invoice_date=invoice_date),
            lines=[make_line(revenue_account_id, unit_price)],
            actor_id=actor_id,
        )
        return approve_invoice(db, org, invoice.id, actor_id=actor_id)

    return _issue


@pytest.fixture
def euro_default(monkeypatch):
    """Settings with EUR as the default currency."""
    monkeypatch.setenv("DEFAULT_CURRENCY", "EUR")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
