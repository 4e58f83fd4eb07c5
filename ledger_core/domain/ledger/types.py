"""Inputs accepted by the ledger services."""

from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from ledger_core.domain.ledger.enums import PartyType


@dataclass(frozen=True)
class PartyRef:
    """A counterparty: a customer or a supplier, identified by id."""
    party_type: PartyType
    party_id: UUID

    def column_values(self) -> dict[str, Optional[UUID]]:
        """Values for the ``customer_id`` / ``supplier_id`` column pair."""
        if self.party_type == PartyType.CUSTOMER:
            return {"customer_id": self.party_id, "supplier_id": None}
        return {"customer_id": None, "supplier_id": self.party_id}


@dataclass
class InvoiceHeader:
    """Caller-supplied invoice header fields."""
    invoice_number: str
    invoice_date: date
    due_date: date
    currency: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class LineItem:
    """One priced item as supplied by the caller."""
    account_id: UUID
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal = Decimal("0")


@dataclass
class AllocationRequest:
    """Part of a payment to apply against one invoice."""
    invoice_id: UUID
    amount: Decimal


@dataclass
class ExpenseChanges:
    """Editable expense fields; ``None`` leaves a field untouched."""
    category_id: Optional[UUID] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    expense_date: Optional[date] = None
    description: Optional[str] = None
    receipt_url: Optional[str] = None

    def as_values(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass
class InvoiceStats:
    """Dashboard counters for one invoice direction."""
    total_count: int = 0
    draft_count: int = 0
    unpaid_count: int = 0
    total_unpaid_amount: Decimal = Decimal("0.00")
    overdue_count: int = 0
    total_overdue_amount: Decimal = Decimal("0.00")
