"""Payment schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ledger_core.domain.ledger.enums import PaymentType, PartyType, PaymentMethod, PaymentStatus
from ledger_core.domain.ledger.types import AllocationRequest
from ledger_core.schemas.invoices import AllocationResponse


class AllocationCreate(BaseModel):
    """Schema for allocating part of a payment to an invoice."""
    invoice_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)

    def to_request(self) -> AllocationRequest:
        return AllocationRequest(invoice_id=self.invoice_id, amount=self.amount)


class PaymentCreate(BaseModel):
    """Schema for recording a payment."""
    payment_type: PaymentType
    party_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_date: date
    payment_method: PaymentMethod
    reference_number: Optional[str] = Field(default=None, max_length=100)
    bank_account_id: Optional[UUID] = None
    notes: Optional[str] = None
    allocations: List[AllocationCreate] = Field(default_factory=list)


class PaymentResponse(BaseModel):
    """Schema for payment response."""
    id: UUID
    organization_id: UUID
    payment_type: PaymentType
    party_type: PartyType
    customer_id: Optional[UUID] = None
    supplier_id: Optional[UUID] = None
    payment_number: str
    payment_date: date
    amount: Decimal
    payment_method: PaymentMethod
    reference_number: Optional[str] = None
    bank_account_id: Optional[UUID] = None
    status: PaymentStatus
    notes: Optional[str] = None
    allocations: List[AllocationResponse] = []
    created_by: Optional[UUID] = None
    created_at: datetime
    
    class Config:
        from_attributes = True


class PaymentListResponse(BaseModel):
    """Paginated payment list response."""
    items: List[PaymentResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class PartyBalanceResponse(BaseModel):
    """Open balance for one customer or supplier."""
    party_type: PartyType
    party_id: UUID
    balance: Decimal
    net_of_allocations: bool
