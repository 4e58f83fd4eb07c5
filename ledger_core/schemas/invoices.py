"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ledger_core.domain.ledger.enums import InvoiceType, PartyType, InvoiceStatus
from ledger_core.domain.ledger.types import InvoiceHeader, LineItem


class InvoiceLineCreate(BaseModel):
    """Schema for one invoice line."""
    account_id: UUID
    description: str = Field(..., min_length=1)
    quantity: Decimal = Field(default=Decimal("1"), gt=0)
    unit_price: Decimal = Field(..., ge=0)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0)

    def to_line_item(self) -> LineItem:
        return LineItem(
            account_id=self.account_id,
            description=self.description,
            quantity=self.quantity,
            unit_price=self.unit_price,
            tax_rate=self.tax_rate,
        )


class InvoiceUpdate(BaseModel):
    """Schema for replacing a draft invoice's header and lines."""
    party_id: Optional[UUID] = None
    invoice_number: str = Field(..., min_length=1, max_length=100)
    invoice_date: date
    due_date: date
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    notes: Optional[str] = None
    items: List[InvoiceLineCreate] = Field(default_factory=list)

    def to_header(self) -> InvoiceHeader:
        return InvoiceHeader(
            invoice_number=self.invoice_number,
            invoice_date=self.invoice_date,
            due_date=self.due_date,
            currency=self.currency,
            notes=self.notes,
        )

    def to_line_items(self) -> List[LineItem]:
        return [item.to_line_item() for item in self.items]


class InvoiceCreate(InvoiceUpdate):
    """Schema for creating a draft invoice."""
    invoice_type: InvoiceType
    party_id: UUID


class InvoiceLineResponse(BaseModel):
    """Schema for invoice line response."""
    id: UUID
    line_number: int
    account_id: UUID
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    
    class Config:
        from_attributes = True


class AllocationResponse(BaseModel):
    """Schema for a payment allocation."""
    id: UUID
    payment_id: UUID
    invoice_id: UUID
    allocated_amount: Decimal
    created_at: datetime
    
    class Config:
        from_attributes = True


class InvoiceResponse(BaseModel):
    """Schema for invoice response."""
    id: UUID
    organization_id: UUID
    invoice_type: InvoiceType
    party_type: PartyType
    customer_id: Optional[UUID] = None
    supplier_id: Optional[UUID] = None
    invoice_number: str
    invoice_date: date
    due_date: date
    status: InvoiceStatus
    currency: str
    total_amount: Decimal
    tax_amount: Decimal
    net_amount: Decimal
    sent_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    updated_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class InvoiceDetailResponse(InvoiceResponse):
    """Invoice with its lines and allocations."""
    lines: List[InvoiceLineResponse] = []
    allocations: List[AllocationResponse] = []


class InvoiceListResponse(BaseModel):
    """Paginated invoice list response."""
    items: List[InvoiceDetailResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class InvoiceStatsResponse(BaseModel):
    """Invoice dashboard counters."""
    invoice_type: InvoiceType
    total_count: int
    draft_count: int
    unpaid_count: int
    total_unpaid_amount: Decimal
    overdue_count: int
    total_overdue_amount: Decimal
