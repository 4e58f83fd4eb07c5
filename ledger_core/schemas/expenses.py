"""Expense schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ledger_core.domain.ledger.enums import ExpenseStatus
from ledger_core.domain.ledger.types import ExpenseChanges


class ExpenseCategoryCreate(BaseModel):
    """Schema for creating an expense category."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    gl_account_id: Optional[UUID] = None


class ExpenseCategoryResponse(BaseModel):
    """Schema for expense category response."""
    id: UUID
    organization_id: UUID
    name: str
    description: Optional[str] = None
    gl_account_id: Optional[UUID] = None
    is_active: bool
    created_at: datetime
    
    class Config:
        from_attributes = True


class ExpenseCreate(BaseModel):
    """Schema for creating an expense."""
    category_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    expense_date: date
    description: str = Field(..., min_length=1)
    employee_id: Optional[UUID] = None
    receipt_url: Optional[str] = None


class ExpenseUpdate(BaseModel):
    """Schema for editing a pending expense. Omitted fields are unchanged."""
    category_id: Optional[UUID] = None
    amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    expense_date: Optional[date] = None
    description: Optional[str] = Field(default=None, min_length=1)
    receipt_url: Optional[str] = None

    def to_changes(self) -> ExpenseChanges:
        return ExpenseChanges(**self.model_dump(exclude_none=True))


class ExpenseRejectRequest(BaseModel):
    """Optional reason recorded with a rejection."""
    reason: Optional[str] = None


class ExpenseResponse(BaseModel):
    """Schema for expense response."""
    id: UUID
    organization_id: UUID
    category_id: UUID
    category: Optional[ExpenseCategoryResponse] = None
    employee_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    amount: Decimal
    currency: str
    expense_date: date
    description: str
    receipt_url: Optional[str] = None
    status: ExpenseStatus
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class ExpenseListResponse(BaseModel):
    """Paginated expense list response."""
    items: List[ExpenseResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
