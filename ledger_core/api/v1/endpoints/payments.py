"""Payment and balance API endpoints."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ledger_core.api.deps import RequestContext, get_request_context
from ledger_core.api.errors import to_http_exception
from ledger_core.core.config import get_settings
from ledger_core.db.dependencies import get_db
from ledger_core.domain.ledger.enums import PartyType, PaymentType
from ledger_core.domain.ledger.exceptions import LedgerError
from ledger_core.domain.ledger.payment_service import get_party_balance, record_payment
from ledger_core.domain.ledger.reporting_service import get_payment, list_payments
from ledger_core.schemas.payments import (
    PartyBalanceResponse,
    PaymentCreate,
    PaymentListResponse,
    PaymentResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/payments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def record_payment_endpoint(
    payment_data: PaymentCreate,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> PaymentResponse:
    """
    Record a payment and allocate it to invoices.

    Invoices whose allocations reach their total are marked PAID in the same
    transaction.
    """
    try:
        payment = record_payment(
            db,
            context.organization_id,
            payment_type=payment_data.payment_type,
            party_id=payment_data.party_id,
            amount=payment_data.amount,
            payment_date=payment_data.payment_date,
            payment_method=payment_data.payment_method,
            allocations=[a.to_request() for a in payment_data.allocations],
            reference_number=payment_data.reference_number,
            bank_account_id=payment_data.bank_account_id,
            notes=payment_data.notes,
            actor_id=context.user_id,
        )
    except LedgerError as e:
        logger.warning(f"Rejected {payment_data.payment_type.value} payment: {e.message}")
        raise to_http_exception(e)

    logger.info(f"Recorded payment {payment.payment_number} for {payment.amount}")
    return PaymentResponse.model_validate(payment)


@router.get("/payments", response_model=PaymentListResponse)
def list_payments_endpoint(
    payment_type: Optional[PaymentType] = Query(None, alias="type", description="received or sent"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> PaymentListResponse:
    """List payments with pagination."""
    result = list_payments(
        db,
        context.organization_id,
        payment_type=payment_type,
        page=page,
        page_size=get_settings().clamp_page_size(page_size),
    )
    return PaymentListResponse(
        items=[PaymentResponse.model_validate(p) for p in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
def get_payment_endpoint(
    payment_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> PaymentResponse:
    try:
        payment = get_payment(db, context.organization_id, payment_id)
    except LedgerError as e:
        raise to_http_exception(e)
    return PaymentResponse.model_validate(payment)


@router.get("/balances/{party_type}/{party_id}", response_model=PartyBalanceResponse)
def party_balance_endpoint(
    party_type: PartyType,
    party_id: UUID,
    net_allocations: bool = Query(True, description="Subtract partial payments on open invoices"),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> PartyBalanceResponse:
    """Open balance for a customer or supplier."""
    balance = get_party_balance(
        db,
        context.organization_id,
        party_id,
        party_type,
        net_allocations=net_allocations,
    )
    return PartyBalanceResponse(
        party_type=party_type,
        party_id=party_id,
        balance=balance,
        net_of_allocations=net_allocations,
    )
