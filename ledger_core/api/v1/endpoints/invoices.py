"""Invoice API endpoints (receivables and payables)."""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ledger_core.api.deps import RequestContext, get_request_context
from ledger_core.api.errors import to_http_exception
from ledger_core.core.config import get_settings
from ledger_core.db.dependencies import get_db
from ledger_core.domain.ledger.enums import InvoiceStatus, InvoiceType
from ledger_core.domain.ledger.exceptions import LedgerError
from ledger_core.domain.ledger.invoice_service import (
    approve_invoice,
    create_invoice,
    update_invoice,
)
from ledger_core.domain.ledger.reporting_service import (
    get_invoice,
    get_invoice_stats,
    list_invoices,
)
from ledger_core.schemas.invoices import (
    InvoiceCreate,
    InvoiceDetailResponse,
    InvoiceListResponse,
    InvoiceStatsResponse,
    InvoiceUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=InvoiceListResponse)
def list_invoices_endpoint(
    invoice_type: Optional[InvoiceType] = Query(None, alias="type", description="receivable or payable"),
    invoice_status: Optional[InvoiceStatus] = Query(None, alias="status"),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> InvoiceListResponse:
    """List invoices with filters and pagination."""
    result = list_invoices(
        db,
        context.organization_id,
        invoice_type=invoice_type,
        status=invoice_status,
        date_from=date_from,
        date_to=date_to,
        page=page,
        page_size=get_settings().clamp_page_size(page_size),
    )
    return InvoiceListResponse(
        items=[InvoiceDetailResponse.model_validate(inv) for inv in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/stats", response_model=InvoiceStatsResponse)
def invoice_stats_endpoint(
    invoice_type: InvoiceType = Query(..., alias="type", description="receivable or payable"),
    as_of: Optional[date] = None,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> InvoiceStatsResponse:
    """Get invoice counters for the dashboard."""
    stats = get_invoice_stats(db, context.organization_id, invoice_type, as_of=as_of)
    return InvoiceStatsResponse(invoice_type=invoice_type, **vars(stats))


@router.get("/{invoice_id}", response_model=InvoiceDetailResponse)
def get_invoice_endpoint(
    invoice_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> InvoiceDetailResponse:
    """Get a single invoice with lines and allocations."""
    try:
        invoice = get_invoice(db, context.organization_id, invoice_id)
    except LedgerError as e:
        raise to_http_exception(e)
    return InvoiceDetailResponse.model_validate(invoice)


@router.post("", response_model=InvoiceDetailResponse, status_code=status.HTTP_201_CREATED)
def create_invoice_endpoint(
    invoice_data: InvoiceCreate,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> InvoiceDetailResponse:
    """
    Create a new invoice.

    Totals are computed from the items; the invoice starts in DRAFT status.
    """
    try:
        invoice = create_invoice(
            db,
            context.organization_id,
            invoice_type=invoice_data.invoice_type,
            party_id=invoice_data.party_id,
            header=invoice_data.to_header(),
            lines=invoice_data.to_line_items(),
            actor_id=context.user_id,
        )
    except LedgerError as e:
        logger.warning(f"Rejected invoice {invoice_data.invoice_number}: {e.message}")
        raise to_http_exception(e)

    logger.info(f"Created invoice {invoice.id} with number {invoice.invoice_number}")
    return InvoiceDetailResponse.model_validate(invoice)


@router.put("/{invoice_id}", response_model=InvoiceDetailResponse)
def update_invoice_endpoint(
    invoice_id: UUID,
    invoice_data: InvoiceUpdate,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> InvoiceDetailResponse:
    """
    Replace a draft invoice's header and items.

    Fails with 409 once the invoice has been issued.
    """
    try:
        invoice = update_invoice(
            db,
            context.organization_id,
            invoice_id,
            header=invoice_data.to_header(),
            lines=invoice_data.to_line_items(),
            party_id=invoice_data.party_id,
            actor_id=context.user_id,
        )
    except LedgerError as e:
        logger.warning(f"Rejected update of invoice {invoice_id}: {e.message}")
        raise to_http_exception(e)

    return InvoiceDetailResponse.model_validate(invoice)


@router.post("/{invoice_id}/approve", response_model=InvoiceDetailResponse)
def approve_invoice_endpoint(
    invoice_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> InvoiceDetailResponse:
    """Issue a draft invoice (draft -> sent)."""
    try:
        invoice = approve_invoice(db, context.organization_id, invoice_id, actor_id=context.user_id)
    except LedgerError as e:
        logger.warning(f"Rejected approval of invoice {invoice_id}: {e.message}")
        raise to_http_exception(e)

    logger.info(f"Approved invoice {invoice_id}")
    return InvoiceDetailResponse.model_validate(invoice)
