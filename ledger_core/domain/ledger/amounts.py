"""
Invoice amount arithmetic.

All money is handled as ``Decimal`` and rounded half-up to cents per line.
Header totals are sums of the already-rounded line figures, so
``invoice.total_amount == sum(line.total_amount)`` holds exactly.
"""

from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List

from ledger_core.domain.ledger.exceptions import ValidationError
from ledger_core.domain.ledger.types import LineItem

CENT = Decimal("0.01")
RATE_STEP = Decimal("0.01")
QUANTITY_STEP = Decimal("0.0001")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Coerce a number (or ``None``) to a cent-rounded ``Decimal``."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class ComputedLine:
    item: LineItem
    line_number: int
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal


@dataclass
class ComputedInvoice:
    lines: List[ComputedLine]
    total_amount: Decimal
    tax_amount: Decimal
    net_amount: Decimal


def validate_line(item: LineItem, line_number: int) -> None:
    if item.quantity is None or Decimal(item.quantity) <= 0:
        raise ValidationError(
            f"Line {line_number}: quantity must be positive",
            line_number=line_number,
            field="quantity",
        )
    if item.unit_price is None or Decimal(item.unit_price) < 0:
        raise ValidationError(
            f"Line {line_number}: unit price must not be negative",
            line_number=line_number,
            field="unit_price",
        )
    if item.tax_rate is not None and Decimal(item.tax_rate) < 0:
        raise ValidationError(
            f"Line {line_number}: tax rate must not be negative",
            line_number=line_number,
            field="tax_rate",
        )
    if not item.description or not item.description.strip():
        raise ValidationError(
            f"Line {line_number}: description is required",
            line_number=line_number,
            field="description",
        )


def _to_scale(value, step: Decimal):
    if value is None:
        return None
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(step, rounding=ROUND_HALF_UP)


def quantize_line(item: LineItem) -> LineItem:
    """Round a line's inputs to the precision they are stored with."""
    return replace(
        item,
        quantity=_to_scale(item.quantity, QUANTITY_STEP),
        unit_price=_to_scale(item.unit_price, CENT),
        tax_rate=_to_scale(item.tax_rate or 0, RATE_STEP),
    )


def compute_line(item: LineItem, line_number: int) -> ComputedLine:
    """
    Validate one line and derive its tax and total.

    Inputs are first rounded to their stored precision, so the stored
    quantity, unit price and tax rate reproduce the stored amounts.
    """
    item = quantize_line(item)
    validate_line(item, line_number)

    gross = item.quantity * item.unit_price
    subtotal = to_money(gross)
    tax = to_money(gross * item.tax_rate / Decimal(100))

    return ComputedLine(
        item=item,
        line_number=line_number,
        subtotal=subtotal,
        tax_amount=tax,
        total_amount=subtotal + tax,
    )


def compute_invoice(items: Iterable[LineItem]) -> ComputedInvoice:
    """
    Derive line and header amounts for an invoice.

    An empty line set yields a zero-value invoice.

    Raises:
        ValidationError: If any line has a non-positive quantity, a negative
            unit price or tax rate, or no description
    """
    lines = [compute_line(item, number) for number, item in enumerate(items, start=1)]

    total = sum((line.total_amount for line in lines), ZERO)
    tax = sum((line.tax_amount for line in lines), ZERO)

    return ComputedInvoice(
        lines=lines,
        total_amount=total,
        tax_amount=tax,
        net_amount=total - tax,
    )
