"""Invoice engine.

Totals, line items, payments and the billing state machine of one invoice,
computed over plain records. Nothing here touches the database, reads the
clock or knows about bookings and memberships.

State machine:
    draft -> completed   (mark_completed, only once nothing is owed)
    draft -> voided      (void)

Nothing leaves completed or voided, and items, charges and payments can
only change while the invoice is a draft.

Totals (every monetary step rounded to cents):
    subtotal        = sum of line totals
    discount        = subtotal * discount_percentage/100, or the stored amount
    after_discount  = subtotal - discount
    service_charge  = after_discount * service_charge_percentage/100, or stored
    taxable         = after_discount + service_charge
    tax             = taxable * tax_percentage/100, or stored
    total           = taxable + tax + additional_charges
    paid            = sum of completed payments
    balance         = total - paid

A non-zero percentage always wins over the stored amount for the same charge.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from bedbooking.exceptions import NotFoundError, ValidationError
from bedbooking.money import HUNDRED, ZERO, percentage_of, quantize, to_decimal

from .exceptions import InvalidInvoiceValue, InvoiceNotSettledError, InvoiceStateError


class InvoiceStatus:
    DRAFT = "draft"
    COMPLETED = "completed"
    VOIDED = "voided"


class PaymentStatus:
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


ITEM_TYPES = frozenset({"package", "product", "service", "custom"})
PAYMENT_METHODS = frozenset({"cash", "card", "upi", "bank_transfer", "other"})
PAYMENT_COMPLETED = "completed"


@dataclass(frozen=True)
class PriceSource:
    """What is being sold: a package, a product or a free-form charge."""

    name: str
    unit_price: Decimal
    description: str = ""
    reference_id: str = ""


@dataclass
class LineItemRecord:
    item_type: str
    item_name: str
    quantity: int
    unit_price: Decimal
    discount_amount: Decimal = ZERO
    total_price: Decimal = ZERO
    description: str = ""
    reference_id: str = ""
    id: object = field(default_factory=uuid.uuid4)


@dataclass
class PaymentRecord:
    amount: Decimal
    payment_method: str
    reference: str = ""
    status: str = PAYMENT_COMPLETED
    paid_at: Optional[datetime] = None
    id: object = field(default_factory=uuid.uuid4)


@dataclass
class InvoiceRecord:
    """Billing-relevant state of an invoice.

    The charge inputs are the *_percentage fields plus the stored amounts;
    subtotal, total_amount, paid_amount, balance_amount and payment_status
    are derived and only written by recompute().
    """

    invoice_number: str = ""
    items: list = field(default_factory=list)
    payments: list = field(default_factory=list)

    discount_percentage: Decimal = ZERO
    discount_amount: Decimal = ZERO
    service_charge_percentage: Decimal = ZERO
    service_charge: Decimal = ZERO
    tax_percentage: Decimal = ZERO
    tax_amount: Decimal = ZERO
    additional_charges: Decimal = ZERO

    subtotal: Decimal = ZERO
    total_amount: Decimal = ZERO
    paid_amount: Decimal = ZERO
    balance_amount: Decimal = ZERO
    payment_status: str = PaymentStatus.UNPAID

    status: str = InvoiceStatus.DRAFT
    completed_by: object = None
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    discount_amount: Decimal
    service_charge: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    payment_status: str


def _require_draft(invoice: InvoiceRecord, action: str) -> None:
    if invoice.status != InvoiceStatus.DRAFT:
        raise InvoiceStateError(
            f"Cannot {action} invoice {invoice.invoice_number or '(unsaved)'} "
            f"in status={invoice.status}, must be 'draft'"
        )


def _charge(base: Decimal, percentage, stored) -> Decimal:
    percentage = to_decimal(percentage)
    if percentage > 0:
        return percentage_of(base, percentage)
    return quantize(stored)


def _line_total(quantity: int, unit_price: Decimal, discount_amount: Decimal) -> Decimal:
    return quantize(quantity * unit_price - discount_amount)


def _validate_line(quantity: int, unit_price: Decimal, discount_amount: Decimal) -> None:
    if quantity < 1:
        raise ValidationError(f"Quantity must be at least 1, got {quantity}")
    if unit_price < 0:
        raise ValidationError(f"Unit price must be >= 0, got {unit_price}")
    if discount_amount < 0:
        raise ValidationError(f"Item discount must be >= 0, got {discount_amount}")
    if discount_amount > quantity * unit_price:
        raise ValidationError(
            f"Item discount {discount_amount} exceeds line amount {quantity * unit_price}"
        )


def _find_item(invoice: InvoiceRecord, item_id) -> LineItemRecord:
    for item in invoice.items:
        if item.id == item_id:
            return item
    raise NotFoundError("LineItem", item_id)


def compute_totals(invoice: InvoiceRecord) -> InvoiceTotals:
    """Compute all derived amounts without touching the invoice."""
    subtotal = quantize(sum((to_decimal(item.total_price) for item in invoice.items), ZERO))

    discount = _charge(subtotal, invoice.discount_percentage, invoice.discount_amount)
    after_discount = quantize(subtotal - discount)

    service_charge = _charge(
        after_discount, invoice.service_charge_percentage, invoice.service_charge
    )
    taxable = quantize(after_discount + service_charge)

    tax = _charge(taxable, invoice.tax_percentage, invoice.tax_amount)
    total = quantize(taxable + tax + to_decimal(invoice.additional_charges))

    paid = quantize(
        sum(
            (to_decimal(p.amount) for p in invoice.payments if p.status == PAYMENT_COMPLETED),
            ZERO,
        )
    )
    balance = quantize(total - paid)

    if paid <= 0:
        payment_status = PaymentStatus.UNPAID
    elif paid >= total:
        payment_status = PaymentStatus.PAID
    else:
        payment_status = PaymentStatus.PARTIAL

    return InvoiceTotals(
        subtotal=subtotal,
        discount_amount=discount,
        service_charge=service_charge,
        tax_amount=tax,
        total_amount=total,
        paid_amount=paid,
        balance_amount=balance,
        payment_status=payment_status,
    )


def recompute(invoice: InvoiceRecord) -> InvoiceRecord:
    """Write compute_totals() into the invoice. Running it twice changes nothing."""
    totals = compute_totals(invoice)
    invoice.subtotal = totals.subtotal
    invoice.discount_amount = totals.discount_amount
    invoice.service_charge = totals.service_charge
    invoice.tax_amount = totals.tax_amount
    invoice.total_amount = totals.total_amount
    invoice.paid_amount = totals.paid_amount
    invoice.balance_amount = totals.balance_amount
    invoice.payment_status = totals.payment_status
    return invoice


def change_due(invoice: InvoiceRecord) -> Decimal:
    """Cash to hand back when payments exceed the total."""
    return max(ZERO, -quantize(invoice.balance_amount))


def add_item(
    invoice: InvoiceRecord,
    item_type: str,
    source: PriceSource,
    quantity: int = 1,
    *,
    discount_amount=ZERO,
) -> LineItemRecord:
    """Append a line priced from source and recompute.

    Raises:
        InvoiceStateError: If the invoice is not a draft
        InvalidInvoiceValue: If item_type is unknown
        ValidationError: If quantity < 1 or the price/discount is invalid
    """
    _require_draft(invoice, "add items to")
    if item_type not in ITEM_TYPES:
        raise InvalidInvoiceValue("item_type", item_type, ITEM_TYPES)

    unit_price = quantize(source.unit_price)
    discount_amount = quantize(discount_amount)
    _validate_line(quantity, unit_price, discount_amount)

    item = LineItemRecord(
        item_type=item_type,
        item_name=source.name,
        quantity=quantity,
        unit_price=unit_price,
        discount_amount=discount_amount,
        total_price=_line_total(quantity, unit_price, discount_amount),
        description=source.description,
        reference_id=source.reference_id,
    )
    invoice.items.append(item)
    recompute(invoice)
    return item


def remove_item(invoice: InvoiceRecord, item_id) -> LineItemRecord:
    """Drop a line and recompute.

    Raises:
        InvoiceStateError: If the invoice is not a draft
        NotFoundError: If no line has item_id
    """
    _require_draft(invoice, "remove items from")
    item = _find_item(invoice, item_id)
    invoice.items.remove(item)
    recompute(invoice)
    return item


def update_item(
    invoice: InvoiceRecord,
    item_id,
    *,
    quantity: Optional[int] = None,
    unit_price=None,
    discount_amount=None,
) -> LineItemRecord:
    """Change quantity, unit price or discount of a line and recompute.

    Raises:
        InvoiceStateError: If the invoice is not a draft
        NotFoundError: If no line has item_id
        ValidationError: If the new values are invalid
    """
    _require_draft(invoice, "update items on")
    item = _find_item(invoice, item_id)

    new_quantity = item.quantity if quantity is None else quantity
    new_price = item.unit_price if unit_price is None else quantize(unit_price)
    new_discount = item.discount_amount if discount_amount is None else quantize(discount_amount)
    _validate_line(new_quantity, new_price, new_discount)

    item.quantity = new_quantity
    item.unit_price = new_price
    item.discount_amount = new_discount
    item.total_price = _line_total(new_quantity, new_price, new_discount)
    recompute(invoice)
    return item


def set_charges(
    invoice: InvoiceRecord,
    *,
    discount_percentage=None,
    discount_amount=None,
    service_charge_percentage=None,
    service_charge=None,
    tax_percentage=None,
    tax_amount=None,
    additional_charges=None,
) -> InvoiceRecord:
    """Store raw charge inputs, then recompute. None leaves a field as is.

    Raises:
        InvoiceStateError: If the invoice is not a draft
        ValidationError: If a percentage is outside [0, 100] or an amount is negative
    """
    _require_draft(invoice, "change charges on")

    percentages = {
        "discount_percentage": discount_percentage,
        "service_charge_percentage": service_charge_percentage,
        "tax_percentage": tax_percentage,
    }
    amounts = {
        "discount_amount": discount_amount,
        "service_charge": service_charge,
        "tax_amount": tax_amount,
        "additional_charges": additional_charges,
    }

    updates = {}
    for name, value in percentages.items():
        if value is None:
            continue
        value = quantize(value)
        if not (0 <= value <= HUNDRED):
            raise ValidationError(f"{name} must be between 0 and 100, got {value}")
        updates[name] = value
    for name, value in amounts.items():
        if value is None:
            continue
        value = quantize(value)
        if value < 0:
            raise ValidationError(f"{name} must be >= 0, got {value}")
        updates[name] = value

    for name, value in updates.items():
        setattr(invoice, name, value)
    return recompute(invoice)


def add_payment(
    invoice: InvoiceRecord,
    amount,
    payment_method: str,
    reference: str = "",
    paid_at: Optional[datetime] = None,
) -> PaymentRecord:
    """Record a completed payment and recompute.

    Payments beyond the total are accepted; the balance goes negative and
    change_due() reports the difference.

    Raises:
        InvoiceStateError: If the invoice is not a draft
        ValidationError: If amount <= 0
        InvalidInvoiceValue: If payment_method is unknown
    """
    _require_draft(invoice, "record payments on")
    amount = quantize(amount)
    if amount <= 0:
        raise ValidationError(f"Payment amount must be positive, got {amount}")
    if payment_method not in PAYMENT_METHODS:
        raise InvalidInvoiceValue("payment_method", payment_method, PAYMENT_METHODS)

    payment = PaymentRecord(
        amount=amount,
        payment_method=payment_method,
        reference=reference or "",
        paid_at=paid_at,
    )
    invoice.payments.append(payment)
    recompute(invoice)
    return payment


def mark_completed(invoice: InvoiceRecord, actor, now: datetime) -> InvoiceRecord:
    """Close a fully paid draft.

    Raises:
        InvoiceStateError: If the invoice is not a draft
        InvoiceNotSettledError: If a balance is still owed
    """
    _require_draft(invoice, "complete")
    balance = compute_totals(invoice).balance_amount
    if balance > 0:
        raise InvoiceNotSettledError(invoice.invoice_number, balance)

    recompute(invoice)
    invoice.status = InvoiceStatus.COMPLETED
    invoice.payment_status = PaymentStatus.PAID
    invoice.completed_by = actor
    invoice.completed_at = now
    return invoice


def void(invoice: InvoiceRecord) -> InvoiceRecord:
    """Cancel a draft invoice.

    Raises:
        InvoiceStateError: If the invoice is completed or already voided
    """
    if invoice.status == InvoiceStatus.COMPLETED:
        raise InvoiceStateError(
            f"Cannot void completed invoice {invoice.invoice_number or '(unsaved)'}"
        )
    _require_draft(invoice, "void")

    invoice.status = InvoiceStatus.VOIDED
    return invoice
