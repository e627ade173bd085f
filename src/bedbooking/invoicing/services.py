"""Invoice creation and management services.

Every mutation locks the invoice row, loads the full item and payment set,
runs the invoice engine and writes items, payments and totals back in the
same transaction, so two cashiers taking payments at once cannot lose one.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.utils import timezone

from bedbooking import conf
from bedbooking.exceptions import NotFoundError
from bedbooking.sequence.services import next_sequence

from . import engine
from .exceptions import InvalidInvoiceValue
from .models import Invoice, InvoiceLineItem, InvoicePayment

logger = logging.getLogger(__name__)

INVOICE_TYPES = frozenset(value for value, _ in Invoice.TYPE_CHOICES)


def generate_invoice_number(on: date) -> str:
    """Generate a unique invoice number atomically.

    Format: INV<yymmdd><NNNN>, sequential per day.

    Args:
        on: The business day the invoice belongs to

    Returns:
        Unique invoice number like "INV2601260001"
    """
    return next_sequence(
        "invoice",
        prefix=conf.get_setting("INVOICE_NUMBER_PREFIX"),
        on=on,
        pad_width=conf.get_setting("NUMBER_PAD_WIDTH"),
    )


def get_invoice(invoice_id) -> Invoice:
    """Fetch an invoice by id.

    Raises:
        NotFoundError: If no invoice has this id
    """
    try:
        return Invoice.objects.get(pk=invoice_id)
    except Invoice.DoesNotExist:
        raise NotFoundError("Invoice", invoice_id)


def _lock(invoice: Invoice) -> Invoice:
    try:
        return Invoice.objects.select_for_update().get(pk=invoice.pk)
    except Invoice.DoesNotExist:
        raise NotFoundError("Invoice", invoice.pk)


def _save(invoice: Invoice, record: engine.InvoiceRecord, processed_by=None) -> Invoice:
    """Write record back: delete dropped lines, upsert the rest, add new payments."""
    keep = [item.id for item in record.items]
    invoice.line_items.exclude(pk__in=keep).delete()

    for position, item in enumerate(record.items):
        InvoiceLineItem.objects.update_or_create(
            id=item.id,
            defaults={
                "invoice": invoice,
                "position": position,
                "item_type": item.item_type,
                "item_name": item.item_name,
                "description": item.description,
                "reference_id": item.reference_id,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "discount_amount": item.discount_amount,
                "total_price": item.total_price,
            },
        )

    recorded = set(invoice.payments.values_list("pk", flat=True))
    for payment in record.payments:
        if payment.id in recorded:
            continue
        InvoicePayment.objects.create(
            id=payment.id,
            invoice=invoice,
            amount=payment.amount,
            payment_method=payment.payment_method,
            reference_number=payment.reference,
            status=payment.status,
            paid_at=payment.paid_at,
            processed_by=processed_by,
        )

    fields = invoice.apply_record(record)
    invoice.save(update_fields=fields)
    return invoice


@transaction.atomic
def create_invoice(
    invoice_type: str = "walk_in",
    *,
    customer_id: str = "",
    booking=None,
    parent_invoice: Optional[Invoice] = None,
    notes: str = "",
    created_by=None,
    clock=None,
) -> Invoice:
    """Open an empty draft invoice.

    Args:
        invoice_type: walk_in, booking, pos_sale or addon
        customer_id: Opaque customer reference
        booking: Booking being billed, if any
        parent_invoice: Invoice this add-on extends
        notes: Free text
        created_by: User opening the invoice
        clock: Clock used for the invoice number's day

    Returns:
        Created draft Invoice

    Raises:
        InvalidInvoiceValue: If invoice_type is unknown
    """
    if invoice_type not in INVOICE_TYPES:
        raise InvalidInvoiceValue("invoice_type", invoice_type, INVOICE_TYPES)

    now = conf.get_clock(clock).now()
    invoice = Invoice.objects.create(
        invoice_number=generate_invoice_number(timezone.localdate(now)),
        invoice_type=invoice_type,
        customer_id=customer_id,
        booking=booking,
        parent_invoice=parent_invoice,
        notes=notes,
        created_by=created_by,
    )

    logger.info(f"Invoice created: {invoice.invoice_number}, type={invoice_type}")
    return invoice


@transaction.atomic
def add_item(
    invoice: Invoice,
    item_type: str,
    source: engine.PriceSource,
    quantity: int = 1,
    *,
    discount_amount: Decimal = Decimal("0.00"),
) -> InvoiceLineItem:
    """Add a line to a draft invoice and recompute totals.

    Raises:
        InvoiceStateError: If the invoice is not a draft
        ValidationError: If quantity < 1, item_type is unknown or the price is invalid
    """
    invoice = _lock(invoice)
    record = invoice.to_record()
    item = engine.add_item(record, item_type, source, quantity, discount_amount=discount_amount)
    _save(invoice, record)
    return InvoiceLineItem.objects.get(pk=item.id)


@transaction.atomic
def remove_item(invoice: Invoice, item_id) -> Invoice:
    """Remove a line from a draft invoice and recompute totals.

    Raises:
        InvoiceStateError: If the invoice is not a draft
        NotFoundError: If the line is not on this invoice
    """
    invoice = _lock(invoice)
    record = invoice.to_record()
    engine.remove_item(record, item_id)
    return _save(invoice, record)


@transaction.atomic
def update_item(
    invoice: Invoice,
    item_id,
    *,
    quantity: Optional[int] = None,
    unit_price=None,
    discount_amount=None,
) -> InvoiceLineItem:
    """Change a line on a draft invoice and recompute totals.

    Raises:
        InvoiceStateError: If the invoice is not a draft
        NotFoundError: If the line is not on this invoice
        ValidationError: If the new values are invalid
    """
    invoice = _lock(invoice)
    record = invoice.to_record()
    item = engine.update_item(
        record,
        item_id,
        quantity=quantity,
        unit_price=unit_price,
        discount_amount=discount_amount,
    )
    _save(invoice, record)
    return InvoiceLineItem.objects.get(pk=item.id)


@transaction.atomic
def set_charges(invoice: Invoice, **charges) -> Invoice:
    """Store discount, service charge, tax and additional charge inputs.

    Accepts the keyword arguments of engine.set_charges.

    Raises:
        InvoiceStateError: If the invoice is not a draft
        ValidationError: If a percentage is outside [0, 100] or an amount is negative
    """
    invoice = _lock(invoice)
    record = invoice.to_record()
    engine.set_charges(record, **charges)
    return _save(invoice, record)


@transaction.atomic
def add_payment(
    invoice: Invoice,
    amount,
    payment_method: str,
    *,
    reference: str = "",
    processed_by=None,
    clock=None,
) -> InvoicePayment:
    """Record a payment on a draft invoice.

    Args:
        invoice: The invoice being paid
        amount: Amount received, may exceed the balance
        payment_method: cash, card, upi, bank_transfer or other
        reference: Optional slip/transfer reference
        processed_by: User taking the payment
        clock: Clock used for paid_at

    Returns:
        Created InvoicePayment

    Raises:
        InvoiceStateError: If the invoice is not a draft
        ValidationError: If amount <= 0 or payment_method is unknown
    """
    invoice = _lock(invoice)
    record = invoice.to_record()
    payment = engine.add_payment(
        record,
        amount,
        payment_method,
        reference=reference,
        paid_at=conf.get_clock(clock).now(),
    )
    _save(invoice, record, processed_by=processed_by)

    logger.info(
        f"Payment {payment.amount} via {payment_method} on {invoice.invoice_number}, "
        f"balance={record.balance_amount}"
    )
    return InvoicePayment.objects.get(pk=payment.id)


@transaction.atomic
def mark_completed(invoice: Invoice, actor=None, clock=None) -> Invoice:
    """Complete a fully paid draft invoice.

    Raises:
        InvoiceStateError: If the invoice is not a draft
        InvoiceNotSettledError: If a balance is still owed
    """
    invoice = _lock(invoice)
    record = invoice.to_record()
    engine.mark_completed(record, actor, conf.get_clock(clock).now())
    _save(invoice, record)

    logger.info(f"Invoice {invoice.invoice_number} completed")
    return invoice


@transaction.atomic
def void_invoice(invoice: Invoice) -> Invoice:
    """Void a draft invoice.

    Raises:
        InvoiceStateError: If the invoice is completed or already voided
    """
    invoice = _lock(invoice)
    record = invoice.to_record()
    engine.void(record)
    _save(invoice, record)

    logger.info(f"Invoice {invoice.invoice_number} voided")
    return invoice


@transaction.atomic
def recompute_invoice(invoice: Invoice) -> Invoice:
    """Rewrite the cached totals from items, charges and payments."""
    invoice = _lock(invoice)
    record = invoice.to_record()
    engine.recompute(record)
    return _save(invoice, record)


def change_due(invoice: Invoice) -> Decimal:
    """Amount to hand back to the customer on an overpaid invoice."""
    return engine.change_due(invoice.to_record())
