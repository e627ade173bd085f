"""Checkout: taking payment for a booking end to end.

The only module that touches more than one engine. Once an invoice is
settled it is completed, a session is drawn from the booking's membership
package (when it has an active one), and the booking is marked paid.

Usage:
    from bedbooking.checkout import PaymentLine, process_payment

    invoice = process_payment(
        invoice,
        [PaymentLine("3000.00", "cash"), PaymentLine("1500.00", "card", "slip 42")],
        actor=request.user,
    )
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from django.db import transaction

from bedbooking import conf
from bedbooking.availability import services as availability
from bedbooking.availability.models import Booking
from bedbooking.exceptions import NotFoundError
from bedbooking.invoicing import services as invoicing
from bedbooking.invoicing.models import Invoice
from bedbooking.memberships import engine as ledger
from bedbooking.memberships import services as memberships

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentLine:
    """One tender in a split payment."""

    amount: Decimal
    method: str
    reference: str = ""


@transaction.atomic
def settle_booking(booking: Booking, clock=None) -> Booking:
    """Mark a booking paid after its invoice was completed.

    Draws one session from the booking's membership package if it has an
    active one. The booking becomes in_progress when now lies inside its
    window, otherwise confirmed. A booking already marked paid is returned
    unchanged, and a completed or cancelled booking keeps its status.
    """
    try:
        booking = Booking.objects.select_for_update().get(pk=booking.pk)
    except Booking.DoesNotExist:
        raise NotFoundError("Booking", booking.pk)

    if booking.payment_status == "paid":
        logger.info(f"Booking {booking.booking_number} already settled")
        return booking

    package = booking.membership_package
    if package is not None:
        if ledger.is_active(package.to_record()):
            memberships.use_session(package)
        else:
            logger.warning(
                f"Booking {booking.booking_number}: membership {package.pk} "
                f"is not active, no session drawn"
            )

    now = conf.get_clock(clock).now()
    availability.update_payment_status(booking, "paid")
    if booking.status not in ("completed", "cancelled"):
        in_window = booking.start_time <= now <= booking.end_time
        availability.update_booking_status(booking, "in_progress" if in_window else "confirmed")

    logger.info(f"Booking {booking.booking_number} settled, status={booking.status}")
    return booking


@transaction.atomic
def complete_checkout(invoice: Invoice, actor=None, clock=None) -> Invoice:
    """Complete a settled invoice and settle its booking.

    An invoice that is already completed only has its booking settled.

    Raises:
        InvoiceStateError: If the invoice is voided
        InvoiceNotSettledError: If a balance is still owed
    """
    invoice = invoicing.get_invoice(invoice.pk)
    if invoice.status != "completed":
        invoice = invoicing.mark_completed(invoice, actor, clock=clock)

    if invoice.booking_id is not None:
        settle_booking(invoice.booking, clock=clock)
    return invoice


@transaction.atomic
def process_payment(
    invoice: Invoice,
    payments: Iterable[PaymentLine],
    actor=None,
    clock=None,
) -> Invoice:
    """Take one or more payments and complete the checkout once nothing is owed.

    Args:
        invoice: Draft invoice being paid
        payments: Tenders to record, in order
        actor: User at the till
        clock: Clock used for payment and completion times

    Returns:
        The invoice after all payments; completed if its balance reached zero

    Raises:
        InvoiceStateError: If the invoice is not a draft
        ValidationError: If a payment amount or method is invalid
    """
    for line in payments:
        invoicing.add_payment(
            invoice,
            line.amount,
            line.method,
            reference=line.reference,
            processed_by=actor,
            clock=clock,
        )

    invoice = invoicing.get_invoice(invoice.pk)
    if invoice.balance_amount > 0:
        logger.info(
            f"Invoice {invoice.invoice_number} partially paid, balance={invoice.balance_amount}"
        )
        return invoice

    return complete_checkout(invoice, actor, clock=clock)
