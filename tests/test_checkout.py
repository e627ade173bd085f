"""Tests for the checkout flow across bookings, invoices and memberships."""

from decimal import Decimal

import pytest

from bedbooking import checkout
from bedbooking.availability import services as availability
from bedbooking.checkout import PaymentLine
from bedbooking.exceptions import ValidationError
from bedbooking.invoicing import services as invoicing
from bedbooking.invoicing.engine import PriceSource
from bedbooking.invoicing.exceptions import InvoiceNotSettledError, InvoiceStateError
from bedbooking.memberships import services as memberships

MASSAGE = PriceSource(name="Full body massage", unit_price=Decimal("1000.00"))


@pytest.fixture
def booking(bed, at, clock):
    return availability.create_booking(
        bed, at(10), at(11), status="confirmed", total_amount=Decimal("1000.00"), clock=clock
    )


@pytest.fixture
def invoice(booking, clock):
    invoice = invoicing.create_invoice("booking", booking=booking, clock=clock)
    invoicing.add_item(invoice, "package", MASSAGE)
    invoicing.set_charges(invoice, discount_percentage=10, service_charge_percentage=10)
    invoice.refresh_from_db()
    return invoice


@pytest.mark.django_db
class TestProcessPayment:
    def test_partial_payment_leaves_booking_unpaid(self, invoice, booking, user, clock):
        result = checkout.process_payment(invoice, [PaymentLine(Decimal("500"), "cash")], user, clock)

        booking.refresh_from_db()
        assert result.status == "draft"
        assert result.payment_status == "partial"
        assert result.balance_amount == Decimal("490.00")
        assert booking.payment_status == "pending"

    def test_split_payment_completes_and_confirms_booking(self, invoice, booking, user, clock):
        result = checkout.process_payment(
            invoice,
            [PaymentLine(Decimal("500"), "cash"), PaymentLine(Decimal("490"), "card", "slip 42")],
            user,
            clock,
        )

        booking.refresh_from_db()
        assert result.status == "completed"
        assert result.completed_by == user
        assert booking.payment_status == "paid"
        assert booking.status == "confirmed"

    def test_payment_during_booking_starts_it(self, invoice, booking, user, clock):
        clock.advance(hours=3, minutes=15)  # 10:15

        checkout.process_payment(invoice, [PaymentLine(Decimal("990"), "upi")], user, clock)

        booking.refresh_from_db()
        assert booking.status == "in_progress"

    def test_membership_session_drawn(self, invoice, booking, user, clock):
        package = memberships.create_membership("Jane Perera", 2)
        booking.membership_package = package
        booking.save()

        checkout.process_payment(invoice, [PaymentLine(Decimal("990"), "cash")], user, clock)

        package.refresh_from_db()
        assert package.sessions_used == 1
        assert package.status == "active"

    def test_inactive_membership_not_drawn(self, invoice, booking, user, clock):
        package = memberships.create_membership("Jane Perera", 2)
        memberships.change_status(package, "inactive")
        booking.membership_package = package
        booking.save()

        checkout.process_payment(invoice, [PaymentLine(Decimal("990"), "cash")], user, clock)

        package.refresh_from_db()
        booking.refresh_from_db()
        assert package.sessions_used == 0
        assert booking.payment_status == "paid"

    def test_invalid_tender_rolls_back_whole_batch(self, invoice, user, clock):
        with pytest.raises(ValidationError):
            checkout.process_payment(
                invoice,
                [PaymentLine(Decimal("500"), "cash"), PaymentLine(Decimal("490"), "cheque")],
                user,
                clock,
            )

        invoice.refresh_from_db()
        assert invoice.payments.count() == 0
        assert invoice.paid_amount == Decimal("0.00")

    def test_voided_invoice_rejected(self, invoice, user, clock):
        invoicing.void_invoice(invoice)

        with pytest.raises(InvoiceStateError):
            checkout.process_payment(invoice, [PaymentLine(Decimal("990"), "cash")], user, clock)


@pytest.mark.django_db
class TestCompleteCheckout:
    def test_unpaid_invoice_cannot_complete(self, invoice, user, clock):
        with pytest.raises(InvoiceNotSettledError):
            checkout.complete_checkout(invoice, user, clock)

    def test_walk_in_without_booking(self, user, clock):
        invoice = invoicing.create_invoice("walk_in", clock=clock)
        invoicing.add_item(invoice, "service", PriceSource("Foot scrub", Decimal("800")))

        result = checkout.process_payment(invoice, [PaymentLine(Decimal("1000"), "cash")], user, clock)

        assert result.status == "completed"
        assert invoicing.change_due(result) == Decimal("200.00")

    def test_already_completed_invoice_settles_booking(self, invoice, booking, user, clock):
        invoicing.add_payment(invoice, Decimal("990"), "cash", clock=clock)
        invoicing.mark_completed(invoice, user, clock=clock)

        checkout.complete_checkout(invoice, user, clock)

        booking.refresh_from_db()
        assert booking.payment_status == "paid"

    def test_repeated_checkout_draws_one_session(self, invoice, booking, user, clock):
        package = memberships.create_membership("Jane Perera", 5)
        booking.membership_package = package
        booking.save()
        checkout.process_payment(invoice, [PaymentLine(Decimal("990"), "cash")], user, clock)

        checkout.complete_checkout(invoice, user, clock)

        package.refresh_from_db()
        assert package.sessions_used == 1

    def test_completed_booking_keeps_status(self, invoice, booking, user, clock):
        availability.update_booking_status(booking, "completed")
        invoicing.add_payment(invoice, Decimal("990"), "cash", clock=clock)

        checkout.complete_checkout(invoice, user, clock)

        booking.refresh_from_db()
        assert booking.payment_status == "paid"
        assert booking.status == "completed"

    def test_cancelled_booking_not_revived(self, invoice, booking, user, clock):
        availability.cancel_booking(booking)
        invoicing.add_payment(invoice, Decimal("990"), "cash", clock=clock)

        checkout.complete_checkout(invoice, user, clock)

        booking.refresh_from_db()
        assert booking.status == "cancelled"
