"""Tests for availability services."""

from datetime import date
from decimal import Decimal

import pytest
from freezegun import freeze_time

from bedbooking.availability import services
from bedbooking.availability.engine import BedStatus
from bedbooking.availability.exceptions import (
    BedUnderMaintenanceError,
    BookingConflictError,
    BookingStateError,
    InvalidBookingValue,
)
from bedbooking.availability.models import Booking
from bedbooking.exceptions import ConflictError, InvalidStateError, ValidationError
from bedbooking.invoicing import services as invoicing
from bedbooking.invoicing.engine import PriceSource
from bedbooking.memberships import services as memberships
from bedbooking.memberships.exceptions import MembershipInactiveError

DAY = date(2026, 1, 26)
MASSAGE = PriceSource(name="Full body massage", unit_price=Decimal("1000.00"))


@pytest.mark.django_db
class TestCreateBooking:
    def test_creates_numbered_booking(self, bed, at, clock, user):
        booking = services.create_booking(
            bed,
            at(10),
            at(11),
            customer_id="cust-1",
            total_amount=Decimal("3000.00"),
            status="confirmed",
            created_by=user,
            clock=clock,
        )

        assert booking.booking_number == "BK2601260001"
        assert booking.final_amount == Decimal("3000.00")
        assert booking.created_by == user

    def test_booking_numbers_increment_per_day(self, bed, at, clock):
        first = services.create_booking(bed, at(10), at(11), clock=clock)
        second = services.create_booking(bed, at(11), at(12), clock=clock)

        clock.advance(days=1)
        next_day = services.create_booking(bed, at(10, day=27), at(11, day=27), clock=clock)

        assert first.booking_number == "BK2601260001"
        assert second.booking_number == "BK2601260002"
        assert next_day.booking_number == "BK2601270001"

    def test_overlapping_booking_rejected(self, bed, at, clock):
        existing = services.create_booking(bed, at(14), at(15), status="confirmed", clock=clock)

        with pytest.raises(BookingConflictError) as exc_info:
            services.create_booking(bed, at(14, 30), at(15, 30), clock=clock)

        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.conflicts == [existing]
        assert Booking.objects.count() == 1

    def test_back_to_back_bookings_allowed(self, bed, at, clock):
        services.create_booking(bed, at(10), at(11), clock=clock)
        services.create_booking(bed, at(11), at(12), clock=clock)

        assert Booking.objects.filter(bed=bed).count() == 2

    def test_same_window_on_other_bed_allowed(self, bed, other_bed, at, clock):
        services.create_booking(bed, at(10), at(11), clock=clock)
        services.create_booking(other_bed, at(10), at(11), clock=clock)

        assert Booking.objects.count() == 2

    def test_cancelled_booking_frees_window(self, bed, at, clock):
        booking = services.create_booking(bed, at(10), at(11), clock=clock)
        services.cancel_booking(booking, reason="Customer called")

        services.create_booking(bed, at(10), at(11), clock=clock)

        assert Booking.objects.filter(status="cancelled").count() == 1

    def test_deleted_booking_frees_window(self, bed, at, clock):
        booking = services.create_booking(bed, at(10), at(11), clock=clock)
        services.delete_booking(booking)

        services.create_booking(bed, at(10, 30), at(11, 30), clock=clock)

        assert Booking.objects.count() == 1
        assert Booking.all_objects.count() == 2

    def test_maintenance_bed_rejected(self, bed, at, clock):
        bed.under_maintenance = True
        bed.save()

        with pytest.raises(BedUnderMaintenanceError) as exc_info:
            services.create_booking(bed, at(10), at(11), clock=clock)

        assert isinstance(exc_info.value, InvalidStateError)

    def test_invalid_window_rejected(self, bed, at, clock):
        with pytest.raises(ValidationError):
            services.create_booking(bed, at(11), at(10), clock=clock)

    def test_unknown_status_rejected(self, bed, at, clock):
        with pytest.raises(InvalidBookingValue):
            services.create_booking(bed, at(10), at(11), status="booked", clock=clock)

    def test_active_membership_attached(self, bed, at, clock):
        package = memberships.create_membership("Jane Perera", 2)

        booking = services.create_booking(bed, at(10), at(11), membership_package=package, clock=clock)

        assert booking.membership_package == package

    def test_inactive_membership_rejected(self, bed, at, clock):
        package = memberships.create_membership("Jane Perera", 2)
        memberships.change_status(package, "inactive")

        with pytest.raises(MembershipInactiveError) as exc_info:
            services.create_booking(bed, at(10), at(11), membership_package=package, clock=clock)

        assert isinstance(exc_info.value, InvalidStateError)
        assert Booking.objects.count() == 0

    def test_used_up_membership_rejected(self, bed, at, clock):
        package = memberships.create_membership("Jane Perera", 1)
        memberships.use_session(package)

        with pytest.raises(MembershipInactiveError):
            services.create_booking(bed, at(10), at(11), membership_package=package, clock=clock)


@pytest.mark.django_db
class TestRescheduleBooking:
    def test_move_within_own_window(self, bed, at, clock):
        booking = services.create_booking(bed, at(10), at(11), clock=clock)

        services.reschedule_booking(booking, at(10, 30), at(11, 30))

        booking.refresh_from_db()
        assert booking.start_time == at(10, 30)
        assert booking.end_time == at(11, 30)

    def test_move_onto_other_booking_rejected(self, bed, at, clock):
        services.create_booking(bed, at(12), at(13), clock=clock)
        booking = services.create_booking(bed, at(10), at(11), clock=clock)

        with pytest.raises(BookingConflictError):
            services.reschedule_booking(booking, at(12, 30), at(13, 30))

        booking.refresh_from_db()
        assert booking.start_time == at(10)

    def test_move_to_other_bed(self, bed, other_bed, at, clock):
        booking = services.create_booking(bed, at(10), at(11), clock=clock)

        services.reschedule_booking(booking, at(10), at(11), bed=other_bed)

        booking.refresh_from_db()
        assert booking.bed == other_bed

    def test_cancelled_booking_cannot_move(self, bed, at, clock):
        booking = services.create_booking(bed, at(10), at(11), clock=clock)
        services.cancel_booking(booking)

        with pytest.raises(BookingStateError):
            services.reschedule_booking(booking, at(12), at(13))


@pytest.mark.django_db
class TestStatusUpdates:
    def test_reviving_cancelled_booking_rechecks_conflicts(self, bed, at, clock):
        booking = services.create_booking(bed, at(10), at(11), clock=clock)
        services.cancel_booking(booking)
        services.create_booking(bed, at(10), at(11), clock=clock)

        with pytest.raises(BookingConflictError):
            services.update_booking_status(booking, "confirmed")

    def test_cancel_appends_reason(self, bed, at, clock):
        booking = services.create_booking(bed, at(10), at(11), notes="VIP", clock=clock)

        services.cancel_booking(booking, reason="No show")

        booking.refresh_from_db()
        assert booking.status == "cancelled"
        assert booking.notes == "VIP | No show"

    def test_completed_booking_cannot_be_cancelled(self, bed, at, clock):
        booking = services.create_booking(bed, at(10), at(11), status="completed", clock=clock)

        with pytest.raises(BookingStateError):
            services.cancel_booking(booking)

    def test_unknown_payment_status_rejected(self, bed, at, clock):
        booking = services.create_booking(bed, at(10), at(11), clock=clock)

        with pytest.raises(InvalidBookingValue):
            services.update_payment_status(booking, "partial")


@pytest.mark.django_db
class TestBedStatusAndSlots:
    def test_paid_booking_drives_status(self, bed, other_bed, at, clock):
        services.create_booking(
            bed, at(7, 15), at(8), status="confirmed", payment_status="paid", clock=clock
        )

        assert services.bed_status(bed, clock=clock) == BedStatus.BOOKED_SOON
        clock.advance(minutes=30)
        assert services.bed_status(bed, clock=clock) == BedStatus.OCCUPIED
        assert services.bed_status(other_bed, clock=clock) == BedStatus.AVAILABLE

    def test_beds_with_status_in_grid_order(self, bed, other_bed, at, clock):
        other_bed.under_maintenance = True
        other_bed.save()

        result = services.beds_with_status(clock=clock)

        assert [(r.bed, r.status) for r in result] == [
            (bed, BedStatus.AVAILABLE),
            (other_bed, BedStatus.MAINTENANCE),
        ]

    def test_available_slots_skip_booked_window(self, bed, at, clock):
        services.create_booking(
            bed, at(10), at(11), status="confirmed", payment_status="paid", clock=clock
        )

        slots = services.available_slots(bed, DAY, 60, clock=clock)

        starts = [start for start, _ in slots]
        assert at(10) not in starts
        assert (at(9), at(10)) in slots
        assert (at(11), at(12)) in slots

    def test_available_beds_for_window(self, bed, other_bed, at, clock):
        services.create_booking(bed, at(10), at(11), clock=clock)

        assert services.available_beds(at(10, 30), at(11, 30)) == [other_bed]
        assert services.available_beds(at(11), at(12)) == [bed, other_bed]

    def test_available_beds_skip_maintenance(self, bed, other_bed, at):
        other_bed.under_maintenance = True
        other_bed.save()

        assert services.available_beds(at(10), at(11)) == [bed]

    def test_available_beds_invalid_window(self, bed, at):
        with pytest.raises(ValidationError):
            services.available_beds(at(11), at(10))

    def test_maintenance_bed_has_no_slots(self, bed, clock):
        bed.under_maintenance = True
        bed.save()

        assert services.available_slots(bed, DAY, 60, clock=clock) == []

    def test_conflicts_excludes_edited_booking(self, bed, at, clock):
        booking = services.create_booking(bed, at(10), at(11), clock=clock)

        assert services.conflicts(bed, at(10), at(11)) == [booking]
        assert services.conflicts(bed, at(10), at(11), exclude_booking_id=booking.pk) == []


@pytest.mark.django_db
class TestAdvanceBookingStatuses:
    def test_lifecycle_transitions(self, bed, other_bed, at, clock):
        started = services.create_booking(
            bed, at(8), at(9), status="confirmed", payment_status="paid", clock=clock
        )
        finished = services.create_booking(
            other_bed, at(7), at(8), status="in_progress", payment_status="paid", clock=clock
        )
        no_show = services.create_booking(
            bed, at(7, 30), at(8), status="confirmed", payment_status="pending", clock=clock
        )

        clock.advance(hours=1, minutes=5)  # 08:05
        counts = services.advance_booking_statuses(clock=clock)

        for booking in (started, finished, no_show):
            booking.refresh_from_db()
        assert started.status == "in_progress"
        assert finished.status == "completed"
        assert no_show.status == "cancelled"
        assert "Auto-cancelled" in no_show.notes
        assert counts == {"completed": 1, "started": 1, "cancelled": 1}

    def test_unpaid_booking_within_grace_is_kept(self, bed, at, clock):
        booking = services.create_booking(
            bed, at(7, 50), at(9), status="confirmed", payment_status="pending", clock=clock
        )

        clock.advance(minutes=55)  # 07:55, five minutes past start
        services.advance_booking_statuses(clock=clock)

        booking.refresh_from_db()
        assert booking.status == "in_progress"

    def test_booking_with_deposit_is_not_a_no_show(self, bed, at, clock):
        booking = services.create_booking(bed, at(8), at(9), status="confirmed", clock=clock)
        invoice = invoicing.create_invoice("booking", booking=booking, clock=clock)
        invoicing.add_item(invoice, "package", MASSAGE)
        invoicing.add_payment(invoice, Decimal("500"), "cash", clock=clock)

        clock.advance(hours=1, minutes=20)  # 08:20
        counts = services.advance_booking_statuses(clock=clock)

        booking.refresh_from_db()
        assert booking.status == "in_progress"
        assert counts == {"completed": 0, "started": 1, "cancelled": 0}

    def test_voided_invoice_payment_does_not_hold_booking(self, bed, at, clock):
        booking = services.create_booking(bed, at(8), at(9), status="confirmed", clock=clock)
        invoice = invoicing.create_invoice("booking", booking=booking, clock=clock)
        invoicing.add_item(invoice, "package", MASSAGE)
        invoicing.add_payment(invoice, Decimal("500"), "cash", clock=clock)
        invoicing.void_invoice(invoice)

        clock.advance(hours=1, minutes=20)  # 08:20
        services.advance_booking_statuses(clock=clock)

        booking.refresh_from_db()
        assert booking.status == "cancelled"

    @freeze_time("2026-01-26 10:30:00")
    def test_default_clock_follows_wall_time(self, bed, at):
        booking = services.create_booking(
            bed, at(10), at(11), status="confirmed", payment_status="paid"
        )

        services.advance_booking_statuses()

        booking.refresh_from_db()
        assert booking.status == "in_progress"
        assert booking.booking_number == "BK2601260001"
        assert services.bed_status(bed) == BedStatus.OCCUPIED
