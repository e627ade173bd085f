"""Shared fixtures for bedbooking tests."""

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from bedbooking.clock import FixedClock


@pytest.fixture
def clock():
    """Clock pinned to 2026-01-26 07:00 UTC, before the day's business hours."""
    return FixedClock(datetime(2026, 1, 26, 7, 0, tzinfo=dt_timezone.utc))


@pytest.fixture
def at():
    """Build an aware datetime on 2026-01-26."""

    def _at(hour, minute=0, day=26):
        return datetime(2026, 1, day, hour, minute, tzinfo=dt_timezone.utc)

    return _at


@pytest.fixture
def user(db):
    User = get_user_model()
    return User.objects.create_user(username="cashier", password="testpass")


@pytest.fixture
def bed(db):
    from bedbooking.availability.models import Bed

    return Bed.objects.create(
        bed_number="1",
        display_name="Table 1",
        bed_type="massage",
        grid_row=0,
        grid_col=0,
        hourly_rate=Decimal("3000.00"),
    )


@pytest.fixture
def other_bed(db):
    from bedbooking.availability.models import Bed

    return Bed.objects.create(bed_number="2", grid_row=0, grid_col=1)
