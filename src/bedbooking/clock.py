"""Injectable clock.

Services ask a Clock for the current instant instead of calling
timezone.now() directly, so tests can pin time.

Usage:
    from bedbooking.clock import FixedClock

    clock = FixedClock(datetime(2026, 1, 26, 9, 0, tzinfo=UTC))
    available_slots(bed, date(2026, 1, 26), 60, clock=clock)
    clock.advance(minutes=30)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from django.utils import timezone


class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock backed by django.utils.timezone."""

    def now(self) -> datetime:
        return timezone.now()


@dataclass
class FixedClock:
    """Clock frozen at a given instant until advanced explicitly."""

    instant: datetime

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs) -> datetime:
        """Move the clock forward by a timedelta built from kwargs."""
        self.instant = self.instant + timedelta(**kwargs)
        return self.instant
