"""Configuration helpers for bedbooking.

All settings are read from Django settings with a BEDBOOKING_ prefix and
fall back to DEFAULTS.
"""

from datetime import time
from functools import lru_cache
from importlib import import_module

from django.conf import settings

from .exceptions import BedBookingError


DEFAULTS = {
    # Business hours used for slot search
    "OPENS_AT": time(8, 0),
    "CLOSES_AT": time(22, 0),
    "SLOT_STEP_MINUTES": 30,
    # A paid booking starting within this window shows the bed as booked_soon
    "BOOKED_SOON_MINUTES": 30,
    # Unpaid confirmed bookings are auto-cancelled this long after start
    "NO_SHOW_GRACE_MINUTES": 15,
    "BOOKING_NUMBER_PREFIX": "BK",
    "INVOICE_NUMBER_PREFIX": "INV",
    "NUMBER_PAD_WIDTH": 4,
    "CLOCK": "bedbooking.clock.SystemClock",
}


class ConfigurationError(BedBookingError):
    """Raised when a BEDBOOKING_ setting cannot be used."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid setting BEDBOOKING_{name}: {reason}")


def get_setting(name: str, default=None):
    """Get a setting with BEDBOOKING_ prefix, falling back to DEFAULTS."""
    if default is None:
        default = DEFAULTS.get(name)
    return getattr(settings, f"BEDBOOKING_{name}", default)


@lru_cache(maxsize=16)
def load_clock(dotted_path: str):
    """Import and instantiate a clock class from a dotted path."""
    try:
        module_path, class_name = dotted_path.rsplit(".", 1)
    except ValueError:
        raise ConfigurationError("CLOCK", f"'{dotted_path}' is not a dotted path")

    try:
        module = import_module(module_path)
    except ImportError as e:
        raise ConfigurationError("CLOCK", f"cannot import module: {e}")

    try:
        clock_class = getattr(module, class_name)
    except AttributeError:
        raise ConfigurationError("CLOCK", f"class '{class_name}' not found in module")

    clock = clock_class()
    if not callable(getattr(clock, "now", None)):
        raise ConfigurationError("CLOCK", f"'{class_name}' has no now() method")
    return clock


def get_clock(clock=None):
    """Return the given clock, or the configured one."""
    if clock is not None:
        return clock
    return load_clock(get_setting("CLOCK"))


def clear_clock_cache():
    """Clear the clock loading cache. Useful for testing."""
    load_clock.cache_clear()
