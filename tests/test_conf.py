"""Tests for settings helpers and the injectable clock."""

from datetime import datetime, time, timedelta, timezone

import pytest
from django.utils import timezone as dj_timezone

from bedbooking import conf
from bedbooking.clock import FixedClock, SystemClock


@pytest.fixture(autouse=True)
def clear_cache():
    conf.clear_clock_cache()
    yield
    conf.clear_clock_cache()


class TestGetSetting:
    def test_defaults(self):
        assert conf.get_setting("OPENS_AT") == time(8, 0)
        assert conf.get_setting("NO_SHOW_GRACE_MINUTES") == 15
        assert conf.get_setting("INVOICE_NUMBER_PREFIX") == "INV"

    def test_override(self, settings):
        settings.BEDBOOKING_SLOT_STEP_MINUTES = 15

        assert conf.get_setting("SLOT_STEP_MINUTES") == 15

    def test_explicit_default_for_unknown_name(self):
        assert conf.get_setting("UNKNOWN", default="x") == "x"


class TestClockLoading:
    def test_explicit_clock_wins(self):
        clock = FixedClock(datetime(2026, 1, 26, tzinfo=timezone.utc))

        assert conf.get_clock(clock) is clock

    def test_configured_clock(self):
        assert isinstance(conf.get_clock(), SystemClock)

    @pytest.mark.parametrize(
        "path",
        ["SystemClock", "bedbooking.nowhere.Clock", "bedbooking.clock.MissingClock", "bedbooking.money.Decimal"],
    )
    def test_bad_clock_path(self, settings, path):
        settings.BEDBOOKING_CLOCK = path

        with pytest.raises(conf.ConfigurationError):
            conf.get_clock()


class TestClocks:
    def test_system_clock_is_aware(self):
        now = SystemClock().now()

        assert dj_timezone.is_aware(now)

    def test_fixed_clock_advances(self):
        clock = FixedClock(datetime(2026, 1, 26, 9, 0, tzinfo=timezone.utc))

        clock.advance(minutes=90)

        assert clock.now() == datetime(2026, 1, 26, 10, 30, tzinfo=timezone.utc)
        assert clock.advance(days=1) - clock.now() == timedelta(0)
