"""Sequence services for atomic number generation."""

import logging
from datetime import date

from django.db import IntegrityError, transaction

from .exceptions import SequenceExhaustedError
from .models import Sequence

logger = logging.getLogger(__name__)


def _locked_sequence(scope: str, period: date, prefix: str, pad_width: int) -> Sequence:
    """Fetch the day's row under a row lock, creating it on first use.

    Two requests can both miss the row and race to insert it; the loser hits
    the unique constraint and re-reads the winner's row under the lock.
    """
    try:
        return Sequence.objects.select_for_update().get(scope=scope, period=period)
    except Sequence.DoesNotExist:
        pass

    try:
        with transaction.atomic():
            Sequence.objects.create(
                scope=scope,
                period=period,
                prefix=prefix,
                current_value=0,
                pad_width=pad_width,
            )
    except IntegrityError:
        logger.debug(f"Sequence {scope}/{period} created concurrently, re-reading")

    return Sequence.objects.select_for_update().get(scope=scope, period=period)


def next_sequence(
    scope: str,
    *,
    prefix: str,
    on: date,
    pad_width: int = 4,
) -> str:
    """
    Get the next number for a scope on a given day, atomically.

    Uses select_for_update() so concurrent callers never receive the same
    value.

    Args:
        scope: The sequence scope (e.g., 'booking', 'invoice')
        prefix: Prefix for the formatted value (used when the day's row is created)
        on: The business day the number belongs to
        pad_width: Zero-padding width (used when the day's row is created)

    Returns:
        The formatted value (e.g., "BK2601260001")

    Raises:
        SequenceExhaustedError: If the counter no longer fits pad_width digits
    """
    with transaction.atomic():
        seq = _locked_sequence(scope, on, prefix, pad_width)

        if len(str(seq.current_value + 1)) > seq.pad_width:
            raise SequenceExhaustedError(scope, on, seq.pad_width)

        seq.current_value += 1
        seq.save(update_fields=["current_value", "updated_at"])

        return seq.formatted_value
