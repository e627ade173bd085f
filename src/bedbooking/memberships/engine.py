"""Membership ledger.

Tracks the session count and money balance of a prepaid package. Operations
validate first and only then mutate the record they are given, so a failed
call leaves the record untouched.

Balance formula:
    remaining_balance = full_payment * (1 - discount_percentage / 100) - advance_payment
"""

from dataclasses import dataclass
from decimal import Decimal

from bedbooking.exceptions import ValidationError
from bedbooking.money import HUNDRED, ZERO, quantize, to_decimal

from .exceptions import InvalidMembershipTransition, MembershipInactiveError, OverpaymentError


class MembershipStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"

    ALL = frozenset({ACTIVE, INACTIVE, EXPIRED})


# Manual status changes. Exhaustion expires a package automatically.
ALLOWED_TRANSITIONS = {
    MembershipStatus.ACTIVE: frozenset({MembershipStatus.INACTIVE, MembershipStatus.EXPIRED}),
    MembershipStatus.INACTIVE: frozenset({MembershipStatus.ACTIVE}),
    MembershipStatus.EXPIRED: frozenset(),
}


@dataclass
class MembershipRecord:
    """The ledger-relevant part of a membership package."""

    num_of_sessions: int
    sessions_used: int = 0
    discount_percentage: Decimal = ZERO
    full_payment: Decimal = ZERO
    advance_payment: Decimal = ZERO
    remaining_balance: Decimal = ZERO
    status: str = MembershipStatus.ACTIVE


def _validate_terms(full_payment: Decimal, advance_payment: Decimal, discount_percentage: Decimal) -> None:
    if full_payment < 0:
        raise ValidationError(f"full_payment must be >= 0, got {full_payment}")
    if advance_payment < 0:
        raise ValidationError(f"advance_payment must be >= 0, got {advance_payment}")
    if not (0 <= discount_percentage <= HUNDRED):
        raise ValidationError(
            f"discount_percentage must be between 0 and 100, got {discount_percentage}"
        )


def recompute_balance(pkg: MembershipRecord) -> MembershipRecord:
    """Rewrite remaining_balance from full_payment, discount and advance_payment."""
    full = to_decimal(pkg.full_payment)
    discounted = full * (HUNDRED - to_decimal(pkg.discount_percentage)) / HUNDRED
    pkg.remaining_balance = quantize(discounted - to_decimal(pkg.advance_payment))
    return pkg


def open_membership(
    num_of_sessions: int,
    *,
    full_payment=ZERO,
    advance_payment=ZERO,
    discount_percentage=ZERO,
) -> MembershipRecord:
    """Create a fresh active package with no sessions used.

    Raises:
        ValidationError: If num_of_sessions < 1, an amount is negative or the
            discount is outside [0, 100]
    """
    if num_of_sessions < 1:
        raise ValidationError(f"num_of_sessions must be >= 1, got {num_of_sessions}")

    full_payment = quantize(full_payment)
    advance_payment = quantize(advance_payment)
    discount_percentage = quantize(discount_percentage)
    _validate_terms(full_payment, advance_payment, discount_percentage)

    pkg = MembershipRecord(
        num_of_sessions=num_of_sessions,
        sessions_used=0,
        discount_percentage=discount_percentage,
        full_payment=full_payment,
        advance_payment=advance_payment,
        status=MembershipStatus.ACTIVE,
    )
    return recompute_balance(pkg)


def update_terms(
    pkg: MembershipRecord,
    *,
    full_payment=None,
    advance_payment=None,
    discount_percentage=None,
) -> MembershipRecord:
    """Change any of the pricing inputs and recompute the balance.

    Raises:
        ValidationError: If an amount is negative or the discount is outside [0, 100]
    """
    new_full = pkg.full_payment if full_payment is None else quantize(full_payment)
    new_advance = pkg.advance_payment if advance_payment is None else quantize(advance_payment)
    new_discount = (
        pkg.discount_percentage if discount_percentage is None else quantize(discount_percentage)
    )
    _validate_terms(new_full, new_advance, new_discount)

    pkg.full_payment = new_full
    pkg.advance_payment = new_advance
    pkg.discount_percentage = new_discount
    return recompute_balance(pkg)


def remaining_sessions(pkg: MembershipRecord) -> int:
    return pkg.num_of_sessions - pkg.sessions_used


def is_active(pkg: MembershipRecord) -> bool:
    """Active status and at least one session left."""
    return pkg.status == MembershipStatus.ACTIVE and pkg.sessions_used < pkg.num_of_sessions


def use_session(pkg: MembershipRecord) -> MembershipRecord:
    """Draw one session; the last one expires the package.

    Raises:
        MembershipInactiveError: If the package is not active or is exhausted
    """
    if not is_active(pkg):
        raise MembershipInactiveError(pkg.status, pkg.sessions_used, pkg.num_of_sessions)

    pkg.sessions_used += 1
    if pkg.sessions_used == pkg.num_of_sessions:
        pkg.status = MembershipStatus.EXPIRED
    return pkg


def settle_payment(pkg: MembershipRecord, amount) -> MembershipRecord:
    """Record money received against the package.

    Raises:
        ValidationError: If amount <= 0
        OverpaymentError: If amount exceeds the remaining balance
    """
    amount = quantize(amount)
    if amount <= 0:
        raise ValidationError(f"Payment amount must be positive, got {amount}")
    if amount > pkg.remaining_balance:
        raise OverpaymentError(amount, pkg.remaining_balance)

    pkg.advance_payment = quantize(to_decimal(pkg.advance_payment) + amount)
    return recompute_balance(pkg)


def change_status(pkg: MembershipRecord, status: str) -> MembershipRecord:
    """Manual status change: active <-> inactive, active -> expired.

    Raises:
        ValidationError: If status is unknown
        InvalidMembershipTransition: If the change is not allowed
    """
    if status not in MembershipStatus.ALL:
        raise ValidationError(f"Unknown membership status '{status}'")
    if status == pkg.status:
        return pkg
    if status not in ALLOWED_TRANSITIONS[pkg.status]:
        raise InvalidMembershipTransition(pkg.status, status)

    pkg.status = status
    return pkg
