"""Services for memberships module.

Each mutation locks the package row, runs the ledger engine on a record
copy and writes the result back, so two concurrent check-outs cannot both
draw the last session.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from django.db import transaction

from bedbooking.exceptions import NotFoundError

from . import engine
from .models import MembershipPackage

logger = logging.getLogger(__name__)


def get_membership(membership_id) -> MembershipPackage:
    """Fetch a membership package by id.

    Raises:
        NotFoundError: If no package has this id
    """
    try:
        return MembershipPackage.objects.get(pk=membership_id)
    except MembershipPackage.DoesNotExist:
        raise NotFoundError("MembershipPackage", membership_id)


def _lock(membership: MembershipPackage) -> MembershipPackage:
    try:
        return MembershipPackage.objects.select_for_update().get(pk=membership.pk)
    except MembershipPackage.DoesNotExist:
        raise NotFoundError("MembershipPackage", membership.pk)


def _save(membership: MembershipPackage, record: engine.MembershipRecord) -> MembershipPackage:
    fields = membership.apply_record(record)
    membership.save(update_fields=fields)
    return membership


@transaction.atomic
def create_membership(
    name: str,
    num_of_sessions: int,
    *,
    membership_type: str = "individual",
    phone: str = "",
    address: str = "",
    nic: str = "",
    birthday: Optional[date] = None,
    package_ref: str = "",
    full_payment: Decimal = Decimal("0.00"),
    advance_payment: Decimal = Decimal("0.00"),
    discount_percentage: Decimal = Decimal("0.00"),
) -> MembershipPackage:
    """Open a new active package with no sessions used.

    Args:
        name: Holder name (person or company)
        num_of_sessions: Sessions bought, at least 1
        membership_type: 'individual' or 'company'
        phone: Contact phone
        address: Postal address
        nic: National ID or registration number
        birthday: Holder birthday, if known
        package_ref: Opaque reference of the service package
        full_payment: Undiscounted package price
        advance_payment: Amount paid up front
        discount_percentage: Discount on full_payment, 0-100

    Returns:
        Created MembershipPackage with remaining_balance computed

    Raises:
        ValidationError: If sessions < 1, an amount is negative or the
            discount is outside [0, 100]
    """
    record = engine.open_membership(
        num_of_sessions,
        full_payment=full_payment,
        advance_payment=advance_payment,
        discount_percentage=discount_percentage,
    )

    membership = MembershipPackage(
        membership_type=membership_type,
        name=name,
        phone=phone,
        address=address,
        nic=nic,
        birthday=birthday,
        package_ref=package_ref,
    )
    membership.apply_record(record)
    membership.save()

    logger.info(
        f"Membership created: {membership.pk}, sessions={record.num_of_sessions}, "
        f"balance={record.remaining_balance}"
    )
    return membership


@transaction.atomic
def update_membership_terms(
    membership: MembershipPackage,
    *,
    full_payment=None,
    advance_payment=None,
    discount_percentage=None,
) -> MembershipPackage:
    """Change pricing inputs; remaining_balance is recomputed."""
    membership = _lock(membership)
    record = engine.update_terms(
        membership.to_record(),
        full_payment=full_payment,
        advance_payment=advance_payment,
        discount_percentage=discount_percentage,
    )
    return _save(membership, record)


@transaction.atomic
def use_session(membership: MembershipPackage) -> MembershipPackage:
    """Draw one session. The last session expires the package.

    Raises:
        MembershipInactiveError: If the package is inactive, expired or exhausted
    """
    membership = _lock(membership)
    record = engine.use_session(membership.to_record())
    _save(membership, record)

    logger.info(
        f"Membership {membership.pk} session used "
        f"({record.sessions_used}/{record.num_of_sessions}), status={record.status}"
    )
    return membership


@transaction.atomic
def settle_payment(membership: MembershipPackage, amount) -> MembershipPackage:
    """Record money received against the package balance.

    Raises:
        ValidationError: If amount <= 0
        OverpaymentError: If amount exceeds remaining_balance
    """
    membership = _lock(membership)
    record = engine.settle_payment(membership.to_record(), amount)
    _save(membership, record)

    logger.info(
        f"Membership {membership.pk} settled {amount}, "
        f"remaining_balance={record.remaining_balance}"
    )
    return membership


@transaction.atomic
def change_status(membership: MembershipPackage, status: str) -> MembershipPackage:
    """Manual status change.

    Raises:
        ValidationError: If status is unknown
        InvalidMembershipTransition: If the package cannot move to status
    """
    membership = _lock(membership)
    previous = membership.status
    record = engine.change_status(membership.to_record(), status)
    _save(membership, record)

    if previous != record.status:
        logger.info(f"Membership {membership.pk} status {previous} -> {record.status}")
    return membership
