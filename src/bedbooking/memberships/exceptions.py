"""Exceptions for memberships module."""

from decimal import Decimal

from bedbooking.exceptions import InvalidStateError, ValidationError


class MembershipInactiveError(InvalidStateError):
    """Package is inactive, expired or has no sessions left."""

    def __init__(self, status: str, sessions_used: int, num_of_sessions: int):
        self.status = status
        self.sessions_used = sessions_used
        self.num_of_sessions = num_of_sessions
        super().__init__(
            f"Membership is inactive or exhausted "
            f"(status={status}, sessions {sessions_used}/{num_of_sessions})"
        )


class OverpaymentError(ValidationError):
    """Settlement exceeds the remaining balance."""

    def __init__(self, amount: Decimal, remaining_balance: Decimal):
        self.amount = amount
        self.remaining_balance = remaining_balance
        super().__init__(
            f"Payment {amount} exceeds remaining balance {remaining_balance}"
        )


class InvalidMembershipTransition(InvalidStateError):
    """Manual status change not allowed from the current status."""

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Cannot change membership from '{from_status}' to '{to_status}'")
