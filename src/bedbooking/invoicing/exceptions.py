"""Exceptions for invoicing module."""

from decimal import Decimal

from bedbooking.exceptions import InvalidStateError, ValidationError


class InvoiceStateError(InvalidStateError):
    """Invalid invoice state transition."""

    pass


class InvoiceNotSettledError(InvoiceStateError):
    """Invoice still has a balance to collect."""

    def __init__(self, invoice_number: str, balance: Decimal):
        self.invoice_number = invoice_number
        self.balance = balance
        super().__init__(
            f"Cannot complete invoice {invoice_number or '(unsaved)'}: balance {balance} outstanding"
        )


class InvalidInvoiceValue(ValidationError):
    """An invoice, item or payment choice value is not recognised."""

    def __init__(self, field: str, value: str, allowed):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} '{value}', expected one of {sorted(allowed)}")
