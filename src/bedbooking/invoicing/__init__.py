"""Invoices for bookings, walk-ins and counter sales."""
