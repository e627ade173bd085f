"""Prepaid membership packages and their session/money ledger."""
