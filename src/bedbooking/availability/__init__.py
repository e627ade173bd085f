"""Beds, bookings and the availability engine."""
