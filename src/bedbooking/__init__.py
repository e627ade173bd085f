"""Bed booking core: availability, invoicing and membership credit."""

__version__ = "0.1.0"
