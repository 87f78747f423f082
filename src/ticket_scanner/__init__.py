"""Ticket Scanner - scan validation client for event check-in and check-out."""

__version__ = "1.0.0"
