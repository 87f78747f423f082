"""Ticketing backend clients."""

from .async_api import AsyncTicketingApi
from .ticketing_api import TicketingApi, normalize_error_body

__all__ = ["AsyncTicketingApi", "TicketingApi", "normalize_error_body"]
