"""Application layer: dependency wiring, session start-up and ticket actions."""

from .dependencies import ScannerDependencies, get_default_dependencies
from .event_session import resolve_event_name
from .scanner_app import ScannerApp
from .ticket_actions import ActionSummary, TicketActionResult, TicketActionService

__all__ = [
    "ActionSummary",
    "ScannerApp",
    "ScannerDependencies",
    "TicketActionResult",
    "TicketActionService",
    "get_default_dependencies",
    "resolve_event_name",
]
