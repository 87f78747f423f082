"""Group booking lookup and partitioning."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Tuple

from .models import (
    GroupBooking,
    GroupTicket,
    Purchaser,
    Rejected,
    ScanMode,
    Valid,
    ValidationOutcome,
    outcome_info,
)

logger = logging.getLogger(__name__)

FetchGroupBookingFn = Callable[[str, str, Mapping[str, Any]], Awaitable[Optional[Mapping[str, Any]]]]


@dataclass(frozen=True)
class GroupPartition:
    relevant: Tuple[GroupTicket, ...]
    scanned_ticket: Optional[GroupTicket]

    @property
    def scanned_id(self) -> Optional[str]:
        return self.scanned_ticket.id if self.scanned_ticket else None


def is_relevant(ticket: GroupTicket, mode: ScanMode) -> bool:
    if mode is ScanMode.CHECK_IN:
        return not ticket.is_checked_in
    return ticket.is_checked_in


def partition(booking: GroupBooking, mode: ScanMode, code: str) -> GroupPartition:
    """Split a booking into the tickets the current mode can act on.

    The scanned ticket gets no special treatment: it is in ``relevant`` only
    when it passes the same predicate as its siblings.
    """
    scanned = next((ticket for ticket in booking.tickets if ticket.matches(code)), None)
    relevant = tuple(ticket for ticket in booking.tickets if is_relevant(ticket, mode))
    return GroupPartition(relevant=relevant, scanned_ticket=scanned)


class GroupResolver:
    def __init__(self, fetch_group_booking: FetchGroupBookingFn) -> None:
        self._fetch_group_booking = fetch_group_booking

    async def resolve_group(self, event_id: str, code: str, outcome: ValidationOutcome) -> Optional[GroupBooking]:
        """Return the booking the scanned code belongs to, or ``None`` if it is not a group.

        Any lookup failure means "treat it as an individual ticket". A valid
        code is looked up even without ticket info, since the guest list
        row of the scanned code can still identify the purchaser.
        """
        info = outcome_info(outcome)
        if not isinstance(outcome, (Valid, Rejected)) or (info is None and isinstance(outcome, Rejected)):
            logger.debug("No ticket info for %s; cannot identify purchaser", code)
            return None

        try:
            payload = await self._fetch_group_booking(event_id, code, info.raw if info else {})
        except Exception as exc:
            logger.warning("Group lookup for %s failed, continuing as individual ticket: %s", code, exc)
            return None

        if not isinstance(payload, Mapping) or payload.get("error"):
            logger.debug("Group lookup for %s returned no booking: %s", code, payload)
            return None

        raw_tickets = payload.get("tickets") or []
        tickets = tuple(GroupTicket.from_payload(t) for t in raw_tickets if isinstance(t, Mapping))
        if len(tickets) <= 1:
            return None

        booking = GroupBooking(purchaser=Purchaser.from_payload(payload.get("purchaser")), tickets=tickets)
        logger.info(
            "Group booking detected for %s: %d tickets (purchaser=%s)",
            code,
            len(tickets),
            booking.purchaser.name or booking.purchaser.email or booking.purchaser.booking_id,
        )
        return booking
