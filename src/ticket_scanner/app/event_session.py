"""Event name lookup for a scan session."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Mapping

logger = logging.getLogger(__name__)

FetchEventsFn = Callable[[], Awaitable[List[Mapping[str, Any]]]]

NAME_FIELDS = (
    "title",
    "name",
    "eventName",
    "event_name",
    "eventTitle",
    "event_title",
    "Event Name",
    "EventName",
    "display_name",
    "displayName",
)
_ID_FIELDS = ("id", "EventId", "event_id", "eventId")


def untitled_event(event_id: str) -> str:
    return f"Untitled Event {event_id}"


def event_display_name(event: Mapping[str, Any]) -> str:
    for key in NAME_FIELDS:
        value = event.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _event_ids(event: Mapping[str, Any]) -> List[str]:
    return [str(event[key]) for key in _ID_FIELDS if event.get(key) is not None]


async def resolve_event_name(event_id: str, fetch_events: FetchEventsFn) -> str:
    """Resolve the display name of ``event_id``; never raises."""
    try:
        events = await fetch_events()
    except Exception as exc:
        logger.warning("Could not load events to name %s: %s", event_id, exc)
        return untitled_event(event_id)

    wanted = str(event_id)
    for event in events or []:
        if isinstance(event, Mapping) and wanted in _event_ids(event):
            name = event_display_name(event)
            if name:
                return name
            break
    logger.info("No name found for event %s", event_id)
    return untitled_event(event_id)
