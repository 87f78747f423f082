from __future__ import annotations

import asyncio

from ticket_scanner.app.event_session import event_display_name, resolve_event_name


def test_resolve_event_name_compares_ids_as_strings():
    async def fetch():
        return [{"id": 6, "title": "Other"}, {"EventId": "7", "EventName": "Spring Gala"}]

    assert asyncio.run(resolve_event_name(7, fetch)) == "Spring Gala"


def test_resolve_event_name_falls_back_when_untitled_or_missing():
    async def fetch():
        return [{"id": "7", "title": "   "}]

    assert asyncio.run(resolve_event_name("7", fetch)) == "Untitled Event 7"
    assert asyncio.run(resolve_event_name("8", fetch)) == "Untitled Event 8"


def test_resolve_event_name_survives_fetch_errors():
    async def fetch():
        raise RuntimeError("events endpoint down")

    assert asyncio.run(resolve_event_name("9", fetch)) == "Untitled Event 9"


def test_event_display_name_field_order():
    assert event_display_name({"name": "B", "title": "A"}) == "A"
    assert event_display_name({"displayName": "Shown"}) == "Shown"
    assert event_display_name({}) == ""
