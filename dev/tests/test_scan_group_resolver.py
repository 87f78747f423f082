from __future__ import annotations

import asyncio

import pytest

from ticket_scanner.core.group_resolver import GroupResolver, partition
from ticket_scanner.core.models import (
    GroupBooking,
    GroupTicket,
    NetworkFailure,
    NotReady,
    Purchaser,
    ScanMode,
    TimedOut,
    Valid,
)
from ticket_scanner.core.validation_client import normalize_response

from scan_payloads import group_payload, ticket_response


def _booking(flags):
    tickets = tuple(
        GroupTicket(f"T{i}", "Jane Doe", "", "GA", f"T{i}", flag, f"T{i}") for i, flag in enumerate(flags)
    )
    return GroupBooking(Purchaser(name="Jane Doe"), tickets)


@pytest.mark.parametrize("flags", [[True, False, True, False], [False] * 3, [True] * 5, [True, False]])
def test_partition_sizes_follow_checked_in_count(flags):
    booking = _booking(flags)
    checked_in = sum(flags)

    check_in = partition(booking, ScanMode.CHECK_IN, "T0")
    check_out = partition(booking, ScanMode.CHECK_OUT, "T0")

    assert len(check_in.relevant) == len(flags) - checked_in
    assert all(not t.is_checked_in for t in check_in.relevant)
    assert len(check_out.relevant) == checked_in
    assert all(t.is_checked_in for t in check_out.relevant)


def test_partition_does_not_force_scanned_ticket_in():
    split = partition(_booking([True, False]), ScanMode.CHECK_IN, "T0")

    assert split.scanned_id == "T0"
    assert [t.id for t in split.relevant] == ["T1"]


def test_resolve_group_builds_booking():
    async def fetch(event_id, code, info):
        assert info["fullname"] == "Jane Doe"
        return group_payload([True, False, False])

    outcome = normalize_response(ticket_response(fullname="Jane Doe"))
    booking = asyncio.run(GroupResolver(fetch).resolve_group("E1", "T0", outcome))

    assert booking is not None
    assert booking.purchaser == Purchaser("jane@example.com", "Jane Doe", "B-1")
    assert len(booking.tickets) == 3
    assert booking.tickets[0].is_checked_in is True


def test_resolve_group_single_ticket_is_not_a_group():
    async def fetch(event_id, code, info):
        return group_payload([False])

    outcome = normalize_response(ticket_response())
    assert asyncio.run(GroupResolver(fetch).resolve_group("E1", "T0", outcome)) is None


def test_resolve_group_failures_degrade_to_none():
    async def boom(event_id, code, info):
        raise RuntimeError("guest list down")

    async def error(event_id, code, info):
        return {"error": True, "msg": "Cannot identify purchaser for group scan"}

    outcome = normalize_response(ticket_response())
    assert asyncio.run(GroupResolver(boom).resolve_group("E1", "T0", outcome)) is None
    assert asyncio.run(GroupResolver(error).resolve_group("E1", "T0", outcome)) is None


def test_resolve_group_skips_lookup_without_ticket_info():
    calls = []

    async def fetch(event_id, code, info):
        calls.append(code)
        return group_payload([False, False])

    resolver = GroupResolver(fetch)
    for outcome in (TimedOut(), NetworkFailure("offline"), NotReady("no event")):
        assert asyncio.run(resolver.resolve_group("E1", "T0", outcome)) is None
    plain = normalize_response({"error": True, "status": 404, "msg": "QR code not found in the system"})
    assert asyncio.run(resolver.resolve_group("E1", "T0", plain)) is None
    assert calls == []


def test_resolve_group_looks_up_valid_code_without_ticket_info():
    seen = []

    async def fetch(event_id, code, info):
        seen.append((event_id, code, dict(info)))
        return group_payload([False, False, True])

    outcome = Valid(status_code=200, message="Valid ticket")
    booking = asyncio.run(GroupResolver(fetch).resolve_group("E1", "T0", outcome))

    assert seen == [("E1", "T0", {})]
    assert booking is not None
    assert [t.id for t in booking.tickets] == ["T0", "T1", "T2"]
