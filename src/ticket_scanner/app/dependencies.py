"""Simple dependency container for the scanner application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .event_session import FetchEventsFn
from .ticket_actions import RecordFn
from ..api.async_api import AsyncTicketingApi
from ..api.ticketing_api import TicketingApi
from ..config.models import ScannerSettings
from ..core.group_resolver import FetchGroupBookingFn
from ..core.validation_client import ValidateCodeFn


@dataclass(frozen=True)
class ScannerDependencies:
    validate_code: ValidateCodeFn
    fetch_group_booking: FetchGroupBookingFn
    record_check_in: RecordFn
    record_check_out: RecordFn
    fetch_events: FetchEventsFn
    close: Optional[Callable[[], None]] = None


def get_default_dependencies(settings: Optional[ScannerSettings] = None) -> ScannerDependencies:
    settings = settings or ScannerSettings()
    api = AsyncTicketingApi(TicketingApi.from_settings(settings.api))
    return ScannerDependencies(
        validate_code=api.validate_code,
        fetch_group_booking=api.fetch_group_booking,
        record_check_in=api.record_check_in,
        record_check_out=api.record_check_out,
        fetch_events=api.fetch_events,
        close=api.close,
    )
