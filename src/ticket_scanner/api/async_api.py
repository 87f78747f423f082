"""Async wrappers for the blocking ticketing client."""

from __future__ import annotations

from concurrent.futures import Executor
from typing import Any, Dict, List, Mapping, Optional

from .ticketing_api import TicketingApi
from ..utils.async_utils import run_blocking


class AsyncTicketingApi:
    """Runs each ``TicketingApi`` call in an executor so the loop never blocks."""

    def __init__(self, api: TicketingApi, executor: Optional[Executor] = None) -> None:
        self.api = api
        self._executor = executor

    async def validate_code(self, event_id: str, code: str) -> Dict[str, Any]:
        return await run_blocking(self.api.validate_code, event_id, code, executor=self._executor)

    async def record_check_in(self, event_id: str, code: str) -> Dict[str, Any]:
        return await run_blocking(self.api.record_check_in, event_id, code, executor=self._executor)

    async def record_check_out(self, event_id: str, code: str) -> Dict[str, Any]:
        return await run_blocking(self.api.record_check_out, event_id, code, executor=self._executor)

    async def fetch_group_booking(self, event_id: str, code: str, validation_info: Mapping[str, Any]) -> Dict[str, Any]:
        return await run_blocking(
            self.api.fetch_group_booking, event_id, code, validation_info, executor=self._executor
        )

    async def fetch_events(self) -> List[Dict[str, Any]]:
        return await run_blocking(self.api.fetch_events, executor=self._executor)

    async def fetch_guest_list(self, event_id: str) -> List[Dict[str, Any]]:
        return await run_blocking(self.api.fetch_guest_list, event_id, executor=self._executor)

    def close(self) -> None:
        self.api.close()
