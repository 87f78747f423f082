"""Check-in / check-out recording for one or more selected tickets."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from ..core.models import GroupTicket, ScanMode
from ..utils.result import Err, Ok, Result

logger = logging.getLogger(__name__)

RecordFn = Callable[[str, str], Awaitable[Optional[Mapping[str, Any]]]]


@dataclass(frozen=True)
class TicketActionResult:
    ticket_id: str
    success: bool
    message: str = ""
    status: Optional[int] = None


@dataclass(frozen=True)
class ActionSummary:
    mode: ScanMode
    results: List[TicketActionResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        return self.total - self.successful

    @property
    def message(self) -> str:
        action = "scan" if self.mode is ScanMode.CHECK_IN else "unscan"
        if self.successful:
            return f"Group {action} processed successfully"
        return f"Failed to process group {action}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "msg": self.message,
            "results": [
                {"id": r.ticket_id, "error": not r.success, "msg": r.message, "status": r.status}
                for r in self.results
            ],
        }


def _response_message(response: Mapping[str, Any]) -> str:
    msg = response.get("msg")
    if isinstance(msg, Mapping):
        msg = msg.get("message")
    return "" if msg is None else str(msg)


def _is_success(response: Mapping[str, Any]) -> bool:
    if response.get("error"):
        return False
    msg = response.get("msg")
    if isinstance(msg, str):
        return True
    return isinstance(msg, Mapping) and "message" in msg


class TicketActionService:
    """Records check-ins or check-outs concurrently; one result per ticket, never raises."""

    def __init__(self, record_check_in: RecordFn, record_check_out: RecordFn) -> None:
        self._record = {
            ScanMode.CHECK_IN: record_check_in,
            ScanMode.CHECK_OUT: record_check_out,
        }

    async def _call(self, event_id: str, mode: ScanMode, code: str) -> Result[Optional[Mapping[str, Any]]]:
        try:
            return Ok(await self._record[mode](event_id, code))
        except Exception as exc:
            return Err(exc)

    async def apply(self, event_id: str, mode: ScanMode, tickets: Sequence[GroupTicket]) -> ActionSummary:
        mode = ScanMode(mode)
        codes = [ticket.qr_code or ticket.ticket_identifier or ticket.id for ticket in tickets]
        outcomes = await asyncio.gather(*(self._call(event_id, mode, code) for code in codes))

        results: List[TicketActionResult] = []
        for ticket, code, outcome in zip(tickets, codes, outcomes):
            if isinstance(outcome, Err):
                logger.error("%s of %s failed: %s", mode.value, code, outcome.message)
                results.append(TicketActionResult(ticket.id, False, "Failed to process ticket", 500))
                continue
            response = outcome.value
            if not isinstance(response, Mapping):
                logger.error("%s of %s returned no response", mode.value, code)
                results.append(TicketActionResult(ticket.id, False, "Failed to process ticket", 500))
                continue
            success = _is_success(response)
            message = _response_message(response)
            if not success:
                logger.warning("%s of %s rejected: %s", mode.value, code, message)
            status = response.get("status")
            results.append(TicketActionResult(
                ticket.id,
                success,
                message,
                status if isinstance(status, int) else None,
            ))

        summary = ActionSummary(mode=mode, results=results)
        logger.info(
            "%s for event %s: %d/%d succeeded",
            mode.value,
            event_id,
            summary.successful,
            summary.total,
        )
        return summary
