"""Scanner application: wires settings, backend calls, the orchestrator and ticket actions."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterable, Callable, Optional, Sequence, Set

from .dependencies import ScannerDependencies, get_default_dependencies
from .event_session import resolve_event_name
from .ticket_actions import ActionSummary, TicketActionService
from ..config.models import ScannerSettings
from ..core.group_resolver import GroupResolver
from ..core.models import GroupTicket, ScanMode
from ..core.orchestrator import ScanOrchestrator
from ..core.sinks import FeedbackSink, OutcomeSink, SilentFeedback
from ..core.validation_client import ValidationClient
from ..exceptions import ScanSessionError

logger = logging.getLogger(__name__)


class ScannerApp:
    def __init__(
        self,
        sink: OutcomeSink,
        *,
        settings: Optional[ScannerSettings] = None,
        deps: Optional[ScannerDependencies] = None,
        feedback: Optional[FeedbackSink] = None,
        clock: Optional[Callable[[], float]] = None,
        mode: ScanMode = ScanMode.CHECK_IN,
    ) -> None:
        self.settings = settings or ScannerSettings()
        self.deps = deps or get_default_dependencies(self.settings)
        self.feedback = feedback or SilentFeedback()
        timings = self.settings.timings
        self.orchestrator = ScanOrchestrator(
            ValidationClient(self.deps.validate_code, timings.validation_timeout_ms),
            GroupResolver(self.deps.fetch_group_booking),
            sink,
            feedback=self.feedback,
            timings=timings,
            clock=clock,
            mode=mode,
        )
        self.actions = TicketActionService(self.deps.record_check_in, self.deps.record_check_out)
        self._tasks: Set[asyncio.Task] = set()

    @property
    def event_id(self) -> str:
        return self.orchestrator.session.event_id

    async def start(self, event_id: str) -> str:
        """Open a session for ``event_id``; scans are refused until its name is resolved."""
        if not event_id:
            raise ScanSessionError("An event must be selected before scanning", event_id=event_id)
        self.orchestrator.begin_session(event_id, initializing=True)
        name = await resolve_event_name(event_id, self.deps.fetch_events)
        self.orchestrator.mark_ready(name)
        return name

    def set_mode(self, mode: ScanMode) -> None:
        self.orchestrator.on_mode_change(mode)

    def scan(self, code: str) -> Optional[asyncio.Task]:
        return self.orchestrator.on_scan_event(code)

    async def record(
        self, tickets: Sequence[GroupTicket], mode: ScanMode, generation: Optional[int] = None
    ) -> ActionSummary:
        """Apply the hand-off action and give the camera back.

        ``generation`` is the token of the scan that handed off; once a newer
        scan owns the session the hand-off no longer resumes anything.
        """
        try:
            summary = await self.actions.apply(self.event_id, mode, tickets)
            if summary.successful:
                self.feedback.success()
            else:
                self.feedback.check_in_error()
            return summary
        finally:
            self.orchestrator.complete_handoff(generation)

    def spawn_record(self, tickets: Sequence[GroupTicket], mode: ScanMode) -> asyncio.Task:
        token = self.orchestrator.generation
        task = asyncio.get_running_loop().create_task(self.record(tickets, mode, token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_for_scanning(self, poll_sec: float = 0.05) -> None:
        while not self.orchestrator.scanning_enabled:
            await asyncio.sleep(poll_sec)

    async def consume(self, codes: AsyncIterable[str], *, wait_between: bool = True) -> int:
        """Feed decoded frames to the orchestrator; returns how many were accepted."""
        accepted = 0
        async for code in codes:
            if wait_between:
                await self.wait_for_scanning()
            if self.scan(code.strip()) is not None:
                accepted += 1
        await self.drain()
        return accepted

    async def drain(self) -> None:
        while True:
            await self.orchestrator.drain()
            if not self._tasks:
                return
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        self.orchestrator.close()
        for task in list(self._tasks):
            task.cancel()
        if self.deps.close is not None:
            self.deps.close()
        logger.debug("Scanner app closed")
