"""Scan orchestration: one accepted code in, exactly one outcome out.

Flow per accepted code::

    IDLE -> GATED -> VALIDATING -> GROUP_PENDING | RESOLVED -> IDLE

Scanning is paused from gate acceptance until the outcome is settled. Two
timers keep the camera from getting stuck: the emergency timer armed on
acceptance (cancelled only by a normal resolution) and the auto-resume timer
armed for informational outcomes. Every event that takes ownership of the
session (acceptance, resume, mode change, new session) bumps the session
generation; work started under an older generation is discarded when it
finally returns.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Callable, Optional, Set

from .error_classifier import classify
from .group_resolver import GroupResolver, partition
from .models import (
    ErrorKind,
    GroupBooking,
    GroupTicket,
    NetworkFailure,
    NotReady,
    Rejected,
    ScanEvent,
    ScanMode,
    ScanNotice,
    ScanSession,
    TicketInfo,
    TimedOut,
    ValidationOutcome,
    outcome_info,
)
from .scan_gate import ProcessedCode, ScanGate
from .sinks import FeedbackSink, OutcomeSink, SilentFeedback
from .state_machine import ScanState, ScanStateMachine
from .validation_client import ValidationClient
from ..config.models import TimingSettings

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred while processing the QR code."
VALIDATION_FAILED_MESSAGE = "Failed to validate QR code. Please try again."


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class ScanOrchestrator:
    def __init__(
        self,
        validation_client: ValidationClient,
        group_resolver: GroupResolver,
        sink: OutcomeSink,
        *,
        feedback: Optional[FeedbackSink] = None,
        timings: Optional[TimingSettings] = None,
        clock: Optional[Callable[[], float]] = None,
        mode: ScanMode = ScanMode.CHECK_IN,
    ) -> None:
        self._validation_client = validation_client
        self._group_resolver = group_resolver
        self._sink = sink
        self._feedback = feedback or SilentFeedback()
        self._timings = timings or TimingSettings()
        self._clock = clock or _monotonic_ms
        self._gate = ScanGate(self._timings.dedup_window_ms)
        self._session = ScanSession(mode=ScanMode(mode))
        self._fsm = ScanStateMachine()
        self._emergency_timer: Optional[asyncio.TimerHandle] = None
        self._auto_resume_timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def session(self) -> ScanSession:
        return replace(self._session)

    @property
    def state(self) -> ScanState:
        return self._fsm.state

    @property
    def mode(self) -> ScanMode:
        return self._session.mode

    @property
    def scanning_enabled(self) -> bool:
        return self._session.scanning_enabled

    @property
    def last_processed(self) -> ProcessedCode:
        return self._gate.last_processed

    @property
    def generation(self) -> int:
        """Token for the outcome currently on screen; pass it back when settling."""
        return self._session.generation

    @property
    def pending_tasks(self) -> Set[asyncio.Task]:
        return set(self._tasks)

    # ------------------------------------------------------------------
    # Session control
    # ------------------------------------------------------------------

    def begin_session(self, event_id: str, *, event_name: str = "", initializing: bool = False) -> None:
        self._cancel_timers()
        self._gate.reset()
        self._session.event_id = event_id
        self._session.event_name = event_name
        self._session.initializing = initializing
        self._session.generation += 1
        self._session.scanning_enabled = True
        self._fsm.reset()
        logger.info("Scan session started for event %s (initializing=%s)", event_id or "<none>", initializing)

    def mark_ready(self, event_name: Optional[str] = None) -> None:
        if event_name is not None:
            self._session.event_name = event_name
        self._session.initializing = False
        logger.info("Scan session ready: %s (%s)", self._session.event_name, self._session.event_id)

    def on_mode_change(self, mode: ScanMode) -> None:
        mode = ScanMode(mode)
        previous = self._session.mode
        self._session.mode = mode
        # The same badge must be scannable right away under the new mode.
        self._gate.reset()
        self._resume_scanning(f"mode changed {previous.value} -> {mode.value}")

    def acknowledge(self, generation: Optional[int] = None) -> bool:
        """Operator dismissed the current notice."""
        return self._settle(generation, "acknowledged")

    def complete_handoff(self, generation: Optional[int] = None) -> bool:
        """The ticket action or selection flow returned to the scanner."""
        return self._settle(generation, "hand-off completed")

    def close(self) -> None:
        self._cancel_timers()
        for task in list(self._tasks):
            task.cancel()

    async def drain(self) -> None:
        """Wait for every in-flight scan pipeline to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Camera entry point
    # ------------------------------------------------------------------

    def on_scan_event(self, code: str) -> Optional[asyncio.Task]:
        """Feed one decoded frame. Returns the pipeline task when the code was accepted.

        Must be called from the event loop thread.
        """
        loop = asyncio.get_running_loop()
        if not code:
            return None
        if not self._session.scanning_enabled:
            logger.debug("Scanning paused; dropping %s", code)
            return None

        event = ScanEvent(code=code, timestamp_ms=self._clock())
        self._fsm.transition(ScanState.GATED)
        if not self._gate.accept(event.code, event.timestamp_ms):
            logger.debug("Ignoring duplicate scan of %s within %sms", code, self._timings.dedup_window_ms)
            self._fsm.transition(ScanState.IDLE)
            return None

        generation = self._begin_run(loop, event)
        session = self._session
        task = loop.create_task(
            self._process(event.code, generation, session.mode, session.event_id, session.initializing)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _begin_run(self, loop: asyncio.AbstractEventLoop, event: ScanEvent) -> int:
        self._cancel_timers()
        self._session.scanning_enabled = False
        self._session.generation += 1
        generation = self._session.generation
        self._fsm.transition(ScanState.VALIDATING)
        self._emergency_timer = loop.call_later(
            self._timings.emergency_resume_ms / 1000.0, self._on_emergency_resume
        )
        logger.info(
            "Scan accepted: %s (mode=%s, event=%s, generation=%d)",
            event.code,
            self._session.mode.value,
            self._session.event_id or "<none>",
            generation,
        )
        return generation

    async def _process(
        self,
        code: str,
        generation: int,
        mode: ScanMode,
        event_id: str,
        initializing: bool,
    ) -> None:
        force_resume = False
        try:
            outcome = await self._validation_client.validate(
                event_id, code, initializing=initializing, generation=generation
            )
            if self._discard_if_stale(outcome.generation, code):
                return

            if isinstance(outcome, NotReady):
                self._feedback.warning()
                self._surface_blocking(ScanNotice(
                    kind=ErrorKind.SESSION_NOT_READY,
                    title="Scanner Not Ready",
                    message="Please wait for event validation to complete before scanning.",
                ))
                force_resume = True
                return

            booking = await self._group_resolver.resolve_group(event_id, code, outcome)
            if self._discard_if_stale(generation, code):
                return

            if booking is not None:
                self._resolve_group(booking, code, mode)
            else:
                self._resolve_single(code, mode, outcome)
        except Exception:
            logger.exception("Unexpected error while processing %s", code)
            if self._discard_if_stale(generation, code):
                return
            force_resume = True
            self._report_unexpected()
        finally:
            if force_resume and generation == self._session.generation:
                self._resume_scanning("forced after failed scan")

    def _resolve_group(self, booking: GroupBooking, code: str, mode: ScanMode) -> None:
        split = partition(booking, mode, code)
        logger.info(
            "Relevant tickets for %s: %d of %d (scanned ticket %s)",
            mode.value,
            len(split.relevant),
            len(booking.tickets),
            "found" if split.scanned_ticket else "not found",
        )
        if split.relevant:
            self._fsm.transition(ScanState.GROUP_PENDING)
            self._sink.on_group_resolved(list(split.relevant), booking.purchaser, split.scanned_id or code)
            self._cancel_emergency()
            return

        guest_name = booking.purchaser.name or (split.scanned_ticket.name if split.scanned_ticket else "") or "Group"
        if mode is ScanMode.CHECK_IN:
            notice = ScanNotice(
                kind=ErrorKind.ALREADY_SCANNED,
                title="Already Checked In",
                message="All tickets in this group are already checked in.",
                guest_name=guest_name,
                ticket_type="Group Booking",
            )
        else:
            notice = ScanNotice(
                kind=ErrorKind.NOT_CHECKED_IN,
                title="Nothing To Check Out",
                message="No tickets in this group are currently checked in.",
                guest_name=guest_name,
                ticket_type="Group Booking",
            )
        self._feedback.already_scanned()
        self._surface(notice)

    def _resolve_single(self, code: str, mode: ScanMode, outcome: ValidationOutcome) -> None:
        if isinstance(outcome, TimedOut):
            self._feedback.check_in_error()
            self._surface_blocking(ScanNotice(
                kind=ErrorKind.VALIDATION_TIMEOUT,
                title="Validation Error",
                message=VALIDATION_FAILED_MESSAGE,
            ))
            return
        if isinstance(outcome, NetworkFailure):
            self._feedback.check_in_error()
            self._surface_blocking(ScanNotice(
                kind=ErrorKind.VALIDATION_NETWORK_ERROR,
                title="Validation Error",
                message=VALIDATION_FAILED_MESSAGE,
            ))
            return

        info = outcome_info(outcome)
        if isinstance(outcome, Rejected):
            verdict = classify(mode, outcome)
            logger.info("Rejection of %s (%s) matched rule %s", code, outcome.status_code, verdict.rule)
            if not verdict.proceed:
                self._surface_rejection(verdict.kind, outcome)
                return
        elif mode is ScanMode.CHECK_OUT and not (info and info.checked_in):
            self._feedback.check_in_error()
            self._surface_info(ScanNotice(
                kind=ErrorKind.NOT_CHECKED_IN,
                title="Not Checked In",
                message="Cannot check out. This ticket has not been checked in yet.",
                guest_name=(info.fullname if info else "") or "Guest",
                ticket_type=(info.ticket_title if info else "") or "Ticket",
            ))
            return

        ticket = self._single_ticket(code, mode, info)
        self._fsm.transition(ScanState.RESOLVED)
        self._sink.on_single_resolved(ticket, mode)
        self._cancel_emergency()
        self._fsm.transition(ScanState.IDLE)

    def _surface_rejection(self, kind: ErrorKind, rejected: Rejected) -> None:
        info = rejected.info
        guest_name = (info.fullname if info else "") or "Guest"
        ticket_type = (info.ticket_title if info else "") or "Ticket"
        if kind is ErrorKind.ALREADY_SCANNED:
            self._feedback.already_scanned()
            notice = ScanNotice(
                kind=kind,
                title="Already Scanned Ticket",
                message="Ticket is already checked in.",
                guest_name=guest_name,
                ticket_type=ticket_type,
                checked_in_date=(info.checked_in_date if info else "") or "Unknown time",
            )
        elif kind is ErrorKind.NOT_CHECKED_IN:
            self._feedback.check_in_error()
            notice = ScanNotice(
                kind=kind,
                title="Not Checked In",
                message="Ticket is not checked in.",
                guest_name=guest_name,
                ticket_type=ticket_type,
            )
        else:
            self._feedback.check_in_error()
            notice = ScanNotice(kind=kind, title="Invalid QR Code", message=rejected.raw_message)
        self._surface(notice)

    @staticmethod
    def _single_ticket(code: str, mode: ScanMode, info: Optional[TicketInfo]) -> GroupTicket:
        return GroupTicket(
            id=code,
            name=(info.fullname if info else "") or "Guest",
            email=info.email if info else "",
            ticket_type=(info.ticket_title if info else "") or "Ticket",
            ticket_identifier=code,
            is_checked_in=mode is ScanMode.CHECK_OUT,
            qr_code=code,
        )

    # ------------------------------------------------------------------
    # Settling
    # ------------------------------------------------------------------

    def _surface(self, notice: ScanNotice) -> None:
        if notice.blocking:
            self._surface_blocking(notice)
        else:
            self._surface_info(notice)

    def _surface_info(self, notice: ScanNotice) -> None:
        logger.info("%s: %s (%s)", notice.title, notice.message, notice.guest_name)
        self._fsm.transition(ScanState.RESOLVED)
        self._sink.on_info(notice)
        self._cancel_emergency()
        self._schedule_auto_resume()
        self._fsm.transition(ScanState.IDLE)

    def _surface_blocking(self, notice: ScanNotice) -> None:
        # The emergency timer stays armed until the operator acknowledges.
        logger.warning("%s [%s]: %s", notice.title, notice.kind.value, notice.message)
        self._fsm.transition(ScanState.RESOLVED)
        self._sink.on_blocking_error(notice)
        self._fsm.transition(ScanState.IDLE)

    def _report_unexpected(self) -> None:
        try:
            self._feedback.error()
            self._surface_blocking(ScanNotice(kind=ErrorKind.UNKNOWN, title="Error", message=UNEXPECTED_ERROR_MESSAGE))
        except Exception:
            logger.exception("Could not surface unexpected scan error")

    def _discard_if_stale(self, generation: int, code: str) -> bool:
        if generation == self._session.generation:
            return False
        logger.warning(
            "Discarding stale result for %s (generation %d, current %d)",
            code,
            generation,
            self._session.generation,
        )
        return True

    def _settle(self, generation: Optional[int], reason: str) -> bool:
        # A token from an older outcome must not release a newer scan.
        if generation is not None and generation != self._session.generation:
            logger.warning(
                "Ignoring %s for generation %d (current %d)", reason, generation, self._session.generation
            )
            return False
        self._resume_scanning(reason)
        return True

    def _resume_scanning(self, reason: str) -> None:
        self._cancel_timers()
        self._session.generation += 1
        self._session.scanning_enabled = True
        self._fsm.reset()
        logger.info("Scanning resumed (%s)", reason)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _on_emergency_resume(self) -> None:
        self._emergency_timer = None
        logger.warning("Emergency fail-safe: forcing scanning back on after %sms", self._timings.emergency_resume_ms)
        self._resume_scanning("emergency fail-safe")

    def _on_auto_resume(self) -> None:
        self._auto_resume_timer = None
        if not self._session.scanning_enabled:
            self._resume_scanning("auto-resume after notice")

    def _schedule_auto_resume(self) -> None:
        self._cancel_auto_resume()
        self._auto_resume_timer = asyncio.get_running_loop().call_later(
            self._timings.auto_resume_ms / 1000.0, self._on_auto_resume
        )

    def _cancel_emergency(self) -> None:
        if self._emergency_timer is not None:
            self._emergency_timer.cancel()
            self._emergency_timer = None

    def _cancel_auto_resume(self) -> None:
        if self._auto_resume_timer is not None:
            self._auto_resume_timer.cancel()
            self._auto_resume_timer = None

    def _cancel_timers(self) -> None:
        self._cancel_emergency()
        self._cancel_auto_resume()
