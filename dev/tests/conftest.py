from __future__ import annotations

from typing import Any, List

import pytest

from ticket_scanner.config.models import TimingSettings
from ticket_scanner.core.group_resolver import GroupResolver
from ticket_scanner.core.orchestrator import ScanOrchestrator
from ticket_scanner.core.validation_client import ValidationClient

from scan_payloads import no_group


class RecordingSink:
    def __init__(self) -> None:
        self.singles: List[Any] = []
        self.groups: List[Any] = []
        self.infos: List[Any] = []
        self.blocking: List[Any] = []
        self.fail_on_single = False

    @property
    def calls(self) -> int:
        return len(self.singles) + len(self.groups) + len(self.infos) + len(self.blocking)

    def on_single_resolved(self, ticket, mode) -> None:
        if self.fail_on_single:
            raise RuntimeError("navigation failed")
        self.singles.append((ticket, mode))

    def on_group_resolved(self, relevant_tickets, purchaser, scanned_id) -> None:
        self.groups.append((list(relevant_tickets), purchaser, scanned_id))

    def on_info(self, notice) -> None:
        self.infos.append(notice)

    def on_blocking_error(self, notice) -> None:
        self.blocking.append(notice)


class RecordingFeedback:
    def __init__(self) -> None:
        self.cues: List[str] = []

    def success(self) -> None:
        self.cues.append("success")

    def already_scanned(self) -> None:
        self.cues.append("already_scanned")

    def check_in_error(self) -> None:
        self.cues.append("check_in_error")

    def warning(self) -> None:
        self.cues.append("warning")

    def error(self) -> None:
        self.cues.append("error")


class FakeClock:
    def __init__(self, now_ms: float = 10_000.0) -> None:
        self.now_ms = now_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> None:
        self.now_ms += ms


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def feedback() -> RecordingFeedback:
    return RecordingFeedback()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fast_timings() -> TimingSettings:
    return TimingSettings(
        dedup_window_ms=3000,
        validation_timeout_ms=50,
        emergency_resume_ms=200,
        auto_resume_ms=80,
    )


@pytest.fixture()
def make_orchestrator(sink, feedback, clock, fast_timings):
    def _make(validate, fetch_group=no_group, **kwargs) -> ScanOrchestrator:
        timings = kwargs.pop("timings", fast_timings)
        return ScanOrchestrator(
            ValidationClient(validate, timings.validation_timeout_ms),
            GroupResolver(fetch_group),
            sink,
            feedback=feedback,
            timings=timings,
            clock=clock,
            **kwargs,
        )

    return _make
