"""Collaborator interfaces the orchestrator reports to."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .models import GroupTicket, Purchaser, ScanMode, ScanNotice


class OutcomeSink(Protocol):
    """UI/navigation side: receives exactly one call per processed scan."""

    def on_single_resolved(self, ticket: GroupTicket, mode: ScanMode) -> None: ...

    def on_group_resolved(
        self,
        relevant_tickets: Sequence[GroupTicket],
        purchaser: Purchaser,
        scanned_id: Optional[str],
    ) -> None: ...

    def on_info(self, notice: ScanNotice) -> None: ...

    def on_blocking_error(self, notice: ScanNotice) -> None: ...


class FeedbackSink(Protocol):
    """Audio/haptic cues."""

    def success(self) -> None: ...
    def already_scanned(self) -> None: ...
    def check_in_error(self) -> None: ...
    def warning(self) -> None: ...
    def error(self) -> None: ...


class SilentFeedback:
    def success(self) -> None:
        pass

    def already_scanned(self) -> None:
        pass

    def check_in_error(self) -> None:
        pass

    def warning(self) -> None:
        pass

    def error(self) -> None:
        pass
