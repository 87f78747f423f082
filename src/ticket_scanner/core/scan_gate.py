"""Duplicate-trigger suppression for a continuously scanning camera."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_DEDUP_WINDOW_MS = 3000


@dataclass(frozen=True)
class ProcessedCode:
    code: str = ""
    time_ms: float = 0.0


class ScanGate:
    """Drops a code seen again within ``window_ms`` of its last acceptance.

    The gate must be reset whenever the scan mode changes so the same badge
    can be checked in and then immediately checked out.
    """

    def __init__(self, window_ms: int = DEFAULT_DEDUP_WINDOW_MS) -> None:
        self._window_ms = window_ms
        self._last = ProcessedCode()

    @property
    def last_processed(self) -> ProcessedCode:
        return self._last

    def accept(self, code: str, now_ms: float) -> bool:
        last = self._last
        if code == last.code and now_ms - last.time_ms < self._window_ms:
            return False
        self._last = ProcessedCode(code=code, time_ms=now_ms)
        return True

    def reset(self) -> None:
        self._last = ProcessedCode()
