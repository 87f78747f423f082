"""Classification of rejected validation responses.

The ticketing backend reports problems as free text, so classification is a
case-insensitive substring match over the message plus a few status codes.
The rules are ordered per scan mode because the same wording means different
things: "already checked in" blocks a check-in but is exactly what a
check-out expects.

Backend messages are not a contract. A wording change on the server side can
silently move a response from one branch to another; keep the phrase tables
below in step with what the service actually sends.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

from .models import ErrorKind, Rejected, ScanMode

ALREADY_CHECKED_IN_PHRASES = ("already", "scanned", "checked in", "cannot check in")
ALREADY_CHECKED_IN_STATUSES = frozenset({400, 409})
INVALID_TICKET_PHRASES = ("invalid", "not found", "expired", "wrong event")
INVALID_TICKET_STATUSES = frozenset({404})
NOT_CHECKED_IN_PHRASES = ("not checked in", "not scanned", "not admitted", "cannot check out")


@dataclass(frozen=True)
class ClassificationRule:
    name: str
    kind: Optional[ErrorKind]  # None: let the action proceed
    phrases: Tuple[str, ...] = ()
    statuses: FrozenSet[int] = frozenset()

    def matches(self, message: str, status_code: int) -> bool:
        return status_code in self.statuses or any(phrase in message for phrase in self.phrases)


@dataclass(frozen=True)
class Classification:
    kind: Optional[ErrorKind]
    rule: str

    @property
    def proceed(self) -> bool:
        return self.kind is None


_RULES: Dict[ScanMode, Tuple[ClassificationRule, ...]] = {
    ScanMode.CHECK_IN: (
        ClassificationRule(
            "already-checked-in",
            ErrorKind.ALREADY_SCANNED,
            ALREADY_CHECKED_IN_PHRASES,
            ALREADY_CHECKED_IN_STATUSES,
        ),
        ClassificationRule(
            "invalid-ticket",
            ErrorKind.INVALID_TICKET,
            INVALID_TICKET_PHRASES,
            INVALID_TICKET_STATUSES,
        ),
    ),
    ScanMode.CHECK_OUT: (
        ClassificationRule("not-checked-in", ErrorKind.NOT_CHECKED_IN, NOT_CHECKED_IN_PHRASES),
        ClassificationRule(
            "checked-in-as-expected",
            None,
            ALREADY_CHECKED_IN_PHRASES,
            ALREADY_CHECKED_IN_STATUSES,
        ),
    ),
}

# Unmatched check-in rejections still go through to the action screen.
_FALLBACKS: Dict[ScanMode, Classification] = {
    ScanMode.CHECK_IN: Classification(None, "check-in-fallback"),
    ScanMode.CHECK_OUT: Classification(ErrorKind.INVALID_TICKET, "check-out-fallback"),
}


def rules_for(mode: ScanMode) -> Tuple[ClassificationRule, ...]:
    return _RULES[mode]


def classify(mode: ScanMode, rejected: Rejected) -> Classification:
    """Map a rejection to an error kind, or to the proceed verdict. Never raises."""
    message = (rejected.raw_message or "").lower()
    status_code = rejected.status_code
    for rule in _RULES[ScanMode(mode)]:
        if rule.matches(message, status_code):
            return Classification(rule.kind, rule.name)
    return _FALLBACKS[ScanMode(mode)]
