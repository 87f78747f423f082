"""Shared types for the scan pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

DEFAULT_REJECTION_MESSAGE = "This QR code is not valid for this event."


class ScanMode(str, Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"


class ErrorKind(str, Enum):
    ALREADY_SCANNED = "already-scanned"
    NOT_CHECKED_IN = "not-checked-in"
    INVALID_TICKET = "invalid-ticket"
    VALIDATION_TIMEOUT = "validation-timeout"
    VALIDATION_NETWORK_ERROR = "validation-network-error"
    SESSION_NOT_READY = "session-not-ready"
    UNKNOWN = "unknown"


NON_BLOCKING_KINDS = frozenset({ErrorKind.ALREADY_SCANNED, ErrorKind.NOT_CHECKED_IN})


def is_blocking(kind: ErrorKind) -> bool:
    """Blocking kinds wait for acknowledgment; the rest auto-resume."""
    return kind not in NON_BLOCKING_KINDS


def _truthy_flag(value: Any) -> bool:
    return value is True or value == 1 or value == "1"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class ScanEvent:
    code: str
    timestamp_ms: float


@dataclass(frozen=True)
class TicketInfo:
    """Ticket details attached to a validation response."""

    id: str = ""
    booking_id: str = ""
    reference_num: str = ""
    ticket_identifier: str = ""
    ticket_title: str = ""
    checked_in: bool = False
    checked_in_date: str = ""
    email: str = ""
    fullname: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TicketInfo":
        return cls(
            id=_text(payload.get("id")),
            booking_id=_text(payload.get("booking_id")),
            reference_num=_text(payload.get("reference_num")),
            ticket_identifier=_text(payload.get("ticket_identifier")),
            ticket_title=_text(payload.get("ticket_title")),
            checked_in=_truthy_flag(payload.get("checkedin")),
            checked_in_date=_text(payload.get("checkedin_date")),
            email=_text(payload.get("email")),
            fullname=_text(payload.get("fullname")),
            raw=dict(payload),
        )


# ---------------------------------------------------------------------------
# Validation outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Valid:
    status_code: int
    message: str = ""
    info: Optional[TicketInfo] = None
    generation: int = 0


@dataclass(frozen=True)
class Rejected:
    status_code: int
    raw_message: str
    info: Optional[TicketInfo] = None
    generation: int = 0


@dataclass(frozen=True)
class TimedOut:
    generation: int = 0


@dataclass(frozen=True)
class NetworkFailure:
    reason: str = ""
    generation: int = 0


@dataclass(frozen=True)
class NotReady:
    reason: str = ""
    generation: int = 0


ValidationOutcome = Union[Valid, Rejected, TimedOut, NetworkFailure, NotReady]


def outcome_info(outcome: ValidationOutcome) -> Optional[TicketInfo]:
    """Ticket info carried by a response outcome, if any."""
    if isinstance(outcome, (Valid, Rejected)):
        return outcome.info
    return None


# ---------------------------------------------------------------------------
# Group bookings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GroupTicket:
    id: str
    name: str
    email: str
    ticket_type: str
    ticket_identifier: str
    is_checked_in: bool
    qr_code: str

    def matches(self, code: str) -> bool:
        return code in (self.qr_code, self.ticket_identifier, self.id)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "GroupTicket":
        return cls(
            id=_text(payload.get("id")),
            name=_text(payload.get("name")) or "Guest",
            email=_text(payload.get("email")),
            ticket_type=_text(payload.get("ticketType")),
            ticket_identifier=_text(payload.get("ticketIdentifier")),
            is_checked_in=_truthy_flag(payload.get("isCheckedIn")),
            qr_code=_text(payload.get("qrCode")),
        )


@dataclass(frozen=True)
class Purchaser:
    email: str = ""
    name: str = ""
    booking_id: str = ""

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> "Purchaser":
        payload = payload or {}
        return cls(
            email=_text(payload.get("email")),
            name=_text(payload.get("name")),
            booking_id=_text(payload.get("bookingId")),
        )


@dataclass(frozen=True)
class GroupBooking:
    purchaser: Purchaser
    tickets: Tuple[GroupTicket, ...]


# ---------------------------------------------------------------------------
# Session and notices
# ---------------------------------------------------------------------------

@dataclass
class ScanSession:
    """Mutable scan-screen state. Only the orchestrator writes it."""

    mode: ScanMode = ScanMode.CHECK_IN
    event_id: str = ""
    event_name: str = ""
    initializing: bool = False
    scanning_enabled: bool = True
    generation: int = 0

    @property
    def is_ready(self) -> bool:
        return bool(self.event_id) and not self.initializing


@dataclass(frozen=True)
class ScanNotice:
    """Something shown to the operator: an info outcome or a blocking error."""

    kind: ErrorKind
    title: str
    message: str
    guest_name: Optional[str] = None
    ticket_type: Optional[str] = None
    checked_in_date: Optional[str] = None

    @property
    def blocking(self) -> bool:
        return is_blocking(self.kind)
