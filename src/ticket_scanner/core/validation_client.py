"""Remote validation raced against an internal timeout."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from .models import (
    DEFAULT_REJECTION_MESSAGE,
    NetworkFailure,
    NotReady,
    Rejected,
    TicketInfo,
    TimedOut,
    Valid,
    ValidationOutcome,
)
from ..utils.async_utils import abandon, race_timeout

logger = logging.getLogger(__name__)

DEFAULT_VALIDATION_TIMEOUT_MS = 5000

ValidateCodeFn = Callable[[str, str], Awaitable[Optional[Mapping[str, Any]]]]


def _status_code(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _split_msg(msg: Any) -> "tuple[str, Optional[TicketInfo]]":
    """``msg`` is either a plain string or ``{"message": ..., "info": {...}}``."""
    if isinstance(msg, str):
        return msg, None
    if isinstance(msg, Mapping):
        message = msg.get("message")
        info = msg.get("info")
        return (
            message if isinstance(message, str) else "",
            TicketInfo.from_payload(info) if isinstance(info, Mapping) else None,
        )
    return "", None


def normalize_response(response: Mapping[str, Any], generation: int = 0) -> ValidationOutcome:
    """Turn a validation payload into ``Valid`` or ``Rejected``."""
    error = response.get("error")
    is_error = bool(error) if error is not None else False
    # A missing status must not fall into the 400/409 "already" rule.
    status = _status_code(response.get("status"), 0 if is_error else 200)
    message, info = _split_msg(response.get("msg"))
    if not is_error:
        return Valid(status_code=status, message=message, info=info, generation=generation)
    return Rejected(
        status_code=status,
        raw_message=message or DEFAULT_REJECTION_MESSAGE,
        info=info,
        generation=generation,
    )


class ValidationClient:
    """Validates a scanned code, never waiting longer than ``timeout_ms``.

    When the timeout wins the network call is abandoned, not cancelled: it
    keeps running and its eventual result is dropped.
    """

    def __init__(self, validate_code: ValidateCodeFn, timeout_ms: int = DEFAULT_VALIDATION_TIMEOUT_MS) -> None:
        self._validate_code = validate_code
        self._timeout_ms = timeout_ms

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    async def validate(
        self,
        event_id: str,
        code: str,
        *,
        initializing: bool = False,
        generation: int = 0,
    ) -> ValidationOutcome:
        if not event_id or initializing:
            reason = "event is still initializing" if event_id else "no event selected"
            logger.info("Scanner not ready (%s); skipping validation of %s", reason, code)
            return NotReady(reason=reason, generation=generation)

        finished, future = await race_timeout(
            self._validate_code(event_id, code), self._timeout_ms / 1000.0
        )
        if not finished:
            logger.warning("Validation of %s timed out after %sms", code, self._timeout_ms)
            abandon(future, lambda exc: logger.debug("Abandoned validation of %s failed late: %s", code, exc))
            return TimedOut(generation=generation)

        exc = future.exception()
        if exc is not None:
            logger.error("Validation request for %s failed: %s", code, exc)
            return NetworkFailure(reason=str(exc) or type(exc).__name__, generation=generation)

        response = future.result()
        if not isinstance(response, Mapping):
            logger.error("Validation of %s returned no usable response", code)
            return NetworkFailure(reason="no validation result received", generation=generation)

        outcome = normalize_response(response, generation=generation)
        logger.debug("Validation of %s -> %s", code, outcome)
        return outcome
