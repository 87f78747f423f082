"""Blocking HTTP client for the ticketing backend."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

import requests
from requests.utils import quote

from ..config.models import ApiSettings
from ..exceptions import TicketingApiError

logger = logging.getLogger(__name__)

AUTH_HEADER = "Auth-Token"

VALIDATE_NOT_FOUND = "QR code not found in the system"
VALIDATE_FAILED = "Ticket validation failed"
SCAN_NOT_FOUND = "Already Scanned Ticket, Cannot check in."
SCAN_FAILED = "Scan failed"
UNSCAN_NOT_FOUND = "This ticket has not been used yet."
UNSCAN_FAILED = "Unscan failed"

_LIST_ENVELOPES = ("msg", "data", "guests", "events")


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def normalize_error_body(data: Any, http_status: int, not_found_message: str, fallback_message: str) -> Dict[str, Any]:
    """Build ``{error, msg, status}`` from a non-2xx response body.

    The backend sometimes nests the real payload under ``details``.
    """
    body: Mapping[str, Any] = {}
    if isinstance(data, Mapping):
        nested = data.get("details")
        body = nested if isinstance(nested, Mapping) and nested else data

    msg = body.get("msg") or body.get("message")
    if not msg:
        msg = not_found_message if http_status == 404 else fallback_message
    return {
        "error": body["error"] if body.get("error") is not None else True,
        "msg": msg,
        "status": body.get("status") or http_status,
    }


def extract_list(data: Any) -> Optional[List[Dict[str, Any]]]:
    """Pull a list of records out of a bare list or a known envelope."""
    if isinstance(data, list):
        return [item for item in data if isinstance(item, Mapping)]
    if isinstance(data, Mapping):
        for key in _LIST_ENVELOPES:
            value = data.get(key)
            if isinstance(value, list):
                return [item for item in value if isinstance(item, Mapping)]
    return None


@dataclass(frozen=True)
class PurchaserKeys:
    """Grouping keys for a booking, from ticket info or the scanned guest row."""

    reference_num: str = ""
    booking_id: str = ""
    email: str = ""
    name: str = ""

    @classmethod
    def from_info(cls, info: Mapping[str, Any]) -> "PurchaserKeys":
        return cls(
            reference_num=_field(info, "reference_num"),
            booking_id=_field(info, "booking_id"),
            email=_field(info, "email"),
            name=_field(info, "fullname"),
        )

    def __bool__(self) -> bool:
        return bool(self.reference_num or self.booking_id or self.email or self.name)

    def filled_from(self, guest: Mapping[str, Any]) -> "PurchaserKeys":
        return PurchaserKeys(
            reference_num=self.reference_num or _field(guest, "booking_reference"),
            booking_id=self.booking_id or _field(guest, "booking_id"),
            email=self.email or _field(guest, "email"),
            name=self.name or _field(guest, "purchased_by") or _field(guest, "fullname"),
        )

    def matches(self, guest: Mapping[str, Any]) -> bool:
        reference = _field(guest, "booking_reference")
        if self.reference_num and reference == self.reference_num:
            return True
        if self.booking_id and self.booking_id in (reference, _field(guest, "booking_id")):
            return True
        if self.email and _field(guest, "email") == self.email:
            return True
        return bool(self.name) and self.name in (_field(guest, "purchased_by"), _field(guest, "fullname"))


def _field(row: Mapping[str, Any], key: str) -> str:
    value = row.get(key)
    return "" if value is None else str(value)


def select_group(guests: List[Dict[str, Any]], code: str, keys: PurchaserKeys) -> Tuple[List[Dict[str, Any]], PurchaserKeys]:
    """Pick the guests sharing a booking with ``code``.

    Returns the group and the keys after filling the gaps from the scanned
    guest row.
    """
    scanned = next((guest for guest in guests if _field(guest, "ticket_identifier") == code), None)
    if scanned is not None:
        keys = keys.filled_from(scanned)

    if keys:
        group = [guest for guest in guests if keys.matches(guest)]
    else:
        group = [scanned] if scanned is not None else []

    if not group and scanned is not None:
        booking_ref = _field(scanned, "booking_reference") or _field(scanned, "booking_id")
        if booking_ref:
            group = [g for g in guests if booking_ref in (_field(g, "booking_reference"), _field(g, "booking_id"))]
        group = group or [scanned]
    return group, keys


def guest_to_group_ticket(attendee: Mapping[str, Any]) -> Dict[str, Any]:
    """Map a guest list row to the group ticket wire shape."""
    qr_code = str(attendee.get("ticket_identifier") or "")
    checkedin = attendee.get("checkedin")
    return {
        "id": qr_code,
        "name": attendee.get("purchased_by") or attendee.get("admit_name") or "Guest",
        "email": attendee.get("email") or "No email",
        "ticketType": attendee.get("ticket_title") or "General Admission",
        "ticketIdentifier": qr_code,
        "isCheckedIn": checkedin == "1" or checkedin == 1,
        "qrCode": qr_code,
    }


class TicketingApi:
    """Thin ``requests`` wrapper around the ticketing REST endpoints.

    Backend rejections come back as ``{error, msg, status}`` dictionaries;
    only transport failures and unreadable bodies raise ``TicketingApiError``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        auth_token: Optional[str] = None,
        timeout_sec: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if auth_token:
            self._session.headers[AUTH_HEADER] = auth_token

    @classmethod
    def from_settings(cls, settings: ApiSettings, session: Optional[requests.Session] = None) -> "TicketingApi":
        return cls(
            settings.base_url,
            auth_token=settings.auth_token,
            timeout_sec=settings.request_timeout_sec,
            session=session,
        )

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _get(self, endpoint: str, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = f"{self.base_url}/{path}"
        logger.debug("GET %s params=%s", url, params)
        try:
            return self._session.get(url, params=params, timeout=self.timeout_sec)
        except requests.Timeout as exc:
            raise TicketingApiError(f"Request to {endpoint} timed out", endpoint=endpoint) from exc
        except requests.RequestException as exc:
            raise TicketingApiError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    def _request(
        self,
        endpoint: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        not_found_message: str,
        fallback_message: str,
    ) -> Dict[str, Any]:
        response = self._get(endpoint, path, params)
        data = self._json(response)
        if not response.ok:
            logger.info("%s returned HTTP %s: %s", endpoint, response.status_code, data)
            return normalize_error_body(data, response.status_code, not_found_message, fallback_message)
        if not isinstance(data, Mapping):
            raise TicketingApiError(
                f"Unexpected response body from {endpoint}",
                endpoint=endpoint,
                status=response.status_code,
            )
        return dict(data)

    def _list(self, endpoint: str, path: str) -> Any:
        response = self._get(endpoint, path)
        if not response.ok:
            raise TicketingApiError(
                f"{endpoint} failed with HTTP {response.status_code}",
                endpoint=endpoint,
                status=response.status_code,
            )
        data = self._json(response)
        if data is None:
            raise TicketingApiError(f"No response data from {endpoint}", endpoint=endpoint, status=response.status_code)
        return data

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def validate_code(self, event_id: str, code: str) -> Dict[str, Any]:
        return self._request(
            "validate",
            f"validate/{_segment(event_id)}/{_segment(code)}",
            not_found_message=VALIDATE_NOT_FOUND,
            fallback_message=VALIDATE_FAILED,
        )

    def record_check_in(self, event_id: str, code: str) -> Dict[str, Any]:
        return self._request(
            "scan",
            f"scan/{_segment(event_id)}/{_segment(code)}",
            not_found_message=SCAN_NOT_FOUND,
            fallback_message=SCAN_FAILED,
        )

    def record_check_out(self, event_id: str, code: str) -> Dict[str, Any]:
        return self._request(
            "unscan",
            f"scan/{_segment(event_id)}/{_segment(code)}",
            params={"unscan": 1},
            not_found_message=UNSCAN_NOT_FOUND,
            fallback_message=UNSCAN_FAILED,
        )

    def fetch_guest_list(self, event_id: str) -> List[Dict[str, Any]]:
        data = self._list("guestlist", f"guestlist/{_segment(event_id)}")
        guests = extract_list(data)
        if guests is None:
            raise TicketingApiError("Unexpected guest list response format", endpoint="guestlist")
        return guests

    def fetch_events(self) -> List[Dict[str, Any]]:
        events = extract_list(self._list("events", "events"))
        if events is None:
            raise TicketingApiError("Unexpected events response format", endpoint="events")
        return events

    def fetch_group_booking(self, event_id: str, code: str, validation_info: Mapping[str, Any]) -> Dict[str, Any]:
        """Find every ticket bought by the purchaser of ``code``.

        The purchaser is identified from the ticket info of an earlier
        validation call, so no second validation request is made. Keys the
        ticket info lacks are taken from the scanned guest's own row.
        """
        keys = PurchaserKeys.from_info(validation_info or {})
        guests = self.fetch_guest_list(event_id)
        group, keys = select_group(guests, code, keys)
        logger.debug("Guest list for %s: %d guests, %d in booking of %s", event_id, len(guests), len(group), code)
        return {
            "success": True,
            "tickets": [guest_to_group_ticket(guest) for guest in group],
            "purchaser": {"email": keys.email, "name": keys.name, "bookingId": keys.booking_id or keys.reference_num},
        }
