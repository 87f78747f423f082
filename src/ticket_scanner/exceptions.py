#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
Ticket Scanner - Consolidated Exception Classes

All project-specific exceptions live here. Scan outcomes themselves are
values (see core.models); exceptions are reserved for configuration,
transport and session misuse.
"""

from datetime import datetime
from typing import Dict, Any, Optional


class BaseError(Exception):
    """Base class for all project-specific errors."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code or "ERROR"
        self.details = details or {}
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Converts the exception to a dictionary for structured logging."""
        return {
            'error_code': self.error_code,
            'message': str(self),
            'details': self.details,
            'timestamp': self.timestamp.isoformat()
        }


# =====================================================================================================
# Configuration errors
# =====================================================================================================

class ConfigurationError(BaseError):
    """Raised when settings cannot be loaded or fail validation."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 file_path: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        config_details = details or {}
        if file_path:
            config_details['file_path'] = file_path
        super().__init__(message, error_code or "CONFIG_ERROR", config_details)


# =====================================================================================================
# Transport errors
# =====================================================================================================

class TicketingApiError(BaseError):
    """Raised when the ticketing service cannot be reached or answers garbage."""

    def __init__(self, message: str, endpoint: Optional[str] = None,
                 status: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        api_details = details or {}
        if endpoint:
            api_details['endpoint'] = endpoint
        if status is not None:
            api_details['status'] = status
        super().__init__(message, "TICKETING_API_ERROR", api_details)
        self.endpoint = endpoint
        self.status = status


# =====================================================================================================
# Session errors
# =====================================================================================================

class ScanSessionError(BaseError):
    """Raised when the scan session is driven in a way it cannot honour."""

    def __init__(self, message: str, event_id: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        session_details = details or {}
        if event_id is not None:
            session_details['event_id'] = event_id
        super().__init__(message, "SCAN_SESSION_ERROR", session_details)
