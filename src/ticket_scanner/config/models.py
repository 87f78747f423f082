"""Validated settings models."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import ConfigurationError


class _BaseSettingsModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class ApiSettings(_BaseSettingsModel):
    base_url: str = "https://www.outix.co/apis"
    request_timeout_sec: float = Field(default=30.0, gt=0)
    auth_token: Optional[str] = None


class TimingSettings(_BaseSettingsModel):
    """Scan pipeline timings, all in milliseconds."""

    dedup_window_ms: int = Field(default=3000, ge=0)
    validation_timeout_ms: int = Field(default=5000, gt=0)
    emergency_resume_ms: int = Field(default=8000, gt=0)
    auto_resume_ms: int = Field(default=3000, gt=0)


class LoggingSettings(_BaseSettingsModel):
    level: str = "INFO"
    json_output: bool = Field(default=False, alias="json")
    log_dir: Optional[str] = None
    file_logging: bool = False

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class ScannerSettings(_BaseSettingsModel):
    api: ApiSettings = Field(default_factory=ApiSettings)
    timings: TimingSettings = Field(default_factory=TimingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def validate_config(payload: Dict[str, Any], file_path: Optional[str] = None) -> ScannerSettings:
    try:
        return ScannerSettings.model_validate(payload or {})
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid scanner settings: {exc.error_count()} error(s)",
            file_path=file_path,
            details={"errors": exc.errors(include_url=False)},
        ) from exc
