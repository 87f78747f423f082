"""Scanner settings: file I/O, schema check and pydantic models."""

from .io import get_config_path, load_config, load_settings, save_config
from .models import ApiSettings, LoggingSettings, ScannerSettings, TimingSettings, validate_config
from .schema import validate_config_schema

__all__ = [
    "ApiSettings",
    "LoggingSettings",
    "ScannerSettings",
    "TimingSettings",
    "get_config_path",
    "load_config",
    "load_settings",
    "save_config",
    "validate_config",
    "validate_config_schema",
]
