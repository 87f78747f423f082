"""Config I/O utilities."""

from __future__ import annotations

import json
import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import ScannerSettings, validate_config
from .schema import validate_config_schema
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV = "TICKET_SCANNER_CONFIG"
BASE_URL_ENV = "TICKET_SCANNER_BASE_URL"
AUTH_TOKEN_ENV = "TICKET_SCANNER_AUTH_TOKEN"
LOG_JSON_ENV = "TICKET_SCANNER_LOG_JSON"


def get_config_path() -> str:
    override = os.getenv(CONFIG_ENV)
    if override:
        return override
    return str(Path(__file__).resolve().parents[3] / "config.json")


def _read_payload(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        return yaml.safe_load(text)
    return json.loads(text)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Read the raw settings mapping; a missing or unreadable file yields ``{}``."""
    path = Path(config_path or get_config_path())
    if not path.exists():
        logger.debug("No config file at %s, using defaults", path)
        return {}
    try:
        data = _read_payload(path)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.warning("Could not read config %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config %s is not a mapping, ignoring it", path)
        return {}

    ok, error = validate_config_schema(data)
    if not ok:
        logger.warning("Config schema validation failed: %s", error)
    return data


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(data)
    api = dict(data.get("api") or {})
    if os.getenv(BASE_URL_ENV):
        api["base_url"] = os.environ[BASE_URL_ENV]
    if os.getenv(AUTH_TOKEN_ENV):
        api["auth_token"] = os.environ[AUTH_TOKEN_ENV]
    if api:
        data["api"] = api

    log_json = os.getenv(LOG_JSON_ENV)
    if log_json is not None:
        logging_cfg = dict(data.get("logging") or {})
        logging_cfg["json"] = log_json.strip().lower() in ("1", "true", "yes", "on")
        data["logging"] = logging_cfg
    return data


def load_settings(config_path: Optional[str] = None) -> ScannerSettings:
    """Load, override from the environment and validate scanner settings.

    Raises:
        ConfigurationError: when the merged settings fail validation.
    """
    path = config_path or get_config_path()
    data = _apply_env_overrides(load_config(path))
    return validate_config(data, file_path=path)


def save_config(config_data: Dict[str, Any], config_path: Optional[str] = None) -> None:
    path = Path(config_path or get_config_path())
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix.lower() in (".yaml", ".yml"):
            path.write_text(yaml.safe_dump(config_data, sort_keys=False), encoding="utf-8")
        else:
            path.write_text(json.dumps(config_data, indent=2), encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Could not write config: {exc}", file_path=str(path)) from exc
