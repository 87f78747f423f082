"""Config schema validation helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import jsonschema

SCHEMA_FILENAME = "config-schema.json"


def get_schema_path() -> Path:
    return Path(__file__).resolve().parents[3] / SCHEMA_FILENAME


def validate_config_schema(config_data: Dict[str, Any], schema_path: Optional[str] = None) -> Tuple[bool, Optional[str]]:
    path = Path(schema_path) if schema_path else get_schema_path()
    if not path.exists():
        return True, None

    schema = json.loads(path.read_text(encoding="utf-8"))
    try:
        jsonschema.validate(instance=config_data, schema=schema)
    except jsonschema.ValidationError as exc:
        return False, exc.message
    return True, None
