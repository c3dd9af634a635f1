#!/usr/bin/env python3
"""
JSON Utilities Module

Reading and writing of the ledger and exchange-rate files, plus the JSON
rendering of CLI reports. Korean member names and bank names are written
as-is (no \\u escapes).

Key Features:
- Whole-file rewrites go through a sibling temp file and an atomic rename
- Report rendering understands SettlementDate and Enum values
"""

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any

from .dates import SettlementDate


def _encode_value(value: Any) -> Any:
    if isinstance(value, SettlementDate):
        return value.to_iso_string()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_json(filepath: str | Path, data: Any) -> None:
    """
    Replace a JSON file with data, creating parent directories as needed.

    Readers never observe a half-written file: the data is written next to
    the target first and then renamed over it.
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = filepath.with_name(f".{filepath.name}.tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=_encode_value)
    os.replace(tmp_path, filepath)


def read_json(filepath: str | Path) -> Any:
    with open(filepath, encoding="utf-8") as f:
        return json.load(f)


def format_json(data: Any) -> str:
    """Render a report dict for terminal output."""
    return json.dumps(data, indent=2, ensure_ascii=False, default=_encode_value)
