from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import yaml


# --------------------------
# Helpers
# --------------------------

def _norm_text(data: bytes | bytearray | str, *, encoding: Optional[str] = None) -> str:
    if isinstance(data, (bytes, bytearray)):
        return data.decode(encoding or 'utf-8', errors='replace')
    return data


def detect_format(path: Optional[str | Path] = None, data_hint: Optional[str] = None) -> Optional[str]:
    """
    Returns 'json' or 'yaml'.
    Uses the file extension first; falls back to simple data sniffing.
    """
    if path is not None:
        suffix = Path(path).suffix.lower()
        if suffix == '.json':
            return 'json'
        if suffix in ('.yaml', '.yml'):
            return 'yaml'

    if data_hint is not None:
        s = data_hint.lstrip()
        if s.startswith('{') or s.startswith('['):
            return 'json'
        return 'yaml'
    return None


# --------------------------
# Public API
# --------------------------

def deserialize(data: bytes | bytearray | str,
                *,
                fmt: Optional[str] = None,
                encoding: Optional[str] = None) -> Any:
    """
    Convert JSON or YAML text into plain Python values.
    If fmt is None the format is sniffed from the data.
    """
    text = _norm_text(data, encoding=encoding)
    f = fmt or detect_format(data_hint=text)
    if f == 'json':
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            # YAML is a superset of JSON; mislabeled YAML still loads.
            return yaml.safe_load(text)
    if f == 'yaml':
        return yaml.safe_load(text)
    raise ValueError(f"Unsupported format: {fmt!r}")


def load_bindings(path: str | Path) -> dict:
    """Reads a JSON or YAML file holding a mapping of host values."""
    p = Path(path)
    data = deserialize(p.read_bytes(), fmt=detect_format(p))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{p}: expected a mapping of names to values, got {type(data).__name__}")
    return data


__all__ = [
    "deserialize",
    "detect_format",
    "load_bindings",
]
