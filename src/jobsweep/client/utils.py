"""Small helpers for walking JSON bodies and serializing diagnostics."""

import json
import re
from datetime import date, datetime
from pprint import pformat
from typing import Any, Mapping, Optional

_INDEX_PATTERN = re.compile(r"\[(\d+)\]")


def get_by_path(value: Any, path: Optional[str]) -> Any:
    """
    Read a nested value using a dotted path.

    Supports `items`, `data.items`, and index access such as `pages[0].items`.
    Missing segments yield None rather than raising.
    """
    if not path:
        return value

    segments = [
        segment.strip()
        for segment in _INDEX_PATTERN.sub(r".\1", path).split(".")
        if segment.strip()
    ]

    current = value
    for segment in segments:
        if current is None:
            return None

        if isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return None
            continue

        if isinstance(current, Mapping):
            current = current.get(segment)
            continue

        return None

    return current


def to_plain_headers(headers: Any) -> dict:
    """Flatten a header multidict into a plain str -> str dict"""
    if not headers:
        return {}
    return {str(key): str(val) for key, val in headers.items()}


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return repr(value)


def safe_json_dumps(value: Any, indent: Optional[int] = 2) -> str:
    """Serialize to JSON, falling back to pformat for unserializable input"""
    try:
        return json.dumps(value, indent=indent, default=_json_default, ensure_ascii=False)
    except (TypeError, ValueError):
        return pformat(value, depth=5, width=80)
