"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any


def today() -> date:
    """Today's date in UTC."""
    return datetime.now(UTC).date()


def parse_iso_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` string. Raises ValueError otherwise."""
    value = value.strip()
    if len(value) != 10:
        msg = f"expected YYYY-MM-DD, got {value!r}"
        raise ValueError(msg)
    return date.fromisoformat(value)


def dedupe(values: list[str]) -> list[str]:
    """Drop repeats and blanks, keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def plain_data(value: Any) -> Any:
    """Convert round-trip YAML values (and dates) into plain JSON-ready data."""
    if isinstance(value, dict):
        return {str(k): plain_data(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [plain_data(v) for v in value]
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return float(value)
    return str(value)
