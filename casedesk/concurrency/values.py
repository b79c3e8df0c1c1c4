"""Field value kinds and their semantic equality.

Values travel in three shapes:

- *wire*: JSON-friendly values exchanged with editors (ISO strings for
  dates, decimal strings for amounts, string UUIDs);
- *storage*: what the ORM columns accept (``date``, ``datetime``, ``UUID``);
- *canonical*: a comparable form used to decide whether two values are the
  same, so ``"1000"`` and ``"1000.00"`` or ``"2024-03-01"`` and
  ``date(2024, 3, 1)`` are never reported as a change.
"""

from __future__ import annotations

import copy
import json
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional
from uuid import UUID


class FieldKind(str, Enum):
    """How a field's values are compared and stored."""
    TEXT = "text"
    CHOICE = "choice"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    UUID = "uuid"
    LIST = "list"
    JSON = "json"


_TRUE_STRINGS = {"true", "1", "yes"}
_FALSE_STRINGS = {"false", "0", "no"}


def canonical_json(value: Any) -> str:
    """Stable JSON text for structured values."""
    return json.dumps(value, sort_keys=True, default=str, ensure_ascii=False)


def _parse_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        # Full ISO timestamps are accepted; the date is taken as written
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            return None
    return None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    # Naive values are stored as UTC
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_uuid(value: Any) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return UUID(value.strip())
        except ValueError:
            return None
    return None


def _parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validation_error(kind: FieldKind, value: Any) -> Optional[str]:
    """Return a message when ``value`` cannot be a value of ``kind``."""
    if _is_blank(value):
        return None
    if kind == FieldKind.DECIMAL and _parse_decimal(value) is None:
        return "must be a decimal number"
    if kind == FieldKind.DATE and _parse_date(value) is None:
        return "must be a date (YYYY-MM-DD)"
    if kind == FieldKind.DATETIME and _parse_datetime(value) is None:
        return "must be an ISO 8601 timestamp"
    if kind == FieldKind.UUID and _parse_uuid(value) is None:
        return "must be a UUID"
    if kind == FieldKind.BOOLEAN and _parse_bool(value) is None:
        return "must be a boolean"
    if kind == FieldKind.LIST and not isinstance(value, (list, tuple)):
        return "must be a list"
    return None


def canonical(kind: FieldKind, value: Any) -> Any:
    """Comparable form of ``value``; equal canonical forms mean "unchanged"."""
    if kind == FieldKind.LIST:
        if value is None:
            return ()
        if not isinstance(value, (list, tuple)):
            return (canonical_json(value),)
        # Whole-value comparison, independent of element order
        return tuple(sorted(canonical_json(item) for item in value))
    if _is_blank(value):
        return None
    if kind in (FieldKind.TEXT, FieldKind.CHOICE):
        return str(value).strip()
    if kind == FieldKind.DECIMAL:
        parsed = _parse_decimal(value)
        return parsed.normalize() if parsed is not None else str(value).strip()
    if kind == FieldKind.BOOLEAN:
        parsed_bool = _parse_bool(value)
        return parsed_bool if parsed_bool is not None else value
    if kind == FieldKind.DATE:
        return _parse_date(value) or str(value).strip()
    if kind == FieldKind.DATETIME:
        return _parse_datetime(value) or str(value).strip()
    if kind == FieldKind.UUID:
        parsed_uuid = _parse_uuid(value)
        return parsed_uuid if parsed_uuid is not None else str(value).strip().lower()
    return canonical_json(value)


def values_equal(kind: FieldKind, left: Any, right: Any) -> bool:
    return canonical(kind, left) == canonical(kind, right)


def to_wire(kind: FieldKind, value: Any) -> Any:
    """Convert a stored column value into its JSON-friendly form."""
    if value is None:
        return [] if kind == FieldKind.LIST else None
    if kind == FieldKind.DATE:
        parsed = _parse_date(value)
        return parsed.isoformat() if parsed else None
    if kind == FieldKind.DATETIME:
        parsed_dt = _parse_datetime(value)
        return parsed_dt.isoformat() if parsed_dt else None
    if kind == FieldKind.UUID:
        return str(value)
    if kind == FieldKind.DECIMAL:
        return str(value)
    if kind in (FieldKind.LIST, FieldKind.JSON):
        return copy.deepcopy(value)
    return value


def to_storage(kind: FieldKind, value: Any) -> Any:
    """Convert a validated wire value into what the column stores."""
    if kind == FieldKind.LIST:
        return copy.deepcopy(list(value)) if value is not None else []
    if _is_blank(value):
        return None
    if kind in (FieldKind.TEXT, FieldKind.CHOICE):
        return str(value).strip()
    if kind == FieldKind.DECIMAL:
        parsed = _parse_decimal(value)
        return format(parsed, "f") if parsed is not None else None
    if kind == FieldKind.BOOLEAN:
        return _parse_bool(value)
    if kind == FieldKind.DATE:
        return _parse_date(value)
    if kind == FieldKind.DATETIME:
        return _parse_datetime(value)
    if kind == FieldKind.UUID:
        return _parse_uuid(value)
    return copy.deepcopy(value)


def normalize_wire(kind: FieldKind, value: Any) -> Any:
    """Wire value as it reads back after being stored."""
    return to_wire(kind, to_storage(kind, value))


def display(kind: FieldKind, value: Any, empty: str) -> str:
    """Human-readable rendering of a wire value for diffs and change logs."""
    if kind == FieldKind.LIST:
        items = list(value) if isinstance(value, (list, tuple)) else ([] if value is None else [value])
        if not items:
            return empty
        return "; ".join(
            item.strip() if isinstance(item, str) else canonical_json(item) for item in items
        )
    if _is_blank(value):
        return empty
    if kind == FieldKind.BOOLEAN:
        parsed = _parse_bool(value)
        if parsed is not None:
            return "Yes" if parsed else "No"
    if kind == FieldKind.JSON and not isinstance(value, str):
        return canonical_json(value)
    return str(value).strip()
