from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID


def json_safe(value: Any) -> Optional[Any]:
    """Convert UUIDs, datetimes and decimals nested in dicts/lists to JSON-friendly values."""
    if value is None:
        return None
    if isinstance(value, dict):
        return {str(k): json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [json_safe(v) for v in value]
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value
