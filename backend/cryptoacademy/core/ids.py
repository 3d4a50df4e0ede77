from __future__ import annotations

from fastapi import HTTPException

# Largest value an INTEGER column holds on Postgres.
MAX_DB_INT = 2**31 - 1


def int_id(value: int | str | None, *, field: str) -> int:
    """Parse a numeric identifier sent as a number or numeric string, or fail with 400."""
    if isinstance(value, bool) or value is None:
        raise HTTPException(status_code=400, detail=f"invalid {field}")
    if isinstance(value, int):
        parsed = value
    else:
        raw = str(value).strip()
        if not raw.lstrip("-").isdigit() or len(raw) > 12:
            raise HTTPException(status_code=400, detail=f"invalid {field}")
        parsed = int(raw)
    if parsed <= 0 or parsed > MAX_DB_INT:
        raise HTTPException(status_code=400, detail=f"invalid {field}")
    return parsed


def time_delta(value: int | None, *, field: str = "timeSpent") -> int:
    """Minutes added by one event: 0 when omitted, 400 when negative or out of range."""
    if value is None:
        return 0
    if value < 0 or value > MAX_DB_INT:
        raise HTTPException(status_code=400, detail=f"invalid {field}")
    return int(value)
