# utils/dates.py
from datetime import datetime
from typing import Optional

from fastapi import HTTPException


def parse_date(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """ISO date or datetime query parameter; 400 on anything else.

    A bare YYYY-MM-DD used as an upper bound covers the whole day.
    """
    if not value:
        return None
    try:
        if end_of_day and len(value) == 10:
            value += "T23:59:59"
        return datetime.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Bad datetime format: {value}")
