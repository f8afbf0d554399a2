# app/repositories/numbering.py
from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session


def next_daily_number(db: Session, column, prefix: str, day: date) -> str:
    """
    <PREFIX>-YYYYMMDD-NNN, sequence restarts every day.
    Uses MAX(seq)+1 so deleted rows don't cause collisions.
    """
    stem = f"{prefix}-{day.strftime('%Y%m%d')}-"
    rows = db.query(column).filter(column.like(f"{stem}%")).all()

    highest = 0
    for (number,) in rows:
        tail = str(number)[len(stem):]
        if tail.isdigit():
            highest = max(highest, int(tail))

    return f"{stem}{highest + 1:03d}"
