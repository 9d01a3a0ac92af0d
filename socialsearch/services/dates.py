from __future__ import annotations

from datetime import datetime, timedelta

from socialsearch.models.common import utcnow
from socialsearch.schemas.search import DateRange

_WINDOWS: dict[DateRange, timedelta] = {
    DateRange.DAY: timedelta(hours=24),
    DateRange.WEEK: timedelta(days=7),
    DateRange.MONTH: timedelta(days=30),
    DateRange.YEAR: timedelta(days=365),
}


def resolve_cutoff(date_range: DateRange | str, now: datetime | None = None) -> datetime | None:
    """Return the earliest createdAt a result may have, or None for no cutoff."""
    window = _WINDOWS.get(DateRange(date_range))
    if window is None:
        return None
    return (now or utcnow()) - window
