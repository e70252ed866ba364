"""
Date range parsing for analytic queries.
"""

from datetime import date, datetime, time, timezone
from typing import Tuple

from src.analytics.exceptions import QueryValidationError

START_OF_DAY = time(0, 0, 0)
END_OF_DAY = time(23, 59, 59, 999000)


def _parse_bound(value: str, field: str, day_time: time) -> datetime:
    if not isinstance(value, str) or not value.strip():
        raise QueryValidationError(f"{field} is required", field=field)

    text = value.strip()

    # A bare calendar date takes the given time of day
    try:
        return datetime.combine(date.fromisoformat(text), day_time)
    except ValueError:
        pass

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise QueryValidationError(
            f"Invalid {field} '{value}': expected YYYY-MM-DD or an ISO-8601 date-time",
            field=field,
        ) from None

    # Order timestamps are stored as naive UTC
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date_range(start_date: str, end_date: str) -> Tuple[datetime, datetime]:
    """
    Parse an inclusive date range.

    A date-only end bound is extended to 23:59:59.999 so that a range
    starting and ending on the same day covers that whole day.

    Raises:
        QueryValidationError: If either bound is unparseable or start is after end
    """
    start_at = _parse_bound(start_date, "startDate", START_OF_DAY)
    end_at = _parse_bound(end_date, "endDate", END_OF_DAY)

    if start_at > end_at:
        raise QueryValidationError("startDate must not be later than endDate", field="startDate")

    return start_at, end_at
