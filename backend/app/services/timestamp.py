"""
Timestamp formatting for notification emails and error pages.

Renders the current time in a fixed timezone using the en-IN long-date
style with a 12-hour clock to second precision, e.g.:

    19 October 2026 at 03:45:12 pm
"""

import os
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Asia/Kolkata"

# English month names, independent of the process LC_TIME locale
_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def get_timezone() -> ZoneInfo:
    """Return the configured timestamp zone (TIMESTAMP_TIMEZONE env var)."""
    return ZoneInfo(os.getenv("TIMESTAMP_TIMEZONE", "").strip() or DEFAULT_TIMEZONE)


def format_timestamp(moment: datetime) -> str:
    """Format an aware datetime as ``D Month YYYY at hh:mm:ss am|pm``."""
    hour = moment.hour % 12 or 12
    meridiem = "am" if moment.hour < 12 else "pm"
    return (
        f"{moment.day} {_MONTHS[moment.month - 1]} {moment.year} at "
        f"{hour:02d}:{moment.minute:02d}:{moment.second:02d} {meridiem}"
    )


def current_timestamp(now: Optional[datetime] = None) -> str:
    """
    Return a freshly formatted timestamp in the configured zone.

    ``now`` may be passed (aware) to pin the time in tests; naive values are
    treated as UTC.
    """
    zone = get_timezone()
    if now is None:
        moment = datetime.now(zone)
    else:
        if now.tzinfo is None:
            now = now.replace(tzinfo=ZoneInfo("UTC"))
        moment = now.astimezone(zone)
    return format_timestamp(moment)
