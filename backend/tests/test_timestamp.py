"""
Timestamp formatting tests.
"""

import os
import re
from datetime import datetime, timezone
from unittest.mock import patch
from zoneinfo import ZoneInfo

from app.services.timestamp import current_timestamp, format_timestamp, get_timezone

TIMESTAMP_RE = re.compile(r"^\d{1,2} [A-Z][a-z]+ \d{4} at \d{2}:\d{2}:\d{2} (am|pm)$")


class TestFormatTimestamp:
    def test_afternoon(self):
        moment = datetime(2026, 10, 19, 15, 45, 12, tzinfo=ZoneInfo("Asia/Kolkata"))

        assert format_timestamp(moment) == "19 October 2026 at 03:45:12 pm"

    def test_midnight_is_twelve_am(self):
        moment = datetime(2026, 1, 5, 0, 0, 5, tzinfo=ZoneInfo("Asia/Kolkata"))

        assert format_timestamp(moment) == "5 January 2026 at 12:00:05 am"

    def test_noon_is_twelve_pm(self):
        moment = datetime(2026, 3, 1, 12, 0, 0, tzinfo=ZoneInfo("Asia/Kolkata"))

        assert format_timestamp(moment) == "1 March 2026 at 12:00:00 pm"

    def test_morning(self):
        moment = datetime(2026, 12, 31, 9, 7, 3, tzinfo=ZoneInfo("Asia/Kolkata"))

        assert format_timestamp(moment) == "31 December 2026 at 09:07:03 am"


class TestCurrentTimestamp:
    def test_converts_to_india_time_by_default(self):
        with patch.dict(os.environ, {"TIMESTAMP_TIMEZONE": ""}):
            now = datetime(2026, 10, 19, 10, 15, 12, tzinfo=timezone.utc)

            assert current_timestamp(now) == "19 October 2026 at 03:45:12 pm"

    def test_crosses_date_boundary(self):
        with patch.dict(os.environ, {"TIMESTAMP_TIMEZONE": ""}):
            now = datetime(2026, 10, 19, 18, 30, 0, tzinfo=timezone.utc)

            assert current_timestamp(now) == "20 October 2026 at 12:00:00 am"

    def test_naive_datetime_is_treated_as_utc(self):
        with patch.dict(os.environ, {"TIMESTAMP_TIMEZONE": ""}):
            now = datetime(2026, 10, 19, 10, 15, 12)

            assert current_timestamp(now) == "19 October 2026 at 03:45:12 pm"

    def test_timezone_override(self):
        with patch.dict(os.environ, {"TIMESTAMP_TIMEZONE": "UTC"}):
            now = datetime(2026, 10, 19, 10, 15, 12, tzinfo=timezone.utc)

            assert current_timestamp(now) == "19 October 2026 at 10:15:12 am"
            assert get_timezone() == ZoneInfo("UTC")

    def test_live_clock_matches_format(self):
        assert TIMESTAMP_RE.match(current_timestamp())
