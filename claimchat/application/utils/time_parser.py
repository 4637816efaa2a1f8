from __future__ import annotations

import re
from dataclasses import dataclass

TIME_EXAMPLES = '"14:30", "2:30pm", "1430", or "2pm"'

_PATTERNS = (
    re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})$"),
    re.compile(r"^(?P<hour>\d{1,2})[:.](?P<minute>\d{2})\s*(?P<meridiem>am|pm)$"),
    re.compile(r"^(?P<hour>\d{2})(?P<minute>\d{2})$"),
    re.compile(r"^(?P<hour>\d{1,2})\s*(?P<meridiem>am|pm)$"),
)


@dataclass(frozen=True)
class TimeParseResult:
    hour: int | None = None
    minute: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.hour is not None

    @property
    def hhmm(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


def parse_journey_time(text: str) -> TimeParseResult:
    normalized = text.strip().lower()
    if not normalized:
        return TimeParseResult(error=f"Please enter a time (e.g. {TIME_EXAMPLES})")

    for pattern in _PATTERNS:
        match = pattern.match(normalized)
        if not match:
            continue
        groups = match.groupdict()
        hour = int(groups["hour"])
        minute = int(groups.get("minute") or 0)
        meridiem = groups.get("meridiem")
        if meridiem:
            if not 1 <= hour <= 12:
                return TimeParseResult(error="Invalid time: hour must be between 1 and 12 with am/pm")
            if meridiem == "pm" and hour != 12:
                hour += 12
            elif meridiem == "am" and hour == 12:
                hour = 0
        if not 0 <= hour <= 23:
            return TimeParseResult(error="Invalid time: hour must be between 0 and 23")
        if not 0 <= minute <= 59:
            return TimeParseResult(error="Invalid time: minute must be between 0 and 59")
        return TimeParseResult(hour=hour, minute=minute)

    return TimeParseResult(error=f"Invalid time format. Try {TIME_EXAMPLES}")
