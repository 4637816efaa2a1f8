from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta

MONTH_NAMES = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

MONTH_ABBREV = {name[:3]: num for name, num in MONTH_NAMES.items()}
MONTH_ABBREV["sept"] = 9

DATE_EXAMPLES = '"today", "yesterday", "15 Nov", or "15/11/2024"'


@dataclass(frozen=True)
class DateParseResult:
    value: date | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.value is not None


def parse_journey_date(text: str, today: date, max_age_days: int = 90) -> DateParseResult:
    """Parse a travel date and check it is claimable: not in the future, not older than max_age_days."""
    normalized = text.strip().lower()
    if not normalized:
        return DateParseResult(error=f"Please enter a date (e.g. {DATE_EXAMPLES})")

    parsed = (
        _parse_relative(normalized, today)
        or _parse_day_month(normalized, today)
        or _parse_slash(normalized)
        or _parse_iso(normalized)
    )
    if parsed is None:
        return DateParseResult(error=f"Invalid date format. Try {DATE_EXAMPLES}")

    if parsed > today:
        return DateParseResult(error="Sorry, I can only help with journeys from today or earlier.")

    if (today - parsed).days > max_age_days:
        return DateParseResult(
            error=f"Sorry, that journey is too old to claim. Claims must be made within {max_age_days} days of travel."
        )

    return DateParseResult(value=parsed)


def _parse_relative(normalized: str, today: date) -> date | None:
    if normalized == "today":
        return today
    if normalized == "yesterday":
        return today - timedelta(days=1)
    if normalized == "tomorrow":
        return today + timedelta(days=1)
    return None


def _parse_day_month(normalized: str, today: date) -> date | None:
    # "15 Nov", "15 november", "15th Nov"
    match = re.match(r"^(\d{1,2})(?:st|nd|rd|th)?\s+([a-z]+)$", normalized)
    if not match:
        return None
    day = int(match.group(1))
    month = MONTH_NAMES.get(match.group(2)) or MONTH_ABBREV.get(match.group(2))
    if month is None:
        return None

    candidate = _safe_date(today.year, month, day)
    if candidate is None:
        return None
    # A day/month without a year refers to the most recent occurrence
    if candidate > today:
        candidate = _safe_date(today.year - 1, month, day)
    return candidate


def _parse_slash(normalized: str) -> date | None:
    # UK order: DD/MM/YYYY
    match = re.match(r"^(\d{1,2})/(\d{1,2})/(\d{4})$", normalized)
    if not match:
        return None
    return _safe_date(int(match.group(3)), int(match.group(2)), int(match.group(1)))


def _parse_iso(normalized: str) -> date | None:
    match = re.match(r"^(\d{4})-(\d{1,2})-(\d{1,2})$", normalized)
    if not match:
        return None
    return _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None
