from __future__ import annotations

import re
from datetime import date, datetime

from church_roster.models import AnnualDate

_FULL_DATE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})(?:T.*)?")
_MONTH_DAY = re.compile(r"([0-9]{2})-([0-9]{2})")

ALLOWED_LEAP_DAY_RULES = {"feb28", "mar1"}


class InvalidDateError(ValueError):
    pass


class MalformedDateStringError(InvalidDateError):
    pass


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def validate_month_day(month: int, day: int, *, allow_feb_29: bool = True) -> None:
    if month < 1 or month > 12:
        raise InvalidDateError(f"Invalid month: {month}")

    if day < 1 or day > 31:
        raise InvalidDateError(f"Invalid day: {day}")

    year = 2000 if allow_feb_29 else 2001
    try:
        date(year, month, day)
    except ValueError as exc:
        raise InvalidDateError(f"Invalid month/day combination: {month:02d}-{day:02d}") from exc


def validate_annual_date(annual: AnnualDate) -> AnnualDate:
    validate_month_day(annual.month, annual.day, allow_feb_29=True)
    if annual.year is not None:
        try:
            date(annual.year, annual.month, annual.day)
        except ValueError as exc:
            raise InvalidDateError(f"Invalid date: {annual.isoformat()}") from exc
    return annual


def parse_annual_date(raw_text: str) -> AnnualDate:
    """Parse ``YYYY-MM-DD``, an ISO datetime or ``MM-DD`` into an AnnualDate.

    Raises MalformedDateStringError when the text has none of those shapes,
    InvalidDateError when it has one but names a day that does not exist.
    """
    value = raw_text.strip()

    full_match = _FULL_DATE.fullmatch(value)
    if full_match:
        year = int(full_match.group(1))
        month = int(full_match.group(2))
        day = int(full_match.group(3))
        return validate_annual_date(AnnualDate(month=month, day=day, year=year))

    short_match = _MONTH_DAY.fullmatch(value)
    if short_match:
        month = int(short_match.group(1))
        day = int(short_match.group(2))
        return validate_annual_date(AnnualDate(month=month, day=day, year=None))

    raise MalformedDateStringError(f"Date must use YYYY-MM-DD or MM-DD, got {raw_text!r}")


def reference_date(reference_instant: date | datetime) -> date:
    if isinstance(reference_instant, datetime):
        return reference_instant.date()
    return reference_instant


def occurrence_for_year(annual: AnnualDate, year: int, leap_day_rule: str) -> date:
    if annual.month == 2 and annual.day == 29 and not is_leap_year(year):
        if leap_day_rule == "feb28":
            return date(year, 2, 28)
        if leap_day_rule == "mar1":
            return date(year, 3, 1)
        raise ValueError(f"Unsupported leap day rule: {leap_day_rule}")
    return date(year, annual.month, annual.day)


def next_occurrence(annual: AnnualDate, today: date, leap_day_rule: str) -> date:
    this_year = occurrence_for_year(annual, today.year, leap_day_rule)
    if this_year >= today:
        return this_year
    return occurrence_for_year(annual, today.year + 1, leap_day_rule)


def years_since(annual: AnnualDate, occurrence: date) -> int | None:
    if annual.year is None:
        return None
    return occurrence.year - annual.year
