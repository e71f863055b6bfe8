"""Ordering of recurring annual dates into upcoming occurrences.

Every surface (chat commands, the daily announcement job, record-level
callers) goes through ``resolve`` with an explicit reference instant, so the
result depends only on its arguments.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from church_roster.date_logic import (
    ALLOWED_LEAP_DAY_RULES,
    InvalidDateError,
    MalformedDateStringError,
    next_occurrence,
    parse_annual_date,
    reference_date,
    validate_annual_date,
)
from church_roster.models import (
    DEFAULT_LEAP_DAY_RULE,
    AnnualDate,
    OccurrenceSubject,
    ResolvedOccurrence,
    SubjectEvent,
)


class OccurrenceError(ValueError):
    def __init__(self, subject_id: str, event_kind: str, value: Any, reason: str) -> None:
        super().__init__(f"{subject_id}/{event_kind}: {reason}")
        self.subject_id = subject_id
        self.event_kind = event_kind
        self.value = value


class MalformedDateError(OccurrenceError):
    pass


class InvalidCalendarDateError(OccurrenceError):
    pass


def _annual_date_for(subject: OccurrenceSubject, event: SubjectEvent) -> AnnualDate | None:
    value = event.date
    if value is None:
        return None
    if isinstance(value, AnnualDate):
        try:
            return validate_annual_date(value)
        except InvalidDateError as exc:
            raise InvalidCalendarDateError(subject.subject_id, event.kind, value, str(exc)) from exc
    if not isinstance(value, str):
        raise MalformedDateError(subject.subject_id, event.kind, value, f"unsupported date value {value!r}")
    if not value.strip():
        return None

    try:
        return parse_annual_date(value)
    except MalformedDateStringError as exc:
        raise MalformedDateError(subject.subject_id, event.kind, value, str(exc)) from exc
    except InvalidDateError as exc:
        raise InvalidCalendarDateError(subject.subject_id, event.kind, value, str(exc)) from exc


def resolve(
    subjects: Iterable[OccurrenceSubject],
    reference_instant: date | datetime,
    leap_day_rule: str = DEFAULT_LEAP_DAY_RULE,
) -> list[ResolvedOccurrence]:
    """Return the next occurrence of every declared event, soonest first.

    Ties on ``days_until`` are ordered by subject name using plain code point
    comparison; events tied on both keep their input order. The first bad
    date aborts the whole call.
    """
    if leap_day_rule not in ALLOWED_LEAP_DAY_RULES:
        raise ValueError(f"leap_day_rule must be one of {sorted(ALLOWED_LEAP_DAY_RULES)}")

    today = reference_date(reference_instant)
    resolved: list[ResolvedOccurrence] = []

    for subject in subjects:
        for event in subject.events:
            annual = _annual_date_for(subject, event)
            if annual is None:
                continue

            nxt = next_occurrence(annual, today, leap_day_rule)
            resolved.append(
                ResolvedOccurrence(
                    subject_id=subject.subject_id,
                    subject_name=subject.name,
                    event_kind=event.kind,
                    source_date=annual.isoformat(),
                    next_occurrence_date=nxt,
                    days_until=(nxt - today).days,
                )
            )

    resolved.sort(key=lambda item: (item.days_until, item.subject_name))
    return resolved


def subject_from_record(record: Mapping[str, Any]) -> OccurrenceSubject:
    subject_id = record.get("id")
    if subject_id is None or not str(subject_id).strip():
        raise ValueError("subject record requires a non-empty id")

    events: list[SubjectEvent] = []
    for row in record.get("events", []) or []:
        kind = str(row.get("kind", "")).strip()
        if not kind:
            raise ValueError(f"event on subject {subject_id} requires a kind")
        events.append(SubjectEvent(kind=kind, date=row.get("date")))

    return OccurrenceSubject(
        subject_id=str(subject_id),
        name=str(record.get("name", "")),
        events=tuple(events),
    )


def subjects_from_records(records: Iterable[Mapping[str, Any]]) -> list[OccurrenceSubject]:
    return [subject_from_record(record) for record in records]


def occurrence_to_record(occurrence: ResolvedOccurrence) -> dict[str, Any]:
    return {
        "subjectId": occurrence.subject_id,
        "subjectName": occurrence.subject_name,
        "eventKind": occurrence.event_kind,
        "sourceDate": occurrence.source_date,
        "nextOccurrenceDate": occurrence.next_occurrence_date.isoformat(),
        "daysUntil": occurrence.days_until,
    }


def resolve_records(
    records: Iterable[Mapping[str, Any]],
    reference_instant: date | datetime,
    leap_day_rule: str = DEFAULT_LEAP_DAY_RULE,
) -> list[dict[str, Any]]:
    subjects = subjects_from_records(records)
    return [occurrence_to_record(item) for item in resolve(subjects, reference_instant, leap_day_rule)]
