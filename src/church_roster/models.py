from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


DEFAULT_LEAP_DAY_RULE = "feb28"

BIRTHDAY = "birthday"
ANNIVERSARY = "anniversary"
SERVICE_DAY = "service-day"


@dataclass(frozen=True)
class AnnualDate:
    month: int
    day: int
    year: int | None = None

    def isoformat(self) -> str:
        if self.year is None:
            return f"{self.month:02d}-{self.day:02d}"
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


@dataclass(frozen=True)
class SubjectEvent:
    kind: str
    date: AnnualDate | str | None


@dataclass(frozen=True)
class OccurrenceSubject:
    subject_id: str
    name: str
    events: tuple[SubjectEvent, ...]


@dataclass(frozen=True)
class ResolvedOccurrence:
    subject_id: str
    subject_name: str
    event_kind: str
    source_date: str
    next_occurrence_date: date
    days_until: int


@dataclass(frozen=True)
class ChurchMember:
    member_id: str
    full_name: str
    date_of_birth: str | None
    anniversary_date: str | None = None
    phone_number: str = ""
    email: str = ""


@dataclass(frozen=True)
class Responsibility:
    responsibility_id: str
    date: str
    speaker: str = ""
    worship_lead: str = ""
    scripture_reading: str = ""
    announcements: str = ""
    saturday_morning_cleanup: str = ""
    food: str = ""
    formatted_date: str = ""


@dataclass(frozen=True)
class MediaRosterWeek:
    week: str
    start_date: date
    end_date: date
    media: str
    sounds: tuple[str, ...]


@dataclass(frozen=True)
class FlowItem:
    time: str
    activity: str
    bgm: str = "none"
    general: str = ""
    media: str = ""
    sounds: str = ""


@dataclass(frozen=True)
class ServiceFlow:
    date: date
    title: str
    items: tuple[FlowItem, ...]
    to_sounds_team: tuple[str, ...] = ()
    to_media_team: tuple[str, ...] = ()
    general: tuple[str, ...] = ()


@dataclass(frozen=True)
class EmergencyContact:
    name: str
    role: str
    phone: str
    kind: str


@dataclass(frozen=True)
class AppConfig:
    timezone: str
    daily_send_time: str
    leap_day_rule: str
    upcoming_window_days: int = 7
    page_size: int = 5
    responsibility_lead_days: int = 1
    media_roster: tuple[MediaRosterWeek, ...] = ()
    service_flows: tuple[ServiceFlow, ...] = ()
    emergency_contacts: tuple[EmergencyContact, ...] = ()


@dataclass
class ResponsibilityPage:
    page: int
    total_pages: int
    rows: list[tuple[Responsibility, ResolvedOccurrence]] = field(default_factory=list)
