from __future__ import annotations

from datetime import date

from church_roster.date_logic import parse_annual_date, years_since
from church_roster.models import (
    ANNIVERSARY,
    BIRTHDAY,
    EmergencyContact,
    MediaRosterWeek,
    ResolvedOccurrence,
    Responsibility,
    ResponsibilityPage,
    ServiceFlow,
)

GREETING_TEMPLATES = {
    BIRTHDAY: "Dear Church, Let's wish {name} a very Happy Birthday 🥳 🥰😍",
    ANNIVERSARY: "Dear Church, Let's wish {name} a very Happy Anniversary 💒 🥳 🥰😍",
}

EVENT_LABELS = {
    BIRTHDAY: "🎂 Birthday",
    ANNIVERSARY: "💒 Anniversary",
}


def _main_assignments(responsibility: Responsibility) -> list[tuple[str, str]]:
    return [
        ("Worship", responsibility.worship_lead),
        ("Word", responsibility.speaker),
        ("Prayer & Scripture Reading", responsibility.scripture_reading),
        ("Announcements", responsibility.announcements),
    ]


def _other_assignments(responsibility: Responsibility) -> list[tuple[str, str]]:
    return [
        ("Clean up", responsibility.saturday_morning_cleanup),
        ("Food", responsibility.food),
    ]


def countdown_label(days_until: int) -> str:
    if days_until == 0:
        return "Today!"
    if days_until == 1:
        return "Tomorrow"
    return f"{days_until} days"


def ordinal_suffix(day: int) -> str:
    if 11 <= day <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def format_short_date(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}"


def format_ordinal_date(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}{ordinal_suffix(value.day)}"


def greeting_message(name: str, event_kind: str) -> str:
    template = GREETING_TEMPLATES.get(event_kind)
    if template is None:
        raise ValueError(f"No greeting for event kind: {event_kind}")
    return template.format(name=name)


def responsibility_reminder_message(responsibility: Responsibility) -> str:
    lines = [
        "Good Evening everyone 🙌🏽",
        "",
        "A Gentle Reminder on this week's responsibilities",
        "",
    ]
    lines.extend(f"{label} : {person}" for label, person in _main_assignments(responsibility) if person)
    lines.extend(["", "Other responsibilities"])
    lines.extend(f"{label} : {person}" for label, person in _other_assignments(responsibility) if person)
    lines.extend(["", "Pls consider sharing PPT's by Friday evening", "", "Thank you 😄"])
    return "\n".join(lines)


def _milestone(occurrence: ResolvedOccurrence) -> str | None:
    years = years_since(parse_annual_date(occurrence.source_date), occurrence.next_occurrence_date)
    if years is None or years <= 0:
        return None
    if occurrence.event_kind == BIRTHDAY:
        return f"Turning {years}"
    if occurrence.event_kind == ANNIVERSARY:
        return f"{years} years"
    return None


def render_upcoming_list(occurrences: list[ResolvedOccurrence], window_days: int) -> str:
    rows = [item for item in occurrences if item.days_until <= window_days]
    if not rows:
        return f"No birthdays or anniversaries in the next {window_days} days."

    lines = [f"Upcoming celebrations ({len(rows)})", f"Next {window_days} days, soonest first:"]
    for index, row in enumerate(rows, start=1):
        label = EVENT_LABELS.get(row.event_kind, row.event_kind)
        lines.append(f"{index}. {row.subject_name} | {label}")
        details = [countdown_label(row.days_until), format_short_date(row.next_occurrence_date)]
        milestone = _milestone(row)
        if milestone is not None:
            details.append(milestone)
        lines.append(f"   {' | '.join(details)}")
        lines.append("")

    return "\n".join(lines).rstrip()


def paginate_responsibilities(
    responsibilities: list[Responsibility],
    occurrences: list[ResolvedOccurrence],
    *,
    page: int,
    page_size: int,
) -> ResponsibilityPage:
    """Pair each resolved service day with its record and cut out one page.

    Raises IndexError when ``page`` is outside ``1..total_pages``.
    """
    by_id = {item.responsibility_id: item for item in responsibilities}
    ordered = [(by_id[occ.subject_id], occ) for occ in occurrences if occ.subject_id in by_id]

    total_pages = max(1, -(-len(ordered) // page_size))
    if page < 1 or page > total_pages:
        raise IndexError(f"Page must be between 1 and {total_pages}")

    start = (page - 1) * page_size
    return ResponsibilityPage(page=page, total_pages=total_pages, rows=ordered[start:start + page_size])


def render_responsibility_page(page: ResponsibilityPage) -> str:
    if not page.rows:
        return "No church responsibilities are scheduled."

    lines = [f"Church responsibilities (page {page.page} of {page.total_pages})"]
    for responsibility, occurrence in page.rows:
        lines.append(
            f"{format_ordinal_date(occurrence.next_occurrence_date)} | Service Day"
            f" | {countdown_label(occurrence.days_until)}"
        )
        for label, person in _main_assignments(responsibility) + _other_assignments(responsibility):
            if person:
                lines.append(f"   {label}: {person}")
        lines.append("")

    return "\n".join(lines).rstrip()


def render_media_week(week: MediaRosterWeek | None, today: date) -> str:
    if week is None:
        return "No media team roster is published yet."

    heading = "This week's assignments" if week.start_date <= today else "Next week's assignments"
    lines = [
        f"Media team roster | {week.week}",
        f"{format_short_date(week.start_date)} - {format_short_date(week.end_date)}",
        "",
        heading,
        f"   Media: {week.media}",
        f"   Sounds: {', '.join(week.sounds) if week.sounds else 'unassigned'}",
    ]
    return "\n".join(lines)


def _instruction_block(title: str, notes: tuple[str, ...]) -> list[str]:
    if not notes:
        return []
    return ["", title] + [f"   - {note}" for note in notes]


def render_service_flow(flow: ServiceFlow | None) -> str:
    if flow is None:
        return "No service flow is published yet."

    lines = [f"{flow.title} | {format_ordinal_date(flow.date)}", ""]
    for item in flow.items:
        header = f"{item.time} {item.activity}"
        if item.bgm != "none":
            header += f" | BGM: {item.bgm}"
        lines.append(header)
        for label, note in (("General", item.general), ("Media", item.media), ("Sounds", item.sounds)):
            if note:
                lines.append(f"   {label}: {note}")

    lines.extend(_instruction_block("To the sounds team", flow.to_sounds_team))
    lines.extend(_instruction_block("To the media team", flow.to_media_team))
    lines.extend(_instruction_block("General notes", flow.general))
    return "\n".join(lines).rstrip()


def render_contacts(contacts: tuple[EmergencyContact, ...]) -> str:
    if not contacts:
        return "No emergency contacts are configured."

    lines = ["Emergency contacts"]
    for contact in contacts:
        lines.append(f"{contact.name} | {contact.role}" if contact.role else contact.name)
        detail = f"   {contact.phone}"
        if contact.kind:
            detail += f" ({contact.kind})"
        lines.append(detail)
    return "\n".join(lines)
