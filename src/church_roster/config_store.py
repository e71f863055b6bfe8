from __future__ import annotations

import os
import re
import tempfile
import tomllib
from datetime import date, datetime
from pathlib import Path
from typing import Any

from church_roster.date_logic import ALLOWED_LEAP_DAY_RULES
from church_roster.models import (
    DEFAULT_LEAP_DAY_RULE,
    AppConfig,
    EmergencyContact,
    FlowItem,
    MediaRosterWeek,
    ServiceFlow,
)

_PHONE = re.compile(r"\+?[0-9][0-9 -]{5,}")


def _toml_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _toml_string(value: str) -> str:
    return f'"{_toml_escape(value)}"'


def _toml_list(values: tuple[str, ...]) -> str:
    return "[" + ", ".join(_toml_string(value) for value in values) + "]"


def _parse_clock(name: str, value: str) -> str:
    pieces = value.split(":")
    if len(pieces) != 2:
        raise ValueError(f"{name} must be in HH:MM format")

    hour, minute = pieces
    if not hour.isdigit() or not minute.isdigit():
        raise ValueError(f"{name} must contain numeric hour/minute")

    hour_i = int(hour)
    minute_i = int(minute)
    if hour_i < 0 or hour_i > 23 or minute_i < 0 or minute_i > 59:
        raise ValueError(f"{name} must be a valid 24-hour time")

    return f"{hour_i:02d}:{minute_i:02d}"


def _non_negative(name: str, value: int, *, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ValueError(f"{name} must be an integer >= {minimum}")
    return value


def _required_text(name: str, value: str) -> str:
    text = value.strip()
    if not text:
        raise ValueError(f"{name} must not be empty")
    return text


def _as_date(name: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValueError(f"{name} must be a YYYY-MM-DD date") from exc


def _validate_media_week(week: MediaRosterWeek) -> MediaRosterWeek:
    if week.end_date < week.start_date:
        raise ValueError(f"media_roster {week.week!r}: end_date is before start_date")
    return MediaRosterWeek(
        week=_required_text("media_roster week", week.week),
        start_date=week.start_date,
        end_date=week.end_date,
        media=_required_text("media_roster media", week.media),
        sounds=tuple(name.strip() for name in week.sounds if name.strip()),
    )


def _validate_service_flow(flow: ServiceFlow) -> ServiceFlow:
    items = tuple(
        FlowItem(
            time=_parse_clock("service flow item time", item.time),
            activity=_required_text("service flow item activity", item.activity),
            bgm=item.bgm.strip() or "none",
            general=item.general.strip(),
            media=item.media.strip(),
            sounds=item.sounds.strip(),
        )
        for item in flow.items
    )
    if list(items) != sorted(items, key=lambda item: item.time):
        raise ValueError(f"service flow {flow.date.isoformat()}: items must be in time order")
    return ServiceFlow(
        date=flow.date,
        title=_required_text("service flow title", flow.title),
        items=items,
        to_sounds_team=flow.to_sounds_team,
        to_media_team=flow.to_media_team,
        general=flow.general,
    )


def _validate_contact(contact: EmergencyContact) -> EmergencyContact:
    phone = contact.phone.strip()
    if not _PHONE.fullmatch(phone):
        raise ValueError(f"emergency contact {contact.name!r}: invalid phone number {phone!r}")
    return EmergencyContact(
        name=_required_text("emergency contact name", contact.name),
        role=contact.role.strip(),
        phone=phone,
        kind=contact.kind.strip(),
    )


def validate_config(config: AppConfig) -> AppConfig:
    timezone = config.timezone.strip()
    if not timezone:
        raise ValueError("timezone must not be empty")

    daily_send_time = _parse_clock("daily_send_time", config.daily_send_time)

    leap_day_rule = config.leap_day_rule.strip().lower()
    if leap_day_rule not in ALLOWED_LEAP_DAY_RULES:
        raise ValueError(f"leap_day_rule must be one of {sorted(ALLOWED_LEAP_DAY_RULES)}")

    return AppConfig(
        timezone=timezone,
        daily_send_time=daily_send_time,
        leap_day_rule=leap_day_rule,
        upcoming_window_days=_non_negative("upcoming_window_days", config.upcoming_window_days),
        page_size=_non_negative("page_size", config.page_size, minimum=1),
        responsibility_lead_days=_non_negative("responsibility_lead_days", config.responsibility_lead_days),
        media_roster=tuple(_validate_media_week(week) for week in config.media_roster),
        service_flows=tuple(_validate_service_flow(flow) for flow in config.service_flows),
        emergency_contacts=tuple(_validate_contact(contact) for contact in config.emergency_contacts),
    )


def _strings(row: dict[str, Any], key: str) -> tuple[str, ...]:
    return tuple(str(value) for value in row.get(key, []))


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("rb") as file_obj:
        data = tomllib.load(file_obj)

    media_roster = [
        MediaRosterWeek(
            week=str(row.get("week", "")),
            start_date=_as_date("media_roster start_date", row.get("start_date")),
            end_date=_as_date("media_roster end_date", row.get("end_date")),
            media=str(row.get("media", "")),
            sounds=_strings(row, "sounds"),
        )
        for row in data.get("media_roster", [])
    ]

    service_flows = [
        ServiceFlow(
            date=_as_date("service flow date", row.get("date")),
            title=str(row.get("title", "")),
            items=tuple(
                FlowItem(
                    time=str(item.get("time", "")),
                    activity=str(item.get("activity", "")),
                    bgm=str(item.get("bgm", "none")),
                    general=str(item.get("general", "")),
                    media=str(item.get("media", "")),
                    sounds=str(item.get("sounds", "")),
                )
                for item in row.get("items", [])
            ),
            to_sounds_team=_strings(row, "to_sounds_team"),
            to_media_team=_strings(row, "to_media_team"),
            general=_strings(row, "general"),
        )
        for row in data.get("service_flows", [])
    ]

    emergency_contacts = [
        EmergencyContact(
            name=str(row.get("name", "")),
            role=str(row.get("role", "")),
            phone=str(row.get("phone", "")),
            kind=str(row.get("kind", "")),
        )
        for row in data.get("emergency_contacts", [])
    ]

    config = AppConfig(
        timezone=str(data.get("timezone", "")),
        daily_send_time=str(data.get("daily_send_time", "")),
        leap_day_rule=str(data.get("leap_day_rule", DEFAULT_LEAP_DAY_RULE)),
        upcoming_window_days=data.get("upcoming_window_days", 7),
        page_size=data.get("page_size", 5),
        responsibility_lead_days=data.get("responsibility_lead_days", 1),
        media_roster=tuple(media_roster),
        service_flows=tuple(service_flows),
        emergency_contacts=tuple(emergency_contacts),
    )
    return validate_config(config)


def render_config(config: AppConfig) -> str:
    validated = validate_config(config)

    lines: list[str] = [
        f"timezone = {_toml_string(validated.timezone)}",
        f'daily_send_time = "{validated.daily_send_time}"',
        "",
        "# Feb 29 dates fall back to feb28 or mar1 in non-leap years.",
        f'leap_day_rule = "{validated.leap_day_rule}"',
        "",
        f"upcoming_window_days = {validated.upcoming_window_days}",
        f"page_size = {validated.page_size}",
        f"responsibility_lead_days = {validated.responsibility_lead_days}",
        "",
    ]

    for week in validated.media_roster:
        lines.append("[[media_roster]]")
        lines.append(f"week = {_toml_string(week.week)}")
        lines.append(f"start_date = {week.start_date.isoformat()}")
        lines.append(f"end_date = {week.end_date.isoformat()}")
        lines.append(f"media = {_toml_string(week.media)}")
        lines.append(f"sounds = {_toml_list(week.sounds)}")
        lines.append("")

    for flow in validated.service_flows:
        lines.append("[[service_flows]]")
        lines.append(f"date = {flow.date.isoformat()}")
        lines.append(f"title = {_toml_string(flow.title)}")
        lines.append(f"to_sounds_team = {_toml_list(flow.to_sounds_team)}")
        lines.append(f"to_media_team = {_toml_list(flow.to_media_team)}")
        lines.append(f"general = {_toml_list(flow.general)}")
        lines.append("")
        for item in flow.items:
            lines.append("[[service_flows.items]]")
            lines.append(f'time = "{item.time}"')
            lines.append(f"activity = {_toml_string(item.activity)}")
            lines.append(f"bgm = {_toml_string(item.bgm)}")
            for key in ("general", "media", "sounds"):
                value = getattr(item, key)
                if value:
                    lines.append(f"{key} = {_toml_string(value)}")
            lines.append("")

    for contact in validated.emergency_contacts:
        lines.append("[[emergency_contacts]]")
        lines.append(f"name = {_toml_string(contact.name)}")
        lines.append(f"role = {_toml_string(contact.role)}")
        lines.append(f"phone = {_toml_string(contact.phone)}")
        lines.append(f"kind = {_toml_string(contact.kind)}")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def write_text_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        delete=False,
    ) as temp_file:
        temp_file.write(text)
        temp_name = temp_file.name

    os.replace(temp_name, path)


def save_config_atomic(path: Path, config: AppConfig) -> None:
    write_text_atomic(path, render_config(config))


def ensure_default_config(path: Path) -> None:
    if path.exists():
        return

    default_config = AppConfig(
        timezone="Asia/Kolkata",
        daily_send_time="18:00",
        leap_day_rule=DEFAULT_LEAP_DAY_RULE,
    )
    save_config_atomic(path, default_config)
