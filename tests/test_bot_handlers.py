from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from church_roster.bot_handlers import (
    HandlerDependencies,
    contacts_command,
    help_command,
    is_authorized,
    media_command,
    parse_page_arg,
    responsibilities_command,
    service_command,
    upcoming_command,
)
from church_roster.config_store import save_config_atomic
from church_roster.models import (
    AppConfig,
    ChurchMember,
    EmergencyContact,
    FlowItem,
    MediaRosterWeek,
    Responsibility,
    ServiceFlow,
)
from church_roster.roster_client import RosterServiceError
from church_roster.settings import Settings


@dataclass
class FakeChat:
    id: int


@dataclass
class FakeMessage:
    replies: list[str] = field(default_factory=list)

    async def reply_text(self, text: str) -> None:
        self.replies.append(text)


@dataclass
class FakeUpdate:
    effective_chat: FakeChat | None
    effective_message: FakeMessage = field(default_factory=FakeMessage)


@dataclass
class FakeApplication:
    bot_data: dict[str, Any]


@dataclass
class FakeContext:
    application: FakeApplication
    args: list[str] = field(default_factory=list)


@dataclass
class FakeRosterClient:
    members: list[ChurchMember] = field(default_factory=list)
    responsibilities: list[Responsibility] = field(default_factory=list)
    error: Exception | None = None

    async def fetch_members(self) -> list[ChurchMember]:
        if self.error is not None:
            raise self.error
        return list(self.members)

    async def fetch_responsibilities(self) -> list[Responsibility]:
        if self.error is not None:
            raise self.error
        return list(self.responsibilities)


def _settings(tmp_path: Path) -> Settings:
    config_path = tmp_path / "church.toml"
    save_config_atomic(
        config_path,
        AppConfig(timezone="UTC", daily_send_time="18:00", leap_day_rule="feb28", page_size=2),
    )
    return Settings(
        telegram_bot_token="token",
        telegram_allowed_chat_id=222,
        roster_api_url="http://roster.test/api",
        roster_api_timeout_sec=10.0,
        church_config_path=config_path,
        announcement_state_path=tmp_path / "announcement_state.json",
    )


def _context(tmp_path: Path, roster: FakeRosterClient, args: list[str] | None = None) -> FakeContext:
    deps = HandlerDependencies(settings=_settings(tmp_path), roster_client=roster)
    return FakeContext(application=FakeApplication(bot_data={"handler_deps": deps}), args=args or [])


def test_is_authorized_true(tmp_path: Path) -> None:
    assert is_authorized(FakeUpdate(effective_chat=FakeChat(id=222)), _settings(tmp_path)) is True


def test_is_authorized_false(tmp_path: Path) -> None:
    settings = _settings(tmp_path)

    assert is_authorized(FakeUpdate(effective_chat=FakeChat(id=999)), settings) is False
    assert is_authorized(FakeUpdate(effective_chat=None), settings) is False


def test_parse_page_arg() -> None:
    assert parse_page_arg([]) == 1
    assert parse_page_arg(None) == 1
    assert parse_page_arg(["3"]) == 3

    with pytest.raises(ValueError):
        parse_page_arg(["two"])
    with pytest.raises(ValueError):
        parse_page_arg(["1", "2"])


def test_unauthorized_chat_is_refused(tmp_path: Path) -> None:
    update = FakeUpdate(effective_chat=FakeChat(id=999))
    context = _context(tmp_path, FakeRosterClient())

    asyncio.run(upcoming_command(update, context))

    assert update.effective_message.replies == ["This bot only serves its configured church chat."]


def test_responsibilities_command_pages_through_service_days(tmp_path: Path) -> None:
    roster = FakeRosterClient(
        responsibilities=[
            Responsibility(responsibility_id=f"r{month}", date=f"2025-{month:02d}-01", speaker=f"Speaker {month}")
            for month in range(1, 6)
        ]
    )
    update = FakeUpdate(effective_chat=FakeChat(id=222))

    asyncio.run(responsibilities_command(update, _context(tmp_path, roster, ["3"])))

    reply = update.effective_message.replies[0]
    assert reply.startswith("Church responsibilities (page 3 of 3)")
    assert reply.count("Service Day") == 1


def test_responsibilities_command_rejects_page_out_of_range(tmp_path: Path) -> None:
    roster = FakeRosterClient(responsibilities=[Responsibility(responsibility_id="r1", date="2025-01-05")])
    update = FakeUpdate(effective_chat=FakeChat(id=222))

    asyncio.run(responsibilities_command(update, _context(tmp_path, roster, ["4"])))

    assert update.effective_message.replies == ["Page must be between 1 and 1."]


def test_upcoming_command_reports_fetch_failure(tmp_path: Path) -> None:
    roster = FakeRosterClient(error=RosterServiceError("HTTP error! status: 500"))
    update = FakeUpdate(effective_chat=FakeChat(id=222))

    asyncio.run(upcoming_command(update, _context(tmp_path, roster)))

    assert update.effective_message.replies == ["Failed to fetch members: HTTP error! status: 500"]


def test_upcoming_command_reports_bad_member_date(tmp_path: Path) -> None:
    roster = FakeRosterClient(members=[ChurchMember(member_id="m1", full_name="Typo", date_of_birth="sometime")])
    update = FakeUpdate(effective_chat=FakeChat(id=222))

    asyncio.run(upcoming_command(update, _context(tmp_path, roster)))

    assert update.effective_message.replies[0].startswith("Failed to fetch members: m1/birthday")


def _save_rosters(context: FakeContext, **tables: Any) -> None:
    deps: HandlerDependencies = context.application.bot_data["handler_deps"]
    save_config_atomic(
        deps.settings.church_config_path,
        AppConfig(timezone="UTC", daily_send_time="18:00", leap_day_rule="feb28", **tables),
    )


def test_help_lists_roster_commands(tmp_path: Path) -> None:
    update = FakeUpdate(effective_chat=FakeChat(id=222))

    asyncio.run(help_command(update, _context(tmp_path, FakeRosterClient())))

    reply = update.effective_message.replies[0]
    for command in ("/upcoming", "/responsibilities", "/media", "/service", "/contacts"):
        assert command in reply


def test_media_command_shows_covering_week(tmp_path: Path) -> None:
    context = _context(tmp_path, FakeRosterClient())
    _save_rosters(
        context,
        media_roster=(
            MediaRosterWeek(
                week="Every week",
                start_date=date(2000, 1, 1),
                end_date=date(2099, 12, 31),
                media="Joel",
                sounds=("Richard", "Nophina"),
            ),
        ),
    )
    update = FakeUpdate(effective_chat=FakeChat(id=222))

    asyncio.run(media_command(update, context))

    reply = update.effective_message.replies[0]
    assert reply.startswith("Media team roster | Every week")
    assert "   Sounds: Richard, Nophina" in reply


def test_media_command_without_roster(tmp_path: Path) -> None:
    update = FakeUpdate(effective_chat=FakeChat(id=222))

    asyncio.run(media_command(update, _context(tmp_path, FakeRosterClient())))

    assert update.effective_message.replies == ["No media team roster is published yet."]


def test_service_command_shows_next_flow(tmp_path: Path) -> None:
    context = _context(tmp_path, FakeRosterClient())
    _save_rosters(
        context,
        service_flows=(
            ServiceFlow(date=date(2000, 1, 2), title="Old Service", items=()),
            ServiceFlow(
                date=date(2099, 1, 4),
                title="Sunday Service",
                items=(FlowItem(time="09:30", activity="Worship", bgm="worship"),),
            ),
        ),
    )
    update = FakeUpdate(effective_chat=FakeChat(id=222))

    asyncio.run(service_command(update, context))

    reply = update.effective_message.replies[0]
    assert reply.startswith("Sunday Service | Jan 4th")
    assert "09:30 Worship | BGM: worship" in reply


def test_contacts_command(tmp_path: Path) -> None:
    context = _context(tmp_path, FakeRosterClient())
    _save_rosters(
        context,
        emergency_contacts=(
            EmergencyContact(name="Church Office", role="Main Office", phone="+918765432109", kind="General Inquiries"),
        ),
    )
    update = FakeUpdate(effective_chat=FakeChat(id=222))

    asyncio.run(contacts_command(update, context))

    assert update.effective_message.replies == [
        "Emergency contacts\nChurch Office | Main Office\n   +918765432109 (General Inquiries)"
    ]


def test_contacts_command_refuses_other_chats(tmp_path: Path) -> None:
    update = FakeUpdate(effective_chat=FakeChat(id=999))

    asyncio.run(contacts_command(update, _context(tmp_path, FakeRosterClient())))

    assert update.effective_message.replies == ["This bot only serves its configured church chat."]
