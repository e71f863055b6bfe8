from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

from telegram import Bot

from church_roster.announcement_state import (
    AnnouncementState,
    load_state,
    save_state_atomic,
)
from church_roster.config_store import load_config
from church_roster.date_logic import reference_date
from church_roster.messages import GREETING_TEMPLATES, greeting_message, responsibility_reminder_message
from church_roster.models import AppConfig, ChurchMember, Responsibility
from church_roster.occurrence_resolver import resolve
from church_roster.roster_client import RosterClient, member_to_subject, responsibility_to_subject

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DueAnnouncement:
    subject_id: str
    event_kind: str
    text: str


class AnnouncementService:
    def __init__(
        self,
        *,
        bot: Bot,
        chat_id: int,
        roster_client: RosterClient,
        config_path: Path,
        state_path: Path,
    ) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._roster_client = roster_client
        self._config_path = config_path
        self._state_path = state_path

    async def dispatch_for_date(self, reference_instant: date | datetime) -> int:
        config = load_config(self._config_path)
        today = reference_date(reference_instant)

        state = load_state(self._state_path)
        state.prune(today)

        members = await self._roster_client.fetch_members()
        responsibilities = await self._roster_client.fetch_responsibilities()

        due = self.due_announcements(today, config, members, responsibilities, state)
        if not due:
            save_state_atomic(self._state_path, state)
            return 0

        sent_count = 0
        for announcement in due:
            await self._bot.send_message(chat_id=self._chat_id, text=announcement.text)
            state.mark_sent(today, announcement.subject_id, announcement.event_kind)
            save_state_atomic(self._state_path, state)
            sent_count += 1

        LOGGER.info("Sent %s announcements for %s", sent_count, today.isoformat())
        return sent_count

    @staticmethod
    def due_announcements(
        today: date,
        config: AppConfig,
        members: list[ChurchMember],
        responsibilities: list[Responsibility],
        state: AnnouncementState,
    ) -> list[DueAnnouncement]:
        due: list[DueAnnouncement] = []

        celebrations = resolve([member_to_subject(member) for member in members], today, config.leap_day_rule)
        for occurrence in celebrations:
            if occurrence.days_until != 0:
                break
            if occurrence.event_kind not in GREETING_TEMPLATES:
                continue
            if state.was_sent(today, occurrence.subject_id, occurrence.event_kind):
                continue
            due.append(
                DueAnnouncement(
                    subject_id=occurrence.subject_id,
                    event_kind=occurrence.event_kind,
                    text=greeting_message(occurrence.subject_name, occurrence.event_kind),
                )
            )

        by_id = {item.responsibility_id: item for item in responsibilities}
        service_days = resolve(
            [responsibility_to_subject(item) for item in responsibilities], today, config.leap_day_rule
        )
        for occurrence in service_days:
            if occurrence.days_until != config.responsibility_lead_days:
                continue
            if state.was_sent(today, occurrence.subject_id, occurrence.event_kind):
                continue
            due.append(
                DueAnnouncement(
                    subject_id=occurrence.subject_id,
                    event_kind=occurrence.event_kind,
                    text=responsibility_reminder_message(by_id[occurrence.subject_id]),
                )
            )

        return due
