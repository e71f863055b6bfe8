"""Record of which announcements went out on which day.

Stored as JSON grouped by send date::

    {"version": 2, "sent": {"2025-10-20": [["m1", "birthday"], ["r7", "service-day"]]}}
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path

from church_roster.config_store import write_text_atomic

LOGGER = logging.getLogger(__name__)

STATE_VERSION = 2
RETENTION_DAYS = 400


@dataclass
class AnnouncementState:
    sent: dict[date, set[tuple[str, str]]] = field(default_factory=dict)

    def was_sent(self, send_date: date, subject_id: str, event_kind: str) -> bool:
        return (subject_id, event_kind) in self.sent.get(send_date, set())

    def mark_sent(self, send_date: date, subject_id: str, event_kind: str) -> None:
        self.sent.setdefault(send_date, set()).add((subject_id, event_kind))

    def prune(self, today: date, *, retention_days: int = RETENTION_DAYS) -> None:
        cutoff = today - timedelta(days=retention_days)
        self.sent = {day: entries for day, entries in self.sent.items() if day >= cutoff}


def load_state(path: Path) -> AnnouncementState:
    if not path.exists():
        return AnnouncementState()

    with path.open("r", encoding="utf-8") as file_obj:
        data = json.load(file_obj)

    state = AnnouncementState()
    for day_text, entries in (data.get("sent") or {}).items():
        try:
            send_date = date.fromisoformat(day_text)
        except ValueError:
            LOGGER.warning("Ignoring unreadable send date in %s: %r", path, day_text)
            continue
        for entry in entries:
            if isinstance(entry, list) and len(entry) == 2:
                state.mark_sent(send_date, str(entry[0]), str(entry[1]))
    return state


def save_state_atomic(path: Path, state: AnnouncementState) -> None:
    payload = {
        "version": STATE_VERSION,
        "sent": {
            day.isoformat(): [list(entry) for entry in sorted(entries)]
            for day, entries in sorted(state.sent.items())
        },
    }
    write_text_atomic(path, json.dumps(payload, indent=2) + "\n")
