"""HTTP client for the church roster service and record adapters.

The service wraps every list in ``{"success": true, "data": [...]}``; anything
else is treated as a failed fetch.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from church_roster.models import (
    ANNIVERSARY,
    BIRTHDAY,
    SERVICE_DAY,
    ChurchMember,
    OccurrenceSubject,
    Responsibility,
    SubjectEvent,
)

LOGGER = logging.getLogger(__name__)


class RosterServiceError(RuntimeError):
    pass


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_member(row: dict[str, Any]) -> ChurchMember:
    return ChurchMember(
        member_id=str(row["_id"]),
        full_name=str(row.get("fullName", "")).strip(),
        date_of_birth=_optional_str(row.get("dateOfBirth")),
        anniversary_date=_optional_str(row.get("anniversaryDate")),
        phone_number=str(row.get("phoneNumber") or ""),
        email=str(row.get("email") or ""),
    )


def parse_responsibility(row: dict[str, Any]) -> Responsibility:
    return Responsibility(
        responsibility_id=str(row["_id"]),
        date=str(row.get("date", "")),
        speaker=str(row.get("speaker") or ""),
        worship_lead=str(row.get("worshipLead") or ""),
        scripture_reading=str(row.get("scriptureReading") or ""),
        announcements=str(row.get("announcements") or ""),
        saturday_morning_cleanup=str(row.get("saturdayMorningCleanup") or ""),
        food=str(row.get("food") or ""),
        formatted_date=str(row.get("formattedDate") or ""),
    )


def member_to_subject(member: ChurchMember) -> OccurrenceSubject:
    return OccurrenceSubject(
        subject_id=member.member_id,
        name=member.full_name,
        events=(
            SubjectEvent(kind=BIRTHDAY, date=member.date_of_birth),
            SubjectEvent(kind=ANNIVERSARY, date=member.anniversary_date),
        ),
    )


def responsibility_to_subject(responsibility: Responsibility) -> OccurrenceSubject:
    return OccurrenceSubject(
        subject_id=responsibility.responsibility_id,
        name=responsibility.formatted_date or responsibility.date,
        events=(SubjectEvent(kind=SERVICE_DAY, date=responsibility.date),),
    )


class RosterClient:
    def __init__(
        self,
        *,
        base_url: str,
        timeout_sec: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_sec = timeout_sec
        self._transport = transport

    async def fetch_members(self) -> list[ChurchMember]:
        rows = await self._fetch_list("members")
        try:
            return [parse_member(row) for row in rows]
        except (KeyError, TypeError, AttributeError) as exc:
            raise RosterServiceError(f"Invalid member record: {exc}") from exc

    async def fetch_responsibilities(self) -> list[Responsibility]:
        rows = await self._fetch_list("responsibilities")
        try:
            return [parse_responsibility(row) for row in rows]
        except (KeyError, TypeError, AttributeError) as exc:
            raise RosterServiceError(f"Invalid responsibility record: {exc}") from exc

    async def _fetch_list(self, resource: str) -> list[dict[str, Any]]:
        url = f"{self._base_url}/{resource}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout_sec, transport=self._transport) as client:
                response = await client.get(url)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as exc:
            raise RosterServiceError(f"Fetching {resource} timed out after {self._timeout_sec} seconds") from exc
        except httpx.HTTPStatusError as exc:
            raise RosterServiceError(f"HTTP error! status: {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise RosterServiceError(f"Error calling roster service: {exc}") from exc
        except ValueError as exc:
            raise RosterServiceError(f"Roster service returned invalid JSON for {resource}") from exc

        if not isinstance(payload, dict) or not payload.get("success") or not isinstance(payload.get("data"), list):
            raise RosterServiceError("Invalid response format")

        LOGGER.info("Fetched %s %s", len(payload["data"]), resource)
        return payload["data"]
