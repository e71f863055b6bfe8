from __future__ import annotations

from datetime import date

from church_roster.models import MediaRosterWeek, ServiceFlow


def current_media_week(weeks: tuple[MediaRosterWeek, ...], today: date) -> MediaRosterWeek | None:
    """Return the week covering ``today``, else the next one to start, else None."""
    covering = [week for week in weeks if week.start_date <= today <= week.end_date]
    if covering:
        return min(covering, key=lambda week: week.start_date)

    later = [week for week in weeks if week.start_date > today]
    if later:
        return min(later, key=lambda week: week.start_date)
    return None


def upcoming_service_flow(flows: tuple[ServiceFlow, ...], today: date) -> ServiceFlow | None:
    if not flows:
        return None

    ahead = [flow for flow in flows if flow.date >= today]
    if ahead:
        return min(ahead, key=lambda flow: flow.date)
    # Nothing scheduled yet; the last published flow is still useful.
    return max(flows, key=lambda flow: flow.date)
