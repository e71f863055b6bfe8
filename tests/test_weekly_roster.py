from datetime import date

from church_roster.models import MediaRosterWeek, ServiceFlow
from church_roster.weekly_roster import current_media_week, upcoming_service_flow


def _week(label: str, start: date, end: date) -> MediaRosterWeek:
    return MediaRosterWeek(week=label, start_date=start, end_date=end, media="Joel", sounds=())


WEEKS = (
    _week("Week 44", date(2025, 10, 28), date(2025, 11, 3)),
    _week("Week 43", date(2025, 10, 21), date(2025, 10, 27)),
)


def test_current_media_week_covers_today() -> None:
    assert current_media_week(WEEKS, date(2025, 10, 27)).week == "Week 43"
    assert current_media_week(WEEKS, date(2025, 10, 28)).week == "Week 44"


def test_current_media_week_falls_forward_to_next_week() -> None:
    assert current_media_week(WEEKS, date(2025, 10, 1)).week == "Week 43"


def test_current_media_week_none_after_last_week() -> None:
    assert current_media_week(WEEKS, date(2025, 11, 4)) is None
    assert current_media_week((), date(2025, 11, 4)) is None


def test_upcoming_service_flow() -> None:
    flows = (
        ServiceFlow(date=date(2025, 11, 2), title="Communion Sunday", items=()),
        ServiceFlow(date=date(2025, 10, 26), title="Sunday Service", items=()),
    )

    assert upcoming_service_flow(flows, date(2025, 10, 26)).title == "Sunday Service"
    assert upcoming_service_flow(flows, date(2025, 10, 27)).title == "Communion Sunday"
    assert upcoming_service_flow(flows, date(2025, 12, 1)).title == "Communion Sunday"
    assert upcoming_service_flow((), date(2025, 12, 1)) is None
