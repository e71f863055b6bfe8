from __future__ import annotations

import logging
from datetime import datetime, time
from pathlib import Path
from zoneinfo import ZoneInfo

from telegram.ext import Application, CallbackContext

from church_roster.announcement_service import AnnouncementService
from church_roster.bot_handlers import HandlerDependencies, build_handlers
from church_roster.config_store import ensure_default_config, load_config
from church_roster.occurrence_resolver import OccurrenceError
from church_roster.roster_client import RosterClient, RosterServiceError
from church_roster.settings import load_settings

LOGGER = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def parse_time_string(value: str) -> tuple[int, int]:
    hour, minute = value.split(":")
    return int(hour), int(minute)


async def scheduled_announcement_callback(context: CallbackContext) -> None:
    service: AnnouncementService = context.application.bot_data["announcement_service"]
    config = load_config(context.application.bot_data["settings"].church_config_path)
    await service.dispatch_for_date(datetime.now(ZoneInfo(config.timezone)))


async def startup_catchup(application: Application) -> None:
    settings = application.bot_data["settings"]
    config = load_config(settings.church_config_path)
    now = datetime.now(ZoneInfo(config.timezone))

    hour, minute = parse_time_string(config.daily_send_time)
    scheduled = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if now >= scheduled:
        service: AnnouncementService = application.bot_data["announcement_service"]
        try:
            await service.dispatch_for_date(now)
        except (RosterServiceError, OccurrenceError) as exc:
            LOGGER.warning("Startup catch-up skipped: %s", exc)


def main() -> None:
    configure_logging()

    settings = load_settings()
    _ensure_parent(settings.church_config_path)
    _ensure_parent(settings.announcement_state_path)

    ensure_default_config(settings.church_config_path)
    config = load_config(settings.church_config_path)

    tz = ZoneInfo(config.timezone)
    hour, minute = parse_time_string(config.daily_send_time)

    roster_client = RosterClient(
        base_url=settings.roster_api_url,
        timeout_sec=settings.roster_api_timeout_sec,
    )

    application = Application.builder().token(settings.telegram_bot_token).build()
    application.bot_data["settings"] = settings
    application.bot_data["handler_deps"] = HandlerDependencies(settings=settings, roster_client=roster_client)

    announcement_service = AnnouncementService(
        bot=application.bot,
        chat_id=settings.telegram_allowed_chat_id,
        roster_client=roster_client,
        config_path=settings.church_config_path,
        state_path=settings.announcement_state_path,
    )
    application.bot_data["announcement_service"] = announcement_service

    for handler in build_handlers():
        application.add_handler(handler)

    application.job_queue.run_daily(
        scheduled_announcement_callback,
        time=time(hour=hour, minute=minute, tzinfo=tz),
        name="daily-church-announcements",
    )

    application.post_init = startup_catchup
    application.run_polling()


if __name__ == "__main__":
    main()
