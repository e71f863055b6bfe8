from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from telegram import Update
from telegram.ext import CallbackContext, CommandHandler

from church_roster.config_store import load_config
from church_roster.date_logic import reference_date
from church_roster.messages import (
    paginate_responsibilities,
    render_contacts,
    render_media_week,
    render_responsibility_page,
    render_service_flow,
    render_upcoming_list,
)
from church_roster.occurrence_resolver import OccurrenceError, resolve
from church_roster.roster_client import (
    RosterClient,
    RosterServiceError,
    member_to_subject,
    responsibility_to_subject,
)
from church_roster.settings import Settings
from church_roster.weekly_roster import current_media_week, upcoming_service_flow

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandlerDependencies:
    settings: Settings
    roster_client: RosterClient


def is_authorized(update: Update, settings: Settings) -> bool:
    effective_chat = update.effective_chat
    if effective_chat is None:
        return False
    return effective_chat.id == settings.telegram_allowed_chat_id


async def _deny_unauthorized(update: Update) -> None:
    if update.effective_message:
        await update.effective_message.reply_text("This bot only serves its configured church chat.")


def parse_page_arg(args: list[str] | None) -> int:
    if not args:
        return 1
    if len(args) != 1 or not args[0].isdigit():
        raise ValueError("Usage: /responsibilities [page]")
    return int(args[0])


def _render_help() -> str:
    return (
        "Commands:\n"
        "/upcoming - Birthdays and anniversaries coming up soon\n"
        "/responsibilities [page] - Service-day responsibilities, nearest first\n"
        "/media - This week's media and sounds team\n"
        "/service - Order of the next service\n"
        "/contacts - Emergency contacts\n"
        "/help - Show this help message"
    )


async def help_command(update: Update, context: CallbackContext) -> None:
    deps: HandlerDependencies = context.application.bot_data["handler_deps"]
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return
    await update.effective_message.reply_text(_render_help())


async def upcoming_command(update: Update, context: CallbackContext) -> None:
    deps: HandlerDependencies = context.application.bot_data["handler_deps"]
    settings = deps.settings
    if not is_authorized(update, settings):
        await _deny_unauthorized(update)
        return

    config = load_config(settings.church_config_path)
    now = datetime.now(ZoneInfo(config.timezone))

    try:
        members = await deps.roster_client.fetch_members()
        occurrences = resolve([member_to_subject(member) for member in members], now, config.leap_day_rule)
    except (RosterServiceError, OccurrenceError) as exc:
        LOGGER.error("Error fetching members: %s", exc)
        await update.effective_message.reply_text(f"Failed to fetch members: {exc}")
        return

    await update.effective_message.reply_text(render_upcoming_list(occurrences, config.upcoming_window_days))


async def responsibilities_command(update: Update, context: CallbackContext) -> None:
    deps: HandlerDependencies = context.application.bot_data["handler_deps"]
    settings = deps.settings
    if not is_authorized(update, settings):
        await _deny_unauthorized(update)
        return

    try:
        page_number = parse_page_arg(context.args)
    except ValueError as exc:
        await update.effective_message.reply_text(str(exc))
        return

    config = load_config(settings.church_config_path)
    now = datetime.now(ZoneInfo(config.timezone))

    try:
        responsibilities = await deps.roster_client.fetch_responsibilities()
        occurrences = resolve(
            [responsibility_to_subject(item) for item in responsibilities], now, config.leap_day_rule
        )
    except (RosterServiceError, OccurrenceError) as exc:
        LOGGER.error("Error fetching responsibilities: %s", exc)
        await update.effective_message.reply_text(f"Failed to fetch responsibilities: {exc}")
        return

    try:
        page = paginate_responsibilities(
            responsibilities, occurrences, page=page_number, page_size=config.page_size
        )
    except IndexError as exc:
        await update.effective_message.reply_text(f"{exc}.")
        return

    await update.effective_message.reply_text(render_responsibility_page(page))


async def media_command(update: Update, context: CallbackContext) -> None:
    deps: HandlerDependencies = context.application.bot_data["handler_deps"]
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return

    config = load_config(deps.settings.church_config_path)
    today = reference_date(datetime.now(ZoneInfo(config.timezone)))
    week = current_media_week(config.media_roster, today)
    await update.effective_message.reply_text(render_media_week(week, today))


async def service_command(update: Update, context: CallbackContext) -> None:
    deps: HandlerDependencies = context.application.bot_data["handler_deps"]
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return

    config = load_config(deps.settings.church_config_path)
    today = reference_date(datetime.now(ZoneInfo(config.timezone)))
    flow = upcoming_service_flow(config.service_flows, today)
    await update.effective_message.reply_text(render_service_flow(flow))


async def contacts_command(update: Update, context: CallbackContext) -> None:
    deps: HandlerDependencies = context.application.bot_data["handler_deps"]
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return

    config = load_config(deps.settings.church_config_path)
    await update.effective_message.reply_text(render_contacts(config.emergency_contacts))


def build_handlers() -> list:
    return [
        CommandHandler("help", help_command),
        CommandHandler("start", help_command),
        CommandHandler("upcoming", upcoming_command),
        CommandHandler("responsibilities", responsibilities_command),
        CommandHandler("media", media_command),
        CommandHandler("service", service_command),
        CommandHandler("contacts", contacts_command),
    ]
