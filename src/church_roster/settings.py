from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_ROSTER_API_URL = "http://localhost:3001/api"


@dataclass(frozen=True)
class Settings:
    telegram_bot_token: str
    telegram_allowed_chat_id: int
    roster_api_url: str
    roster_api_timeout_sec: float
    church_config_path: Path
    announcement_state_path: Path


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        raise ValueError(f"Missing required environment variable: {name}")
    return value.strip()


def load_settings() -> Settings:
    root = Path.cwd()

    token = _required_env("TELEGRAM_BOT_TOKEN")
    allowed_chat_id = int(_required_env("TELEGRAM_ALLOWED_CHAT_ID"))

    roster_api_url = os.getenv("ROSTER_API_URL", DEFAULT_ROSTER_API_URL).strip().rstrip("/")
    timeout = float(os.getenv("ROSTER_API_TIMEOUT_SEC", "10"))
    if timeout <= 0:
        raise ValueError("ROSTER_API_TIMEOUT_SEC must be positive")

    church_config_path = Path(
        os.getenv("CHURCH_CONFIG_PATH", root / "config" / "church.toml")
    )
    announcement_state_path = Path(
        os.getenv("ANNOUNCEMENT_STATE_PATH", root / "data" / "announcement_state.json")
    )

    return Settings(
        telegram_bot_token=token,
        telegram_allowed_chat_id=allowed_chat_id,
        roster_api_url=roster_api_url,
        roster_api_timeout_sec=timeout,
        church_config_path=church_config_path,
        announcement_state_path=announcement_state_path,
    )
