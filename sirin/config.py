"""Telegram configuration read from environment variables."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)

AUTH_INPUT_TIMEOUT_SECS = 300
"""How long, in seconds, to wait for the user to enter credentials."""

DEFAULT_AUTO_REPLY_TEXT = "{ack_prefix} 我會先幫你處理這件事。"
DEFAULT_STARTUP_MSG = "Sirin started at {time}"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


class ConfigError(Exception):
    """A required setting is missing or malformed."""


def _env(environ: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if environ is None else environ


def _flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    value = environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _parse_int(text: str, bits: int) -> int | None:
    if not _INT_PATTERN.fullmatch(text):
        return None
    value = int(text)
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        return None
    return value


def _non_empty(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def session_path(environ: Mapping[str, str] | None = None) -> Path:
    """Return where the Telegram session file is kept."""
    env = _env(environ)
    local_app_data = env.get("LOCALAPPDATA")
    if local_app_data is not None:
        return Path(local_app_data) / "Sirin" / "sirin.session"
    return Path("data") / "sirin.session"


def require_login(environ: Mapping[str, str] | None = None) -> bool:
    """Whether sign-in is enforced at startup (TG_REQUIRE_LOGIN)."""
    return _flag(_env(environ), "TG_REQUIRE_LOGIN", False)


@dataclass(frozen=True)
class TelegramConfig:
    """Settings for the Telegram listener."""

    api_id: int
    api_hash: str
    phone: str | None = None
    auto_reply_enabled: bool = False
    auto_reply_text: str = DEFAULT_AUTO_REPLY_TEXT
    reply_private: bool = True
    reply_groups: bool = False
    group_ids: tuple[int, ...] = field(default_factory=tuple)
    startup_msg: str | None = DEFAULT_STARTUP_MSG
    startup_target: str | None = None
    debug_updates: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TelegramConfig":
        """Read the configuration, raising ConfigError for missing or bad values."""
        env = _env(environ)

        raw_api_id = env.get("TG_API_ID")
        if raw_api_id is None:
            raise ConfigError("TG_API_ID not set in environment")
        api_id = _parse_int(raw_api_id.strip(), 32)
        if api_id is None:
            raise ConfigError(f"TG_API_ID must be an integer: {raw_api_id.strip()!r}")

        api_hash = env.get("TG_API_HASH")
        if api_hash is None:
            raise ConfigError("TG_API_HASH not set in environment")

        group_ids = tuple(
            parsed
            for part in env.get("TG_GROUP_IDS", "").split(",")
            if part.strip()
            for parsed in [_parse_int(part.strip(), 64)]
            if parsed is not None
        )

        raw_startup_msg = env.get("TG_STARTUP_MSG")
        startup_msg = (
            DEFAULT_STARTUP_MSG if raw_startup_msg is None else _non_empty(raw_startup_msg)
        )

        raw_target = env.get("TG_STARTUP_TARGET")
        logger.debug("TG_STARTUP_TARGET env = %r", raw_target)
        startup_target = None
        if raw_target is not None:
            startup_target = raw_target.strip().lstrip("@") or None

        return cls(
            api_id=api_id,
            api_hash=api_hash,
            phone=_non_empty(env.get("TG_PHONE")),
            auto_reply_enabled=_flag(env, "TG_AUTO_REPLY", False),
            auto_reply_text=_non_empty(env.get("TG_AUTO_REPLY_TEXT"))
            or DEFAULT_AUTO_REPLY_TEXT,
            reply_private=_flag(env, "TG_REPLY_PRIVATE", True),
            reply_groups=_flag(env, "TG_REPLY_GROUPS", False),
            group_ids=group_ids,
            startup_msg=startup_msg,
            startup_target=startup_target,
            debug_updates=_flag(env, "TG_DEBUG_UPDATES", True),
        )