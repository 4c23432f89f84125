"""Process settings, read once from the environment at import.

Invalid values fail fast with ValueError naming the variable, so a bad
deploy crashes on boot rather than on the first request.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_APP_ENVS = ("dev", "test", "prod")
_LOG_LEVELS = ("debug", "info", "warning", "error")
_TRUE = ("true", "1")
_FALSE = ("false", "0")


def _raw(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def _choice(name: str, default: str, allowed: tuple[str, ...]) -> str:
    value = _raw(name, default).lower()
    if value not in allowed:
        raise ValueError(f"{name} must be {'|'.join(allowed)} (got {value!r})")
    return value


def _flag(name: str, default: str = "false") -> bool:
    value = _raw(name, default).lower()
    if value not in _TRUE + _FALSE:
        raise ValueError(f"{name} must be true|false (got {value!r})")
    return value in _TRUE


def _int(name: str, default: str) -> int:
    value = _raw(name, default)
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {value!r})") from None


def _optional(name: str) -> str | None:
    return _raw(name) or None


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None  # None -> in-memory repositories
    redis_url: str | None  # None -> in-memory notification queue
    mail_from: str = "no-reply@mentorship.local"
    mailjet_api_key: str | None = None
    mailjet_api_secret: str | None = None

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def mail_configured(self) -> bool:
        return bool(self.mailjet_api_key and self.mailjet_api_secret)


def load_settings() -> Settings:
    return Settings(  # type: ignore[arg-type]
        app_env=_choice("APP_ENV", "dev", _APP_ENVS),
        log_level=_choice("LOG_LEVEL", "info", _LOG_LEVELS),
        log_json=_flag("LOG_JSON"),
        port=_int("PORT", "8000"),
        database_url=_optional("DATABASE_URL"),
        redis_url=_optional("REDIS_URL"),
        mail_from=_raw("MAIL_FROM", "no-reply@mentorship.local"),
        mailjet_api_key=_optional("MAILJET_API_KEY"),
        mailjet_api_secret=_optional("MAILJET_API_SECRET"),
    )


SETTINGS = load_settings()
