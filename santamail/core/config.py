from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_SUBJECT = "Your Secret Santa Match!"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    log_level: str
    log_path: Optional[str]
    email_subject: str


@dataclass(frozen=True)
class MailSettings:
    host: str
    port: int
    user: Optional[str]
    password: Optional[str]
    from_address: str
    use_ssl: bool


def load_settings() -> Settings:
    log_level = os.getenv("LOG_LEVEL", "INFO")
    log_path = os.getenv("LOG_PATH") or None
    email_subject = os.getenv("EMAIL_SUBJECT") or DEFAULT_SUBJECT

    return Settings(
        log_level=log_level,
        log_path=log_path,
        email_subject=email_subject,
    )


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}.")


def load_mail_settings() -> MailSettings:
    host = os.getenv("EMAIL_HOST")
    raw_port = os.getenv("EMAIL_PORT")
    user = os.getenv("EMAIL_USER") or None
    password = os.getenv("EMAIL_PASSWORD") or None
    from_address = os.getenv("EMAIL_FROM")
    raw_use_ssl = os.getenv("EMAIL_USE_SSL")

    if not host:
        raise ValueError("EMAIL_HOST is required. Set it in the environment or .env file.")
    if not raw_port:
        raise ValueError("EMAIL_PORT is required. Set it in the environment or .env file.")
    if not from_address:
        raise ValueError("EMAIL_FROM is required. Set it in the environment or .env file.")

    try:
        port = int(raw_port)
    except ValueError:
        raise ValueError(f"EMAIL_PORT must be an integer, got {raw_port!r}.") from None
    if not 0 < port < 65536:
        raise ValueError(f"EMAIL_PORT is out of range: {port}.")

    if user and not password:
        raise ValueError("EMAIL_PASSWORD is required when EMAIL_USER is set.")

    use_ssl = _parse_bool("EMAIL_USE_SSL", raw_use_ssl) if raw_use_ssl else port == 465

    return MailSettings(
        host=host,
        port=port,
        user=user,
        password=password,
        from_address=from_address,
        use_ssl=use_ssl,
    )
