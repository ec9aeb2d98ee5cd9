"""Configuration loader: .env and environment variables, optional YAML, Pydantic validation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

PLACEHOLDER_PHONE = "+98XXXXXXXXXX"
_PHONE_PATTERN = re.compile(r"^\+\d+$")


class ConfigError(Exception):
    """Raised when the configuration is missing required values or is invalid."""


class TelegramConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    bot_token: str
    user_id: str

    @field_validator("bot_token", "user_id", mode="before")
    @classmethod
    def _required(cls, value: Any) -> Any:
        if value is None or not str(value).strip() or str(value).startswith("${"):
            raise ValueError("value is required")
        return str(value).strip()


class WhatsAppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    phone: str = PLACEHOLDER_PHONE  # "+" followed by digits
    session_db: str = "./data/whatsapp.sqlite3"
    reconnect_delay: float = 5.0

    @property
    def phone_looks_valid(self) -> bool:
        return bool(_PHONE_PATTERN.match(self.phone))


class ForwardingSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    phone: str = PLACEHOLDER_PHONE
    max_file_size_mb: int = Field(default=50, ge=1)  # Telegram limit for bots
    retry_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=1.0, ge=0)


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    log_level: str = "INFO"
    log_json: bool = False
    data_dir: str = "./data"
    telegram: TelegramConfig
    whatsapp: WhatsAppConfig = Field(default_factory=WhatsAppConfig)
    forwarding: ForwardingSettings = Field(default_factory=ForwardingSettings)

    @model_validator(mode="before")
    @classmethod
    def _forwarding_phone_from_whatsapp(cls, data: Any) -> Any:
        """The filter phone follows the WhatsApp session phone unless set explicitly."""
        if not isinstance(data, dict):
            return data
        whatsapp = data.get("whatsapp")
        if isinstance(whatsapp, dict):
            phone = whatsapp.get("phone")
        else:
            phone = getattr(whatsapp, "phone", None)
        forwarding = data.get("forwarding")
        if phone and isinstance(forwarding, dict) and "phone" not in forwarding:
            data = {**data, "forwarding": {**forwarding, "phone": phone}}
        elif phone and forwarding is None:
            data = {**data, "forwarding": {"phone": phone}}
        return data

    @model_validator(mode="after")
    def _single_phone(self) -> "AppConfig":
        if self.forwarding.phone != self.whatsapp.phone:
            raise ValueError(
                f"forwarding.phone ({self.forwarding.phone}) must match "
                f"whatsapp.phone ({self.whatsapp.phone})"
            )
        return self


_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)\}")


def _interpolate_env_vars(text: str, extra: dict[str, str] | None = None) -> str:
    """Replace ${VAR_NAME} patterns with environment variable values."""

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        if extra and var_name in extra:
            return extra[var_name]
        value = os.environ.get(var_name)
        if value is None:
            return match.group(0)
        return value

    return _ENV_VAR_PATTERN.sub(_replace, text)


def _data_from_env() -> dict[str, Any]:
    """Build the raw config mapping from plain environment variables."""
    env = os.environ
    data_dir = env.get("DATA_DIR", "./data")
    phone = env.get("WHATSAPP_PHONE") or PLACEHOLDER_PHONE

    whatsapp: dict[str, Any] = {
        "phone": phone,
        "session_db": str(Path(data_dir) / "whatsapp.sqlite3"),
    }
    if env.get("RECONNECT_DELAY"):
        whatsapp["reconnect_delay"] = env["RECONNECT_DELAY"]

    forwarding: dict[str, Any] = {}
    for key, env_name in (
        ("max_file_size_mb", "MAX_FILE_SIZE_MB"),
        ("retry_attempts", "RETRY_ATTEMPTS"),
        ("retry_delay", "RETRY_DELAY"),
    ):
        if env.get(env_name):
            forwarding[key] = env[env_name]

    return {
        "log_level": env.get("LOG_LEVEL", "INFO"),
        "log_json": env.get("LOG_JSON", "false").lower() in ("1", "true", "yes"),
        "data_dir": data_dir,
        "telegram": {
            "bot_token": env.get("TELEGRAM_BOT_TOKEN"),
            "user_id": env.get("TELEGRAM_USER_ID"),
        },
        "whatsapp": whatsapp,
        "forwarding": forwarding,
    }


def _data_from_yaml(config_file: Path) -> dict[str, Any]:
    raw_text = config_file.read_text(encoding="utf-8")

    # First pass: extract data_dir for self-referencing
    raw_data = yaml.safe_load(raw_text) or {}
    data_dir = _interpolate_env_vars(str(raw_data.get("data_dir", "./data")))

    # Second pass: interpolate all env vars
    interpolated = _interpolate_env_vars(raw_text, extra={"data_dir": data_dir})
    data = yaml.safe_load(interpolated) or {}

    whatsapp = data.get("whatsapp") or {}
    if str(whatsapp.get("phone", "")).startswith("${"):
        whatsapp["phone"] = PLACEHOLDER_PHONE
    data["whatsapp"] = whatsapp
    data["forwarding"] = data.get("forwarding") or {}
    return data


def load_config(
    config_path: str | Path | None = "config.yaml", env_path: str | Path = ".env"
) -> AppConfig:
    """Load and validate configuration.

    A YAML file is used when ``config_path`` points at an existing file;
    otherwise settings come straight from the environment
    (``TELEGRAM_BOT_TOKEN``, ``TELEGRAM_USER_ID``, ``WHATSAPP_PHONE``, ...).
    """
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    if config_path is not None and Path(config_path).exists():
        data = _data_from_yaml(Path(config_path))
    else:
        data = _data_from_env()

    try:
        return AppConfig(**data)
    except ValidationError as e:
        missing_telegram = any(err["loc"][:1] == ("telegram",) for err in e.errors())
        if missing_telegram:
            raise ConfigError(
                "TELEGRAM_BOT_TOKEN and TELEGRAM_USER_ID are required in .env"
            ) from e
        raise ConfigError(str(e)) from e
