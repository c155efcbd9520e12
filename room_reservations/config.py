from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Annotated, Any
import logging
import os

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_PATH_ENV = "ROOM_RESERVATIONS_CONFIG"
DEFAULT_ROOMS = ("A", "B", "C", "D")


class ConfigError(RuntimeError):
    pass


class AppConfig(BaseSettings):
    """Process settings.

    Keyword arguments (how ``load_config`` feeds the YAML file in) fill the
    fields first; environment variables override them.
    """

    model_config = SettingsConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    rooms: Annotated[tuple[str, ...], NoDecode] = Field(default=DEFAULT_ROOMS, validation_alias="ROOM_RESERVATIONS_ROOMS")
    past_tolerance_seconds: float = Field(default=0.0, ge=0, validation_alias="ROOM_RESERVATIONS_PAST_TOLERANCE")
    event_log_size: int = Field(default=1000, gt=0, validation_alias="ROOM_RESERVATIONS_EVENT_LOG_SIZE")
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3000, gt=0, lt=65536, validation_alias="PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("rooms", mode="before")
    @classmethod
    def _split_rooms(cls, value: Any) -> tuple[str, ...]:
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple)):
            raise ValueError("rooms must be a list of room ids")

        rooms: list[str] = []
        for room in value:
            normalized = str(room).strip()
            if normalized and normalized not in rooms:
                rooms.append(normalized)
        if not rooms:
            raise ValueError("rooms must not be empty")
        return tuple(rooms)

    @field_validator("host", "log_level", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> str:
        return str(value).strip()

    @field_validator("log_level")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, init_settings

    @property
    def past_tolerance(self) -> timedelta:
        return timedelta(seconds=self.past_tolerance_seconds)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Build the config from defaults, then an optional YAML file, then the environment."""
    config_path = path or os.environ.get(CONFIG_PATH_ENV)
    file_values = _read_yaml_mapping(Path(config_path)) if config_path else {}

    try:
        return AppConfig(**file_values)
    except ValidationError as error:
        raise ConfigError(f"Invalid configuration: {error}") from error


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as error:
        raise ConfigError(f"Config file not found: {path}") from error
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
        raise ConfigError(f"Failed to read config file: {path}") from error

    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigError(f"Top-level YAML in {path} is not a mapping")
    return {str(key): value for key, value in payload.items()}
