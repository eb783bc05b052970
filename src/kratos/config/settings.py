"""Process settings (pydantic-settings) and the persisted core configuration.

``RuntimeSettings`` is read from ``.env`` / ``KRATOS_*`` variables and only
locates things on disk. Everything an operator edits at runtime lives in the
JSON artifacts under ``config_dir``, starting with ``core.json``.
"""
from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CORE_CONFIG_NAME = "core"


class RuntimeSettings(BaseSettings):
	config_dir: str = "config"
	log_dir: str = "logs"
	database_path: str = "storage/kratos.db"
	log_level: str = "INFO"
	log_json: bool = False
	# Seeds core.json the first time it is created; ignored afterwards.
	discord_token: Optional[str] = None

	model_config = SettingsConfigDict(
		env_prefix="KRATOS_",
		env_file=".env",
		env_file_encoding="utf-8",
		case_sensitive=False,
		extra="ignore",
	)

	@field_validator("log_level", mode="before")
	def _normalize_level(cls, v):  # noqa: D401
		return (str(v or "INFO")).upper()


class CoreConfig(BaseModel):
	token: str = ""
	guild_id: int = 0
	owner_id: int = 0
	mute_role_id: int = 0
	unpunish_interval_seconds: int = Field(30, ge=1)


def load_settings() -> RuntimeSettings:
	return RuntimeSettings()  # type: ignore[call-arg]


def default_core_config(settings: RuntimeSettings) -> CoreConfig:
	return CoreConfig(token=settings.discord_token or "")


__all__ = ["RuntimeSettings", "CoreConfig", "CORE_CONFIG_NAME", "load_settings", "default_core_config"]
