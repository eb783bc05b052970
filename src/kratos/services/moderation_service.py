"""Moderation defaults shared by punishment commands."""
from __future__ import annotations

from pydantic import BaseModel, Field

from ..config.store import ConfigStore, ConfigurableSubsystem


class ModerationConfig(BaseModel):
    default_mute_minutes: int = Field(10, ge=1)
    max_mute_minutes: int = Field(7 * 24 * 60, ge=1)
    dm_on_mute: bool = True


class ModerationService(ConfigurableSubsystem):
    config_name = "moderation"
    config_model = ModerationConfig

    def __init__(self, store: ConfigStore):
        super().__init__(store)

    def clamp_mute_minutes(self, minutes: int | None) -> int:
        conf: ModerationConfig = self.config
        if not minutes or minutes < 1:
            return conf.default_mute_minutes
        return min(minutes, conf.max_mute_minutes)

__all__ = ["ModerationService", "ModerationConfig"]
