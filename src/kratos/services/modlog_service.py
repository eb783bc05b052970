"""Posts moderation events to the configured mod-log channel."""
from __future__ import annotations

import discord
from pydantic import BaseModel

from ..config.store import ConfigStore, ConfigurableSubsystem
from ..infrastructure.logging.structured_logging import debug as log_debug, warning as log_warning
from ..utils.format_utils import truncate_for_discord

_SOURCE = "ModLog"


class ModLogConfig(BaseModel):
    channel_id: int = 0
    enabled: bool = True


class ModLogService(ConfigurableSubsystem):
    config_name = "modlog"
    config_model = ModLogConfig

    def __init__(self, client, store: ConfigStore):
        super().__init__(store)
        self._client = client

    async def post(self, text: str) -> bool:
        if not self.is_configured:
            return False
        conf: ModLogConfig = self.config
        if not conf.enabled or not conf.channel_id:
            log_debug("modlog.skipped", source=_SOURCE, text=text[:60])
            return False
        channel = self._client.get_channel(conf.channel_id)
        if channel is None:
            log_warning("modlog.channel_missing", source=_SOURCE, channel_id=conf.channel_id)
            return False
        try:
            await channel.send(truncate_for_discord(text))
        except discord.HTTPException as e:
            log_warning("modlog.send_failed", source=_SOURCE, channel_id=conf.channel_id, error=str(e))
            return False
        return True

__all__ = ["ModLogService", "ModLogConfig"]
