"""Kratos Discord client: the transport the orchestrator drives."""
from __future__ import annotations

from typing import List, Optional

import discord
from discord import app_commands

from ..domain.interfaces import ReadyHook
from ..infrastructure.logging.structured_logging import error as log_error, info as log_info

_SOURCE = "Discord"


def default_intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.message_content = True
    intents.members = True
    return intents


class KratosClient(discord.Client):
    """Discord client with ready hooks, event routing and a command tree slot."""
    def __init__(self, intents: Optional[discord.Intents] = None):
        super().__init__(intents=intents or default_intents(), max_messages=100)
        self.tree: Optional[app_commands.CommandTree] = None
        self.registry = None
        self.sync_guild_id: Optional[int] = None
        self._ready_hooks: List[ReadyHook] = []

    def add_ready_hook(self, hook: ReadyHook) -> None:
        self._ready_hooks.append(hook)

    def attach_registry(self, registry) -> None:
        from .events import register_events
        self.registry = registry
        register_events(self, registry)

    async def setup_hook(self) -> None:
        if self.tree is None:
            return
        if self.sync_guild_id:
            guild = discord.Object(id=self.sync_guild_id)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            log_info("commands.synced", source=_SOURCE, guild_id=self.sync_guild_id)
        else:
            await self.tree.sync()
            log_info("commands.synced_global", source=_SOURCE)

    async def on_ready(self):
        log_info("lifecycle.ready", source=_SOURCE, bot_user=str(self.user), guild_count=len(self.guilds))
        for hook in list(self._ready_hooks):
            try:
                await hook()
            except Exception as e:  # noqa: BLE001
                log_error("lifecycle.ready_hook_error", source=_SOURCE, failure=e)

__all__ = ["KratosClient", "default_intents"]
