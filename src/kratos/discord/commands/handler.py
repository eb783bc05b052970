"""Installs the slash command surface over the service registry."""
from __future__ import annotations

from discord import app_commands

from ...config.settings import CoreConfig
from ...domain.interfaces import Transport
from ...infrastructure.logging.structured_logging import info as log_info
from .aliases import setup_aliases
from .blacklist import setup_blacklist
from .mute import setup_mute
from .notes import setup_notes
from .permissions import setup_permissions
from .ratelimit import setup_ratelimit
from .slowmode import setup_slowmode
from .status import setup_status
from .tags import setup_tags

ALL_SETUP_FUNCS = [
    setup_status,
    setup_mute,
    setup_slowmode,
    setup_ratelimit,
    setup_tags,
    setup_notes,
    setup_aliases,
    setup_blacklist,
    setup_permissions,
]


class CommandHandler:
    def __init__(self, registry):
        self.registry = registry
        self.tree: app_commands.CommandTree | None = None

    async def install(self) -> None:
        client = self.registry.get(Transport)
        core = self.registry.get(CoreConfig)
        tree = app_commands.CommandTree(client)
        for setup in ALL_SETUP_FUNCS:
            setup(tree, self.registry)
        client.tree = tree
        client.sync_guild_id = core.guild_id or None
        self.tree = tree
        log_info("commands.installed", source="Commands", count=len(tree.get_commands()))

__all__ = ["CommandHandler", "ALL_SETUP_FUNCS"]
