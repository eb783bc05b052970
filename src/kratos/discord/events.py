"""Gateway event routing into the moderation subsystems."""
from __future__ import annotations

from typing import List, Sequence

import discord

from ..domain.interfaces import MessageChecker
from ..infrastructure.logging.structured_logging import (
    info as log_info,
    warning as log_warning,
    error as log_error,
)
from ..services.alias_service import AliasTrackingService
from ..services.blacklist_service import BlacklistService
from ..services.ratelimit_service import RatelimitService
from ..services.slowmode_service import SlowmodeService

_SOURCE = "Events"


def message_checkers(registry) -> List[MessageChecker]:
    """Checkers in the order they see a message; the first hit wins."""
    return [registry.get(BlacklistService), registry.get(SlowmodeService), registry.get(RatelimitService)]


async def route_message(checkers: Sequence[MessageChecker], message) -> bool:
    if message.author.bot or message.guild is None:
        return False
    for checker in checkers:
        try:
            if await checker.check(message):
                return True
        except Exception as e:  # noqa: BLE001
            log_error("moderation.check_error", source=_SOURCE, failure=e, checker=type(checker).__name__)
    return False


def register_events(client: discord.Client, registry):
    checkers = message_checkers(registry)
    aliases = registry.get(AliasTrackingService)

    @client.event
    async def on_message(message: discord.Message):
        await route_message(checkers, message)

    @client.event
    async def on_member_update(before: discord.Member, after: discord.Member):
        await aliases.on_member_update(before, after)

    @client.event
    async def on_user_update(before: discord.User, after: discord.User):
        await aliases.on_user_update(before, after)

    @client.event
    async def on_disconnect():
        log_warning("lifecycle.disconnected", source=_SOURCE)

    @client.event
    async def on_resumed():
        log_info("lifecycle.resumed", source=_SOURCE)

    return client

__all__ = ["register_events", "route_message", "message_checkers"]
