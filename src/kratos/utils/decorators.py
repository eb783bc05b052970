"""Command decorators."""
from __future__ import annotations
from typing import Callable, Awaitable, Any
from functools import wraps
import discord


def require_permission(permissions, name: str):
    """Gate a slash command on ``permissions.check(member, name)``.

    Failure replies with the rendered result and stops; warning sends the
    rendering and continues; success continues silently. The wrapped command
    always finds the interaction deferred and should answer via ``followup``.
    """
    def decorator(func: Callable[..., Awaitable[Any]]):
        @wraps(func)
        async def wrapper(interaction: discord.Interaction, **kwargs):  # type: ignore
            member = interaction.user if isinstance(interaction.user, discord.Member) else None
            result = permissions.check(member, name)
            if result.is_failure:
                from ..infrastructure.logging.structured_logging import warning  # local import to avoid circular
                await interaction.response.send_message(str(result), ephemeral=True)
                warning("cmd.denied", source="Commands", permission=name, user_id=getattr(interaction.user, 'id', None))
                return
            await interaction.response.defer(ephemeral=True)
            if result.is_warning:
                await interaction.followup.send(str(result), ephemeral=True)
            return await func(interaction, **kwargs)
        wrapper.__kratos_permission__ = name  # type: ignore[attr-defined]
        return wrapper
    return decorator

__all__ = ["require_permission"]
