"""Shared Discord actions used by the message checkers."""
from __future__ import annotations

import discord

from ..infrastructure.logging.structured_logging import error as log_error, info as log_info, warning as log_warning


async def delete_message(message, reason: str, source: str) -> bool:
    try:
        await message.delete()
        log_info("action.delete_message", source=source, message_id=message.id, reason=reason)
        return True
    except discord.NotFound:
        log_warning("action.delete_message.already_deleted", source=source, message_id=message.id)
    except discord.Forbidden:
        log_error("action.delete_message.forbidden", source=source, message_id=message.id)
    except discord.HTTPException as e:
        log_error("action.delete_message.error", source=source, failure=e, message_id=message.id)
    return False


def is_exempt(member, role_ids) -> bool:
    if not role_ids:
        return False
    return any(getattr(role, 'id', None) in role_ids for role in getattr(member, 'roles', []))

__all__ = ["delete_message", "is_exempt"]
