from __future__ import annotations
import discord
from discord import app_commands
from ...services.permissions_service import PermissionsService
from ...services.ratelimit_service import RatelimitService
from ...utils.decorators import require_permission

PERMISSIONS = ("ratelimit.manage",)


def setup_ratelimit(tree: app_commands.CommandTree, registry):
    permissions = registry.get(PermissionsService)
    ratelimit = registry.get(RatelimitService)

    @tree.command(name="ratelimit", description="Enable the message rate limit (0 disables)")
    @require_permission(permissions, "ratelimit.manage")
    @app_commands.describe(limit="Messages allowed per window")
    async def set_ratelimit(interaction: discord.Interaction, limit: int):
        await ratelimit.set_enabled(limit if limit > 0 else None)
        if limit > 0:
            await interaction.followup.send(f":ok: Rate limit enabled at {limit} messages.")
        else:
            await interaction.followup.send(":ok: Rate limit disabled.")
    return tree
