from __future__ import annotations
import discord
from discord import app_commands
from ...services.permissions_service import PermissionsService
from ...services.slowmode_service import SlowmodeService
from ...utils.decorators import require_permission

PERMISSIONS = ("slowmode.manage",)


def setup_slowmode(tree: app_commands.CommandTree, registry):
    permissions = registry.get(PermissionsService)
    slowmode = registry.get(SlowmodeService)

    @tree.command(name="slowmode", description="Set a bot-enforced slow mode for this channel (0 disables)")
    @require_permission(permissions, "slowmode.manage")
    @app_commands.describe(seconds="Seconds between messages per user")
    async def set_slowmode(interaction: discord.Interaction, seconds: int):
        channel_id = interaction.channel_id
        if seconds <= 0:
            removed = slowmode.disable(channel_id)
            await interaction.followup.send(":ok: Slow mode disabled." if removed else ":warning: Slow mode was not enabled here.")
            return
        slowmode.enable(channel_id, min(seconds, 6 * 3600))
        await interaction.followup.send(f":ok: Slow mode set to {min(seconds, 6 * 3600)}s.")
    return tree
