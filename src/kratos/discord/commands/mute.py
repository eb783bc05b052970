from __future__ import annotations
import discord
from discord import app_commands
from ...services.moderation_service import ModerationService
from ...services.permissions_service import PermissionsService
from ...services.unpunish_service import UnpunishService
from ...utils.decorators import require_permission
from ...utils.format_utils import format_duration

PERMISSIONS = ("moderation.mute",)


def setup_mute(tree: app_commands.CommandTree, registry):
    permissions = registry.get(PermissionsService)
    moderation = registry.get(ModerationService)
    unpunish = registry.get(UnpunishService)

    @tree.command(name="mute", description="Mute a member for a number of minutes")
    @require_permission(permissions, "moderation.mute")
    @app_commands.describe(member="Member to mute", minutes="Duration in minutes", reason="Reason shown in the mod log")
    async def mute(interaction: discord.Interaction, member: discord.Member, minutes: int | None = None, reason: str = "No reason given"):
        seconds = moderation.clamp_mute_minutes(minutes) * 60
        record = await unpunish.mute(member, seconds, reason, moderator_id=interaction.user.id)
        if record is None:
            await interaction.followup.send(":x: Could not mute that member; check the mute role configuration.")
            return
        if moderation.config.dm_on_mute:
            try:
                await member.send(f"You were muted in {member.guild.name} for {format_duration(seconds)}: {reason}")
            except discord.HTTPException:
                pass
        await interaction.followup.send(f":ok: {member} muted for {format_duration(seconds)} (record #{record.id}).")
    return tree
