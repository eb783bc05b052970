from __future__ import annotations
import discord
from discord import app_commands
from pydantic import ValidationError
from ...services.blacklist_service import BlacklistService
from ...services.permissions_service import PermissionsService
from ...utils.decorators import require_permission

PERMISSIONS = ("blacklist.manage",)


def setup_blacklist(tree: app_commands.CommandTree, registry):
    permissions = registry.get(PermissionsService)
    blacklist = registry.get(BlacklistService)

    @tree.command(name="blacklist_add", description="Add a regular expression to the blacklist")
    @require_permission(permissions, "blacklist.manage")
    async def blacklist_add(interaction: discord.Interaction, pattern: str):
        if not blacklist.is_configured:
            await interaction.followup.send(":warning: Blacklist is still loading, try again shortly.")
            return
        try:
            added = await blacklist.add_pattern(pattern)
        except ValidationError:
            await interaction.followup.send(":x: That is not a valid regular expression.")
            return
        await interaction.followup.send(":ok: Pattern added." if added else ":warning: Pattern already listed.")

    @tree.command(name="blacklist_remove", description="Remove a pattern from the blacklist")
    @require_permission(permissions, "blacklist.manage")
    async def blacklist_remove(interaction: discord.Interaction, pattern: str):
        if not blacklist.is_configured:
            await interaction.followup.send(":warning: Blacklist is still loading, try again shortly.")
            return
        removed = await blacklist.remove_pattern(pattern)
        await interaction.followup.send(":ok: Pattern removed." if removed else ":x: Pattern not listed.")
    return tree
