from __future__ import annotations
import discord
from discord import app_commands
from ...services.alias_service import AliasTrackingService
from ...services.permissions_service import PermissionsService
from ...utils.decorators import require_permission
from ...utils.format_utils import format_rel_age

PERMISSIONS = ("aliases.view",)


def setup_aliases(tree: app_commands.CommandTree, registry):
    permissions = registry.get(PermissionsService)
    aliases = registry.get(AliasTrackingService)

    @tree.command(name="aliases", description="Show previous names of a user")
    @require_permission(permissions, "aliases.view")
    async def show_aliases(interaction: discord.Interaction, user: discord.User):
        entries = aliases.aliases(user.id)
        if not entries:
            await interaction.followup.send(f"No recorded aliases for {user}.")
            return
        body = "\n".join(f"  {name} ({format_rel_age(ts)} ago)" for ts, name in entries)
        await interaction.followup.send(f"Aliases for {user}:\n{body}")
    return tree
