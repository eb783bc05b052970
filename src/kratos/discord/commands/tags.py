from __future__ import annotations
import discord
from discord import app_commands
from ...services.permissions_service import PermissionsService
from ...services.tag_service import TagService
from ...utils.decorators import require_permission
from ...utils.format_utils import truncate_for_discord

PERMISSIONS = ("tags.manage",)


def setup_tags(tree: app_commands.CommandTree, registry):
    permissions = registry.get(PermissionsService)
    tags = registry.get(TagService)

    @tree.command(name="tag", description="Post a saved tag")
    async def tag(interaction: discord.Interaction, name: str):
        try:
            content = tags.use(name)
        except ValueError as e:
            await interaction.response.send_message(f":x: {e}", ephemeral=True)
            return
        if content is None:
            await interaction.response.send_message(f":x: No tag named `{name}`.", ephemeral=True)
            return
        await interaction.response.send_message(truncate_for_discord(content))

    @tree.command(name="tag_create", description="Save a new tag")
    @require_permission(permissions, "tags.manage")
    async def tag_create(interaction: discord.Interaction, name: str, content: str):
        try:
            created = tags.create(name, content, interaction.user.id)
        except ValueError as e:
            await interaction.followup.send(f":x: {e}")
            return
        await interaction.followup.send(":ok: Tag saved." if created else f":x: `{name}` already exists.")

    @tree.command(name="tag_delete", description="Delete a tag")
    @require_permission(permissions, "tags.manage")
    async def tag_delete(interaction: discord.Interaction, name: str):
        try:
            deleted = tags.delete(name)
        except ValueError as e:
            await interaction.followup.send(f":x: {e}")
            return
        await interaction.followup.send(":ok: Tag deleted." if deleted else f":x: No tag named `{name}`.")
    return tree
