from __future__ import annotations
import discord
from discord import app_commands
from ...services.permissions_service import PermissionsService
from ...utils.decorators import require_permission

PERMISSIONS = ("permissions.manage",)


def setup_permissions(tree: app_commands.CommandTree, registry):
    permissions = registry.get(PermissionsService)

    @tree.command(name="perm_grant", description="Grant a permission to a role")
    @require_permission(permissions, "permissions.manage")
    async def perm_grant(interaction: discord.Interaction, role: discord.Role, permission: str):
        try:
            granted = await permissions.grant(role.id, permission)
        except ValueError:
            known = ", ".join(permissions.known_permissions)
            await interaction.followup.send(f":x: Unknown permission. Known: {known}")
            return
        await interaction.followup.send(f":ok: {role.name} can now use `{permission}`." if granted else ":warning: Already granted.")

    @tree.command(name="perm_revoke", description="Revoke a permission from a role")
    @require_permission(permissions, "permissions.manage")
    async def perm_revoke(interaction: discord.Interaction, role: discord.Role, permission: str):
        revoked = await permissions.revoke(role.id, permission)
        await interaction.followup.send(":ok: Revoked." if revoked else ":warning: That role did not have it.")
    return tree
