from __future__ import annotations
import discord
from discord import app_commands
from ...services.permissions_service import PermissionsService
from ...services.record_service import RecordService
from ...services.usernote_service import UsernoteService
from ...utils.decorators import require_permission
from ...utils.format_utils import format_rel_age, truncate_for_discord

PERMISSIONS = ("usernotes.manage", "usernotes.view")


def setup_notes(tree: app_commands.CommandTree, registry):
    permissions = registry.get(PermissionsService)
    notes = registry.get(UsernoteService)
    records = registry.get(RecordService)

    @tree.command(name="note_add", description="Attach a moderator note to a user")
    @require_permission(permissions, "usernotes.manage")
    async def note_add(interaction: discord.Interaction, user: discord.User, content: str):
        try:
            note_id = notes.add(getattr(interaction.guild, 'id', None), user.id, interaction.user.id, content)
        except ValueError as e:
            await interaction.followup.send(f":x: {e}")
            return
        await interaction.followup.send(f":ok: Note #{note_id} added for {user}.")

    @tree.command(name="notes", description="Show notes and punishment history for a user")
    @require_permission(permissions, "usernotes.view")
    async def show_notes(interaction: discord.Interaction, user: discord.User):
        lines = [f"Notes for {user}:"]
        for n in notes.notes_for(user.id):
            lines.append(f"  #{n['id']} ({format_rel_age(n['ts'])} ago, <@{n['author_id']}>): {n['content']}")
        history = records.history(user.id, limit=10)
        if history:
            lines.append("Punishments:")
            for r in history:
                state = "active" if r.resolved_at is None and r.expires_at else "done"
                lines.append(f"  #{r.id} {r.kind} {format_rel_age(r.ts)} ago [{state}]: {r.reason}")
        if len(lines) == 1:
            lines.append("  (none)")
        await interaction.followup.send(truncate_for_discord("\n".join(lines)))
    return tree
