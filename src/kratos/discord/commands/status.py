from __future__ import annotations
import time
import discord
from discord import app_commands
from ...infrastructure.logging.structured_logging import info as log_info
from ...services.permissions_service import PermissionsService
from ...services.ratelimit_service import RatelimitService
from ...services.unpunish_service import UnpunishService
from ...utils.decorators import require_permission
from ...utils.format_utils import format_rel_age

PERMISSIONS = ("status.view",)
_STARTED = int(time.time())


def setup_status(tree: app_commands.CommandTree, registry):
    permissions = registry.get(PermissionsService)

    @tree.command(name="kratos_status", description="Show moderation subsystem status")
    @require_permission(permissions, "status.view")
    async def kratos_status(interaction: discord.Interaction):
        log_info("cmd.kratos_status", source="Commands", user_id=interaction.user.id)
        ratelimit = registry.get(RatelimitService)
        unpunish = registry.get(UnpunishService)
        lines = [
            f"Up for {format_rel_age(_STARTED)}; {len(registry)} services registered.",
            f"Rate limit: {'on at ' + str(ratelimit.active_limit) if ratelimit.is_active else 'off'}",
            f"Unpunisher running={unpunish.is_running} pending={len(unpunish.pending)}",
        ]
        await interaction.followup.send("\n".join(lines))
    return tree
