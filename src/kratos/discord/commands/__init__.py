"""Slash command modules and the handler that installs them."""
from . import aliases, blacklist, mute, notes, permissions, ratelimit, slowmode, status, tags
from .handler import CommandHandler

COMMAND_MODULES = [status, mute, slowmode, ratelimit, tags, notes, aliases, blacklist, permissions]

__all__ = ["CommandHandler", "COMMAND_MODULES"]
