"""Word/pattern blacklist enforcement.

The configuration is loaded from the transport's ready hook: exempt roles are
stored by name and resolved against the live guild, which is only populated
once the gateway connection is up.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Pattern, Set

from pydantic import BaseModel, Field, field_validator

from ..config.settings import CoreConfig
from ..config.store import ConfigStore, ConfigurableSubsystem
from ..infrastructure.logging.structured_logging import info as log_info, warning as log_warning
from .helpers import delete_message, is_exempt
from .modlog_service import ModLogService
from .unpunish_service import UnpunishService

_SOURCE = "Blacklist"
_KIND = "mute:blacklist"


class BlacklistConfig(BaseModel):
    patterns: List[str] = Field(default_factory=list)
    mute_seconds: int = Field(600, ge=1)
    exempt_role_names: List[str] = Field(default_factory=lambda: ["Moderator"])

    @field_validator("patterns")
    def _validate_patterns(cls, v: List[str]):  # noqa: D401
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid blacklist pattern {pattern!r}: {e}") from e
        return v


class BlacklistService(ConfigurableSubsystem):
    config_name = "blacklist"
    config_model = BlacklistConfig

    def __init__(self, client, unpunish: UnpunishService, modlog: ModLogService, core: CoreConfig, store: ConfigStore):
        super().__init__(store)
        self._client = client
        self._unpunish = unpunish
        self._modlog = modlog
        self._core = core
        self._compiled: List[Pattern[str]] = []
        self._exempt_role_ids: Set[int] = set()
        self._strikes: Dict[int, int] = {}

    @property
    def exempt_role_ids(self) -> Set[int]:
        return set(self._exempt_role_ids)

    async def _on_config_loaded(self) -> None:
        self._compile()
        self.resolve_exempt_roles()
        log_info("blacklist.loaded", source=_SOURCE, patterns=len(self._compiled), exempt_roles=len(self._exempt_role_ids))

    def _compile(self) -> None:
        conf: BlacklistConfig = self.config
        self._compiled = [re.compile(p, re.IGNORECASE) for p in conf.patterns]

    def resolve_exempt_roles(self) -> None:
        guild = self._client.get_guild(self._core.guild_id) if self._core.guild_id else None
        if guild is None:
            log_warning("blacklist.guild_unavailable", source=_SOURCE, guild_id=self._core.guild_id)
            self._exempt_role_ids = set()
            return
        wanted = {name.lower() for name in self.config.exempt_role_names}
        self._exempt_role_ids = {role.id for role in guild.roles if role.name.lower() in wanted}

    def match(self, content: str) -> Optional[str]:
        for pattern in self._compiled:
            if pattern.search(content or ""):
                return pattern.pattern
        return None

    async def add_pattern(self, pattern: str) -> bool:
        conf: BlacklistConfig = self.config
        if pattern in conf.patterns:
            return False
        self._config = BlacklistConfig(
            patterns=[*conf.patterns, pattern],
            mute_seconds=conf.mute_seconds,
            exempt_role_names=conf.exempt_role_names,
        )
        self._compile()
        await self.save_configuration()
        return True

    async def remove_pattern(self, pattern: str) -> bool:
        conf: BlacklistConfig = self.config
        if pattern not in conf.patterns:
            return False
        self._config = conf.model_copy(update={"patterns": [p for p in conf.patterns if p != pattern]})
        self._compile()
        await self.save_configuration()
        return True

    def strikes(self, user_id: int) -> int:
        return self._strikes.get(user_id, 0)

    def clear_strikes(self, user_id: int) -> None:
        self._strikes.pop(user_id, None)

    async def check(self, message) -> bool:
        if not self.is_configured or not self._compiled:
            return False
        author = message.author
        if author.id == self._core.owner_id or is_exempt(author, self._exempt_role_ids):
            return False
        hit = self.match(message.content)
        if hit is None:
            return False
        await delete_message(message, f"blacklist:{hit}", _SOURCE)
        # strikes reset when the unpunisher lifts the mute
        prior = self._strikes.get(author.id, 0)
        self._strikes[author.id] = prior + 1
        seconds = self.config.mute_seconds * (1 + prior)
        await self._unpunish.mute(author, seconds, f"Blacklisted phrase ({hit})", kind=_KIND)
        return True

__all__ = ["BlacklistService", "BlacklistConfig"]
