"""Remembers previous usernames and nicknames of members."""
from __future__ import annotations

import time
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..config.store import ConfigStore, ConfigurableSubsystem
from ..infrastructure.logging.structured_logging import debug as log_debug

_SOURCE = "Aliases"


class AliasConfig(BaseModel):
    is_enabled: bool = True
    max_per_user: int = Field(20, ge=1)


class AliasTrackingService(ConfigurableSubsystem):
    config_name = "aliases"
    config_model = AliasConfig

    def __init__(self, client, store: ConfigStore):
        super().__init__(store)
        self._client = client
        self._aliases: Dict[int, Deque[Tuple[int, str]]] = {}

    def record(self, user_id: int, old_name: Optional[str], new_name: Optional[str], now: Optional[int] = None) -> bool:
        if not self.is_configured or not self.config.is_enabled:
            return False
        if not old_name or old_name == new_name:
            return False
        history = self._aliases.setdefault(user_id, deque(maxlen=self.config.max_per_user))
        history.append((int(now if now is not None else time.time()), old_name))
        log_debug("aliases.recorded", source=_SOURCE, user_id=user_id, alias=old_name)
        return True

    async def on_member_update(self, before, after) -> None:
        self.record(after.id, getattr(before, 'nick', None), getattr(after, 'nick', None))

    async def on_user_update(self, before, after) -> None:
        self.record(after.id, getattr(before, 'name', None), getattr(after, 'name', None))

    def aliases(self, user_id: int) -> List[Tuple[int, str]]:
        return list(reversed(self._aliases.get(user_id, ())))

__all__ = ["AliasTrackingService", "AliasConfig"]
