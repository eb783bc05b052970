"""Message rate limiting with a persisted enabled/limit state."""
from __future__ import annotations

import time
from collections import deque
from typing import Deque, Dict, List, Optional

from pydantic import BaseModel, Field

from ..config.settings import CoreConfig
from ..config.store import ConfigStore, ConfigurableSubsystem
from ..infrastructure.logging.structured_logging import info as log_info
from .helpers import is_exempt
from .modlog_service import ModLogService
from .record_service import RecordService
from .unpunish_service import UnpunishService

_SOURCE = "Ratelimit"


class RatelimitConfig(BaseModel):
    is_enabled: bool = False
    limit: int = Field(5, ge=1)
    window_seconds: int = Field(5, ge=1)
    mute_seconds: int = Field(300, ge=1)
    exempt_role_ids: List[int] = Field(default_factory=list)


class RatelimitService(ConfigurableSubsystem):
    config_name = "ratelimit"
    config_model = RatelimitConfig

    def __init__(self, client, core: CoreConfig, records: RecordService, unpunish: UnpunishService,
                 modlog: ModLogService, store: ConfigStore):
        super().__init__(store)
        self._client = client
        self._core = core
        self._records = records
        self._unpunish = unpunish
        self._modlog = modlog
        self._active_limit: Optional[int] = None
        self._recent: Dict[int, Deque[float]] = {}
        self._pruned_at = 0.0

    @property
    def is_enabled(self) -> bool:
        """Persisted flag; ``is_active`` reports the live state."""
        return bool(self.is_configured and self.config.is_enabled)

    @property
    def limit(self) -> int:
        return self.config.limit

    @property
    def is_active(self) -> bool:
        return self._active_limit is not None

    @property
    def active_limit(self) -> Optional[int]:
        return self._active_limit

    def enable(self, limit: int) -> None:
        if limit < 1:
            raise ValueError("rate limit must be at least 1")
        self._active_limit = limit
        self._recent.clear()
        log_info("ratelimit.enabled", source=_SOURCE, limit=limit)

    def disable(self) -> None:
        self._active_limit = None
        self._recent.clear()
        log_info("ratelimit.disabled", source=_SOURCE)

    async def set_enabled(self, limit: Optional[int]) -> None:
        """Change the live state and persist it for the next start."""
        conf: RatelimitConfig = self.config
        if limit:
            self.enable(limit)
            self._config = conf.model_copy(update={"is_enabled": True, "limit": limit})
        else:
            self.disable()
            self._config = conf.model_copy(update={"is_enabled": False})
        await self.save_configuration()
        state = f"enabled at {limit} messages per {conf.window_seconds}s" if limit else "disabled"
        await self._modlog.post(f":stopwatch: Rate limit {state}")

    def _prune(self, now: float, window_seconds: int) -> None:
        """Forget authors whose newest message has left the window."""
        if now - self._pruned_at < window_seconds:
            return
        self._pruned_at = now
        for author_id in [a for a, w in self._recent.items() if not w or now - w[-1] > window_seconds]:
            del self._recent[author_id]

    async def check(self, message, now: Optional[float] = None) -> bool:
        if self._active_limit is None:
            return False
        author = message.author
        conf: RatelimitConfig = self.config
        if author.id == self._core.owner_id or is_exempt(author, conf.exempt_role_ids):
            return False
        now = now if now is not None else time.monotonic()
        self._prune(now, conf.window_seconds)
        window = self._recent.setdefault(author.id, deque())
        window.append(now)
        while window and now - window[0] > conf.window_seconds:
            window.popleft()
        if len(window) <= self._active_limit:
            return False
        del self._recent[author.id]
        prior = self._records.count_kind(author.id, "mute:ratelimit")
        seconds = conf.mute_seconds * (1 + prior)
        await self._unpunish.mute(
            author,
            seconds,
            f"Sent more than {self._active_limit} messages in {conf.window_seconds}s",
            kind="mute:ratelimit",
        )
        return True

__all__ = ["RatelimitService", "RatelimitConfig"]
