"""Per-channel slow mode enforced by the bot rather than by Discord."""
from __future__ import annotations

import time
from typing import Dict, Optional, Tuple

from ..infrastructure.logging.structured_logging import info as log_info
from .helpers import delete_message
from .modlog_service import ModLogService
from .unpunish_service import UnpunishService

_SOURCE = "Slowmode"
STRIKES_BEFORE_MUTE = 3
PRUNE_EVERY_SECONDS = 60


class SlowmodeService:
    def __init__(self, client, modlog: ModLogService, unpunish: UnpunishService):
        self._client = client
        self._modlog = modlog
        self._unpunish = unpunish
        self._intervals: Dict[int, int] = {}
        self._last_post: Dict[Tuple[int, int], float] = {}
        self._strikes: Dict[Tuple[int, int], int] = {}
        self._pruned_at = 0.0

    @property
    def intervals(self) -> Dict[int, int]:
        return dict(self._intervals)

    def enable(self, channel_id: int, seconds: int) -> None:
        if seconds <= 0:
            raise ValueError("slowmode interval must be positive")
        self._intervals[channel_id] = seconds
        log_info("slowmode.enabled", source=_SOURCE, channel_id=channel_id, seconds=seconds)

    def disable(self, channel_id: int) -> bool:
        removed = self._intervals.pop(channel_id, None) is not None
        for key in [k for k in self._last_post if k[0] == channel_id]:
            self._last_post.pop(key, None)
            self._strikes.pop(key, None)
        if removed:
            log_info("slowmode.disabled", source=_SOURCE, channel_id=channel_id)
        return removed

    def _prune(self, now: float) -> None:
        """Drop authors whose last post no longer holds back the next one."""
        if now - self._pruned_at < PRUNE_EVERY_SECONDS:
            return
        self._pruned_at = now
        for key, last in list(self._last_post.items()):
            interval = self._intervals.get(key[0])
            if interval is None or now - last >= interval:
                del self._last_post[key]
                self._strikes.pop(key, None)

    async def check(self, message, now: Optional[float] = None) -> bool:
        channel_id = getattr(message.channel, "id", None)
        interval = self._intervals.get(channel_id)
        if not interval:
            return False
        now = now if now is not None else time.monotonic()
        self._prune(now)
        key = (channel_id, message.author.id)
        last = self._last_post.get(key)
        if last is None or now - last >= interval:
            self._last_post[key] = now
            self._strikes.pop(key, None)
            return False
        await delete_message(message, f"slowmode {interval}s", _SOURCE)
        strikes = self._strikes.get(key, 0) + 1
        self._strikes[key] = strikes
        if strikes >= STRIKES_BEFORE_MUTE:
            self._strikes.pop(key, None)
            await self._unpunish.mute(message.author, interval * 10, "Repeated slowmode violations", kind="mute:slowmode")
        return True

__all__ = ["SlowmodeService", "STRIKES_BEFORE_MUTE", "PRUNE_EVERY_SECONDS"]
