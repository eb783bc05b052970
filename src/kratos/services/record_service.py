"""Punishment history backed by the sqlite record store."""
from __future__ import annotations

import asyncio
from typing import List, Optional

from ..infrastructure.persistence.db_core import RecordDB
from ..infrastructure.persistence.punishment_repository import PunishmentRecord

MUTE = "mute"


class RecordService:
    def __init__(self, db: RecordDB):
        self._repo = db.punishments

    def add(self, guild_id: Optional[int], user_id: int, moderator_id: Optional[int], kind: str, reason: str,
            duration_seconds: Optional[int] = None, now: Optional[int] = None) -> PunishmentRecord:
        record_id = self._repo.add(guild_id, user_id, moderator_id, kind, reason, duration_seconds, now=now)
        return self._repo.get(record_id)  # type: ignore[return-value]

    def get(self, record_id: int) -> Optional[PunishmentRecord]:
        return self._repo.get(record_id)

    def active_temporary(self) -> List[PunishmentRecord]:
        return self._repo.active_temporary()

    async def active_temporary_async(self) -> List[PunishmentRecord]:
        return await asyncio.to_thread(self._repo.active_temporary)

    def resolve(self, record_id: int, now: Optional[int] = None) -> bool:
        return self._repo.resolve(record_id, now=now)

    def history(self, user_id: int, limit: int = 20) -> List[PunishmentRecord]:
        return self._repo.history(user_id, limit)

    def count_kind(self, user_id: int, kind_prefix: str) -> int:
        return self._repo.count_kind(user_id, kind_prefix)

__all__ = ["RecordService", "MUTE"]
