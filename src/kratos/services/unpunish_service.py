"""Time-bound punishments and the unpunisher loop that lifts them."""
from __future__ import annotations

import asyncio
import time
from typing import Dict, List, Optional

import discord

from ..config.settings import CoreConfig
from ..infrastructure.logging.structured_logging import (
    debug as log_debug,
    error as log_error,
    info as log_info,
    verbose as log_verbose,
    warning as log_warning,
)
from ..infrastructure.persistence.punishment_repository import PunishmentRecord
from ..utils.format_utils import format_duration
from .modlog_service import ModLogService
from .record_service import MUTE, RecordService

_SOURCE = "Unpunisher"


class UnpunishService:
    """Applies mutes and reverses every time-bound punishment once it expires.

    The blacklist is wired in after construction with ``attach_blacklist``
    because the two services reference each other.
    """

    def __init__(self, client, modlog: ModLogService, records: RecordService, core: CoreConfig):
        self._client = client
        self._modlog = modlog
        self._records = records
        self._core = core
        self._blacklist = None
        self._pending: Dict[int, PunishmentRecord] = {}
        self._task: Optional[asyncio.Task] = None

    @property
    def blacklist(self):
        return self._blacklist

    def attach_blacklist(self, blacklist) -> None:
        if self._blacklist is not None:
            raise RuntimeError("blacklist already attached")
        self._blacklist = blacklist

    @property
    def pending(self) -> List[PunishmentRecord]:
        return sorted(self._pending.values(), key=lambda r: r.expires_at or 0)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def get_records_async(self) -> int:
        records = await self._records.active_temporary_async()
        self._pending = {r.id: r for r in records}
        log_info("unpunish.records_loaded", source=_SOURCE, pending=len(self._pending))
        return len(self._pending)

    def track(self, record: PunishmentRecord) -> None:
        if record.is_temporary and record.resolved_at is None:
            self._pending[record.id] = record

    async def mute(self, member, seconds: int, reason: str, moderator_id: Optional[int] = None, kind: str = MUTE) -> Optional[PunishmentRecord]:
        guild = member.guild
        role = guild.get_role(self._core.mute_role_id) if self._core.mute_role_id else None
        if role is None:
            log_warning("unpunish.mute_role_missing", source=_SOURCE, role_id=self._core.mute_role_id)
            return None
        try:
            await member.add_roles(role, reason=reason)
        except discord.HTTPException as e:
            log_error("unpunish.mute_failed", source=_SOURCE, failure=e, user_id=member.id)
            return None
        record = self._records.add(guild.id, member.id, moderator_id, kind, reason, seconds)
        self.track(record)
        await self._modlog.post(f":mute: {member} muted for {format_duration(seconds)}: {reason}")
        return record

    async def _reverse(self, record: PunishmentRecord) -> bool:
        guild = self._client.get_guild(record.guild_id) if record.guild_id else None
        if guild is None:
            log_debug("unpunish.guild_unavailable", source=_SOURCE, record_id=record.id, guild_id=record.guild_id)
            return False
        member = guild.get_member(record.user_id)
        role = guild.get_role(self._core.mute_role_id)
        if member is not None and role is not None and role in member.roles:
            await member.remove_roles(role, reason="Mute expired")
        return True

    async def sweep(self, now: Optional[int] = None) -> List[PunishmentRecord]:
        """Reverse every expired punishment; failed reversals stay pending."""
        now = int(now if now is not None else time.time())
        lifted: List[PunishmentRecord] = []
        for record in [r for r in self.pending if r.is_expired(now)]:
            try:
                done = await self._reverse(record)
            except discord.HTTPException as e:
                log_error("unpunish.reverse_failed", source=_SOURCE, failure=e, record_id=record.id)
                continue
            if not done:
                continue
            self._records.resolve(record.id, now)
            self._pending.pop(record.id, None)
            if self._blacklist is not None:
                self._blacklist.clear_strikes(record.user_id)
            await self._modlog.post(f":unlock: {record.kind} of <@{record.user_id}> expired (record #{record.id})")
            log_info("unpunish.lifted", source=_SOURCE, record_id=record.id, kind=record.kind, user_id=record.user_id)
            lifted.append(record)
        return lifted

    async def _run(self) -> None:
        interval = self._core.unpunish_interval_seconds
        while True:
            try:
                lifted = await self.sweep()
            except Exception as e:  # noqa: BLE001
                log_error("unpunish.sweep_failed", source=_SOURCE, failure=e)
            else:
                log_verbose("unpunish.sweep", source=_SOURCE, lifted=len(lifted), pending=len(self._pending))
            await asyncio.sleep(interval)

    async def start(self) -> None:
        if self._blacklist is None:
            raise RuntimeError("unpunisher started before the blacklist was attached")
        if self.is_running:
            raise RuntimeError("unpunisher already running")
        self._task = asyncio.create_task(self._run(), name="kratos-unpunisher")
        log_info("unpunish.started", source=_SOURCE, interval=self._core.unpunish_interval_seconds)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

__all__ = ["UnpunishService"]
