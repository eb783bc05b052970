"""Punishment record data access"""
from __future__ import annotations

import time
import sqlite3
from dataclasses import dataclass
from typing import Optional, List

_COLUMNS = "id, ts, guild_id, user_id, moderator_id, kind, reason, expires_at, resolved_at"


@dataclass(frozen=True)
class PunishmentRecord:
    id: int
    ts: int
    guild_id: Optional[int]
    user_id: int
    moderator_id: Optional[int]
    kind: str
    reason: str
    expires_at: Optional[int]
    resolved_at: Optional[int]

    @property
    def is_temporary(self) -> bool:
        return self.expires_at is not None

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and self.expires_at <= now


def _int_or_none(v) -> Optional[int]:
    return int(v) if v is not None else None


def _row_to_record(r) -> PunishmentRecord:
    return PunishmentRecord(
        id=r[0], ts=r[1], guild_id=_int_or_none(r[2]), user_id=int(r[3]), moderator_id=_int_or_none(r[4]),
        kind=r[5], reason=r[6], expires_at=r[7], resolved_at=r[8],
    )


class PunishmentRepository:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def add(
        self,
        guild_id: Optional[int],
        user_id: int,
        moderator_id: Optional[int],
        kind: str,
        reason: str,
        duration_seconds: Optional[int] = None,
        now: Optional[int] = None,
    ) -> int:
        ts = int(now if now is not None else time.time())
        expires_at = ts + int(duration_seconds) if duration_seconds else None
        cur = self.conn.execute(
            "INSERT INTO punishments(ts,guild_id,user_id,moderator_id,kind,reason,expires_at) VALUES(?,?,?,?,?,?,?)",
            (
                ts,
                str(guild_id) if guild_id else None,
                str(user_id),
                str(moderator_id) if moderator_id else None,
                kind,
                reason,
                expires_at,
            ),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def get(self, record_id: int) -> Optional[PunishmentRecord]:
        cur = self.conn.execute(f"SELECT {_COLUMNS} FROM punishments WHERE id=?", (record_id,))
        row = cur.fetchone()
        return _row_to_record(row) if row else None

    def active_temporary(self) -> List[PunishmentRecord]:
        cur = self.conn.execute(
            f"SELECT {_COLUMNS} FROM punishments WHERE expires_at IS NOT NULL AND resolved_at IS NULL ORDER BY expires_at ASC"
        )
        return [_row_to_record(r) for r in cur.fetchall()]

    def resolve(self, record_id: int, now: Optional[int] = None) -> bool:
        cur = self.conn.execute(
            "UPDATE punishments SET resolved_at=? WHERE id=? AND resolved_at IS NULL",
            (int(now if now is not None else time.time()), record_id),
        )
        self.conn.commit()
        return cur.rowcount > 0

    def history(self, user_id: int, limit: int = 20) -> List[PunishmentRecord]:
        cur = self.conn.execute(
            f"SELECT {_COLUMNS} FROM punishments WHERE user_id=? ORDER BY ts DESC, id DESC LIMIT ?",
            (str(user_id), int(limit)),
        )
        return [_row_to_record(r) for r in cur.fetchall()]

    def count_kind(self, user_id: int, kind_prefix: str) -> int:
        cur = self.conn.execute(
            "SELECT COUNT(*) FROM punishments WHERE user_id=? AND kind LIKE ?",
            (str(user_id), f"{kind_prefix}%"),
        )
        row = cur.fetchone()
        return int(row[0]) if row else 0

__all__ = ["PunishmentRecord", "PunishmentRepository"]
