"""Usernote data access repository."""
from __future__ import annotations

import time
import sqlite3
from typing import Optional


class NoteRepository:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def add_note(self, guild_id: Optional[int], user_id: int, author_id: int, content: str) -> int:
        cur = self.conn.execute(
            "INSERT INTO usernotes(ts,guild_id,user_id,author_id,content) VALUES(?,?,?,?,?)",
            (int(time.time()), str(guild_id) if guild_id else None, str(user_id), str(author_id), content),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def list_notes(self, user_id: int, limit: int = 20) -> list[dict]:
        cur = self.conn.execute(
            "SELECT id, ts, author_id, content FROM usernotes WHERE user_id=? ORDER BY ts DESC, id DESC LIMIT ?",
            (str(user_id), int(limit)),
        )
        return [
            {'id': r[0], 'ts': r[1], 'author_id': int(r[2]), 'content': r[3]}
            for r in cur.fetchall()
        ]

    def delete_note(self, note_id: int) -> bool:
        cur = self.conn.execute("DELETE FROM usernotes WHERE id=?", (note_id,))
        self.conn.commit()
        return cur.rowcount > 0

__all__ = ["NoteRepository"]
