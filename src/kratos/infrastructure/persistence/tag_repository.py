"""Tag data access repository."""
from __future__ import annotations

import time
import sqlite3
from typing import Optional


class TagRepository:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def create_tag(self, name: str, content: str, author_id: int) -> bool:
        cur = self.conn.execute(
            "INSERT OR IGNORE INTO tags(name,content,author_id,ts,uses) VALUES(?,?,?,?,0)",
            (name, content, str(author_id), int(time.time())),
        )
        self.conn.commit()
        return cur.rowcount > 0

    def get_tag(self, name: str) -> Optional[dict]:
        cur = self.conn.execute("SELECT name, content, author_id, ts, uses FROM tags WHERE name=?", (name,))
        r = cur.fetchone()
        if not r:
            return None
        return {'name': r[0], 'content': r[1], 'author_id': int(r[2]), 'ts': r[3], 'uses': r[4]}

    def bump_uses(self, name: str) -> None:
        self.conn.execute("UPDATE tags SET uses = uses + 1 WHERE name=?", (name,))
        self.conn.commit()

    def delete_tag(self, name: str) -> bool:
        cur = self.conn.execute("DELETE FROM tags WHERE name=?", (name,))
        self.conn.commit()
        return cur.rowcount > 0

    def list_names(self) -> list[str]:
        cur = self.conn.execute("SELECT name FROM tags ORDER BY name ASC")
        return [r[0] for r in cur.fetchall()]

__all__ = ["TagRepository"]
