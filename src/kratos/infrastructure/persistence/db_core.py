"""SQLite persistence core"""
from __future__ import annotations

import os
import sqlite3

from .migrations import apply_runtime_migrations
from .punishment_repository import PunishmentRepository
from .note_repository import NoteRepository
from .tag_repository import TagRepository

SCHEMA = """
CREATE TABLE IF NOT EXISTS punishments(
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts INTEGER,
  guild_id TEXT,
  user_id TEXT,
  moderator_id TEXT,
  kind TEXT,
  reason TEXT,
  expires_at INTEGER,
  resolved_at INTEGER
);
CREATE INDEX IF NOT EXISTS idx_punishments_user_kind ON punishments(user_id, kind);
CREATE TABLE IF NOT EXISTS usernotes(
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts INTEGER,
  guild_id TEXT,
  user_id TEXT,
  author_id TEXT,
  content TEXT
);
CREATE INDEX IF NOT EXISTS idx_usernotes_user ON usernotes(user_id);
CREATE TABLE IF NOT EXISTS tags(
  name TEXT PRIMARY KEY,
  content TEXT,
  author_id TEXT,
  ts INTEGER,
  uses INTEGER DEFAULT 0
);
"""


def init_connection(path: str) -> sqlite3.Connection:
    if path != ":memory:":
        folder = os.path.dirname(path)
        if folder:
            os.makedirs(folder, exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.executescript(SCHEMA)
    conn.commit()
    apply_runtime_migrations(conn)
    return conn


class RecordDB:
    """Shared connection plus the repositories built on it."""
    def __init__(self, path: str):
        self.path = path
        self.conn = init_connection(path)
        self.punishments = PunishmentRepository(self.conn)
        self.notes = NoteRepository(self.conn)
        self.tags = TagRepository(self.conn)

    def close(self) -> None:
        self.conn.close()

__all__ = [
    'RecordDB', 'init_connection', 'PunishmentRepository', 'NoteRepository', 'TagRepository'
]
