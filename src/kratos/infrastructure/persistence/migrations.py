"""Schema upgrades for record databases created by earlier releases.

``PRAGMA user_version`` holds the number of steps already applied, so each
step runs once per database file.
"""
from __future__ import annotations

import sqlite3
from typing import Callable, List


def _columns(conn: sqlite3.Connection, table: str) -> set:
    return {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}


def _punishment_expiry(conn: sqlite3.Connection) -> None:
    cols = _columns(conn, "punishments")
    if "expires_at" not in cols:
        conn.execute("ALTER TABLE punishments ADD COLUMN expires_at INTEGER")
    if "resolved_at" not in cols:
        conn.execute("ALTER TABLE punishments ADD COLUMN resolved_at INTEGER")


def _tag_uses(conn: sqlite3.Connection) -> None:
    if "uses" not in _columns(conn, "tags"):
        conn.execute("ALTER TABLE tags ADD COLUMN uses INTEGER DEFAULT 0")


STEPS: List[Callable[[sqlite3.Connection], None]] = [_punishment_expiry, _tag_uses]


def apply_runtime_migrations(conn: sqlite3.Connection) -> int:
    """Run the pending steps and return how many were applied."""
    version = conn.execute("PRAGMA user_version").fetchone()[0]
    pending = STEPS[version:]
    for step in pending:
        step(conn)
    if pending:
        conn.execute(f"PRAGMA user_version = {len(STEPS)}")
        conn.commit()
    return len(pending)

__all__ = ["apply_runtime_migrations", "STEPS"]
