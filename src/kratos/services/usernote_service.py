from __future__ import annotations

from typing import Optional

from ..infrastructure.persistence.db_core import RecordDB


class UsernoteService:
    def __init__(self, db: RecordDB):
        self._repo = db.notes

    def add(self, guild_id: Optional[int], user_id: int, author_id: int, content: str) -> int:
        content = content.strip()
        if not content:
            raise ValueError("note content is empty")
        return self._repo.add_note(guild_id, user_id, author_id, content)

    def notes_for(self, user_id: int, limit: int = 20) -> list[dict]:
        return self._repo.list_notes(user_id, max(1, min(limit, 50)))

    def remove(self, note_id: int) -> bool:
        return self._repo.delete_note(note_id)

__all__ = ["UsernoteService"]
