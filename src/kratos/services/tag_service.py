from __future__ import annotations

import re
from typing import Optional

from ..infrastructure.persistence.db_core import RecordDB

_NAME_RE = re.compile(r"^[a-z0-9_\-]{1,32}$")


class TagService:
    def __init__(self, db: RecordDB):
        self._repo = db.tags

    @staticmethod
    def normalize(name: str) -> str:
        key = name.strip().lower()
        if not _NAME_RE.match(key):
            raise ValueError("tag names are 1-32 characters of a-z, 0-9, '_' or '-'")
        return key

    def create(self, name: str, content: str, author_id: int) -> bool:
        return self._repo.create_tag(self.normalize(name), content, author_id)

    def use(self, name: str) -> Optional[str]:
        key = self.normalize(name)
        tag = self._repo.get_tag(key)
        if tag is None:
            return None
        self._repo.bump_uses(key)
        return tag['content']

    def delete(self, name: str) -> bool:
        return self._repo.delete_tag(self.normalize(name))

    def names(self) -> list[str]:
        return self._repo.list_names()

__all__ = ["TagService"]
