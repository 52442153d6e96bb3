"""CursorStore — one snapshot read and one commit per batch."""

from __future__ import annotations

import logging

from owner_rotation.application.ports.cursor_repo import CursorRepository
from owner_rotation.domain.entities.cursor import Cursor

logger = logging.getLogger(__name__)


class CursorStore:
    def __init__(self, cursor_repo: CursorRepository):
        self._repo = cursor_repo

    async def get_current(self, group_keys: set[str]) -> dict[str, Cursor]:
        """Snapshot the cursors of the given groups.

        Groups that were never assigned from get an unstarted cursor.
        """
        if not group_keys:
            return {}
        stored = await self._repo.get_many(group_keys)
        return {key: stored.get(key) or Cursor(group_key=key) for key in group_keys}

    async def commit(
        self, snapshot: dict[str, Cursor], final_indexes: dict[str, int]
    ) -> dict[str, Cursor]:
        """Persist the final cursor of each group against its snapshot version.

        Raises:
            ConcurrentModification: if a cursor moved since the snapshot.
        """
        if not final_indexes:
            return {}

        committed = {
            key: snapshot.get(key, Cursor(group_key=key)).advanced_to(index)
            for key, index in final_indexes.items()
        }
        expected = {key: snapshot.get(key, Cursor(group_key=key)).version for key in final_indexes}

        await self._repo.compare_and_set(list(committed.values()), expected)
        logger.info(
            "Committed cursors: %s",
            {k: c.index for k, c in committed.items()},
        )
        return committed
