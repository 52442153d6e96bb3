"""GroupResolver — group keys → member pools, all-or-nothing."""

from __future__ import annotations

import logging

from owner_rotation.application.ports.directory_port import DirectoryPort
from owner_rotation.domain.entities.group import MemberPool
from owner_rotation.domain.errors import EmptyMemberPool, GroupNotFound

logger = logging.getLogger(__name__)


class GroupResolver:
    def __init__(self, directory: DirectoryPort):
        self._directory = directory

    async def resolve(self, group_keys: set[str]) -> dict[str, MemberPool]:
        """Resolve every key to a non-empty member pool.

        Raises:
            GroupNotFound: if any key has no configured group.
            EmptyMemberPool: if any configured group has no members.
        """
        if not group_keys:
            return {}

        groups = await self._directory.get_groups(group_keys)
        missing = sorted(k for k in group_keys if k not in groups)
        if missing:
            raise GroupNotFound(missing)

        members = await self._directory.get_members({g.pool_id for g in groups.values()})

        pools = {
            key: MemberPool(
                group_key=key,
                pool_id=group.pool_id,
                members=tuple(members.get(group.pool_id, ())),
            )
            for key, group in groups.items()
        }

        empty = sorted(key for key, pool in pools.items() if pool.is_empty())
        if empty:
            raise EmptyMemberPool(empty)

        logger.debug(
            "Resolved %d group(s): %s",
            len(pools), {k: len(p) for k, p in pools.items()},
        )
        return pools
