"""Port interface for the group/member directory."""

from abc import ABC, abstractmethod

from owner_rotation.domain.entities.group import Group


class DirectoryPort(ABC):
    @abstractmethod
    async def get_groups(self, keys: set[str]) -> dict[str, Group]:
        """Return the configured groups for the given keys.

        Keys without a configured group are simply absent from the result.
        """
        ...

    @abstractmethod
    async def get_members(self, pool_ids: set[str]) -> dict[str, list[str]]:
        """Return the ordered member ids of each pool.

        The order must be stable between calls. Pools without members may be
        absent from the result.
        """
        ...
