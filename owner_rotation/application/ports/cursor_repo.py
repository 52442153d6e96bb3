"""Port interface for round-robin cursor persistence."""

from abc import ABC, abstractmethod

from owner_rotation.domain.entities.cursor import Cursor


class CursorRepository(ABC):
    @abstractmethod
    async def get_many(self, group_keys: set[str]) -> dict[str, Cursor]:
        """Return stored cursors. Keys with no stored row are absent."""
        ...

    @abstractmethod
    async def get(self, group_key: str) -> Cursor | None:
        ...

    @abstractmethod
    async def compare_and_set(
        self, cursors: list[Cursor], expected_versions: dict[str, int]
    ) -> None:
        """Store the cursors only if each stored version still matches.

        An expected version of 0 means the row must not exist yet.

        Raises:
            ConcurrentModification: if any cursor was changed by someone else.
        """
        ...
