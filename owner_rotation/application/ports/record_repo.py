"""Port interface for writing owners onto target records."""

from abc import ABC, abstractmethod

from owner_rotation.domain.entities.assignment import AssignmentResult


class RecordRepository(ABC):
    @abstractmethod
    async def save_assignments(self, results: list[AssignmentResult]) -> None:
        """Write each member id into the record's field, replacing any previous owner."""
        ...

    @abstractmethod
    async def get_owner(self, record_id: str, field_name: str) -> str | None:
        ...
