"""Assignment errors — every one of them aborts the whole batch."""

from __future__ import annotations

from typing import Any

from owner_rotation.domain.entities.assignment import AssignmentRequest


class AssignmentError(Exception):
    """Base exception for all batch assignment failures."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidRequest(AssignmentError):
    """Raised when a request is missing its record id, field name or group key."""

    def __init__(self, index: int, request: AssignmentRequest, missing: list[str]):
        super().__init__(
            f"Request #{index} is missing {', '.join(missing)}",
            details={
                "index": index,
                "request": {
                    "record_id": request.record_id,
                    "field_name": request.field_name,
                    "group_key": request.group_key,
                },
                "missing": missing,
            },
        )
        self.index = index
        self.request = request


class GroupNotFound(AssignmentError):
    """Raised when one or more group keys have no configured group."""

    def __init__(self, group_keys: list[str]):
        super().__init__(
            f"No group configured for: {', '.join(group_keys)}",
            details={"group_keys": group_keys},
        )
        self.group_keys = group_keys


class EmptyMemberPool(AssignmentError):
    """Raised when a configured group resolves to zero members."""

    def __init__(self, group_keys: list[str]):
        super().__init__(
            f"Group has no members: {', '.join(group_keys)}",
            details={"group_keys": group_keys},
        )
        self.group_keys = group_keys


class ConcurrentModification(AssignmentError):
    """Raised when another batch advanced a cursor between read and commit.

    The batch is safe to retry from scratch.
    """

    def __init__(self, group_keys: list[str]):
        super().__init__(
            f"Cursor changed concurrently for: {', '.join(group_keys)}",
            details={"group_keys": group_keys},
        )
        self.group_keys = group_keys
