"""BatchAssigner — resolve a batch of requests to owners, round-robin per group."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from owner_rotation.application.services.cursor_store import CursorStore
from owner_rotation.application.services.group_resolver import GroupResolver
from owner_rotation.domain.entities.assignment import (
    AssignmentRequest,
    AssignmentResult,
    BatchOutcome,
)
from owner_rotation.domain.errors import InvalidRequest
from owner_rotation.domain.policies.round_robin import pick_next

logger = logging.getLogger(__name__)


class BatchAssigner:
    """Assigns owners to a batch of requests as a single unit.

    Every request sharing a group sees the same member pool and the cursor
    left by the previous request of that group, so one batch never hands the
    same member out twice before the pool is exhausted. Cursors are committed
    once, after every selection succeeded.
    """

    def __init__(self, resolver: GroupResolver, cursor_store: CursorStore):
        self._resolver = resolver
        self._cursors = cursor_store

    async def execute(self, requests: Sequence[AssignmentRequest]) -> BatchOutcome:
        """Assign an owner to every request.

        Pipeline:
        1. Validate all requests (no I/O before this passes)
        2. Resolve pools and snapshot cursors, once per group
        3. Pick members in input order, advancing a working cursor
        4. Commit the last cursor of each group

        Raises:
            InvalidRequest: a request is missing a required field.
            GroupNotFound / EmptyMemberPool: a group cannot be resolved.
            ConcurrentModification: a cursor moved during the batch.
        """
        self._validate(requests)
        if not requests:
            return BatchOutcome()

        group_keys = {r.group_key for r in requests}
        logger.info(
            "Assigning %d request(s) across %d group(s)", len(requests), len(group_keys)
        )

        pools = await self._resolver.resolve(group_keys)
        snapshot = await self._cursors.get_current(group_keys)

        working: dict[str, int | None] = {key: c.index for key, c in snapshot.items()}
        results: list[AssignmentResult] = []

        for request in requests:
            pool = pools[request.group_key]
            member, index = pick_next(pool.members, working[request.group_key])
            working[request.group_key] = index
            results.append(
                AssignmentResult(
                    record_id=request.record_id,
                    field_name=request.field_name,
                    member_id=member,
                )
            )
            logger.debug(
                "Record %s.%s → %s (group %s, index %d)",
                request.record_id, request.field_name, member, request.group_key, index,
            )

        final_indexes = {key: index for key, index in working.items() if index is not None}
        committed = await self._cursors.commit(snapshot, final_indexes)

        logger.info("Batch complete: %d assignment(s)", len(results))
        return BatchOutcome(results=results, cursors=committed)

    @staticmethod
    def _validate(requests: Sequence[AssignmentRequest]) -> None:
        for i, request in enumerate(requests):
            missing = request.missing_fields()
            if missing:
                raise InvalidRequest(i, request, missing)
