"""AssignOwnersUseCase — run a batch and write the owners onto the records."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from owner_rotation.application.ports.record_repo import RecordRepository
from owner_rotation.application.use_cases.batch_assign import BatchAssigner
from owner_rotation.domain.entities.assignment import AssignmentRequest, BatchOutcome
from owner_rotation.domain.errors import AssignmentError

logger = logging.getLogger(__name__)


class AssignOwnersUseCase:
    """Entry point for callers.

    Record writes and the cursor commit go through the same unit of work;
    the caller commits or rolls it back.
    """

    def __init__(self, assigner: BatchAssigner, record_repo: RecordRepository):
        self._assigner = assigner
        self._records = record_repo

    async def execute(self, requests: Sequence[AssignmentRequest]) -> BatchOutcome:
        try:
            outcome = await self._assigner.execute(requests)
        except AssignmentError as e:
            logger.warning("Batch of %d rejected: %s", len(requests), e.message)
            raise

        if outcome.results:
            await self._records.save_assignments(outcome.results)
        return outcome
