"""Assignment endpoints — run a round-robin batch, inspect cursors."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from owner_rotation.adapters.persistence.database import get_session
from owner_rotation.application.ports.cursor_repo import CursorRepository
from owner_rotation.application.use_cases.assign_owners import AssignOwnersUseCase
from owner_rotation.config import settings
from owner_rotation.domain.entities.assignment import AssignmentRequest
from owner_rotation.domain.errors import (
    AssignmentError,
    ConcurrentModification,
    EmptyMemberPool,
    GroupNotFound,
    InvalidRequest,
)
from owner_rotation.infrastructure.api.dependencies import (
    get_assign_owners_uc,
    get_cursor_repo,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["assignments"])

_STATUS_BY_ERROR: dict[type[AssignmentError], int] = {
    InvalidRequest: 422,
    GroupNotFound: 404,
    EmptyMemberPool: 409,
    ConcurrentModification: 409,
}

# ── Request / Response schemas ──────────────────────────────────────


class AssignmentRequestIn(BaseModel):
    # opaque id; numeric ids from JSON are kept as their decimal string
    record_id: str | int
    field_name: str
    group_key: str


class AssignBatchIn(BaseModel):
    requests: list[AssignmentRequestIn]


class AssignmentOut(BaseModel):
    record_id: str
    field_name: str
    member_id: str


class AssignBatchOut(BaseModel):
    status: str
    assignments: list[AssignmentOut]
    cursors: dict[str, int | None]


class CursorOut(BaseModel):
    group_key: str
    index: int | None
    version: int


# ── Routes ──────────────────────────────────────────────────────────


@router.post("/assignments", response_model=AssignBatchOut)
async def assign_owners(
    body: AssignBatchIn,
    uc: AssignOwnersUseCase = Depends(get_assign_owners_uc),
    session: AsyncSession = Depends(get_session),
):
    """Assign an owner to every record in the batch, all or nothing."""
    if len(body.requests) > settings.max_batch_size:
        raise HTTPException(
            status_code=422,
            detail=f"Batch of {len(body.requests)} exceeds the limit of {settings.max_batch_size}",
        )

    requests = [
        AssignmentRequest(record_id=str(r.record_id), field_name=r.field_name, group_key=r.group_key)
        for r in body.requests
    ]

    try:
        outcome = await uc.execute(requests)
        await session.commit()
    except AssignmentError as e:
        await session.rollback()
        raise HTTPException(status_code=_STATUS_BY_ERROR.get(type(e), 400), detail=_error_detail(e))
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Persistence failure while assigning %d request(s)", len(requests))
        raise HTTPException(
            status_code=503,
            detail={"error": type(e).__name__, "message": str(e), "details": {}},
        )

    return AssignBatchOut(
        status="ok",
        assignments=[
            AssignmentOut(record_id=r.record_id, field_name=r.field_name, member_id=r.member_id)
            for r in outcome.results
        ],
        cursors={key: c.index for key, c in outcome.cursors.items()},
    )


@router.get("/groups/{group_key}/cursor", response_model=CursorOut)
async def get_cursor(
    group_key: str,
    cursor_repo: CursorRepository = Depends(get_cursor_repo),
):
    """Current stored cursor of a group; index is null if never assigned."""
    cursor = await cursor_repo.get(group_key)
    if cursor is None:
        return CursorOut(group_key=group_key, index=None, version=0)
    return CursorOut(group_key=cursor.group_key, index=cursor.index, version=cursor.version)


def _error_detail(e: AssignmentError) -> dict:
    return {"error": type(e).__name__, "message": e.message, "details": e.details}
