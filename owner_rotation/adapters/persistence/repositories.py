"""SQLAlchemy repository implementations."""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from owner_rotation.adapters.persistence.models import (
    CursorModel,
    GroupMemberModel,
    GroupModel,
    RecordOwnerModel,
)
from owner_rotation.application.ports.cursor_repo import CursorRepository
from owner_rotation.application.ports.directory_port import DirectoryPort
from owner_rotation.application.ports.record_repo import RecordRepository
from owner_rotation.domain.entities.assignment import AssignmentResult
from owner_rotation.domain.entities.cursor import Cursor
from owner_rotation.domain.entities.group import Group
from owner_rotation.domain.errors import ConcurrentModification

logger = logging.getLogger(__name__)

# ─── Mappers ─────────────────────────────────────────────────────────


def _group_to_domain(m: GroupModel) -> Group:
    return Group(key=m.key, pool_id=m.pool_id)


def _cursor_to_domain(m: CursorModel) -> Cursor:
    return Cursor(group_key=m.group_key, index=m.last_index, version=m.version)


# ─── Repositories ────────────────────────────────────────────────────


class SqlDirectoryAdapter(DirectoryPort):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_groups(self, keys: set[str]) -> dict[str, Group]:
        result = await self._s.execute(select(GroupModel).where(GroupModel.key.in_(keys)))
        return {m.key: _group_to_domain(m) for m in result.scalars()}

    async def get_members(self, pool_ids: set[str]) -> dict[str, list[str]]:
        result = await self._s.execute(
            select(GroupMemberModel)
            .where(GroupMemberModel.pool_id.in_(pool_ids))
            .order_by(GroupMemberModel.pool_id, GroupMemberModel.position, GroupMemberModel.id)
        )
        members: dict[str, list[str]] = {}
        for m in result.scalars():
            members.setdefault(m.pool_id, []).append(m.member_id)
        return members


class SqlCursorRepository(CursorRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_many(self, group_keys: set[str]) -> dict[str, Cursor]:
        result = await self._s.execute(
            select(CursorModel).where(CursorModel.group_key.in_(group_keys))
        )
        return {m.group_key: _cursor_to_domain(m) for m in result.scalars()}

    async def get(self, group_key: str) -> Cursor | None:
        result = await self._s.execute(
            select(CursorModel).where(CursorModel.group_key == group_key)
        )
        m = result.scalar_one_or_none()
        return _cursor_to_domain(m) if m else None

    async def compare_and_set(
        self, cursors: list[Cursor], expected_versions: dict[str, int]
    ) -> None:
        conflicts: list[str] = []
        for cursor in cursors:
            expected = expected_versions.get(cursor.group_key, 0)
            if expected == 0:
                # First commit for this group; the unique key rejects a racing insert
                try:
                    async with self._s.begin_nested():
                        self._s.add(
                            CursorModel(
                                group_key=cursor.group_key,
                                last_index=cursor.index,
                                version=cursor.version,
                            )
                        )
                except IntegrityError:
                    conflicts.append(cursor.group_key)
                continue

            result = await self._s.execute(
                update(CursorModel)
                .where(
                    CursorModel.group_key == cursor.group_key,
                    CursorModel.version == expected,
                )
                .values(last_index=cursor.index, version=cursor.version)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                conflicts.append(cursor.group_key)

        if conflicts:
            logger.warning("Cursor compare-and-set lost for %s", conflicts)
            raise ConcurrentModification(sorted(conflicts))
        await self._s.flush()


class SqlRecordRepository(RecordRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save_assignments(self, results: list[AssignmentResult]) -> None:
        if not results:
            return

        existing = await self._s.execute(
            select(RecordOwnerModel).where(
                RecordOwnerModel.record_id.in_({r.record_id for r in results})
            )
        )
        rows = {(m.record_id, m.field_name): m for m in existing.scalars()}

        for r in results:
            m = rows.get((r.record_id, r.field_name))
            if m is None:
                m = RecordOwnerModel(
                    record_id=r.record_id,
                    field_name=r.field_name,
                    member_id=r.member_id,
                )
                self._s.add(m)
                # a repeated record later in the batch updates this same row
                rows[(r.record_id, r.field_name)] = m
            else:
                m.member_id = r.member_id
        await self._s.flush()

    async def get_owner(self, record_id: str, field_name: str) -> str | None:
        result = await self._s.execute(
            select(RecordOwnerModel.member_id).where(
                RecordOwnerModel.record_id == record_id,
                RecordOwnerModel.field_name == field_name,
            )
        )
        return result.scalar_one_or_none()
