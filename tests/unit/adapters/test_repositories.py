"""Tests for the SQLAlchemy repositories against a throwaway SQLite database."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import event, select, update
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from owner_rotation.adapters.persistence.database import Base
from owner_rotation.adapters.persistence.models import (
    CursorModel,
    GroupMemberModel,
    GroupModel,
    RecordOwnerModel,
)
from owner_rotation.adapters.persistence.repositories import (
    SqlCursorRepository,
    SqlDirectoryAdapter,
    SqlRecordRepository,
)
from owner_rotation.application.services.cursor_store import CursorStore
from owner_rotation.application.services.group_resolver import GroupResolver
from owner_rotation.application.use_cases.assign_owners import AssignOwnersUseCase
from owner_rotation.application.use_cases.batch_assign import BatchAssigner
from owner_rotation.domain.entities.assignment import AssignmentRequest, AssignmentResult
from owner_rotation.domain.entities.cursor import Cursor
from owner_rotation.domain.errors import ConcurrentModification


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'rotation.db'}")

    # pysqlite defers BEGIN on its own; let SQLAlchemy emit it so SAVEPOINT works
    @event.listens_for(engine.sync_engine, "connect")
    def _no_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


async def _store_cursor(factory, group_key: str, index: int, version: int) -> None:
    async with factory() as s:
        s.add(CursorModel(group_key=group_key, last_index=index, version=version))
        await s.commit()


async def _stored_cursor(factory, group_key: str) -> Cursor | None:
    async with factory() as s:
        return await SqlCursorRepository(s).get(group_key)


# ─── SqlCursorRepository ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_compare_and_set_updates_matching_version(session_factory):
    await _store_cursor(session_factory, "Sales", index=0, version=1)

    async with session_factory() as s:
        await SqlCursorRepository(s).compare_and_set(
            [Cursor(group_key="Sales", index=2, version=2)], {"Sales": 1}
        )
        await s.commit()

    assert await _stored_cursor(session_factory, "Sales") == Cursor(
        group_key="Sales", index=2, version=2
    )


@pytest.mark.asyncio
async def test_compare_and_set_rejects_stale_version(session_factory):
    await _store_cursor(session_factory, "Sales", index=0, version=1)

    # another batch moves the cursor after our snapshot at version 1
    async with session_factory() as s:
        await s.execute(
            update(CursorModel)
            .where(CursorModel.group_key == "Sales")
            .values(last_index=1, version=2)
        )
        await s.commit()

    async with session_factory() as s:
        with pytest.raises(ConcurrentModification) as exc_info:
            await SqlCursorRepository(s).compare_and_set(
                [Cursor(group_key="Sales", index=2, version=2)], {"Sales": 1}
            )
        await s.rollback()

    assert exc_info.value.details["group_keys"] == ["Sales"]
    assert await _stored_cursor(session_factory, "Sales") == Cursor(
        group_key="Sales", index=1, version=2
    )


@pytest.mark.asyncio
async def test_compare_and_set_inserts_first_cursor(session_factory):
    async with session_factory() as s:
        await SqlCursorRepository(s).compare_and_set(
            [Cursor(group_key="Support", index=0, version=1)], {"Support": 0}
        )
        await s.commit()

    assert await _stored_cursor(session_factory, "Support") == Cursor(
        group_key="Support", index=0, version=1
    )


@pytest.mark.asyncio
async def test_compare_and_set_rejects_racing_first_insert(session_factory):
    # our snapshot saw no row, but another batch inserted one first
    await _store_cursor(session_factory, "Sales", index=0, version=1)

    async with session_factory() as s:
        with pytest.raises(ConcurrentModification) as exc_info:
            await SqlCursorRepository(s).compare_and_set(
                [
                    Cursor(group_key="Sales", index=2, version=1),
                    Cursor(group_key="Support", index=0, version=1),
                ],
                {"Sales": 0, "Support": 0},
            )
        await s.rollback()

    assert exc_info.value.details["group_keys"] == ["Sales"]
    assert await _stored_cursor(session_factory, "Sales") == Cursor(
        group_key="Sales", index=0, version=1
    )
    assert await _stored_cursor(session_factory, "Support") is None


# ─── SqlRecordRepository ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_save_assignments_overwrites_existing_owner(session_factory):
    async with session_factory() as s:
        s.add(RecordOwnerModel(record_id="lead-1", field_name="OwnerId", member_id="A"))
        await s.commit()

    async with session_factory() as s:
        await SqlRecordRepository(s).save_assignments([
            AssignmentResult(record_id="lead-1", field_name="OwnerId", member_id="C"),
            AssignmentResult(record_id="lead-2", field_name="OwnerId", member_id="A"),
        ])
        await s.commit()

    async with session_factory() as s:
        repo = SqlRecordRepository(s)
        assert await repo.get_owner("lead-1", "OwnerId") == "C"
        assert await repo.get_owner("lead-2", "OwnerId") == "A"
        count = len((await s.execute(select(RecordOwnerModel))).scalars().all())
        assert count == 2


# ─── Full batch through the SQL adapters ────────────────────────────


@pytest.mark.asyncio
async def test_batch_with_repeated_record_keeps_last_owner(session_factory):
    async with session_factory() as s:
        s.add(GroupModel(key="Sales", pool_id="p-sales"))
        s.add_all([
            GroupMemberModel(pool_id="p-sales", member_id=m, position=i)
            for i, m in enumerate(["A", "B", "C"])
        ])
        await s.commit()

    requests = [
        AssignmentRequest(record_id=f"r{i}", field_name="OwnerId", group_key="Sales")
        for i in range(4)
    ]
    requests.append(AssignmentRequest(record_id="r0", field_name="OwnerId", group_key="Sales"))

    async with session_factory() as s:
        uc = AssignOwnersUseCase(
            assigner=BatchAssigner(
                GroupResolver(SqlDirectoryAdapter(s)),
                CursorStore(SqlCursorRepository(s)),
            ),
            record_repo=SqlRecordRepository(s),
        )
        outcome = await uc.execute(requests)
        await s.commit()

    assert [r.member_id for r in outcome.results] == ["A", "B", "C", "A", "B"]
    assert await _stored_cursor(session_factory, "Sales") == Cursor(
        group_key="Sales", index=1, version=1
    )
    async with session_factory() as s:
        assert await SqlRecordRepository(s).get_owner("r0", "OwnerId") == "B"
