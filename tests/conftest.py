"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from owner_rotation.application.ports.cursor_repo import CursorRepository
from owner_rotation.application.ports.directory_port import DirectoryPort
from owner_rotation.application.ports.record_repo import RecordRepository
from owner_rotation.application.services.cursor_store import CursorStore
from owner_rotation.application.services.group_resolver import GroupResolver
from owner_rotation.application.use_cases.batch_assign import BatchAssigner
from owner_rotation.domain.entities.assignment import AssignmentRequest
from owner_rotation.domain.entities.cursor import Cursor
from owner_rotation.domain.entities.group import Group
from owner_rotation.domain.errors import ConcurrentModification

# ─── In-memory fakes ────────────────────────────────────────────────


class FakeDirectory(DirectoryPort):
    """Groups keyed by name; each group's pool id is "pool-<key>"."""

    def __init__(self, members_by_group: dict[str, list[str]]):
        self._groups = {k: Group(key=k, pool_id=f"pool-{k}") for k in members_by_group}
        self._members = {f"pool-{k}": list(v) for k, v in members_by_group.items()}
        self.group_calls: list[set[str]] = []
        self.member_calls: list[set[str]] = []

    async def get_groups(self, keys):
        self.group_calls.append(set(keys))
        return {k: self._groups[k] for k in keys if k in self._groups}

    async def get_members(self, pool_ids):
        self.member_calls.append(set(pool_ids))
        return {p: list(self._members[p]) for p in pool_ids if self._members.get(p)}


class FakeCursorRepo(CursorRepository):
    def __init__(self, stored: dict[str, int] | None = None):
        self.cursors: dict[str, Cursor] = {
            k: Cursor(group_key=k, index=v, version=1) for k, v in (stored or {}).items()
        }
        self.read_calls: list[set[str]] = []
        self.commit_calls: list[list[Cursor]] = []
        # Keys another "batch" advances between our read and our commit
        self.race_on: set[str] = set()

    async def get_many(self, group_keys):
        self.read_calls.append(set(group_keys))
        return {k: self.cursors[k] for k in group_keys if k in self.cursors}

    async def get(self, group_key):
        return self.cursors.get(group_key)

    async def compare_and_set(self, cursors, expected_versions):
        self.commit_calls.append(list(cursors))
        for key in self.race_on:
            current = self.cursors.get(key, Cursor(group_key=key))
            self.cursors[key] = Cursor(group_key=key, index=0, version=current.version + 1)

        conflicts = []
        for cursor in cursors:
            stored = self.cursors.get(cursor.group_key)
            stored_version = stored.version if stored else 0
            if stored_version != expected_versions.get(cursor.group_key, 0):
                conflicts.append(cursor.group_key)
        if conflicts:
            raise ConcurrentModification(sorted(conflicts))

        for cursor in cursors:
            self.cursors[cursor.group_key] = cursor


class FakeRecordRepo(RecordRepository):
    def __init__(self):
        self.owners: dict[tuple[str, str], str] = {}
        self.save_calls = 0

    async def save_assignments(self, results):
        self.save_calls += 1
        for r in results:
            self.owners[(r.record_id, r.field_name)] = r.member_id

    async def get_owner(self, record_id, field_name):
        return self.owners.get((record_id, field_name))


# ─── Fixtures ────────────────────────────────────────────────────────


@pytest.fixture
def directory():
    return FakeDirectory({
        "Sales": ["A", "B", "C"],
        "Support": ["X", "Y"],
        "Solo": ["S"],
        "Empty": [],
    })


@pytest.fixture
def cursor_repo():
    return FakeCursorRepo()


@pytest.fixture
def record_repo():
    return FakeRecordRepo()


@pytest.fixture
def assigner(directory, cursor_repo):
    return BatchAssigner(
        resolver=GroupResolver(directory),
        cursor_store=CursorStore(cursor_repo),
    )


@pytest.fixture
def make_requests():
    def _make(*group_keys: str, field_name: str = "OwnerId") -> list[AssignmentRequest]:
        return [
            AssignmentRequest(record_id=f"rec-{i}", field_name=field_name, group_key=key)
            for i, key in enumerate(group_keys)
        ]
    return _make
