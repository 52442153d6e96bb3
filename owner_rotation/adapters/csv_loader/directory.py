"""CSV-backed directory — groups and members served from flat files."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from owner_rotation.adapters.csv_loader.loader import (
    GROUP_FILE_HINTS,
    MEMBER_FILE_HINTS,
    find_csv,
    load_groups,
    load_members,
)
from owner_rotation.application.ports.directory_port import DirectoryPort
from owner_rotation.domain.entities.group import Group

logger = logging.getLogger(__name__)


class CsvDirectoryAdapter(DirectoryPort):
    """Reads groups/members CSVs from *data_dir* once, on first lookup.

    The files are read in a worker thread so the event loop stays free.
    """

    def __init__(self, data_dir: Path):
        self._data_dir = data_dir
        self._groups: dict[str, Group] | None = None
        self._members: dict[str, list[str]] = {}

    def _load(self) -> None:
        group_csv = find_csv(self._data_dir, GROUP_FILE_HINTS)
        member_csv = find_csv(self._data_dir, MEMBER_FILE_HINTS)
        if not group_csv:
            raise FileNotFoundError(
                f"No groups CSV found in {self._data_dir}. Expected something like groups.csv"
            )

        groups = {g["key"]: Group(key=g["key"], pool_id=g["pool_id"]) for g in load_groups(group_csv)}

        members: dict[str, list[str]] = {}
        if member_csv:
            # load_members returns each pool already ranked
            for m in load_members(member_csv):
                members.setdefault(m["pool_id"], []).append(m["member_id"])
        else:
            logger.warning("No members CSV found in %s — every group is empty", self._data_dir)

        self._members = members
        self._groups = groups

    async def _ensure_loaded(self) -> None:
        if self._groups is None:
            await asyncio.to_thread(self._load)

    async def get_groups(self, keys: set[str]) -> dict[str, Group]:
        await self._ensure_loaded()
        return {k: self._groups[k] for k in keys if k in self._groups}

    async def get_members(self, pool_ids: set[str]) -> dict[str, list[str]]:
        await self._ensure_loaded()
        return {p: list(self._members[p]) for p in pool_ids if p in self._members}
