"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from owner_rotation.adapters.csv_loader.directory import CsvDirectoryAdapter
from owner_rotation.adapters.persistence.database import get_session
from owner_rotation.adapters.persistence.repositories import (
    SqlCursorRepository,
    SqlDirectoryAdapter,
    SqlRecordRepository,
)
from owner_rotation.application.ports.directory_port import DirectoryPort
from owner_rotation.application.services.cursor_store import CursorStore
from owner_rotation.application.services.group_resolver import GroupResolver
from owner_rotation.application.use_cases.assign_owners import AssignOwnersUseCase
from owner_rotation.application.use_cases.batch_assign import BatchAssigner
from owner_rotation.config import settings

logger = logging.getLogger(__name__)

# The CSV directory caches its files, so it lives for the whole process
_csv_directory: CsvDirectoryAdapter | None = None
if settings.directory_backend == "csv":
    _csv_directory = CsvDirectoryAdapter(Path(settings.directory_csv_path))
    logger.info("Using CSV directory at %s", settings.directory_csv_path)


def get_directory(session: AsyncSession = Depends(get_session)) -> DirectoryPort:
    if _csv_directory is not None:
        return _csv_directory
    return SqlDirectoryAdapter(session)


def get_cursor_repo(session: AsyncSession = Depends(get_session)) -> SqlCursorRepository:
    return SqlCursorRepository(session)


def get_assign_owners_uc(
    session: AsyncSession = Depends(get_session),
    directory: DirectoryPort = Depends(get_directory),
) -> AssignOwnersUseCase:
    assigner = BatchAssigner(
        resolver=GroupResolver(directory),
        cursor_store=CursorStore(SqlCursorRepository(session)),
    )
    return AssignOwnersUseCase(assigner=assigner, record_repo=SqlRecordRepository(session))
