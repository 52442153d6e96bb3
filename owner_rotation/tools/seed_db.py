"""Seed the directory tables from CSV files.

Usage:
    python -m owner_rotation.tools.seed_db
    python -m owner_rotation.tools.seed_db --data-dir data
    python -m owner_rotation.tools.seed_db --drop  # drop existing data first
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from owner_rotation.adapters.csv_loader.loader import (
    GROUP_FILE_HINTS,
    MEMBER_FILE_HINTS,
    find_csv,
    load_groups,
    load_members,
)
from owner_rotation.adapters.persistence.database import async_session_factory
from owner_rotation.adapters.persistence.models import (
    CursorModel,
    GroupMemberModel,
    GroupModel,
    RecordOwnerModel,
)
from owner_rotation.config import settings

logger = logging.getLogger(__name__)


async def _drop_data(session: AsyncSession) -> None:
    """Delete all directory, cursor and owner rows."""
    for model in [RecordOwnerModel, CursorModel, GroupMemberModel, GroupModel]:
        await session.execute(delete(model))
    await session.commit()
    logger.info("Dropped all existing data")


async def seed(data_dir: Path, drop: bool = False) -> dict[str, int]:
    """Main seed function. Returns counts of seeded records."""
    counts = {"groups": 0, "members": 0}

    group_csv = find_csv(data_dir, GROUP_FILE_HINTS)
    member_csv = find_csv(data_dir, MEMBER_FILE_HINTS)
    if not group_csv:
        raise FileNotFoundError(
            f"No groups CSV found in {data_dir}. Expected something like groups.csv"
        )

    async with async_session_factory() as session:
        if drop:
            await _drop_data(session)

        # 1. Groups
        for gd in load_groups(group_csv):
            existing = await session.execute(select(GroupModel).where(GroupModel.key == gd["key"]))
            if existing.scalar_one_or_none():
                logger.debug("Group '%s' already exists, skipping", gd["key"])
                continue
            session.add(GroupModel(key=gd["key"], pool_id=gd["pool_id"]))
            counts["groups"] += 1
        await session.commit()

        # 2. Members
        if member_csv:
            for md in load_members(member_csv):
                existing = await session.execute(
                    select(GroupMemberModel).where(
                        GroupMemberModel.pool_id == md["pool_id"],
                        GroupMemberModel.member_id == md["member_id"],
                    )
                )
                if existing.scalar_one_or_none():
                    logger.debug(
                        "Member '%s' of pool '%s' already exists, skipping",
                        md["member_id"], md["pool_id"],
                    )
                    continue
                session.add(
                    GroupMemberModel(
                        pool_id=md["pool_id"],
                        member_id=md["member_id"],
                        position=md["position"],
                    )
                )
                counts["members"] += 1
            await session.commit()
        else:
            logger.info("No members CSV found — skipping member import")

    logger.info("Seed complete: %d groups, %d members", counts["groups"], counts["members"])
    return counts


async def _verify_data() -> None:
    """Print sanity checks after seeding."""
    async with async_session_factory() as session:
        groups = (await session.execute(select(GroupModel))).scalars().all()
        members = (await session.execute(select(GroupMemberModel))).scalars().all()

        sizes: dict[str, int] = {}
        for m in members:
            sizes[m.pool_id] = sizes.get(m.pool_id, 0) + 1
        empty = [g.key for g in groups if sizes.get(g.pool_id, 0) == 0]

        print(f"\n{'='*50}")
        print("SEED VERIFICATION")
        print(f"{'='*50}")
        print(f"Groups:  {len(groups)}")
        print(f"Members: {len(members)}")
        print(f"Pool sizes: {sizes}")
        print(f"Groups without members: {empty}")
        print(f"{'='*50}\n")


def main():
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s | %(message)s")

    parser = argparse.ArgumentParser(description="Seed owner rotation directory from CSV files")
    parser.add_argument(
        "--data-dir", type=str, default=settings.directory_csv_path,
        help="Directory containing CSV files (default: DIRECTORY_CSV_PATH)",
    )
    parser.add_argument(
        "--drop", action="store_true",
        help="Drop existing data before seeding",
    )
    parser.add_argument(
        "--verify-only", action="store_true",
        help="Only run verification, don't seed",
    )
    args = parser.parse_args()

    data_dir = Path(args.data_dir)
    if not args.verify_only and not data_dir.exists():
        logger.error("Data directory not found: %s", data_dir)
        sys.exit(1)

    if args.verify_only:
        asyncio.run(_verify_data())
    else:
        async def run_all():
            await seed(data_dir, drop=args.drop)
            await _verify_data()
        asyncio.run(run_all())


if __name__ == "__main__":
    main()
