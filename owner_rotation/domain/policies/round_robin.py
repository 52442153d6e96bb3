"""RoundRobinPolicy — deterministic cursor advance over a member pool."""

from __future__ import annotations

from collections.abc import Sequence


def next_index(current: int | None, pool_size: int) -> int:
    """Advance a round-robin cursor by one position.

    1. An absent or negative cursor means "before index 0".
    2. Increment by one.
    3. Anything past the last index wraps to 0, including a stale cursor
       left over from a larger pool.

    Args:
        current: last assigned index, or None if the pool was never used.
        pool_size: number of members in the pool.

    Returns:
        The next index, always in [0, pool_size - 1].

    Raises:
        ValueError: if pool_size is not positive.
    """
    if pool_size <= 0:
        raise ValueError("Cannot advance a cursor over an empty pool")

    if current is None or current < 0:
        current = -1

    index = current + 1
    if index > pool_size - 1:
        index = 0
    return index


def pick_next(pool: Sequence[str], current: int | None) -> tuple[str, int]:
    """Pick the member after *current* from an ordered pool.

    Returns:
        (chosen_member, new_cursor)

    Raises:
        ValueError: if pool is empty.
    """
    if not pool:
        raise ValueError("Cannot pick from an empty member pool")

    index = next_index(current, len(pool))
    return pool[index], index
