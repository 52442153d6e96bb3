"""Group entities — configured groups and their resolved member pools."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Group:
    key: str
    pool_id: str


@dataclass(frozen=True)
class MemberPool:
    """Ordered member snapshot of a resolved group.

    The order is fixed for the lifetime of a batch; cursor indexes point into it.
    """

    group_key: str
    pool_id: str
    members: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.members)

    def __getitem__(self, index: int) -> str:
        return self.members[index]

    def is_empty(self) -> bool:
        return not self.members
