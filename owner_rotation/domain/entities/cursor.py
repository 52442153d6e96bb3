"""Cursor entity — the last assigned pool index of a group."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Cursor:
    group_key: str
    index: int | None = None
    # 0 means no row has been stored yet
    version: int = 0

    def advanced_to(self, index: int) -> "Cursor":
        return Cursor(group_key=self.group_key, index=index, version=self.version + 1)
