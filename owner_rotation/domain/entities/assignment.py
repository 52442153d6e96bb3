"""Assignment entities — what the caller asks for and what it gets back."""

from dataclasses import dataclass, field

from owner_rotation.domain.entities.cursor import Cursor


@dataclass(frozen=True)
class AssignmentRequest:
    """One record that needs an owner picked from one named group."""

    record_id: str
    field_name: str
    group_key: str

    def missing_fields(self) -> list[str]:
        missing = []
        for name in ("record_id", "field_name", "group_key"):
            value = getattr(self, name)
            if value is None or not str(value).strip():
                missing.append(name)
        return missing


@dataclass(frozen=True)
class AssignmentResult:
    record_id: str
    field_name: str
    member_id: str


@dataclass
class BatchOutcome:
    """Results of one batch, in request order, plus the cursors it committed."""

    results: list[AssignmentResult] = field(default_factory=list)
    cursors: dict[str, Cursor] = field(default_factory=dict)
