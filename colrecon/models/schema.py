from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

"""Target schema models for the column reconciliation engine.

The target schema is supplied once per import session and is read-only for
the engine. Field order is kept for display only.
"""

__all__ = [
    "TargetField",
    "SchemaRegistry",
]


@dataclass(frozen=True)
class TargetField:
    """One destination field an uploaded column can be matched to."""
    id: str  # 一意キー (1 フィールドは最大 1 列にのみ割当)
    display_name: str
    description: str = ""
    required: bool = False


@dataclass(frozen=True)
class SchemaRegistry:
    """Ordered, immutable collection of target fields.

    Field ids must be unique. Lookups by id are used by every component
    that receives a field id from the review surface.
    """
    fields: tuple[TargetField, ...]

    def __post_init__(self) -> None:
        fields = tuple(self.fields)
        seen: set[str] = set()
        for f in fields:
            if f.id in seen:
                raise ValueError(f"duplicate target field id: {f.id!r}")
            seen.add(f.id)
        object.__setattr__(self, "fields", fields)

    @classmethod
    def of(cls, fields: Iterable[TargetField]) -> SchemaRegistry:
        return cls(fields=tuple(fields))

    def __iter__(self) -> Iterator[TargetField]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def get(self, field_id: str) -> TargetField | None:
        for f in self.fields:
            if f.id == field_id:
                return f
        return None

    @property
    def required_fields(self) -> tuple[TargetField, ...]:
        return tuple(f for f in self.fields if f.required)
