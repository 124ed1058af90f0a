from __future__ import annotations

from dataclasses import dataclass, replace

from .schema import TargetField

"""Tagged session mode for the reconciliation engine.

A session is in exactly one of these modes:

- Idle: no card in change mode, no conflict open
- Changing(header): one card shows its field selector
- ResolvingConflict(conflict): two columns compete for one target field
- Completed(mapping): the reconciled mapping was handed off

Keeping the mode as one value (instead of independent optional fields)
rules out combinations such as a conflict being open while a card is also
in change mode.
"""

__all__ = [
    "DuplicationConflict",
    "Idle",
    "Changing",
    "ResolvingConflict",
    "Completed",
    "SessionMode",
]


@dataclass(frozen=True)
class DuplicationConflict:
    """Two source columns competing for the same target field.

    ``header_a`` is the incumbent holding ``target_field``; ``header_b`` is
    the requester. ``selected_header`` stays None until the review surface
    picks one of the two.
    """
    target_field: TargetField
    header_a: str
    header_b: str
    rows_a: tuple[str, ...] = ()
    rows_b: tuple[str, ...] = ()
    selected_header: str | None = None

    @property
    def parties(self) -> tuple[str, str]:
        return (self.header_a, self.header_b)

    def with_selection(self, header: str) -> DuplicationConflict:
        return replace(self, selected_header=header)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Changing:
    header: str


@dataclass(frozen=True)
class ResolvingConflict:
    conflict: DuplicationConflict


@dataclass(frozen=True)
class Completed:
    mapping: dict[str, str]  # header -> field id (ignored 列は除外済)


SessionMode = Idle | Changing | ResolvingConflict | Completed
