from __future__ import annotations

import logging
from collections.abc import Sequence

from ..models.schema import SchemaRegistry, TargetField
from .errors import InvalidStateError, UnknownColumnError
from .matching import bootstrap_matches

"""Match store: source column -> target field assignment plus the ignore set.

The store owns the committed state only. It refuses any write that would
give one target field to two headers; routing such attempts through a
duplication conflict is the conflict resolver's job. Ignore status and
assignment are independent: ignoring a column never touches its match.
"""

__all__ = [
    "MatchStore",
]

logger = logging.getLogger(__name__)


class MatchStore:
    """Committed match assignment and ignore set for one source table.

    Headers are fixed at construction and kept in file order.
    """

    def __init__(self, headers: Sequence[str]) -> None:
        self._headers: tuple[str, ...] = tuple(headers)
        self._assignments: dict[str, TargetField | None] = {h: None for h in self._headers}
        self._ignored: set[str] = set()

    # ------------------------------------------------------------------ read
    @property
    def headers(self) -> tuple[str, ...]:
        return self._headers

    @property
    def assignments(self) -> dict[str, TargetField | None]:
        """Copy of the assignment in file order."""
        return dict(self._assignments)

    @property
    def ignored(self) -> frozenset[str]:
        return frozenset(self._ignored)

    def require_header(self, header: str) -> None:
        if header not in self._assignments:
            raise UnknownColumnError(f"unknown source column: {header!r}")

    def match_of(self, header: str) -> TargetField | None:
        self.require_header(header)
        return self._assignments[header]

    def is_ignored(self, header: str) -> bool:
        return header in self._ignored

    def holder_of(self, field_id: str) -> str | None:
        """Header currently assigned to ``field_id`` (at most one)."""
        for header, field in self._assignments.items():
            if field is not None and field.id == field_id:
                return header
        return None

    def is_actionable_unmatched(self, header: str) -> bool:
        return self._assignments[header] is None and header not in self._ignored

    @property
    def unmatched_count(self) -> int:
        return sum(1 for h in self._headers if self.is_actionable_unmatched(h))

    # ----------------------------------------------------------------- write
    def bootstrap(
        self,
        schema: SchemaRegistry,
        fuzzy_threshold: float | None = None,
    ) -> dict[str, TargetField | None]:
        """Replace the assignment with the auto-match result; clear ignores."""
        matches = bootstrap_matches(schema, self._headers, fuzzy_threshold=fuzzy_threshold)
        self._assignments = {h: matches.get(h) for h in self._headers}
        self._ignored = set()
        matched = sum(1 for f in self._assignments.values() if f is not None)
        logger.info(f"bootstrap: matched {matched}/{len(self._headers)} columns")
        return self.assignments

    def assign(self, header: str, field: TargetField) -> None:
        """Commit ``header -> field``; the field must be free or already held by ``header``."""
        self.require_header(header)
        holder = self.holder_of(field.id)
        if holder is not None and holder != header:
            raise InvalidStateError(
                f"target field '{field.id}' is already assigned to '{holder}'"
            )
        self._assignments[header] = field

    def transfer(self, field: TargetField, to_header: str) -> str | None:
        """Give ``field`` to ``to_header``, clearing any other holder.

        Returns the header that lost the field (None if it was free).
        Both writes happen before control returns to the caller.
        """
        self.require_header(to_header)
        previous = self.holder_of(field.id)
        if previous is not None and previous != to_header:
            self._assignments[previous] = None
        else:
            previous = None
        self._assignments[to_header] = field
        return previous

    def clear(self, header: str) -> None:
        self.require_header(header)
        self._assignments[header] = None

    def toggle_ignore(self, header: str) -> bool:
        """Flip ignore membership; returns the new ignored state."""
        self.require_header(header)
        if header in self._ignored:
            self._ignored.discard(header)
            return False
        self._ignored.add(header)
        return True

    def reset(self) -> None:
        self._assignments = {h: None for h in self._headers}
        self._ignored = set()
