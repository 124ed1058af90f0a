from __future__ import annotations

import logging

from ..models.schema import TargetField
from ..models.session_state import (
    Changing,
    Completed,
    DuplicationConflict,
    Idle,
    ResolvingConflict,
    SessionMode,
)
from ..models.source_table import SourceTable
from .errors import InvalidStateError
from .match_store import MatchStore

"""Conflict resolver: the assignment state machine.

Owns the tagged session mode and is the only component that commits
user-driven assignments. Transitions:

    Idle / Changing --try_assign (field free or own)--> Idle
    Idle / Changing --try_assign (field held by other)--> ResolvingConflict
    ResolvingConflict --select_header_to_resolve--> ResolvingConflict
    ResolvingConflict --resolve--> Idle   (chosen keeps field, other cleared)
    ResolvingConflict --cancel--> Idle    (no mutation)
    any --reset--> Idle

Completed is entered by the session after a successful hand-off and is
terminal except for reset.
"""

__all__ = [
    "ConflictResolver",
]

logger = logging.getLogger(__name__)


class ConflictResolver:
    """Commit assignments through the duplication-conflict workflow."""

    def __init__(self, store: MatchStore, source_table: SourceTable) -> None:
        self.store = store
        self.source_table = source_table
        self.mode: SessionMode = Idle()

    # ------------------------------------------------------------------ read
    @property
    def conflict(self) -> DuplicationConflict | None:
        if isinstance(self.mode, ResolvingConflict):
            return self.mode.conflict
        return None

    @property
    def changing_header(self) -> str | None:
        if isinstance(self.mode, Changing):
            return self.mode.header
        return None

    # ---------------------------------------------------------------- guards
    def ensure_mutable(self, action: str) -> None:
        """Reject any assignment-affecting action while a conflict is open or after hand-off."""
        if isinstance(self.mode, ResolvingConflict):
            raise InvalidStateError(f"cannot {action}: a duplication conflict is open")
        if isinstance(self.mode, Completed):
            raise InvalidStateError(f"cannot {action}: session already handed off")

    def _require_conflict(self, action: str) -> DuplicationConflict:
        if not isinstance(self.mode, ResolvingConflict):
            raise InvalidStateError(f"cannot {action}: no duplication conflict is open")
        return self.mode.conflict

    # ------------------------------------------------------------ change mode
    def enter_change_mode(self, header: str) -> None:
        self.ensure_mutable("enter change mode")
        self.store.require_header(header)
        # 別ヘッダが変更モード中でも黙って置き換える (同時に 1 つまで)
        self.mode = Changing(header)

    def exit_change_mode(self, header: str | None = None) -> None:
        """Leave change mode; with ``header`` only if that header is the one changing."""
        if not isinstance(self.mode, Changing):
            return
        if header is None or self.mode.header == header:
            self.mode = Idle()

    # ------------------------------------------------------------ assignment
    def try_assign(self, header: str, field: TargetField) -> DuplicationConflict | None:
        """Assign ``field`` to ``header`` or open a duplication conflict.

        Returns the opened conflict, or None when the assignment committed.
        """
        self.ensure_mutable("assign")
        self.store.require_header(header)
        holder = self.store.holder_of(field.id)
        if holder is None or holder == header:
            self.store.assign(header, field)
            self.exit_change_mode(header)
            logger.debug(f"assign: '{header}' -> '{field.id}'")
            return None

        conflict = DuplicationConflict(
            target_field=field,
            header_a=holder,
            header_b=header,
            rows_a=self.source_table.preview(holder),
            rows_b=self.source_table.preview(header),
        )
        self.mode = ResolvingConflict(conflict)
        logger.info(
            f"conflict: '{header}' requested '{field.id}' held by '{holder}'"
        )
        return conflict

    def select_header_to_resolve(self, header: str) -> DuplicationConflict:
        conflict = self._require_conflict("select a header")
        if header not in conflict.parties:
            raise InvalidStateError(
                f"'{header}' is not part of the conflict over '{conflict.target_field.id}'"
            )
        conflict = conflict.with_selection(header)
        self.mode = ResolvingConflict(conflict)
        return conflict

    def resolve(self) -> str:
        """Commit the selected header as holder of the disputed field.

        Returns the winning header. The losing header becomes unmatched
        (not ignored).
        """
        conflict = self._require_conflict("resolve")
        winner = conflict.selected_header
        if winner is None:
            raise InvalidStateError("cannot resolve: no header selected")
        loser = conflict.header_b if winner == conflict.header_a else conflict.header_a

        self.store.transfer(conflict.target_field, winner)
        self.store.clear(loser)
        self.mode = Idle()
        logger.info(
            f"conflict resolved: '{winner}' keeps '{conflict.target_field.id}', '{loser}' unmatched"
        )
        return winner

    def cancel(self) -> DuplicationConflict:
        """Discard the open conflict without touching the assignment."""
        conflict = self._require_conflict("cancel")
        self.mode = Idle()
        logger.info(f"conflict cancelled: '{conflict.target_field.id}' stays with '{conflict.header_a}'")
        return conflict

    def reset(self) -> None:
        self.mode = Idle()
