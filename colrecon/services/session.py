from __future__ import annotations

import logging
from collections.abc import Collection, Mapping, Sequence

from ..logging.event_log import EventLogBuffer
from ..models.config_models import EngineSettings
from ..models.event_record import EventRecord
from ..models.reconciliation_result import ColumnCard, ProceedResult, SessionSummary
from ..models.schema import SchemaRegistry, TargetField
from ..models.session_state import Completed, DuplicationConflict, SessionMode
from ..models.source_table import SourceTable
from ..models.viewport import ScrollGeometry, ViewportStats
from .completeness import CompletenessGate, HandoffCallback, compute_missing_required
from .conflict import ConflictResolver
from .errors import InvalidStateError, UnknownColumnError
from .match_store import MatchStore
from .scheduler import ManualScheduler, Scheduler
from .summary import render_proceed_label, render_status_message
from .viewport import ScrollTo, ViewportNavigator

"""Reconciliation session: one import's complete engine state.

The session wires the match store, conflict resolver, completeness gate and
viewport navigator together and is the only object the review surface
talks to. Every operation is synchronous and atomic from the caller's
point of view; the only deferred work is viewport recomputation, which
runs on the injected scheduler.

Lifecycle: created after the upload is decoded (bootstrap), mutated by the
operations below, discarded after ``close()`` (cancel or completed
hand-off).
"""

__all__ = [
    "ReconciliationSession",
]

logger = logging.getLogger(__name__)


class ReconciliationSession:
    """Explicit, self-contained engine state for one upload.

    Args:
        schema: target fields for this import (read-only)
        source_table: decoded upload (headers, preview rows)
        settings: engine tunables (timings, fuzzy threshold)
        scheduler: deferred-callback scheduler; defaults to a ManualScheduler
        on_handoff: import collaborator invoked once on successful proceed
        scroll_to: review surface callback for jump_left / jump_right
        event_log: optional buffer receiving one EventRecord per intent
    """

    def __init__(
        self,
        schema: SchemaRegistry,
        source_table: SourceTable,
        *,
        settings: EngineSettings | None = None,
        scheduler: Scheduler | None = None,
        on_handoff: HandoffCallback | None = None,
        scroll_to: ScrollTo | None = None,
        event_log: EventLogBuffer | None = None,
    ) -> None:
        self.schema = schema
        self.source_table = source_table
        self.settings = settings or EngineSettings()
        self.scheduler: Scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.event_log = event_log

        self.store = MatchStore(source_table.source_columns)
        self.resolver = ConflictResolver(self.store, source_table)
        self.gate = CompletenessGate(schema, on_handoff=on_handoff)
        self.navigator = ViewportNavigator(
            self._viewport_state,
            self.scheduler,
            debounce_seconds=self.settings.debounce_seconds,
            settle_seconds=self.settings.settle_seconds,
            scroll_to=scroll_to,
        )

        self.store.bootstrap(schema, fuzzy_threshold=self.settings.fuzzy_threshold)
        matched = sum(1 for f in self.store.assignments.values() if f is not None)
        self._record(None, "BOOTSTRAP", f"matched {matched}/{len(source_table)} columns")
        # マウント直後: レイアウト確定後に一度再計算
        self.navigator.schedule_settle()

    # ------------------------------------------------------------ read model
    @property
    def file_name(self) -> str:
        return self.source_table.file_name

    @property
    def assignments(self) -> dict[str, TargetField | None]:
        return self.store.assignments

    @property
    def ignored(self) -> frozenset[str]:
        return self.store.ignored

    @property
    def mode(self) -> SessionMode:
        return self.resolver.mode

    @property
    def changing_header(self) -> str | None:
        return self.resolver.changing_header

    @property
    def conflict(self) -> DuplicationConflict | None:
        return self.resolver.conflict

    @property
    def completed(self) -> bool:
        return isinstance(self.resolver.mode, Completed)

    @property
    def viewport_stats(self) -> ViewportStats:
        return self.navigator.stats

    @property
    def unmatched_count(self) -> int:
        return self.store.unmatched_count

    def missing_required(self) -> list[TargetField]:
        return compute_missing_required(self.schema, self.store.assignments, self.store.ignored)

    def match_of(self, header: str) -> TargetField | None:
        return self.store.match_of(header)

    def cards(self) -> list[ColumnCard]:
        """One read-only card per source column, in file order."""
        assignments = self.store.assignments
        changing = self.changing_header
        return [
            ColumnCard(
                header=col.header,
                index=col.index,
                match=assignments[col.header],
                ignored=self.store.is_ignored(col.header),
                changing=col.header == changing,
                preview=self.source_table.preview(col.header),
            )
            for col in self.source_table.columns
        ]

    def status_message(self) -> str:
        return render_status_message(self.file_name, self.unmatched_count)

    def proceed_label(self) -> str:
        return render_proceed_label(self.unmatched_count)

    def summary(self) -> SessionSummary:
        assignments = self.store.assignments
        ignored = self.store.ignored
        matched = sum(1 for h, f in assignments.items() if f is not None and h not in ignored)
        return SessionSummary(
            file_name=self.file_name,
            total_columns=len(self.source_table),
            matched=matched,
            unmatched=self.store.unmatched_count,
            ignored=len(ignored),
            missing_required=len(self.missing_required()),
        )

    # ------------------------------------------------------------ operations
    def toggle_ignore(self, header: str) -> bool:
        """Flip ignore status of ``header``; the match is left untouched."""
        self._ensure_not_completed("toggle ignore")
        now_ignored = self.store.toggle_ignore(header)
        if now_ignored:
            # 無視列はセレクタを表示しないので変更モードも抜ける
            self.resolver.exit_change_mode(header)
        self._record(header, "IGNORE_TOGGLED", "ignored" if now_ignored else "included")
        self.navigator.schedule_settle()
        return now_ignored

    def enter_change_mode(self, header: str) -> None:
        self.resolver.enter_change_mode(header)

    def exit_change_mode(self) -> None:
        self.resolver.exit_change_mode()

    def try_assign(self, header: str, field_id: str) -> DuplicationConflict | None:
        """Assign ``field_id`` to ``header``, or open a duplication conflict.

        Returns the conflict when one was opened (nothing committed), else None.

        Raises:
            InvalidStateError: a conflict is already open, or the session is completed
            UnknownColumnError: unknown header or field id
        """
        field = self._require_field(field_id)
        conflict = self.resolver.try_assign(header, field)
        if conflict is None:
            self._record(header, "ASSIGN", f"matched to '{field.id}'")
            self.navigator.schedule_settle()
        else:
            self._record(
                header,
                "CONFLICT_OPENED",
                f"'{field.id}' already matched to '{conflict.header_a}'",
            )
        return conflict

    def select_header_to_resolve(self, header: str) -> DuplicationConflict:
        return self.resolver.select_header_to_resolve(header)

    def resolve(self) -> str:
        conflict = self.resolver.conflict
        if conflict is None:
            raise InvalidStateError("cannot resolve: no duplication conflict is open")
        winner = self.resolver.resolve()
        self._record(winner, "CONFLICT_RESOLVED", f"keeps '{conflict.target_field.id}'")
        self.navigator.schedule_settle()
        return winner

    def cancel(self) -> None:
        conflict = self.resolver.cancel()
        self._record(
            conflict.header_b,
            "CONFLICT_CANCELLED",
            f"'{conflict.target_field.id}' stays with '{conflict.header_a}'",
        )

    def report_scroll(self, geometry: ScrollGeometry) -> None:
        self.navigator.report_scroll(geometry)

    def report_geometry(self, geometry: ScrollGeometry) -> None:
        self.navigator.report_geometry(geometry)

    def jump_left(self) -> float | None:
        return self.navigator.jump_left()

    def jump_right(self) -> float | None:
        return self.navigator.jump_right()

    def proceed(self) -> ProceedResult:
        """Run the completeness gate; hand off to the import collaborator when complete.

        A blocked result lists the missing required fields and leaves the
        session as it was. A successful hand-off completes the session.
        """
        self.resolver.ensure_mutable("proceed")
        result = self.gate.proceed(self.source_table, self.store.assignments, self.store.ignored)
        handoff = result.handoff
        if handoff is None:
            self._record(None, "PROCEED_BLOCKED", f"missing {[f.id for f in result.missing_required]}")
            return result
        self.resolver.mode = Completed(dict(handoff.mapping))
        self.navigator.close()
        self._record(None, "HANDED_OFF", f"{len(handoff.mapping)} columns")
        return result

    def reset(self) -> None:
        """Back to all-unmatched, nothing ignored, no change mode, no conflict."""
        self.store.reset()
        self.resolver.reset()
        self.navigator.reopen()
        self._record(None, "RESET", "session reset")
        self.navigator.schedule_settle()

    def close(self) -> None:
        """Cancel pending timers; the session is discarded after this."""
        self.navigator.close()

    # -------------------------------------------------------------- helpers
    def _viewport_state(
        self,
    ) -> tuple[Sequence[str], Mapping[str, TargetField | None], Collection[str]]:
        return self.store.headers, self.store.assignments, self.store.ignored

    def _require_field(self, field_id: str) -> TargetField:
        field = self.schema.get(field_id)
        if field is None:
            raise UnknownColumnError(f"unknown target field: {field_id!r}")
        return field

    def _ensure_not_completed(self, action: str) -> None:
        if self.completed:
            raise InvalidStateError(f"cannot {action}: session already handed off")

    def _record(self, header: str | None, event_type: str, detail: str) -> None:
        logger.debug(f"{event_type} header={header} {detail}")
        if self.event_log is not None:
            self.event_log.append(EventRecord.create(self.file_name, header, event_type, detail))
