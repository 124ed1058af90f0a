from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Mapping

from ..models.reconciliation_result import ProceedResult, ReconciledImport
from ..models.schema import SchemaRegistry, TargetField
from ..models.source_table import SourceTable

"""Completeness gate: required target fields must have a viable column.

A required field is missing unless some source column is matched to it
and that column is not ignored. Ignored columns never satisfy a field,
however many of them are matched to it.
"""

__all__ = [
    "compute_missing_required",
    "materialize_mapping",
    "CompletenessGate",
]

logger = logging.getLogger(__name__)

HandoffCallback = Callable[[ReconciledImport], None]


def compute_missing_required(
    schema: SchemaRegistry,
    assignments: Mapping[str, TargetField | None],
    ignored: Collection[str],
) -> list[TargetField]:
    """Required fields with no matched, non-ignored source column (schema order)."""
    satisfied = {
        field.id
        for header, field in assignments.items()
        if field is not None and header not in ignored
    }
    return [f for f in schema.required_fields if f.id not in satisfied]


def materialize_mapping(
    assignments: Mapping[str, TargetField | None],
    ignored: Collection[str],
) -> dict[str, str]:
    """header -> field id for matched, non-ignored columns (file order)."""
    return {
        header: field.id
        for header, field in assignments.items()
        if field is not None and header not in ignored
    }


class CompletenessGate:
    """Blocks proceed while required fields are missing, else hands off.

    There is no bypass: a blocked result only lists the missing fields and
    the caller has to go back to review.
    """

    def __init__(self, schema: SchemaRegistry, on_handoff: HandoffCallback | None = None) -> None:
        self.schema = schema
        self.on_handoff = on_handoff

    def check(
        self,
        assignments: Mapping[str, TargetField | None],
        ignored: Collection[str],
    ) -> list[TargetField]:
        return compute_missing_required(self.schema, assignments, ignored)

    def proceed(
        self,
        source_table: SourceTable,
        assignments: Mapping[str, TargetField | None],
        ignored: Collection[str],
    ) -> ProceedResult:
        missing = self.check(assignments, ignored)
        if missing:
            logger.warning(
                f"proceed blocked: missing required fields {[f.id for f in missing]}"
            )
            return ProceedResult(missing_required=tuple(missing))

        handoff = ReconciledImport(
            file_name=source_table.file_name,
            mapping=materialize_mapping(assignments, ignored),
            source_table=source_table,
        )
        if self.on_handoff is not None:
            # 外部コラボレータの例外はそのまま伝播させる
            self.on_handoff(handoff)
        logger.info(f"handed off {len(handoff.mapping)} columns from '{source_table.file_name}'")
        return ProceedResult(handoff=handoff)
