from __future__ import annotations

from dataclasses import dataclass

from .schema import TargetField
from .source_table import SourceTable

"""Results produced by the completeness gate and the review read model.

ReconciledImport is what the import/persistence collaborator receives.
ProceedResult is what the review surface receives back from ``proceed()``.
ColumnCard and SessionSummary are read-only views for rendering and logging.
"""

__all__ = [
    "ReconciledImport",
    "ProceedResult",
    "ColumnCard",
    "SessionSummary",
]


@dataclass(frozen=True)
class ReconciledImport:
    """Hand-off payload: header -> target field id, ignored headers omitted."""
    file_name: str
    mapping: dict[str, str]
    source_table: SourceTable


@dataclass(frozen=True)
class ProceedResult:
    """Outcome of a proceed attempt.

    Exactly one of ``missing_required`` (non-empty) or ``handoff`` is set.
    """
    missing_required: tuple[TargetField, ...] = ()
    handoff: ReconciledImport | None = None

    @property
    def blocked(self) -> bool:
        return bool(self.missing_required)

    @property
    def missing_field_names(self) -> list[str]:
        return [f.display_name for f in self.missing_required]


@dataclass(frozen=True)
class ColumnCard:
    """Everything the review surface needs to render one source column."""
    header: str
    index: int
    match: TargetField | None
    ignored: bool
    changing: bool
    preview: tuple[str, ...]

    @property
    def show_selector(self) -> bool:
        # 変更モード中 or 未マッチ時のみセレクタ表示 (無視列は非表示)
        return (self.changing or self.match is None) and not self.ignored


@dataclass(frozen=True)
class SessionSummary:
    """Aggregated counts for the SUMMARY output line."""
    file_name: str
    total_columns: int
    matched: int  # マッチ済かつ非 ignored
    unmatched: int  # 未マッチかつ非 ignored
    ignored: int
    missing_required: int
