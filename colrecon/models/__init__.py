"""Domain models for the column reconciliation engine.

This package contains the data model of one import session: the target
schema, the parsed source table, the tagged session mode, viewport
geometry/statistics and the results handed to collaborators.
"""

from .config_models import EngineSettings, RegistryConfig
from .event_record import EventRecord
from .reconciliation_result import ColumnCard, ProceedResult, ReconciledImport, SessionSummary
from .schema import SchemaRegistry, TargetField
from .session_state import (
    Changing,
    Completed,
    DuplicationConflict,
    Idle,
    ResolvingConflict,
    SessionMode,
)
from .source_table import SourceColumn, SourceTable
from .viewport import ScrollGeometry, ViewportStats

__all__ = [
    # Configuration models
    "EngineSettings",
    "RegistryConfig",
    # Input models
    "SchemaRegistry",
    "TargetField",
    "SourceColumn",
    "SourceTable",
    # Session state
    "Changing",
    "Completed",
    "DuplicationConflict",
    "Idle",
    "ResolvingConflict",
    "SessionMode",
    # Derived / output models
    "ColumnCard",
    "EventRecord",
    "ProceedResult",
    "ReconciledImport",
    "ScrollGeometry",
    "SessionSummary",
    "ViewportStats",
]
