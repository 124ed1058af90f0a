from __future__ import annotations

from dataclasses import dataclass, field

from .schema import SchemaRegistry

"""Config dataclasses for the column reconciliation engine.

These are the typed results of registry loading in
colrecon/config/loader.py. Timing values are kept in milliseconds as they
appear in the registry YAML; the session converts them to seconds for the
scheduler.
"""

DEFAULT_PREVIEW_ROWS = 4
DEFAULT_DEBOUNCE_MS = 100
DEFAULT_SETTLE_MS = 300


@dataclass(frozen=True)
class EngineSettings:
    """Tunables for one reconciliation session."""
    preview_rows: int = DEFAULT_PREVIEW_ROWS  # プレビュー行数 (先頭 N 行)
    debounce_ms: int = DEFAULT_DEBOUNCE_MS  # スクロール再計算の間引き
    settle_ms: int = DEFAULT_SETTLE_MS  # レイアウト確定待ち
    fuzzy_threshold: float | None = None  # None = 完全一致のみ

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @property
    def settle_seconds(self) -> float:
        return self.settle_ms / 1000.0


@dataclass(frozen=True)
class RegistryConfig:
    """Root configuration object: target schema plus engine settings."""
    schema: SchemaRegistry
    settings: EngineSettings = field(default_factory=EngineSettings)
