from __future__ import annotations

from dataclasses import dataclass

"""Viewport geometry and derived statistics.

ViewportStats is never the source of truth: it is always recomputed from
the match assignment, the ignore set and the last reported geometry.
"""

__all__ = [
    "ScrollGeometry",
    "ViewportStats",
]


@dataclass(frozen=True)
class ScrollGeometry:
    """Scroll state reported by the review surface (pixels)."""
    scroll_offset: float  # 左端からのスクロール量
    visible_width: float
    column_width: float  # カード 1 枚の幅 (全カード共通)

    @property
    def measurable(self) -> bool:
        # レイアウト前 (幅 0) は計測不能として扱う
        return self.column_width > 0 and self.visible_width >= 0 and self.scroll_offset >= 0


@dataclass(frozen=True)
class ViewportStats:
    """Unmatched columns outside the visible window, left and right."""
    left_count: int = 0
    right_count: int = 0
    left_first_unmatched_index: int | None = None
    right_first_unmatched_index: int | None = None
