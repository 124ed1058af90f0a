from __future__ import annotations

import logging
import math
from collections.abc import Callable, Collection, Mapping, Sequence

from ..models.schema import TargetField
from ..models.viewport import ScrollGeometry, ViewportStats
from .scheduler import Debouncer, Scheduler

"""Viewport navigator: unmatched columns scrolled out of view.

The review surface lays out one fixed-width card per source column in file
order and scrolls horizontally. Given the scroll geometry, the navigator
counts actionable-unmatched columns (unmatched and not ignored) left and
right of the visible window and remembers the nearest one on each side so
the surface can jump to it.
"""

__all__ = [
    "compute_viewport_stats",
    "ViewportNavigator",
]

logger = logging.getLogger(__name__)

ScrollTo = Callable[[float], None]


def compute_viewport_stats(
    headers: Sequence[str],
    assignments: Mapping[str, TargetField | None],
    ignored: Collection[str],
    geometry: ScrollGeometry,
) -> ViewportStats:
    """Pure computation of ViewportStats for one geometry sample.

    Raises
    ------
    ValueError: geometry is not measurable (column width <= 0, negative values)
    """
    if not geometry.measurable:
        raise ValueError(f"geometry not measurable: {geometry}")

    start = math.floor(geometry.scroll_offset / geometry.column_width)
    visible = math.ceil(geometry.visible_width / geometry.column_width)
    end = start + visible

    left_count = 0
    right_count = 0
    left_first: int | None = None
    right_first: int | None = None
    for index, header in enumerate(headers):
        if assignments.get(header) is not None or header in ignored:
            continue
        if index < start:
            left_count += 1
            if left_first is None:
                left_first = index
        elif index >= end:
            right_count += 1
            if right_first is None:
                right_first = index

    return ViewportStats(
        left_count=left_count,
        right_count=right_count,
        left_first_unmatched_index=left_first,
        right_first_unmatched_index=right_first,
    )


class ViewportNavigator:
    """Keeps ViewportStats current for the review surface.

    - ``report_scroll``: store geometry, recompute after the debounce window
    - ``schedule_settle``: recompute once after the settle delay (mount,
      assignment or ignore changes)
    - ``jump_left`` / ``jump_right``: ask the surface to scroll to the
      nearest off-screen unmatched column

    ``state`` supplies the current (headers, assignments, ignored) triple so
    the navigator never holds its own copy of the match state. Reading
    ``stats`` after ``schedule_settle`` recomputes immediately; the timers
    drive deferred recomputation after scroll and layout changes.
    """

    def __init__(
        self,
        state: Callable[[], tuple[Sequence[str], Mapping[str, TargetField | None], Collection[str]]],
        scheduler: Scheduler,
        *,
        debounce_seconds: float = 0.1,
        settle_seconds: float = 0.3,
        scroll_to: ScrollTo | None = None,
    ) -> None:
        self._state = state
        self.scroll_to = scroll_to
        self.geometry: ScrollGeometry | None = None
        self.recompute_count = 0
        self._stats = ViewportStats()
        self._dirty = False  # 割当/無視の変更後、未再計算
        self._closed = False
        self._scroll_debounce = Debouncer(scheduler, debounce_seconds, self.recompute)
        self._settle = Debouncer(scheduler, settle_seconds, self.recompute)

    @property
    def stats(self) -> ViewportStats:
        """Current stats; recomputed on read when the match state changed since the last recompute."""
        if self._dirty:
            self.recompute()
        return self._stats

    @property
    def pending(self) -> bool:
        return self._scroll_debounce.pending or self._settle.pending

    @property
    def closed(self) -> bool:
        return self._closed

    def report_scroll(self, geometry: ScrollGeometry) -> None:
        if self._closed:
            return
        self.geometry = geometry
        self._scroll_debounce.trigger()

    def report_geometry(self, geometry: ScrollGeometry) -> None:
        """Record geometry without a scroll event (e.g. initial layout)."""
        if self._closed:
            return
        self.geometry = geometry
        self._settle.trigger()

    def schedule_settle(self) -> None:
        """Invalidate the stats and recompute once after the settle delay."""
        if self._closed:
            return
        self._dirty = True
        self._settle.trigger()

    def recompute(self) -> ViewportStats:
        """Recompute now from the latest geometry; unmeasurable geometry keeps the old stats."""
        if self.geometry is None or not self.geometry.measurable:
            logger.debug("viewport: geometry not available, stats unchanged")
            return self._stats
        headers, assignments, ignored = self._state()
        self._stats = compute_viewport_stats(headers, assignments, ignored, self.geometry)
        self._dirty = False
        self.recompute_count += 1
        return self._stats

    def _jump(self, count: int, index: int | None) -> float | None:
        if count == 0 or index is None or self.geometry is None:
            return None
        offset = index * self.geometry.column_width
        if self.scroll_to is not None:
            self.scroll_to(offset)
        return offset

    def jump_left(self) -> float | None:
        """Scroll target for the nearest unmatched column on the left, None if there is none."""
        stats = self.stats
        return self._jump(stats.left_count, stats.left_first_unmatched_index)

    def jump_right(self) -> float | None:
        stats = self.stats
        return self._jump(stats.right_count, stats.right_first_unmatched_index)

    def close(self) -> None:
        """Cancel pending timers; scroll and settle triggers are ignored until ``reopen``."""
        self._closed = True
        self._scroll_debounce.cancel()
        self._settle.cancel()

    def reopen(self) -> None:
        self._closed = False
