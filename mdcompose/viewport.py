"""
Viewport coordination between the source pane and the rendered preview.

Scroll sync mirrors the scroll fraction of whichever pane the user moves onto
the other one. Mirroring fires the other pane's scroll handler in turn, so the
coordinator records which pane is driving and ignores echoes from the other
side until a short quiet period has passed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from PySide6.QtCore import QTimer

logger = logging.getLogger(__name__)

SCROLL_IDLE_MS = 100
ACTIVE_HEADING_LOOKAHEAD_PX = 100.0
ZOOM_MIN = 0.5
ZOOM_MAX = 2.0
ZOOM_STEP = 0.1


class ScrollRole(str, Enum):
    IDLE = "idle"
    SOURCE = "driving-source"
    PREVIEW = "driving-preview"


@dataclass(frozen=True)
class ScrollMetrics:
    scroll_top: float
    scroll_height: float
    client_height: float

    @property
    def max_scroll(self) -> float:
        return max(0.0, self.scroll_height - self.client_height)


@dataclass(frozen=True)
class ZoomTransform:
    scale: float
    origin: str = "top center"
    margin_bottom: float = 0.0  # px reserved below the scaled page

    @property
    def is_identity(self) -> bool:
        return self.scale == 1.0

    @property
    def css_transform(self) -> str:
        return "none" if self.is_identity else f"scale({self.scale:g})"


class ScrollPane(Protocol):
    def scroll_metrics(self) -> ScrollMetrics | None:
        """Current metrics, or None while the pane is not mounted."""

    def set_scroll_top(self, value: float) -> None: ...


class PreviewPane(ScrollPane, Protocol):
    def page_height(self) -> float | None:
        """Unscaled height of the rendered page box."""

    def apply_zoom(self, transform: ZoomTransform) -> None: ...


class DebounceTimer(Protocol):
    def start(self, interval_ms: int, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


class QtDebounceTimer:
    """Single-shot QTimer; re-arming always cancels the pending shot."""

    def __init__(self, parent=None) -> None:
        self._timer = QTimer(parent)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._fire)
        self._callback: Callable[[], None] | None = None

    def start(self, interval_ms: int, callback: Callable[[], None]) -> None:
        self._timer.stop()
        self._callback = callback
        self._timer.start(interval_ms)

    def stop(self) -> None:
        self._timer.stop()
        self._callback = None

    def _fire(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()


def scroll_fraction(metrics: ScrollMetrics) -> float:
    """scrollTop / (scrollHeight - clientHeight), 0.0 when nothing can scroll."""
    distance = metrics.max_scroll
    if distance <= 0:
        return 0.0
    return min(1.0, max(0.0, metrics.scroll_top / distance))


def clamp_zoom(value: float) -> float:
    return round(min(ZOOM_MAX, max(ZOOM_MIN, float(value))), 2)


class ViewportCoordinator:
    """Owns scroll-sync role/timer state, zoom, progress and active heading."""

    def __init__(
        self,
        source: ScrollPane | None,
        preview: PreviewPane | None,
        timer: DebounceTimer | None = None,
        *,
        debounce_ms: int = SCROLL_IDLE_MS,
        lookahead: float = ACTIVE_HEADING_LOOKAHEAD_PX,
        sync_enabled: bool = True,
        on_active_heading: Callable[[str | None], None] | None = None,
        on_progress: Callable[[float], None] | None = None,
    ) -> None:
        self.source = source
        self.preview = preview
        self._timer = timer if timer is not None else QtDebounceTimer()
        self.debounce_ms = debounce_ms
        self.lookahead = lookahead
        self.sync_enabled = sync_enabled
        self.role = ScrollRole.IDLE
        self.zoom = 1.0
        self.source_fraction = 0.0
        self.preview_fraction = 0.0
        self.active_heading: str | None = None
        self._heading_positions: list[tuple[str, float]] = []
        self._page_top = 0.0
        self._on_active_heading = on_active_heading
        self._on_progress = on_progress

    # -- scroll sync -------------------------------------------------------

    def set_sync_enabled(self, enabled: bool) -> None:
        self.sync_enabled = bool(enabled)
        if not self.sync_enabled:
            self._timer.stop()
            self.role = ScrollRole.IDLE

    def on_source_scroll(self) -> None:
        if not self.sync_enabled:
            return
        if self.role is ScrollRole.PREVIEW:
            return
        fraction = self._mirror(ScrollRole.SOURCE, self.source, self.preview)
        if fraction is not None:
            self.source_fraction = fraction

    def on_preview_scroll(self) -> None:
        if not self.sync_enabled:
            return
        self.track_preview()
        if self.role is ScrollRole.SOURCE:
            return
        fraction = self._mirror(ScrollRole.PREVIEW, self.preview, self.source)
        if fraction is not None:
            self.preview_fraction = fraction

    def _mirror(self, role: ScrollRole, driver: ScrollPane | None, follower: ScrollPane | None) -> float | None:
        if driver is None or follower is None:
            return None
        driver_metrics = driver.scroll_metrics()
        follower_metrics = follower.scroll_metrics()
        if driver_metrics is None or follower_metrics is None:
            return None

        self.role = role
        fraction = scroll_fraction(driver_metrics)
        follower.set_scroll_top(fraction * follower_metrics.max_scroll)
        self._timer.stop()
        self._timer.start(self.debounce_ms, self._return_to_idle)
        return fraction

    def _return_to_idle(self) -> None:
        self.role = ScrollRole.IDLE

    # -- reading position --------------------------------------------------

    def set_heading_positions(self, positions: list[tuple[str, float]], page_top: float = 0.0) -> None:
        """
        Heading (id, offset) pairs in document order.

        Offsets are unscaled px from the top of the page box; `page_top` is
        where that box starts in the preview's scroll coordinates. Zoom is
        applied here, so a zoom change needs no re-measure.
        """
        self._heading_positions = list(positions)
        self._page_top = float(page_top)
        self.track_preview()

    def track_preview(self) -> None:
        """Refresh scroll progress and the active heading from the preview pane."""
        if self.preview is None:
            return
        metrics = self.preview.scroll_metrics()
        if metrics is None:
            return
        self.preview_fraction = scroll_fraction(metrics)
        if self._on_progress is not None:
            self._on_progress(self.preview_fraction)

        threshold = metrics.scroll_top + self.lookahead
        active = None
        for heading_id, offset in self._heading_positions:
            if self._page_top + offset * self.zoom <= threshold:
                active = heading_id
        if active != self.active_heading:
            self.active_heading = active
            logger.debug("Active heading -> %s", active)
            if self._on_active_heading is not None:
                self._on_active_heading(active)

    # -- zoom --------------------------------------------------------------

    def zoom_transform(self) -> ZoomTransform:
        if self.zoom == 1.0:
            return ZoomTransform(scale=1.0)
        margin = 0.0
        page_height = self.preview.page_height() if self.preview is not None else None
        if self.zoom > 1.0 and page_height:
            margin = (self.zoom - 1.0) * page_height
        return ZoomTransform(scale=self.zoom, margin_bottom=margin)

    def set_zoom(self, value: float) -> ZoomTransform:
        self.zoom = clamp_zoom(value)
        transform = self.apply_zoom()
        self.track_preview()
        return transform

    def apply_zoom(self) -> ZoomTransform:
        """(Re)apply the current zoom, e.g. after the preview remounts."""
        transform = self.zoom_transform()
        if self.preview is not None:
            self.preview.apply_zoom(transform)
        return transform

    def zoom_in(self) -> ZoomTransform:
        return self.set_zoom(self.zoom + ZOOM_STEP)

    def zoom_out(self) -> ZoomTransform:
        return self.set_zoom(self.zoom - ZOOM_STEP)

    def reset_zoom(self) -> ZoomTransform:
        return self.set_zoom(1.0)
