"""
Unit tests for the viewport coordinator.

Panes and the debounce timer are replaced by in-memory fakes so the scroll
state machine can be driven deterministically.
"""

import pytest

from mdcompose.viewport import (
    ScrollMetrics,
    ScrollRole,
    ViewportCoordinator,
    clamp_zoom,
    scroll_fraction,
)


class FakePane:
    def __init__(self, scroll_top=0.0, scroll_height=1000.0, client_height=200.0, page_height=None):
        self.scroll_top = scroll_top
        self.scroll_height = scroll_height
        self.client_height = client_height
        self._page_height = page_height
        self.mounted = True
        self.scroll_writes = []
        self.zooms = []

    def scroll_metrics(self):
        if not self.mounted:
            return None
        return ScrollMetrics(self.scroll_top, self.scroll_height, self.client_height)

    def set_scroll_top(self, value):
        self.scroll_writes.append(value)
        self.scroll_top = value

    def page_height(self):
        return self._page_height

    def apply_zoom(self, transform):
        self.zooms.append(transform)


class FakeTimer:
    def __init__(self):
        self.calls = []
        self.callback = None

    def start(self, interval_ms, callback):
        self.calls.append(("start", interval_ms))
        self.callback = callback

    def stop(self):
        self.calls.append(("stop",))
        self.callback = None

    def fire(self):
        callback, self.callback = self.callback, None
        if callback is not None:
            callback()


@pytest.fixture
def timer():
    return FakeTimer()


@pytest.fixture
def source():
    return FakePane(scroll_height=2000.0, client_height=400.0)


@pytest.fixture
def preview():
    return FakePane(scroll_height=5000.0, client_height=1000.0, page_height=4000.0)


@pytest.fixture
def coordinator(source, preview, timer):
    return ViewportCoordinator(source, preview, timer)


class TestScrollFraction:
    """Test fraction computation."""

    def test_midpoint(self):
        assert scroll_fraction(ScrollMetrics(500, 1200, 200)) == pytest.approx(0.5)

    def test_nothing_to_scroll(self):
        assert scroll_fraction(ScrollMetrics(0, 300, 300)) == 0.0
        assert scroll_fraction(ScrollMetrics(10, 100, 300)) == 0.0

    def test_clamped(self):
        assert scroll_fraction(ScrollMetrics(5000, 1200, 200)) == 1.0


class TestScrollSync:
    """Test the driver/follower state machine."""

    def test_source_drives_preview(self, coordinator, source, preview, timer):
        source.scroll_top = 800.0  # fraction 0.5
        coordinator.on_source_scroll()

        assert preview.scroll_writes == [pytest.approx(2000.0)]
        assert coordinator.role is ScrollRole.SOURCE
        assert coordinator.source_fraction == pytest.approx(0.5)

    def test_echo_is_ignored(self, coordinator, source, preview, timer):
        """The follower's own scroll event does not bounce back."""
        source.scroll_top = 800.0
        coordinator.on_source_scroll()
        coordinator.on_preview_scroll()

        assert source.scroll_writes == []
        assert coordinator.role is ScrollRole.SOURCE

    def test_preview_drives_source(self, coordinator, source, preview):
        preview.scroll_top = 1000.0  # fraction 0.25
        coordinator.on_preview_scroll()

        assert source.scroll_writes == [pytest.approx(400.0)]
        assert coordinator.role is ScrollRole.PREVIEW

    def test_source_events_ignored_while_preview_drives(self, coordinator, source, preview):
        preview.scroll_top = 1000.0
        coordinator.on_preview_scroll()
        writes = list(preview.scroll_writes)
        coordinator.on_source_scroll()

        assert preview.scroll_writes == writes

    def test_quiet_period_returns_to_idle(self, coordinator, source, timer):
        source.scroll_top = 100.0
        coordinator.on_source_scroll()
        timer.fire()

        assert coordinator.role is ScrollRole.IDLE

    def test_timer_restarted_on_every_event(self, coordinator, source, timer):
        """The pending idle timer is cancelled before each re-arm."""
        coordinator.on_source_scroll()
        coordinator.on_source_scroll()

        assert timer.calls == [("stop",), ("start", 100), ("stop",), ("start", 100)]

    def test_sync_disabled(self, coordinator, source, preview, timer):
        coordinator.set_sync_enabled(False)
        source.scroll_top = 800.0
        coordinator.on_source_scroll()
        coordinator.on_preview_scroll()

        assert preview.scroll_writes == []
        assert source.scroll_writes == []
        assert coordinator.role is ScrollRole.IDLE

    def test_disabling_cancels_pending_timer(self, coordinator, timer):
        coordinator.on_source_scroll()
        coordinator.set_sync_enabled(False)

        assert timer.calls[-1] == ("stop",)
        assert coordinator.role is ScrollRole.IDLE

    def test_missing_pane(self, source, timer):
        coordinator = ViewportCoordinator(source, None, timer)
        coordinator.on_source_scroll()

        assert coordinator.role is ScrollRole.IDLE
        assert timer.calls == []

    def test_unmounted_pane(self, coordinator, preview, timer):
        preview.mounted = False
        coordinator.on_source_scroll()

        assert coordinator.role is ScrollRole.IDLE
        assert timer.calls == []

    def test_unscrollable_follower(self, coordinator, source, preview):
        """A follower that cannot scroll is pinned at the top."""
        preview.scroll_height = preview.client_height
        source.scroll_top = 800.0
        coordinator.on_source_scroll()

        assert preview.scroll_writes == [0.0]


class TestReadingPosition:
    """Test progress and active heading tracking."""

    def test_progress_reported(self, source, preview, timer):
        progress = []
        coordinator = ViewportCoordinator(source, preview, timer, on_progress=progress.append)
        preview.scroll_top = 2000.0
        coordinator.track_preview()

        assert progress == [pytest.approx(0.5)]

    def test_active_heading(self, source, preview, timer):
        changes = []
        coordinator = ViewportCoordinator(source, preview, timer, on_active_heading=changes.append)
        coordinator.set_heading_positions([("a-1", 0.0), ("b-2", 500.0), ("c-3", 1200.0)])
        assert changes == ["a-1"]

        preview.scroll_top = 450.0  # threshold 550
        coordinator.track_preview()
        coordinator.track_preview()

        assert coordinator.active_heading == "b-2"
        assert changes == ["a-1", "b-2"]

    def test_no_heading_above_threshold(self, coordinator, preview):
        coordinator.set_heading_positions([("a-1", 900.0)])
        assert coordinator.active_heading is None

    def test_tracking_works_with_sync_disabled(self, coordinator, preview, source):
        coordinator.set_sync_enabled(False)
        coordinator.set_heading_positions([("a-1", 0.0), ("b-2", 300.0)])
        preview.scroll_top = 300.0
        coordinator.track_preview()

        assert coordinator.active_heading == "b-2"
        assert source.scroll_writes == []


    def test_zoom_rescales_heading_positions(self, source, preview, timer):
        """Zooming moves headings on screen without a fresh measurement."""
        changes = []
        coordinator = ViewportCoordinator(source, preview, timer, on_active_heading=changes.append)
        coordinator.set_heading_positions([("a-1", 0.0), ("b-2", 1000.0)])
        preview.scroll_top = 950.0  # threshold 1050
        coordinator.track_preview()
        assert coordinator.active_heading == "b-2"

        coordinator.set_zoom(1.5)  # b-2 now sits at 1500

        assert coordinator.active_heading == "a-1"
        assert changes == ["a-1", "b-2", "a-1"]

    def test_page_top_offsets_headings(self, coordinator, preview):
        """Offsets are measured from the page box, not the scroll origin."""
        coordinator.set_heading_positions([("a-1", 0.0), ("b-2", 400.0)], page_top=200.0)
        preview.scroll_top = 450.0  # threshold 550, b-2 at 600
        coordinator.track_preview()
        assert coordinator.active_heading == "a-1"

        preview.scroll_top = 500.0
        coordinator.track_preview()
        assert coordinator.active_heading == "b-2"


class TestZoom:
    """Test zoom transforms."""

    def test_zoom_in_reserves_space(self, coordinator, preview):
        transform = coordinator.set_zoom(1.5)

        assert transform.css_transform == "scale(1.5)"
        assert transform.origin == "top center"
        assert transform.margin_bottom == pytest.approx(2000.0)
        assert preview.zooms[-1] is transform

    def test_zoom_out_reserves_nothing(self, coordinator):
        transform = coordinator.set_zoom(0.8)
        assert transform.css_transform == "scale(0.8)"
        assert transform.margin_bottom == 0.0

    def test_reset_removes_transform(self, coordinator, preview):
        coordinator.set_zoom(1.5)
        transform = coordinator.reset_zoom()

        assert transform.css_transform == "none"
        assert transform.margin_bottom == 0.0
        assert transform.is_identity
        assert preview.zooms[-1].css_transform == "none"

    def test_steps(self, coordinator):
        assert coordinator.zoom_in().scale == pytest.approx(1.1)
        coordinator.zoom_out()
        coordinator.zoom_out()
        assert coordinator.zoom == pytest.approx(0.9)

    @pytest.mark.parametrize("value,expected", [(5.0, 2.0), (0.1, 0.5), (1.234, 1.23)])
    def test_clamp(self, value, expected):
        assert clamp_zoom(value) == expected

    def test_zoom_without_preview(self, source, timer):
        coordinator = ViewportCoordinator(source, None, timer)
        transform = coordinator.set_zoom(1.5)
        assert transform.margin_bottom == 0.0
