"""
Unit tests for the Virtualized List.
"""

from perfcore.services.virtualization.virtualized_list import (
    VirtualizationConfig,
    VirtualizedList,
)


class TestVirtualizedList:
    """Test viewport windowing."""

    def test_window_indices(self):
        """Test the window for a 200px viewport scrolled to 100px."""
        items = list(range(100))
        config = VirtualizationConfig(item_height=20, buffer_size=5, overscan=2)
        view = VirtualizedList(items, config)

        view.update_visible_items(scroll_top=100, container_height=200)

        assert view.start_index == 3
        assert view.end_index == 17
        assert view.visible_items == list(range(3, 17))
        assert view.offset_y == 60
        assert view.total_height == 2000

    def test_initial_window_is_overscan_only(self):
        """Test the initial window with no viewport height."""
        view = VirtualizedList(list(range(100)), VirtualizationConfig(item_height=20, overscan=2))

        assert view.start_index == 0
        assert view.end_index == 2

    def test_window_clamped_at_end(self):
        """Test the window never runs past the last item."""
        view = VirtualizedList(list(range(10)), VirtualizationConfig(item_height=20, overscan=2))

        view.update_visible_items(scroll_top=180, container_height=200)

        assert view.end_index == 10
        assert view.visible_items == list(range(7, 10))

    def test_disabled_shows_everything(self):
        """Test disabled windowing exposes every item."""
        view = VirtualizedList(list(range(50)), VirtualizationConfig(enabled=False))

        view.update_visible_items(scroll_top=400, container_height=100)

        assert view.visible_items == list(range(50))
        assert view.offset_y == 0

    def test_below_threshold_shows_everything(self):
        """Test short lists are not windowed."""
        view = VirtualizedList(list(range(5)), VirtualizationConfig(threshold=10))

        view.update_visible_items(scroll_top=20, container_height=20)

        assert not view.windowed
        assert view.visible_items == list(range(5))

    def test_set_items_resets_window(self):
        """Test replacing the items recomputes the window."""
        view = VirtualizedList([], VirtualizationConfig(item_height=10, overscan=1))
        assert view.visible_items == []

        view.set_items(list(range(30)))

        assert view.total_height == 300
        assert view.visible_items == [0]

    def test_scroll_past_end_after_shrink(self):
        """Test a stale scroll offset past the shrunken list yields an empty window."""
        view = VirtualizedList(list(range(100)), VirtualizationConfig(item_height=20, overscan=2))
        view.set_items(list(range(10)))

        view.update_visible_items(scroll_top=1000, container_height=200)

        assert view.start_index == view.end_index == 10
        assert view.visible_items == []
        assert view.offset_y == view.total_height == 200
