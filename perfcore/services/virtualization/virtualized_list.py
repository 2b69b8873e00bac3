"""
Virtualized List

Viewport windowing: which slice of a long list is visible for a given
scroll position.
"""

import math
from typing import Generic, List, Optional, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ...constants import (
    DEFAULT_VIRTUAL_BUFFER_SIZE,
    DEFAULT_VIRTUAL_ITEM_HEIGHT,
    DEFAULT_VIRTUAL_OVERSCAN,
)
from ...core.config import PerformanceSettings

T = TypeVar("T")


class VirtualizationConfig(BaseModel):
    """Windowing parameters.

    buffer_size is carried for callers that size their own render buffers;
    the window computation uses overscan only.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    item_height: float = Field(default=DEFAULT_VIRTUAL_ITEM_HEIGHT, gt=0)
    buffer_size: int = Field(default=DEFAULT_VIRTUAL_BUFFER_SIZE, ge=0)
    overscan: int = Field(default=DEFAULT_VIRTUAL_OVERSCAN, ge=0)
    threshold: int = Field(
        default=0, ge=0, description="Lists shorter than this are never windowed"
    )

    @classmethod
    def from_settings(cls, settings: PerformanceSettings) -> "VirtualizationConfig":
        return cls(
            item_height=settings.VIRTUAL_ITEM_HEIGHT,
            buffer_size=settings.VIRTUAL_BUFFER_SIZE,
            overscan=settings.VIRTUAL_OVERSCAN,
        )


class VirtualizedList(Generic[T]):
    """Fixed-height row windowing over an in-memory sequence."""

    def __init__(self, items: Sequence[T], config: Optional[VirtualizationConfig] = None):
        self._items: List[T] = list(items)
        self.config = config or VirtualizationConfig()
        self.start_index = 0
        self.end_index = 0
        self._visible: List[T] = []
        self.update_visible_items()

    @property
    def windowed(self) -> bool:
        return self.config.enabled and len(self._items) >= self.config.threshold

    def update_visible_items(self, scroll_top: float = 0, container_height: float = 0) -> None:
        """Recompute the visible window for a scroll offset and viewport height."""
        count = len(self._items)
        if not self.windowed:
            self.start_index, self.end_index = 0, count
            self._visible = list(self._items)
            return

        height = self.config.item_height
        overscan = self.config.overscan
        self.start_index = max(0, math.floor(scroll_top / height) - overscan)
        self.end_index = min(count, math.ceil((scroll_top + container_height) / height) + overscan)
        self.start_index = min(self.start_index, self.end_index)
        self._visible = self._items[self.start_index:self.end_index]

    def set_items(self, items: Sequence[T]) -> None:
        """Replace the backing items and reset the window to the top."""
        self._items = list(items)
        self.update_visible_items()

    @property
    def items(self) -> List[T]:
        return list(self._items)

    @property
    def visible_items(self) -> List[T]:
        return list(self._visible)

    @property
    def total_height(self) -> float:
        return len(self._items) * self.config.item_height

    @property
    def offset_y(self) -> float:
        return self.start_index * self.config.item_height
