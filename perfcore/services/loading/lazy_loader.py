"""
Lazy Loader

Paginated accumulation over a caller-supplied async fetch function.
"""

import asyncio
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ...constants import (
    DEFAULT_LAZY_BATCH_SIZE,
    DEFAULT_LAZY_PREFETCH_THRESHOLD,
    DEFAULT_LAZY_TIMEOUT_SECONDS,
)
from ...core.config import PerformanceSettings
from ...exceptions import LoadTimeoutException

logger = structlog.get_logger(__name__)

T = TypeVar("T")

FetchFunction = Callable[[int, int], Awaitable[Sequence[T]]]


class LazyLoadingConfig(BaseModel):
    """Paging parameters for a LazyLoader."""

    model_config = ConfigDict(frozen=True)

    batch_size: int = Field(default=DEFAULT_LAZY_BATCH_SIZE, ge=1)
    prefetch_threshold: int = Field(default=DEFAULT_LAZY_PREFETCH_THRESHOLD, ge=0)
    timeout: Optional[float] = Field(
        default=DEFAULT_LAZY_TIMEOUT_SECONDS,
        gt=0,
        description="Seconds allowed per fetch; None disables the bound",
    )

    @classmethod
    def from_settings(cls, settings: PerformanceSettings) -> "LazyLoadingConfig":
        return cls(
            batch_size=settings.LAZY_BATCH_SIZE,
            prefetch_threshold=settings.LAZY_PREFETCH_THRESHOLD,
            timeout=settings.LAZY_TIMEOUT_SECONDS,
        )


class LazyLoader(Generic[T]):
    """
    Accumulates pages from ``fetch(offset, limit)``.

    Only one fetch is in flight at a time: a load() issued while another is
    pending returns an empty list without fetching. A page shorter than
    requested marks the source as fully loaded.
    """

    def __init__(self, fetch: FetchFunction, config: Optional[LazyLoadingConfig] = None):
        self._fetch = fetch
        self.config = config or LazyLoadingConfig()
        self._items: List[T] = []
        self._loading = False
        self._loaded = False

    @property
    def items(self) -> List[T]:
        return list(self._items)

    def is_loaded(self) -> bool:
        return self._loaded

    def is_loading(self) -> bool:
        return self._loading

    async def load(self, offset: Optional[int] = None, limit: Optional[int] = None) -> List[T]:
        """
        Fetch one page and append it.

        Args:
            offset: Start position; defaults to the number of items held
            limit: Page size; defaults to the configured batch size

        Returns:
            The newly fetched items, or [] if a load was already in flight

        Raises:
            LoadTimeoutException: If the fetch exceeds the configured timeout
        """
        if self._loading:
            logger.debug("lazy_load_skipped", reason="in_flight")
            return []

        start = len(self._items) if offset is None else offset
        size = limit or self.config.batch_size

        self._loading = True
        try:
            page = list(await self._fetch_page(start, size))
        finally:
            self._loading = False

        self._items.extend(page)
        self._loaded = len(page) < size
        logger.debug(
            "lazy_page_loaded",
            offset=start,
            limit=size,
            received=len(page),
            total=len(self._items),
            fully_loaded=self._loaded,
        )
        return page

    async def load_more(self) -> List[T]:
        """Load the next page unless the source is exhausted."""
        if self._loaded:
            return []
        return await self.load()

    def should_prefetch(self, index: int) -> bool:
        """True when ``index`` is within prefetch_threshold of the loaded tail."""
        if self._loaded or self._loading:
            return False
        return len(self._items) - index <= self.config.prefetch_threshold

    def reset(self) -> None:
        """Drop accumulated items. An in-flight load still appends its page."""
        self._items.clear()
        self._loaded = False

    async def _fetch_page(self, offset: int, limit: int) -> Sequence[T]:
        if self.config.timeout is None:
            return await self._fetch(offset, limit)

        try:
            return await asyncio.wait_for(self._fetch(offset, limit), self.config.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "lazy_load_timeout",
                offset=offset,
                limit=limit,
                timeout=self.config.timeout,
            )
            raise LoadTimeoutException(offset, limit, self.config.timeout) from None
