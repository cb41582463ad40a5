"""
Discovery feed controller.

``DiscoveryFeed`` wires the criteria store, feed store, navigation index and
swipe processor together and is the only object a UI needs: it exposes the
operations and change subscriptions, and holds no rendering logic. Settled
criteria changes start a Replace task; starting a new one cancels the last.
"""

import asyncio
from typing import Callable, List, Optional, Tuple, Union

from .client import DiscoveryClient
from .criteria import CriteriaChange, CriteriaStore
from .feed import DEFAULT_PAGE_SIZE, FeedListener, FeedStore
from .logger import StructuredLogger, get_logger
from .models import Candidate, Decision, FilterCriteria, SwipeEvent
from .navigation import NavigationIndex
from .prefetch import DEFAULT_LOW_WATER_MARK, PrefetchPolicy
from .storage import SettingsStore
from .swipe import MatchListener, SwipeProcessor

ErrorListener = Callable[[Exception], None]


class DiscoveryFeed:
    def __init__(
        self,
        client,
        criteria: Optional[CriteriaStore] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        low_water_mark: int = DEFAULT_LOW_WATER_MARK,
        exit_delay: float = 0.0,
        logger: Optional[StructuredLogger] = None,
    ):
        self.logger = logger or get_logger()
        self.criteria = criteria or CriteriaStore(logger=self.logger)
        self.navigation = NavigationIndex()
        self.store = FeedStore(
            client,
            page_size=page_size,
            prefetch=PrefetchPolicy(low_water_mark),
            navigation=self.navigation,
            logger=self.logger,
        )
        self.swipes = SwipeProcessor(self.store, client, exit_delay=exit_delay, logger=self.logger)
        self._replace_task: Optional[asyncio.Task] = None
        self._error_listeners: List[ErrorListener] = []
        self._unsubscribe_criteria = self.criteria.subscribe_settled(self._on_criteria_settled)
        self._disposed = False

    @classmethod
    def from_settings(
        cls,
        settings,
        criteria: Optional[FilterCriteria] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> "DiscoveryFeed":
        logger = logger or get_logger()
        client = DiscoveryClient(
            settings.api_url, user_id=settings.user_id, timeout=settings.timeout, logger=logger
        )
        criteria = CriteriaStore(
            storage=SettingsStore(settings.db_path, logger=logger),
            debounce_seconds=settings.debounce_seconds,
            criteria=criteria,
            logger=logger,
        )
        return cls(
            client,
            criteria=criteria,
            page_size=settings.page_size,
            low_water_mark=settings.low_water_mark,
            exit_delay=settings.exit_delay,
            logger=logger,
        )

    # State

    @property
    def candidates(self) -> Tuple[Candidate, ...]:
        return self.store.candidates

    @property
    def has_more(self) -> bool:
        return self.store.has_more

    @property
    def is_loading(self) -> bool:
        return self.store.is_loading

    @property
    def is_loading_more(self) -> bool:
        return self.store.is_loading_more

    def current(self) -> Optional[Candidate]:
        return self.store.current()

    # Subscriptions

    def subscribe(self, listener: FeedListener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    def on_match(self, listener: MatchListener) -> Callable[[], None]:
        return self.swipes.on_match(listener)

    def on_error(self, listener: ErrorListener) -> Callable[[], None]:
        """Listen for failures of Replaces started by criteria changes."""
        self._error_listeners.append(listener)
        return lambda: self._error_listeners.remove(listener)

    # Operations

    async def load(self) -> bool:
        """Replace the feed with the first page for the current criteria."""
        return await self.store.replace(self.criteria.criteria, self.criteria.preferences)

    async def load_more(self) -> int:
        return await self.store.append()

    def next(self) -> Optional[Candidate]:
        self.navigation.next()
        return self.current()

    def previous(self) -> Optional[Candidate]:
        self.navigation.previous()
        return self.current()

    async def swipe(self, candidate_id: str, decision: Union[Decision, str]) -> SwipeEvent:
        return await self.swipes.swipe(candidate_id, decision)

    async def wait_idle(self):
        """Wait for the pending criteria Replace and background prefetches."""
        task = self._replace_task
        if task is not None and not task.done():
            await asyncio.gather(task, return_exceptions=True)
        await self.store.wait_idle()

    # Criteria reconciliation

    def _on_criteria_settled(self, change: CriteriaChange):
        if self._disposed:
            return
        if self._replace_task is not None and not self._replace_task.done():
            self._replace_task.cancel()
        loop = asyncio.get_running_loop()
        self.logger.debug("Criteria changed, replacing feed", changed=list(change.changed))
        task = loop.create_task(self.store.replace(change.criteria, change.preferences))
        task.add_done_callback(self._replace_done)
        self._replace_task = task

    def _replace_done(self, task: asyncio.Task):
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        if not self._error_listeners:
            self.logger.error("Unhandled replace failure", error=str(exc))
        for listener in list(self._error_listeners):
            listener(exc)

    def dispose(self):
        """Tear down: stop timers, cancel in-flight work, drop listeners."""
        self._disposed = True
        self._unsubscribe_criteria()
        self.criteria.debouncer.cancel()
        if self._replace_task is not None and not self._replace_task.done():
            self._replace_task.cancel()
        self.store.dispose()
        self._error_listeners.clear()
