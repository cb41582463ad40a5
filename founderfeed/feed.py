"""
Feed store: the live candidate list and its pagination state.

Lifecycle: created with the feed, a new criteria epoch starts on every
Replace, and ``dispose`` cancels background work on teardown.

Invariants:
- The list never holds two candidates with the same id.
- ``cursor`` counts every item the server returned in this epoch, not the
  current list length, so swiped-away candidates are never re-requested.
- Only the last-issued Replace may change the list. Responses are matched to
  the epoch they were issued in and dropped if a newer epoch exists.
- At most one Append is in flight; ``is_loading_more`` is set synchronously
  before the fetch is scheduled.
"""

import asyncio
from typing import Callable, List, Optional, Set, Tuple

from .errors import FeedError
from .logger import StructuredLogger, get_logger
from .models import Candidate, FeedPage, FilterCriteria, PreferenceVector
from .navigation import NavigationIndex
from .prefetch import PrefetchPolicy

DEFAULT_PAGE_SIZE = 20

FeedListener = Callable[[str, "FeedStore"], None]


def _unique(candidates: List[Candidate], seen: Optional[Set[str]] = None) -> List[Candidate]:
    """Drop candidates whose id is already in ``seen``; preserves order."""
    seen = set() if seen is None else seen
    result = []
    for c in candidates:
        if c.id not in seen:
            seen.add(c.id)
            result.append(c)
    return result


class FeedStore:
    def __init__(
        self,
        fetcher,
        page_size: int = DEFAULT_PAGE_SIZE,
        prefetch: Optional[PrefetchPolicy] = None,
        navigation: Optional[NavigationIndex] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            fetcher: Object with ``async fetch(criteria, preferences, cursor, page_size) -> FeedPage``
            page_size: Candidates requested per page
            prefetch: Low-water-mark policy evaluated after each removal
            navigation: Browsing index kept in range as the list changes
        """
        if page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {page_size}")
        self.fetcher = fetcher
        self.page_size = page_size
        self.prefetch = prefetch or PrefetchPolicy()
        self.navigation = navigation or NavigationIndex()
        self.logger = logger or get_logger()

        self.criteria = FilterCriteria()
        self.preferences = PreferenceVector()
        self.cursor = 0
        self.has_more = True
        self.is_loading = False
        self.is_loading_more = False
        self.epoch = 0
        self.last_error: Optional[FeedError] = None

        self._items: List[Candidate] = []
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[FeedListener] = []

    # Read access

    @property
    def candidates(self) -> Tuple[Candidate, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, candidate_id: str) -> Optional[Candidate]:
        for c in self._items:
            if c.id == candidate_id:
                return c
        return None

    def index_of(self, candidate_id: str) -> Optional[int]:
        for i, c in enumerate(self._items):
            if c.id == candidate_id:
                return i
        return None

    def current(self) -> Optional[Candidate]:
        index = self.navigation.current
        return None if index is None else self._items[index]

    def subscribe(self, listener: FeedListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self, event: str):
        for listener in list(self._listeners):
            listener(event, self)

    # Replace

    async def replace(
        self,
        criteria: Optional[FilterCriteria] = None,
        preferences: Optional[PreferenceVector] = None,
    ) -> bool:
        """
        Start a new criteria epoch and swap in its first page.

        Returns False when a newer Replace superseded this one (its response,
        success or failure, is discarded).

        Raises:
            FeedError: The fetch failed; the previous list, criteria and
                paging are left untouched
        """
        self.epoch += 1
        epoch = self.epoch
        # Criteria are committed only together with the page they produced.
        requested_criteria = self.criteria if criteria is None else criteria
        requested_preferences = (
            self.preferences if preferences is None else PreferenceVector(preferences)
        )

        previous_paging = (self.cursor, self.has_more)
        self.is_loading = True
        self.is_loading_more = False
        self.cursor = 0
        self.has_more = True
        self._notify("loading")

        try:
            page: FeedPage = await self.fetcher.fetch(
                requested_criteria, requested_preferences, 0, self.page_size
            )
        except FeedError as e:
            if epoch != self.epoch:
                self.logger.debug("Discarding stale replace failure", epoch=epoch, error=str(e))
                return False
            self._restore_paging(previous_paging)
            self.last_error = e
            self.logger.error("Replace failed", epoch=epoch, error=str(e), error_type=type(e).__name__)
            self._notify("error")
            raise
        except BaseException as e:
            # Cancellation or an unexpected crash: unwind, then propagate.
            if epoch == self.epoch:
                self._restore_paging(previous_paging)
                if not isinstance(e, asyncio.CancelledError):
                    self.logger.error(
                        "Replace crashed", epoch=epoch, error=repr(e), error_type=type(e).__name__
                    )
            raise

        if epoch != self.epoch:
            self.logger.debug("Discarding stale replace response", epoch=epoch, current=self.epoch)
            return False

        self.criteria = requested_criteria
        self.preferences = requested_preferences
        self._items = _unique(page.candidates)
        self.cursor = page.received
        self.has_more = not page.exhausted
        self.is_loading = False
        self.last_error = None
        self.navigation.reset(len(self._items))
        self.logger.debug(
            "Feed replaced", epoch=epoch, count=len(self._items), has_more=self.has_more
        )
        self._notify("replaced")
        return True

    def _restore_paging(self, paging: Tuple[int, bool]):
        self.is_loading = False
        self.cursor, self.has_more = paging

    # Append

    def _begin_append(self) -> bool:
        if self.is_loading or self.is_loading_more or not self.has_more:
            return False
        self.is_loading_more = True
        return True

    async def append(self) -> int:
        """Fetch the next page ("load more"). Returns the number of candidates added.

        Failures are absorbed: they end the stream for this epoch.
        """
        if not self._begin_append():
            return 0
        return await self._run_append(self.epoch)

    async def _run_append(self, epoch: int) -> int:
        cursor = self.cursor
        try:
            page: FeedPage = await self.fetcher.fetch(
                self.criteria, self.preferences, cursor, self.page_size
            )
        except FeedError as e:
            self.logger.warning(
                "Append failed; no further prefetch this epoch",
                epoch=epoch, offset=cursor, error=str(e),
            )
            if epoch == self.epoch:
                self.has_more = False
                self.is_loading_more = False
                self._notify("exhausted")
            return 0
        except BaseException:
            if epoch == self.epoch:
                self.is_loading_more = False
            raise

        if epoch != self.epoch:
            self.logger.debug("Discarding stale append response", epoch=epoch, current=self.epoch)
            return 0

        added = _unique(page.candidates, {c.id for c in self._items})
        self._items.extend(added)
        # Server offset tracks items returned, not items kept.
        self.cursor = cursor + page.received
        self.has_more = not page.exhausted
        self.is_loading_more = False
        self.navigation.resize(len(self._items))
        self.logger.debug(
            "Feed appended", epoch=epoch, added=len(added), cursor=self.cursor, has_more=self.has_more
        )
        self._notify("appended")
        return len(added)

    # Removal

    def remove_candidate(self, candidate_id: str) -> bool:
        """Remove by id. Returns False if it was not in the list.

        The low-water prefetch is scheduled on the running event loop; called
        outside one, the removal still happens and the prefetch is skipped.
        """
        index = self.index_of(candidate_id)
        if index is None:
            return False
        del self._items[index]
        self.navigation.resize(len(self._items))
        self._notify("removed")
        self._maybe_prefetch()
        return True

    def _maybe_prefetch(self) -> Optional[asyncio.Task]:
        if not self.prefetch.should_prefetch(len(self._items), self.has_more, self.is_loading_more):
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.logger.warning("No running event loop, prefetch skipped", remaining=len(self._items))
            return None
        if not self._begin_append():
            return None
        self.logger.debug("Low-water mark reached, prefetching", remaining=len(self._items))
        task = loop.create_task(self._run_append(self.epoch))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.error("Background prefetch crashed", error=repr(task.exception()))

    async def wait_idle(self):
        """Wait for background prefetches scheduled so far."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def dispose(self):
        """Cancel background work and drop any responses still in flight."""
        self.epoch += 1
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        self.is_loading = False
        self.is_loading_more = False
        self._listeners.clear()
