"""
Swipe processor: records decisions and retires swiped candidates.

The backend must confirm a swipe before the candidate leaves the feed; a
failed swipe leaves the candidate where it was so it can be swiped again.
"""

import asyncio
from typing import Callable, List, Optional, Set, Union

from .errors import ConflictError, FeedError, UnknownCandidateError
from .feed import FeedStore
from .logger import StructuredLogger, get_logger
from .models import Decision, SwipeEvent

MatchListener = Callable[[SwipeEvent], None]


class SwipeProcessor:
    def __init__(
        self,
        feed: FeedStore,
        client,
        exit_delay: float = 0.0,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            feed: Store the swiped candidates are removed from
            client: Object with ``async record_swipe(swiped_id, swipe_type, project_id) -> bool``
            exit_delay: Seconds between confirmation and removal, for exit animations
        """
        self.feed = feed
        self.client = client
        self.exit_delay = exit_delay
        self.logger = logger or get_logger()
        self._pending: Set[str] = set()
        self._match_listeners: List[MatchListener] = []

    def on_match(self, listener: MatchListener) -> Callable[[], None]:
        self._match_listeners.append(listener)
        return lambda: self._match_listeners.remove(listener)

    def is_pending(self, candidate_id: str) -> bool:
        return candidate_id in self._pending

    async def swipe(self, candidate_id: str, decision: Union[Decision, str]) -> SwipeEvent:
        """
        Record ``decision`` against a candidate in the feed.

        Match listeners run before the candidate is removed.

        Raises:
            ConflictError: A swipe for this candidate is still in flight
            UnknownCandidateError: The candidate is not in the feed
            FeedError: Recording failed; the candidate stays in the feed
        """
        decision = Decision(decision)
        if candidate_id in self._pending:
            raise ConflictError(candidate_id)
        candidate = self.feed.get(candidate_id)
        if candidate is None:
            raise UnknownCandidateError(candidate_id)

        self._pending.add(candidate_id)
        try:
            try:
                match_created = await self.client.record_swipe(
                    candidate.founder_id, decision.swipe_type, candidate.project_id
                )
            except FeedError as e:
                self.logger.record_error(type(e).__name__)
                self.logger.warning(
                    "Swipe failed", candidate_id=candidate_id, decision=decision.value, error=str(e)
                )
                raise

            event = SwipeEvent(
                candidate_id=candidate_id,
                decision=decision,
                founder_id=candidate.founder_id,
                project_id=candidate.project_id,
                match_created=bool(match_created),
            )
            self.logger.record_swipe(event.match_created)
            if event.match_created:
                self.logger.info("It's a match", candidate_id=candidate_id, founder_id=candidate.founder_id)
                for listener in list(self._match_listeners):
                    listener(event)

            if self.exit_delay > 0:
                await asyncio.sleep(self.exit_delay)
            self.feed.remove_candidate(candidate_id)
            return event
        finally:
            self._pending.discard(candidate_id)
