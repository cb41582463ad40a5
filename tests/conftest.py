"""
Pytest configuration and shared fixtures.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from founderfeed.logger import StructuredLogger, reset_logger
from founderfeed.models import Candidate, FeedPage


def payload(cid: str, score: Optional[float] = None, project: Optional[str] = None) -> Dict[str, Any]:
    data: Dict[str, Any] = {"id": cid, "founder_id": f"f-{cid}", "name": f"Founder {cid}"}
    if project:
        data["projects"] = [{"id": project}]
    if score is not None:
        data["preference_score"] = score
    return data


def candidate(cid: str) -> Candidate:
    return Candidate.from_api(payload(cid, project=f"p-{cid}"))


def page(ids: List[str], page_size: int) -> FeedPage:
    return FeedPage(
        candidates=[candidate(i) for i in ids],
        exhausted=len(ids) < page_size,
        received=len(ids),
    )


class FakeBackend:
    """
    In-memory stand-in for DiscoveryClient.

    With ``responder`` set, fetches resolve straight away; otherwise each
    fetch parks on a future in ``pending`` that the test resolves, in any
    order it likes.
    """

    def __init__(self):
        self.fetch_calls: List[Dict[str, Any]] = []
        self.pending: List[asyncio.Future] = []
        self.responder = None
        self.swipe_calls: List[Dict[str, Any]] = []
        self.swipe_results: List[Any] = []
        self.swipe_gate: Optional[asyncio.Event] = None

    async def fetch(self, criteria, preferences, cursor, page_size):
        self.fetch_calls.append(
            {"criteria": criteria, "preferences": preferences, "cursor": cursor, "page_size": page_size}
        )
        if self.responder is not None:
            result = self.responder(criteria, preferences, cursor, page_size)
            if isinstance(result, Exception):
                raise result
            return result
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future

    async def record_swipe(self, swiped_id, swipe_type, project_id=None):
        self.swipe_calls.append(
            {"swiped_id": swiped_id, "swipe_type": swipe_type, "project_id": project_id}
        )
        if self.swipe_gate is not None:
            await self.swipe_gate.wait()
        result = self.swipe_results.pop(0) if self.swipe_results else False
        if isinstance(result, Exception):
            raise result
        return result


def pool_responder(ids: List[str]):
    """Serve offset/limit slices of a fixed server-side pool."""
    def respond(criteria, preferences, cursor, page_size):
        return page(ids[cursor:cursor + page_size], page_size)
    return respond


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    """Logger with no handlers, so metrics can be inspected."""
    return StructuredLogger(name="founderfeed-test", enable_file=False, enable_console=False)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture(autouse=True)
def _reset_global_logger(monkeypatch):
    monkeypatch.delenv("FOUNDERFEED_LOG_DIR", raising=False)
    yield
    reset_logger()
