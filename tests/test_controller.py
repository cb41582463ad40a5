"""
Tests for the discovery feed controller: criteria-driven reloads and wiring.
"""

import asyncio

from conftest import page, pool_responder
from founderfeed.config import Settings
from founderfeed.controller import DiscoveryFeed
from founderfeed.criteria import CriteriaStore
from founderfeed.errors import AuthError
from founderfeed.models import Decision, FilterCriteria


def make_feed(backend, logger, debounce=0.02, page_size=5):
    criteria = CriteriaStore(debounce_seconds=debounce, logger=logger)
    return DiscoveryFeed(backend, criteria=criteria, page_size=page_size, logger=logger)


class TestCriteriaReload:
    """Criteria changes replace the feed, debounced or immediately."""

    def test_typing_triggers_single_replace(self, backend, quiet_logger):
        backend.responder = pool_responder(["a", "b"])
        feed = make_feed(backend, quiet_logger)

        async def scenario():
            for text in ("s", "sa", "saa", "saas"):
                feed.criteria.set_filter(search=text)
                await asyncio.sleep(0.005)
            assert backend.fetch_calls == []
            await asyncio.sleep(0.08)
            await feed.wait_idle()
            feed.dispose()

        asyncio.run(scenario())
        assert len(backend.fetch_calls) == 1
        assert backend.fetch_calls[0]["criteria"].search == "saas"
        assert [c.id for c in feed.candidates] == ["a", "b"]

    def test_skills_change_replaces_immediately(self, backend, quiet_logger):
        backend.responder = pool_responder(["a"])
        feed = make_feed(backend, quiet_logger, debounce=10)

        async def scenario():
            feed.criteria.set_filter(skills=["python", "go"])
            await feed.wait_idle()
            feed.dispose()

        asyncio.run(scenario())
        assert len(backend.fetch_calls) == 1
        assert backend.fetch_calls[0]["criteria"].skills == ("python", "go")
        assert backend.fetch_calls[0]["cursor"] == 0

    def test_preference_save_replaces_with_preferences(self, backend, quiet_logger):
        backend.responder = pool_responder(["a"])
        feed = make_feed(backend, quiet_logger)

        async def scenario():
            feed.criteria.set_preferences({"work_hours": "flexible"})
            await feed.wait_idle()
            feed.dispose()

        asyncio.run(scenario())
        assert backend.fetch_calls[0]["preferences"] == {"work_hours": "flexible"}

    def test_newer_change_cancels_older_replace(self, backend, quiet_logger):
        feed = make_feed(backend, quiet_logger)

        async def scenario():
            feed.criteria.set_filter(project_stage="idea")
            await asyncio.sleep(0)
            feed.criteria.set_filter(project_stage="growth")
            await asyncio.sleep(0)
            assert backend.pending[0].cancelled()
            backend.pending[1].set_result(page(["g1", "g2"], 5))
            await feed.wait_idle()
            feed.dispose()

        asyncio.run(scenario())
        assert [c.id for c in feed.candidates] == ["g1", "g2"]
        assert feed.store.criteria.project_stage == "growth"

    def test_replace_failure_reaches_error_listeners(self, backend, quiet_logger):
        backend.responder = lambda *args: AuthError("Unauthorized", 401)
        feed = make_feed(backend, quiet_logger)
        errors = []
        feed.on_error(errors.append)

        async def scenario():
            feed.criteria.set_filter(project_stage="mvp")
            await feed.wait_idle()
            feed.dispose()

        asyncio.run(scenario())
        assert len(errors) == 1
        assert isinstance(errors[0], AuthError)

    def test_dispose_stops_pending_debounce(self, backend, quiet_logger):
        backend.responder = pool_responder(["a"])
        feed = make_feed(backend, quiet_logger)

        async def scenario():
            feed.criteria.set_filter(search="late")
            feed.dispose()
            await asyncio.sleep(0.08)

        asyncio.run(scenario())
        assert backend.fetch_calls == []


class TestFeedOperations:
    """Browsing, paging and swiping through the facade."""

    def test_load_browse_and_swipe(self, backend, quiet_logger):
        pool = [f"c{i}" for i in range(8)]
        backend.responder = pool_responder(pool)
        backend.swipe_results = [True]
        feed = make_feed(backend, quiet_logger, page_size=4)
        matches = []
        feed.on_match(matches.append)

        async def scenario():
            assert await feed.load() is True
            assert feed.current().id == "c0"
            assert feed.previous().id == "c3"
            assert feed.next().id == "c0"
            event = await feed.swipe("c0", Decision.ACCEPT)
            await feed.wait_idle()
            feed.dispose()
            return event

        event = asyncio.run(scenario())
        assert event.match_created is True
        assert [m.candidate_id for m in matches] == ["c0"]
        # 4 -> 3 breaches the low-water mark and pulls the next page
        assert [c.id for c in feed.candidates] == ["c1", "c2", "c3", "c4", "c5", "c6", "c7"]
        assert feed.store.cursor == 8

    def test_load_uses_current_criteria(self, backend, quiet_logger):
        backend.responder = pool_responder(["a"])
        criteria = CriteriaStore(criteria=FilterCriteria(location="Paris"), logger=quiet_logger)
        feed = DiscoveryFeed(backend, criteria=criteria, logger=quiet_logger)

        asyncio.run(feed.load())
        assert backend.fetch_calls[0]["criteria"].location == "Paris"

    def test_load_more(self, backend, quiet_logger):
        backend.responder = pool_responder([str(i) for i in range(7)])
        feed = make_feed(backend, quiet_logger, page_size=5)

        async def scenario():
            await feed.load()
            return await feed.load_more()

        assert asyncio.run(scenario()) == 2
        assert feed.has_more is False

    def test_empty_feed_navigation(self, backend, quiet_logger):
        backend.responder = pool_responder([])
        feed = make_feed(backend, quiet_logger)

        asyncio.run(feed.load())
        assert feed.current() is None
        assert feed.next() is None
        assert feed.previous() is None

    def test_from_settings(self, tmp_path, quiet_logger):
        settings = Settings(
            api_url="https://api.example.com",
            user_id="user_42",
            page_size=12,
            low_water_mark=3,
            db_path=tmp_path / "ff.db",
        )
        feed = DiscoveryFeed.from_settings(
            settings, criteria=FilterCriteria(search="climate"), logger=quiet_logger
        )

        assert feed.store.page_size == 12
        assert feed.store.prefetch.low_water_mark == 3
        assert feed.criteria.criteria.search == "climate"
        assert feed.store.fetcher.session.headers["X-Clerk-User-Id"] == "user_42"
        assert (tmp_path / "ff.db").exists()
