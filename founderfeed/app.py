import argparse
import asyncio
import json

from . import __version__
from .config import Settings, load_env
from .controller import DiscoveryFeed
from .criteria import CriteriaStore
from .errors import FeedError
from .logger import get_logger
from .models import Candidate, Decision, FilterCriteria
from .retry import RetryError, exponential_backoff
from .schema import PREFERENCE_QUESTIONS
from .storage import SettingsStore


def criteria_from_args(args: argparse.Namespace) -> FilterCriteria:
    return FilterCriteria(
        search=args.search or "",
        location=args.location or "",
        project_stage=args.stage or "",
        looking_for=args.looking_for or "",
        skills=tuple(args.skill or ()),
    )


def format_candidate(index: int, candidate: Candidate) -> str:
    attrs = candidate.attributes
    name = attrs.get("name") or attrs.get("title") or candidate.founder_id
    score = "--" if candidate.compatibility_score is None else f"{candidate.compatibility_score:.0f}%"
    project = f" project={candidate.project_id}" if candidate.project_id else ""
    return f"[{index}] {candidate.id}  {name}  score={score}{project}"


async def _load(feed: DiscoveryFeed, settings: Settings) -> None:
    logger = feed.logger

    def on_retry(attempt, exc, delay):
        logger.warning("Retrying initial load", attempt=attempt, delay=delay, error=str(exc))

    load = exponential_backoff(
        max_retries=settings.max_retries, base_delay=0.5, on_retry=on_retry
    )(feed.load)
    await load()


def _build_feed(args: argparse.Namespace, settings: Settings) -> DiscoveryFeed:
    return DiscoveryFeed.from_settings(settings, criteria=criteria_from_args(args))


async def _discover(args: argparse.Namespace, settings: Settings) -> None:
    feed = _build_feed(args, settings)
    try:
        await _load(feed, settings)
        pages = 1
        while feed.has_more and len(feed.candidates) < args.count:
            await feed.load_more()
            pages += 1
        if not feed.candidates:
            print("No candidates match these filters.")
            return
        prefs = feed.criteria.preferences
        if prefs.is_active():
            print(f"Compatibility matching active ({prefs.answered_count}/{len(PREFERENCE_QUESTIONS)} answered)")
        for i, c in enumerate(feed.candidates[: args.count]):
            print(format_candidate(i, c))
        more = "more available" if feed.has_more else "end of feed"
        print(f"Done. shown={min(args.count, len(feed.candidates))} pages={pages} ({more})")
    finally:
        feed.dispose()


async def _swipe(args: argparse.Namespace, settings: Settings) -> None:
    feed = _build_feed(args, settings)
    feed.on_match(lambda event: print(f"It's a match with founder {event.founder_id}!"))
    try:
        await _load(feed, settings)
        while feed.store.get(args.id) is None and feed.has_more:
            await feed.load_more()
        event = await feed.swipe(args.id, Decision(args.decision))
        print(f"Recorded {event.decision.value} for {event.candidate_id}")
        await feed.wait_idle()
    finally:
        feed.dispose()


def _run(coro) -> None:
    try:
        asyncio.run(coro)
    except RetryError as e:
        raise SystemExit(f"Backend unavailable: {e}")
    except FeedError as e:
        raise SystemExit(str(e))
    finally:
        get_logger().log_metrics_summary()


def cmd_discover(args: argparse.Namespace, settings: Settings) -> None:
    _run(_discover(args, settings))


def cmd_swipe(args: argparse.Namespace, settings: Settings) -> None:
    _run(_swipe(args, settings))


def cmd_prefs(args: argparse.Namespace, settings: Settings) -> None:
    store = CriteriaStore(storage=SettingsStore(settings.db_path))
    if args.action == "set":
        answers = {}
        for pair in args.answers or []:
            if "=" not in pair:
                raise SystemExit(f"Expected question=option, got: {pair}")
            k, v = pair.split("=", 1)
            answers[k.strip()] = v.strip()
        try:
            store.set_preferences({**store.preferences, **answers})
        except ValueError as e:
            raise SystemExit(str(e))
    elif args.action == "clear":
        store.clear_preferences()

    prefs = store.preferences
    print(json.dumps(dict(prefs), indent=2, sort_keys=True))
    print(f"Answered: {prefs.answered_count}/{len(PREFERENCE_QUESTIONS)}")
    if args.action == "show":
        for question, options in PREFERENCE_QUESTIONS.items():
            print(f"  {question}: {' | '.join(options)}")


def _add_filter_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--search", help="Free-text search")
    p.add_argument("--location", help="Location filter")
    p.add_argument("--stage", help="Project stage filter")
    p.add_argument("--looking-for", dest="looking_for", help="What the founder is looking for")
    p.add_argument("--skill", action="append", help="Skill filter (repeatable)")


def main():
    load_env()
    parser = argparse.ArgumentParser(prog="founderfeed", description="Founder discovery feed client")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    dsc = subparsers.add_parser("discover", help="Load candidates for the given filters and print them")
    _add_filter_args(dsc)
    dsc.add_argument("--count", type=int, default=10, help="Number of candidates to show (default 10)")
    dsc.set_defaults(func=cmd_discover)

    swp = subparsers.add_parser("swipe", help="Accept or reject a candidate from the feed")
    _add_filter_args(swp)
    swp.add_argument("--id", required=True, help="Candidate id")
    swp.add_argument("--decision", required=True, choices=[d.value for d in Decision], help="accept or reject")
    swp.set_defaults(func=cmd_swipe)

    prf = subparsers.add_parser("prefs", help="Show, set or clear compatibility preferences")
    prf.add_argument("action", choices=["show", "set", "clear"])
    prf.add_argument("answers", nargs="*", help="question=option pairs for 'set'")
    prf.set_defaults(func=cmd_prefs)

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        settings = Settings.from_env()
        get_logger(
            level=settings.log_level,
            enable_file=settings.log_dir is not None,
            log_dir=settings.log_dir,
        )
        args.func(args, settings)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
