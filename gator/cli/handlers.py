from __future__ import annotations

import signal
import threading
from datetime import timedelta

from rich import print
from rich.markup import escape

from gator.cli.auth import logged_in
from gator.cli.router import CommandRouter, State
from gator.db.models import User
from gator.errors import FeedNotFound, UserNotFound, UsageError
from gator.services.fetcher import Fetcher
from gator.services.ingest import IngestionPipeline
from gator.tools.durations import parse_duration
from gator.tools.lock import RunLock
from gator.workflows.scheduler import PassResult, Scheduler


def handler_register(state: State, args: list[str]) -> None:
    name = args[0]
    user = state.store.create_user(name)
    state.config.set_user(user.name, state.settings.config_path)
    print(f"[bold green]User created[/bold green]: {escape(user.name)} (id {user.id})")


def handler_login(state: State, args: list[str]) -> None:
    name = args[0]
    user = state.store.get_user(name)
    if user is None:
        raise UserNotFound(name)
    state.config.set_user(user.name, state.settings.config_path)
    print(f"User {escape(user.name)} has been set")


def handler_reset(state: State, args: list[str]) -> None:
    deleted = state.store.delete_all_users()
    print(f"[bold green]Reset complete[/bold green]: {deleted} users deleted")


def handler_users(state: State, args: list[str]) -> None:
    users = state.store.list_users()
    if not users:
        print("There are no users in the database")
        return
    current = state.config.current_user_name
    for user in users:
        line = f"* {escape(user.name)}"
        if user.name == current:
            line += " (current)"
        print(line)


def _lock_timeout(interval: timedelta, fetch_timeout: float) -> int:
    # the lock must outlive the gap between two refreshes
    return max(60 * 60, int(2 * interval.total_seconds() + fetch_timeout))


def _install_stop_handlers(cancel: threading.Event) -> dict:
    if threading.current_thread() is not threading.main_thread():
        return {}
    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, lambda _signum, _frame: cancel.set())
    return previous


def _restore_handlers(previous: dict) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


def handler_agg(state: State, args: list[str]) -> None:
    interval = parse_duration(args[0])
    s = state.settings
    print(f"Collecting feeds every {args[0]} (Ctrl-C to stop)")

    cancel = threading.Event()
    previous = _install_stop_handlers(cancel)
    try:
        with RunLock(s.agg_lock_file, _lock_timeout(interval, s.fetch_timeout_seconds)) as lock:

            def report(result: PassResult) -> None:
                lock.refresh()
                if result.feed is None:
                    return
                if result.cancelled:
                    inserted = result.ingested.inserted if result.ingested is not None else 0
                    print(f"{escape(result.feed.name)}: cancelled after {inserted} new posts")
                    return
                if result.error is not None:
                    print(f"[bold red]{escape(result.feed.url)}[/bold red]: {escape(str(result.error))}")
                elif result.ingested is not None:
                    print(
                        f"{escape(result.feed.name)}: {result.ingested.inserted} new posts, "
                        f"{result.ingested.skipped} already stored"
                    )

            scheduler = Scheduler(
                state.store,
                Fetcher(timeout=s.fetch_timeout_seconds, user_agent=s.fetch_user_agent),
                IngestionPipeline(state.store),
                interval,
                on_pass=report,
            )
            scheduler.run(cancel)
    finally:
        _restore_handlers(previous)


def handler_addfeed(state: State, args: list[str], user: User) -> None:
    name, url = args
    feed = state.store.create_feed(name, url, user.id)
    state.store.create_feed_follow(user, feed)
    print(f"[bold green]Feed added[/bold green]: {escape(feed.name)}")
    print(f"  URL: {escape(feed.url)}")
    print(f"  ID: {feed.id}")
    print(f"  Following as: {escape(user.name)}")


def handler_feeds(state: State, args: list[str]) -> None:
    feeds = state.store.list_feeds()
    if not feeds:
        print("There are no feeds in the database")
        return
    for feed, owner in feeds:
        print(f"Name: {escape(feed.name)}, URL: {escape(feed.url)}, User: {escape(owner)}")


def handler_follow(state: State, args: list[str], user: User) -> None:
    url = args[0]
    feed = state.store.get_feed_by_url(url)
    if feed is None:
        raise FeedNotFound(url)
    state.store.create_feed_follow(user, feed)
    print(f"{escape(user.name)} now follows {escape(feed.name)}")


def handler_following(state: State, args: list[str], user: User) -> None:
    feeds = state.store.feed_follows_for_user(user.id)
    if not feeds:
        print(f"{escape(user.name)} is not following any feeds")
        return
    for feed in feeds:
        print(f"* {escape(feed.name)}")


def handler_unfollow(state: State, args: list[str], user: User) -> None:
    url = args[0]
    if state.store.delete_feed_follow(user.id, url):
        print(f"{escape(user.name)} unfollowed {escape(url)}")
    else:
        print(f"{escape(user.name)} was not following {escape(url)}")


def _parse_limit(args: list[str], default: int) -> int:
    if not args:
        return default
    try:
        limit = int(args[0])
    except ValueError as e:
        raise UsageError(f"limit must be a number, got {args[0]!r}") from e
    if limit < 1:
        raise UsageError("limit must be at least 1")
    return limit


def handler_browse(state: State, args: list[str]) -> None:
    limit = _parse_limit(args, state.settings.browse_default_limit)

    name = state.config.current_user_name
    user = state.store.get_user(name) if name else None
    posts = state.store.posts_for_user(user.id, limit) if user is not None else []
    if not posts:
        print("No posts to show")
        return

    for post in posts:
        published = post.published_at.strftime("%Y-%m-%d %H:%M UTC") if post.published_at else "unknown date"
        print(f"[bold]{escape(post.title)}[/bold]")
        print(f"  {published} | {escape(post.url)}")
        if post.description:
            print(f"  {escape(post.description)}")


def build_router() -> CommandRouter:
    router = CommandRouter()
    router.register("register", handler_register, ["name"])
    router.register("login", handler_login, ["name"])
    router.register("reset", handler_reset)
    router.register("users", handler_users)
    router.register("agg", handler_agg, ["time_between_reqs"])
    router.register("addfeed", logged_in(handler_addfeed), ["name", "url"])
    router.register("feeds", handler_feeds)
    router.register("follow", logged_in(handler_follow), ["url"])
    router.register("following", logged_in(handler_following))
    router.register("unfollow", logged_in(handler_unfollow), ["url"])
    router.register("browse", handler_browse, ["[limit]"])
    return router
