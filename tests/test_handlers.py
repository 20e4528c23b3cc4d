"""
Tests for the CLI command handlers.
"""

import threading
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from gator.cli.handlers import build_router
from gator.config.gator_config import read_config
from gator.errors import (
    DuplicateFollow, DuplicateUser, FeedNotFound, InvalidDuration, LockError, UserNotFound, UsageError
)
from gator.services.ingest import IngestResult
from gator.workflows.scheduler import PassResult


@pytest.fixture
def router():
    return build_router()


class TestUserCommands:

    def test_register_sets_current_user(self, router, state, settings):
        router.run(state, "register", ["alice"])

        assert state.store.get_user("alice") is not None
        assert state.config.current_user_name == "alice"
        assert read_config(settings.config_path).current_user_name == "alice"

    def test_register_duplicate(self, router, state):
        router.run(state, "register", ["alice"])
        with pytest.raises(DuplicateUser):
            router.run(state, "register", ["alice"])

    def test_login_existing_user(self, router, state, settings):
        state.store.create_user("bob")
        router.run(state, "login", ["bob"])
        assert read_config(settings.config_path).current_user_name == "bob"

    def test_login_unknown_user(self, router, state, settings):
        with pytest.raises(UserNotFound):
            router.run(state, "login", ["nobody"])
        assert state.config.current_user_name == ""

    def test_users_marks_current(self, router, state, alice, capsys):
        state.store.create_user("bob")
        router.run(state, "users", [])
        out = capsys.readouterr().out
        assert "* alice (current)" in out
        assert "* bob" in out
        assert "bob (current)" not in out

    def test_users_empty(self, router, state, capsys):
        router.run(state, "users", [])
        assert "no users" in capsys.readouterr().out

    def test_reset(self, router, state, alice):
        router.run(state, "addfeed", ["Blog", "http://example.com/rss"])
        router.run(state, "reset", [])
        assert state.store.list_users() == []
        assert state.store.list_feeds() == []


class TestFeedCommands:

    def test_addfeed_creates_and_follows(self, router, state, alice):
        router.run(state, "addfeed", ["Blog", "http://example.com/rss"])

        feed = state.store.get_feed_by_url("http://example.com/rss")
        assert feed.name == "Blog"
        assert feed.user_id == alice.id
        assert feed.last_fetched_at is None
        assert [f.id for f in state.store.feed_follows_for_user(alice.id)] == [feed.id]

    def test_feeds_lists_owner(self, router, state, alice, capsys):
        router.run(state, "addfeed", ["Blog", "http://example.com/rss"])
        capsys.readouterr()
        router.run(state, "feeds", [])
        out = capsys.readouterr().out
        assert "Name: Blog" in out
        assert "User: alice" in out

    def test_follow_existing_feed(self, router, state, alice, capsys):
        bob = state.store.create_user("bob")
        state.store.create_feed("Bob's", "http://bob.example/rss", bob.id)

        router.run(state, "follow", ["http://bob.example/rss"])

        assert [f.name for f in state.store.feed_follows_for_user(alice.id)] == ["Bob's"]
        assert "alice now follows" in capsys.readouterr().out

    def test_follow_unknown_feed(self, router, state, alice):
        with pytest.raises(FeedNotFound):
            router.run(state, "follow", ["http://nowhere.example/rss"])

    def test_follow_twice(self, router, state, alice):
        router.run(state, "addfeed", ["Blog", "http://example.com/rss"])
        with pytest.raises(DuplicateFollow):
            router.run(state, "follow", ["http://example.com/rss"])

    def test_following_and_unfollow(self, router, state, alice, capsys):
        router.run(state, "addfeed", ["Blog", "http://example.com/rss"])
        capsys.readouterr()

        router.run(state, "following", [])
        assert "* Blog" in capsys.readouterr().out

        router.run(state, "unfollow", ["http://example.com/rss"])
        assert state.store.feed_follows_for_user(alice.id) == []

        router.run(state, "following", [])
        assert "not following any feeds" in capsys.readouterr().out


class TestBrowse:

    @pytest.mark.parametrize("limit", ["abc", "0", "-3"])
    def test_bad_limit(self, router, state, limit):
        with pytest.raises(UsageError):
            router.run(state, "browse", [limit])

    def test_no_current_user_shows_nothing(self, router, state, capsys):
        router.run(state, "browse", [])
        assert "No posts to show" in capsys.readouterr().out


class TestAgg:

    def test_invalid_duration(self, router, state):
        with patch("gator.cli.handlers.Scheduler") as mock_scheduler:
            with pytest.raises(InvalidDuration):
                router.run(state, "agg", ["soon"])
        mock_scheduler.assert_not_called()

    def test_runs_scheduler_with_interval(self, router, state, settings):
        with patch("gator.cli.handlers.Scheduler") as mock_scheduler:
            router.run(state, "agg", ["1m30s"])

        args = mock_scheduler.call_args[0]
        assert args[0] is state.store
        assert args[3] == timedelta(seconds=90)
        cancel = mock_scheduler.return_value.run.call_args[0][0]
        assert isinstance(cancel, threading.Event)

    def test_refuses_second_aggregator(self, router, state, settings):
        from gator.tools.lock import RunLock

        with RunLock(settings.agg_lock_file):
            with patch("gator.cli.handlers.Scheduler") as mock_scheduler:
                with pytest.raises(LockError):
                    router.run(state, "agg", ["1m"])
        mock_scheduler.return_value.run.assert_not_called()

    @pytest.mark.parametrize("result, expected", [
        (
            PassResult(
                feed=SimpleNamespace(name="Blog", url="http://example.com/rss"),
                ingested=IngestResult(inserted=2, cancelled=True),
                cancelled=True,
            ),
            "Blog: cancelled after 2 new posts",
        ),
        (
            PassResult(feed=SimpleNamespace(name="Blog", url="http://example.com/rss"), cancelled=True),
            "Blog: cancelled after 0 new posts",
        ),
        (
            PassResult(
                feed=SimpleNamespace(name="Blog", url="http://example.com/rss"),
                ingested=IngestResult(inserted=3, skipped=1),
            ),
            "Blog: 3 new posts, 1 already stored",
        ),
    ])
    def test_reports_each_pass(self, router, state, capsys, result, expected):
        with patch("gator.cli.handlers.Scheduler") as mock_scheduler:
            mock_scheduler.return_value.run.side_effect = (
                lambda cancel: mock_scheduler.call_args.kwargs["on_pass"](result)
            )
            router.run(state, "agg", ["1m"])

        out = capsys.readouterr().out
        assert expected in out
        if result.cancelled:
            assert "new posts," not in out
