"""
Pytest fixtures for gator tests.
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import Session

from gator.cli.router import State
from gator.config.gator_config import GatorConfig
from gator.config.settings import Settings
from gator.db.database import init_db, make_engine
from gator.db.models import Feed, Post
from gator.db.store import Store


SAMPLE_ITEMS = [
    {
        "title": "Oldest post",
        "link": "http://example.com/posts/1",
        "description": "First one",
        "pub_date": "Mon, 02 Jan 2006 15:04:05 -0700",
    },
    {
        "title": "Newest post",
        "link": "http://example.com/posts/3",
        "description": "Third one",
        "pub_date": "Wed, 04 Jan 2006 09:00:00 +0000",
    },
    {
        "title": "Middle post",
        "link": "http://example.com/posts/2",
        "description": "Second one",
        "pub_date": "Tue, 03 Jan 2006 12:00:00 +0100",
    },
]


def build_rss(items, title="Gators &amp; Friends", description="News &amp; Views") -> bytes:
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0"><channel>',
        f"<title>{title}</title>",
        "<link>http://example.com/</link>",
        f"<description>{description}</description>",
    ]
    for item in items:
        parts.append("<item>")
        parts.append(f"<title>{item['title']}</title>")
        parts.append(f"<link>{item['link']}</link>")
        if item.get("description") is not None:
            parts.append(f"<description>{item['description']}</description>")
        if item.get("pub_date") is not None:
            parts.append(f"<pubDate>{item['pub_date']}</pubDate>")
        parts.append("</item>")
    parts.append("</channel></rss>")
    return "\n".join(parts).encode("utf-8")


def fake_response(body: bytes, chunk_size: int = 64) -> MagicMock:
    """A stand-in for a streamed requests.Response."""
    resp = MagicMock()
    resp.raise_for_status.return_value = None
    resp.iter_content.return_value = [body[i:i + chunk_size] for i in range(0, len(body), chunk_size)]
    return resp


@pytest.fixture
def rss_body():
    """RSS document with three items, not in date order."""
    return build_rss(SAMPLE_ITEMS)


@pytest.fixture
def settings(tmp_path):
    """Settings pointing every file at a temporary directory."""
    return Settings(
        config_path=str(tmp_path / "gatorconfig.json"),
        database_url=f"sqlite:///{tmp_path / 'gator.db'}",
        log_file=str(tmp_path / "gator.log"),
        agg_lock_file=str(tmp_path / "agg.lock"),
        fetch_timeout_seconds=5,
    )


@pytest.fixture
def engine(settings):
    """Fresh SQLite database with the schema created."""
    engine = make_engine(settings.database_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return Store(engine)


@pytest.fixture
def state(store, settings):
    """Session state with nobody logged in."""
    return State(config=GatorConfig(), store=store, settings=settings)


@pytest.fixture
def alice(state):
    """State with user alice registered and logged in."""
    user = state.store.create_user("alice")
    state.config.current_user_name = "alice"
    return user


@pytest.fixture
def make_rss():
    return build_rss


@pytest.fixture
def make_response():
    return fake_response


@pytest.fixture
def count_posts(engine):
    """Number of stored posts, optionally for one feed."""

    def count(feed_id=None) -> int:
        with Session(engine) as session:
            q = session.query(Post)
            if feed_id is not None:
                q = q.filter_by(feed_id=feed_id)
            return q.count()

    return count


@pytest.fixture
def mark_fetched(engine):
    """Stamp a feed's last_fetched_at directly in the database."""

    def mark(feed_id, when: datetime) -> None:
        with Session(engine) as session:
            feed = session.get(Feed, feed_id)
            feed.last_fetched_at = when
            session.commit()

    return mark
