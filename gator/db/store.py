from __future__ import annotations

import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gator.db.models import Feed, FeedFollow, Post, User, utcnow
from gator.errors import (
    DuplicateFollow, DuplicatePost, DuplicateUser, FeedNotFound, StoreError
)

UNIQUE_VIOLATION = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return code == UNIQUE_VIOLATION
    return "UNIQUE constraint failed" in str(orig)


class Store:
    """
    Typed CRUD over the gator schema.

    Every method runs in its own session/transaction and returns detached
    objects, so callers never hold a session open across network I/O.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with Session(self.engine, expire_on_commit=False) as session:
                yield session
        except SQLAlchemyError as e:
            raise StoreError(f"database error: {e}") from e

    # users

    def create_user(self, name: str) -> User:
        with self._session() as session:
            user = User(name=name)
            session.add(user)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if _is_unique_violation(e):
                    raise DuplicateUser(name) from e
                raise StoreError(f"could not create user {name}: {e.orig}") from e
            return user

    def get_user(self, name: str) -> User | None:
        with self._session() as session:
            return session.query(User).filter_by(name=name).one_or_none()

    def list_users(self) -> list[User]:
        with self._session() as session:
            return session.query(User).order_by(User.name).all()

    def delete_all_users(self) -> int:
        with self._session() as session:
            deleted = session.query(User).delete()
            session.commit()
            return deleted

    # feeds

    def create_feed(self, name: str, url: str, user_id: uuid.UUID) -> Feed:
        with self._session() as session:
            feed = Feed(name=name, url=url, user_id=user_id)
            session.add(feed)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if _is_unique_violation(e):
                    raise StoreError(f"a feed with url {url} already exists") from e
                raise StoreError(f"could not create feed {url}: {e.orig}") from e
            return feed

    def get_feed_by_url(self, url: str) -> Feed | None:
        with self._session() as session:
            return session.query(Feed).filter_by(url=url).one_or_none()

    def list_feeds(self) -> list[tuple[Feed, str]]:
        with self._session() as session:
            rows = (
                session.query(Feed, User.name)
                .join(User, User.id == Feed.user_id)
                .order_by(Feed.created_at, Feed.name)
                .all()
            )
            return [(feed, owner) for feed, owner in rows]

    def claim_next_feed(self, now: datetime | None = None) -> Feed | None:
        """
        Pick the least-recently fetched feed (never-fetched first) and stamp
        its last_fetched_at in the same transaction.
        """
        now = now or utcnow()
        with self._session() as session:
            feed = (
                session.query(Feed)
                .order_by(
                    Feed.last_fetched_at.asc().nullsfirst(),
                    Feed.created_at.asc(),
                    Feed.id.asc(),
                )
                .limit(1)
                .with_for_update(skip_locked=True)
                .one_or_none()
            )
            if feed is None:
                return None
            feed.last_fetched_at = now
            feed.updated_at = now
            session.commit()
            return feed

    # follows

    def create_feed_follow(self, user: User, feed: Feed) -> FeedFollow:
        with self._session() as session:
            follow = FeedFollow(user_id=user.id, feed_id=feed.id)
            session.add(follow)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if _is_unique_violation(e):
                    raise DuplicateFollow(user.name, feed.url) from e
                raise StoreError(f"could not follow {feed.url}: {e.orig}") from e
            return follow

    def feed_follows_for_user(self, user_id: uuid.UUID) -> list[Feed]:
        with self._session() as session:
            return (
                session.query(Feed)
                .join(FeedFollow, FeedFollow.feed_id == Feed.id)
                .filter(FeedFollow.user_id == user_id)
                .order_by(Feed.name)
                .all()
            )

    def delete_feed_follow(self, user_id: uuid.UUID, url: str) -> bool:
        with self._session() as session:
            feed = session.query(Feed).filter_by(url=url).one_or_none()
            if feed is None:
                raise FeedNotFound(url)
            deleted = (
                session.query(FeedFollow)
                .filter_by(user_id=user_id, feed_id=feed.id)
                .delete()
            )
            session.commit()
            return deleted > 0

    # posts

    def create_post(
        self,
        feed_id: uuid.UUID,
        title: str,
        url: str,
        description: str | None,
        published_at: datetime | None,
    ) -> Post:
        with self._session() as session:
            post = Post(
                feed_id=feed_id,
                title=title,
                url=url,
                description=description,
                published_at=published_at,
            )
            session.add(post)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if _is_unique_violation(e):
                    raise DuplicatePost(url) from e
                raise StoreError(f"could not store post {url}: {e.orig}") from e
            return post

    def posts_for_user(self, user_id: uuid.UUID, limit: int) -> list[Post]:
        with self._session() as session:
            return (
                session.query(Post)
                .join(FeedFollow, FeedFollow.feed_id == Post.feed_id)
                .filter(FeedFollow.user_id == user_id)
                .order_by(Post.published_at.desc().nullslast(), Post.created_at.desc())
                .limit(limit)
                .all()
            )

