from __future__ import annotations

import html
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from gator.db.store import Store
from gator.errors import DateParseError, DuplicatePost
from gator.models.schemas import RSSFeed, RSSItem

logger = logging.getLogger(__name__)

# RSS 2.0 pubDate: RFC 1123 with a numeric zone, e.g. "Mon, 02 Jan 2006 15:04:05 -0700"
PUB_DATE_FORMAT = "%a, %d %b %Y %H:%M:%S %z"


def parse_pub_date(value: str) -> datetime:
    """
    Returns naive UTC. A missing or empty pubDate is as malformed as a bad one.
    """
    value = (value or "").strip()
    try:
        parsed = datetime.strptime(value, PUB_DATE_FORMAT)
    except ValueError as e:
        raise DateParseError(value) from e
    return parsed.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass
class IngestResult:
    inserted: int = 0
    skipped: int = 0
    cancelled: bool = False


class IngestionPipeline:
    def __init__(self, store: Store) -> None:
        self.store = store

    def ingest(
        self,
        feed_id: uuid.UUID,
        feed: RSSFeed,
        cancel: threading.Event | None = None,
    ) -> IngestResult:
        """
        Store every item of `feed` as a Post, in document order.

        Items whose URL is already stored are skipped. A malformed pubDate
        aborts the rest of the batch with DateParseError; posts inserted
        before it stay.
        """
        result = IngestResult()

        for item in feed.items:
            # only stop between inserts, never half-way through one
            if cancel is not None and cancel.is_set():
                logger.info("Ingestion for feed %s cancelled after %d posts", feed_id, result.inserted)
                result.cancelled = True
                break

            published_at = parse_pub_date(item.pub_date)
            try:
                self._store_item(feed_id, item, published_at)
                result.inserted += 1
            except DuplicatePost:
                result.skipped += 1
                continue

        logger.info(
            "Feed %s: %d new posts, %d already stored", feed_id, result.inserted, result.skipped
        )
        return result

    def _store_item(self, feed_id: uuid.UUID, item: RSSItem, published_at: datetime) -> None:
        self.store.create_post(
            feed_id=feed_id,
            title=html.unescape(item.title),
            url=item.link,
            description=html.unescape(item.description),
            published_at=published_at,
        )
