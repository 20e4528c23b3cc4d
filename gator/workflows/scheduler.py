from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from gator.db.models import Feed, utcnow
from gator.db.store import Store
from gator.errors import DateParseError, FetchCancelled, FetchError, GatorError, ParseError
from gator.services.fetcher import Fetcher
from gator.services.ingest import IngestionPipeline, IngestResult

logger = logging.getLogger(__name__)

# a bad feed costs one pass, not the loop
PASS_ERRORS = (FetchError, ParseError, DateParseError)


class SchedulerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class PassResult:
    feed: Feed | None = None
    ingested: IngestResult | None = None
    error: GatorError | None = None
    cancelled: bool = False


class Scheduler:
    """
    Fixed-interval aggregation loop, one feed per pass.

    Each pass claims the least-recently fetched feed and stamps its
    last_fetched_at *before* fetching. A slow or failing feed therefore can
    never be picked again on the next tick; the price is that a failed fetch
    waits for a full rotation through the other feeds before it is retried.
    """

    def __init__(
        self,
        store: Store,
        fetcher: Fetcher,
        pipeline: IngestionPipeline,
        interval: timedelta,
        clock: Callable[[], datetime] = utcnow,
        on_pass: Callable[[PassResult], None] | None = None,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.pipeline = pipeline
        self.interval = interval
        self.clock = clock
        self.on_pass = on_pass
        self.state = SchedulerState.IDLE

    def run_pass(self, cancel: threading.Event | None = None) -> PassResult:
        self.state = SchedulerState.RUNNING
        try:
            return self._run_pass(cancel)
        finally:
            self.state = SchedulerState.IDLE

    def _run_pass(self, cancel: threading.Event | None) -> PassResult:
        feed = self.store.claim_next_feed(self.clock())
        if feed is None:
            logger.info("No feeds to fetch")
            return PassResult()

        logger.info("Fetching %s (%s)", feed.name, feed.url)
        result = PassResult(feed=feed)
        try:
            parsed = self.fetcher.fetch(feed.url, cancel)
            result.ingested = self.pipeline.ingest(feed.id, parsed, cancel)
            result.cancelled = result.ingested.cancelled
        except FetchCancelled:
            logger.info("Fetch of %s cancelled", feed.url)
            result.cancelled = True
        except PASS_ERRORS as e:
            logger.error("Pass for %s failed: %s", feed.url, e)
            result.error = e
        return result

    def run(self, cancel: threading.Event, max_passes: int | None = None) -> int:
        """
        Run passes until `cancel` is set (or `max_passes` is reached).
        The first pass starts immediately. Returns the number of passes run.
        """
        passes = 0
        logger.info("Collecting feeds every %s", self.interval)
        while not cancel.is_set():
            result = self.run_pass(cancel)
            passes += 1
            if self.on_pass is not None:
                self.on_pass(result)
            if max_passes is not None and passes >= max_passes:
                break
            if cancel.wait(self.interval.total_seconds()):
                break
        logger.info("Aggregator stopped after %d passes", passes)
        return passes
