from __future__ import annotations

import html
import io
import logging
import threading

import feedparser
import requests

from gator.config.settings import get_settings
from gator.errors import FetchCancelled, FetchError, ParseError
from gator.models.schemas import RSSFeed, RSSItem

logger = logging.getLogger(__name__)

ACCEPT = "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8"


def parse_feed(content: bytes) -> RSSFeed:
    """
    Parse an RSS/Atom document that has already been downloaded.

    Channel title and description are HTML-unescaped here; item fields are
    passed through untouched (no sanitizing, no URI rewriting) and decoded at
    ingestion time. Only the RSS pubDate is taken as an item's date, so Atom
    entries, which carry RFC 3339 dates, fail ingestion with DateParseError.
    """
    parsed = feedparser.parse(
        io.BytesIO(content),
        sanitize_html=False,
        resolve_relative_uris=False,
    )

    if parsed.bozo and not isinstance(parsed.bozo_exception, feedparser.CharacterEncodingOverride):
        raise ParseError(f"feed is not well-formed: {parsed.bozo_exception}")
    if not parsed.version:
        raise ParseError("document is not an RSS or Atom feed")

    channel = parsed.feed
    items = [
        RSSItem(
            title=entry.get("title", ""),
            link=entry.get("link", ""),
            description=entry.get("description", ""),
            pub_date=entry.get("published", ""),
        )
        for entry in parsed.entries
    ]

    return RSSFeed(
        title=html.unescape(channel.get("title", "")),
        link=channel.get("link", ""),
        description=html.unescape(channel.get("description", "")),
        items=items,
    )


class Fetcher:
    """
    Single-shot HTTP GET + parse. No retries: a failed fetch is reported and
    the scheduler moves on.
    """

    def __init__(
        self,
        timeout: float | None = None,
        user_agent: str | None = None,
        chunk_size: int = 16 * 1024,
    ) -> None:
        s = get_settings()
        self.timeout = timeout if timeout is not None else s.fetch_timeout_seconds
        self.user_agent = user_agent or s.fetch_user_agent
        self.chunk_size = chunk_size

    def fetch(self, url: str, cancel: threading.Event | None = None) -> RSSFeed:
        self._check_cancel(url, cancel)

        headers = {"User-Agent": self.user_agent, "Accept": ACCEPT}
        try:
            r = requests.get(url, headers=headers, timeout=self.timeout, stream=True)
            try:
                r.raise_for_status()
                body = self._read_body(r, url, cancel)
            finally:
                r.close()
        except requests.RequestException as e:
            raise FetchError(url, e) from e

        logger.debug("Fetched %s (%d bytes)", url, len(body))
        return parse_feed(body)

    def _read_body(self, r: requests.Response, url: str, cancel: threading.Event | None) -> bytes:
        chunks: list[bytes] = []
        for chunk in r.iter_content(chunk_size=self.chunk_size):
            self._check_cancel(url, cancel)
            if chunk:
                chunks.append(chunk)
        return b"".join(chunks)

    @staticmethod
    def _check_cancel(url: str, cancel: threading.Event | None) -> None:
        if cancel is not None and cancel.is_set():
            raise FetchCancelled(f"fetch of {url} cancelled")
