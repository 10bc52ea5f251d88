"""Status page feed processing for Status Notice Bot."""

import calendar
from datetime import UTC

import feedparser
import requests
from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from .logging_config import create_execution_logger
from .models import FeedEntry

USER_AGENT = "Status-Notice-Bot/1.0"


class FeedParseError(ValueError):
    """Raised when the downloaded document is not a readable feed."""


class FeedProcessor:
    """Fetches the status page feed and normalizes its entries."""

    def __init__(
        self,
        timeout: int = 30,
        execution_id: str | None = None,
        session: requests.Session | None = None,
    ):
        """Initialize FeedProcessor.

        Args:
            timeout: HTTP request timeout in seconds
            execution_id: Execution ID for logging context
            session: Optional shared HTTP session
        """
        self.timeout = timeout
        self.logger = create_execution_logger("feed_processor", execution_id)
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": USER_AGENT})
        self.session = session

    def parse_feed(self, feed_url: str) -> list[FeedEntry]:
        """Download and parse the feed.

        Args:
            feed_url: URL of the RSS feed

        Returns:
            Entries in feed order

        Raises:
            requests.RequestException: If the feed download fails
            FeedParseError: If the body is not a feed, or a malformed one
                with no entries left to read
        """
        self.logger.info("Downloading feed content", url=feed_url)
        try:
            response = self.session.get(feed_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed {feed_url}: {e}", url=feed_url, error=str(e)
            )
            raise

        feed = feedparser.parse(response.content)

        # No version means no RSS/Atom root element was recognised
        if not feed.get("version") or (feed.get("bozo") and not feed.entries):
            reason = getattr(feed, "bozo_exception", None) or "not an RSS or Atom feed"
            self.logger.error(
                f"Could not parse feed {feed_url}: {reason}",
                url=feed_url,
                error=str(reason),
            )
            raise FeedParseError(f"Could not parse feed {feed_url}: {reason}")

        if feed.bozo and hasattr(feed, "bozo_exception"):
            self.logger.warning(
                f"Feed parsing warning for {feed_url}: {feed.bozo_exception}",
                url=feed_url,
                bozo_exception=str(feed.bozo_exception),
            )

        entries = [self.normalize_entry(raw_entry) for raw_entry in feed.entries]

        self.logger.info(
            f"Processed feed: {len(entries)} entries found",
            url=feed_url,
            entries_count=len(entries),
        )
        return entries

    def normalize_entry(self, raw_entry) -> FeedEntry:
        """Normalize a feedparser entry into a FeedEntry."""
        description = getattr(raw_entry, "summary", None) or getattr(
            raw_entry, "description", None
        )

        tags = getattr(raw_entry, "tags", None) or []
        categories = [tag.get("term") for tag in tags if tag.get("term")]

        media = {}
        media_content = getattr(raw_entry, "media_content", None)
        if media_content:
            media["content"] = list(media_content)
        media_thumbnail = getattr(raw_entry, "media_thumbnail", None)
        if media_thumbnail:
            media["thumbnail"] = list(media_thumbnail)

        return FeedEntry(
            title=getattr(raw_entry, "title", None) or "",
            description=self.clean_html_content(description),
            link=getattr(raw_entry, "link", None) or "",
            published=self.published_millis(raw_entry),
            author=getattr(raw_entry, "author", None),
            categories=categories,
            enclosures=list(getattr(raw_entry, "enclosures", None) or []),
            media=media,
        )

    def published_millis(self, raw_entry) -> int:
        """Return the entry's publication time in epoch milliseconds.

        Undated entries get 0 so that their key stays stable across runs.
        """
        for attribute in ("published", "updated"):
            value = getattr(raw_entry, attribute, None)
            if not value:
                continue
            try:
                published = date_parser.parse(value)
            except (ValueError, TypeError, OverflowError):
                continue
            if published.tzinfo is None:
                published = published.replace(tzinfo=UTC)
            return int(published.timestamp() * 1000)

        for attribute in ("published_parsed", "updated_parsed"):
            value = getattr(raw_entry, attribute, None)
            if value:
                return calendar.timegm(value) * 1000

        return 0

    def clean_html_content(self, content: str | None) -> str:
        """Remove HTML tags from content and normalize whitespace."""
        if not content:
            return ""

        if "<" in content and ">" in content:
            soup = BeautifulSoup(content, "html.parser")
            for script in soup(["script", "style"]):
                script.decompose()
            content = soup.get_text(separator=" ")

        return " ".join(content.split())
