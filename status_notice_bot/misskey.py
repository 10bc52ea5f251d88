"""Misskey publisher for Status Notice Bot."""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

import requests

from .config import MisskeyConfig
from .logging_config import create_execution_logger
from .models import DeliveryResult, FeedEntry

FEED_MESSAGE_HEADER = "メンテナンス・障害情報"
COMPLETED_SENTINEL = "This scheduled maintenance has been completed."
COMPLETED_DESCRIPTION = "メンテナンスは完了しました。"


class MisskeyAPIError(RuntimeError):
    """Raised when the Misskey API answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Misskey API returned {status_code}: {body}")
        self.status_code = status_code
        self.body = body


def format_message(category_label: str, title: str, description: str, link: str) -> str:
    """Compose the note text: header, title, description and link, one per line."""
    return f"【{category_label}】\n{title}\n{description}\n{link}"


def format_feed_message(entry: FeedEntry) -> str:
    """Compose a note from the feed item alone, without scraping its page."""
    description = entry.description
    if description == COMPLETED_SENTINEL:
        description = COMPLETED_DESCRIPTION
    return format_message(FEED_MESSAGE_HEADER, entry.title, description, entry.link)


class MisskeyPublisher:
    """Posts notes to a Misskey instance."""

    def __init__(
        self,
        config: MisskeyConfig,
        execution_id: str | None = None,
        session: requests.Session | None = None,
    ):
        """Initialize the publisher with configuration."""
        self.config = config
        self.session = session or requests.Session()
        self.logger = create_execution_logger("publisher", execution_id)
        self.endpoint = f"{config.origin}/api/notes/create"

        self.logger.info(
            "MisskeyPublisher initialized",
            origin=config.origin,
            visibility=config.visibility,
        )

    def create_note(self, text: str) -> dict:
        """Create one note and return the API response.

        Raises:
            MisskeyAPIError: If the API rejects the request
            requests.RequestException: If the request cannot be sent
        """
        payload = {
            "i": self.config.token,
            "text": text,
            "visibility": self.config.visibility,
        }
        response = self.session.post(
            self.endpoint, json=payload, timeout=self.config.timeout
        )
        if not response.ok:
            raise MisskeyAPIError(response.status_code, response.text)

        return response.json() if response.content else {}

    def publish_all(
        self,
        entries: list[FeedEntry],
        compose: Callable[[FeedEntry], str],
        dry_run: bool = False,
    ) -> list[DeliveryResult]:
        """Compose and post one note per entry concurrently.

        Each entry's outcome is collected on its own, so a failure never hides
        the results of the others. Results keep the order of ``entries``.
        With ``dry_run`` the messages are composed but nothing is posted.
        """
        if not entries:
            return []

        def deliver(entry: FeedEntry) -> DeliveryResult:
            message = ""
            try:
                message = compose(entry)
                if dry_run:
                    return DeliveryResult(link=entry.link, message=message, success=True)
                response = self.create_note(message)
            except Exception as e:
                self.logger.error(
                    f"Failed to deliver note: {e}",
                    entry_title=entry.title,
                    entry_link=entry.link,
                    error=str(e),
                )
                return DeliveryResult(
                    link=entry.link, message=message, success=False, error=str(e)
                )

            self.logger.info(
                "Note created", entry_title=entry.title, entry_link=entry.link
            )
            return DeliveryResult(
                link=entry.link, message=message, success=True, response=response
            )

        with ThreadPoolExecutor(max_workers=len(entries)) as executor:
            futures = [executor.submit(deliver, entry) for entry in entries]
            return [future.result() for future in futures]
