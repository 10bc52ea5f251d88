"""Scrapes an entry's status page for its classification and description."""

import requests
from bs4 import BeautifulSoup

from .logging_config import create_execution_logger
from .models import EntryCategory, EntryDetail

# The parser mis-handles this declaration, so it is removed before parsing
DOCTYPE_DECLARATION = "<!DOCTYPE html>"

# Checked in this order; the first class present wins
SEVERITY_CLASSES = (
    "text-statuspage-blue",
    "text-statuspage-yellow",
    "text-statuspage-red",
)
DESCRIPTION_CLASS = "prose-sm"
FALLBACK_DESCRIPTION = "詳細はリンク先をご確認ください。"

SEVERITY_LABELS = {
    "Downtime": EntryCategory.INCIDENT,
    "Degraded": EntryCategory.INCIDENT,
    "Maintenance": EntryCategory.MAINTENANCE,
}


def classify(marker_text: str | None) -> EntryCategory:
    """Map the severity marker text to a category; unknown text is a notice."""
    if not marker_text:
        return EntryCategory.NOTICE
    return SEVERITY_LABELS.get(marker_text.strip(), EntryCategory.NOTICE)


def parse_detail(html: str) -> EntryDetail:
    """Extract the category and description from a detail page."""
    soup = BeautifulSoup(html.replace(DOCTYPE_DECLARATION, "", 1), "html.parser")

    marker = None
    for class_name in SEVERITY_CLASSES:
        marker = soup.find(class_=class_name)
        if marker is not None:
            break

    prose = soup.find(class_=DESCRIPTION_CLASS)
    description = prose.get_text().strip() if prose is not None else ""

    return EntryDetail(
        category=classify(marker.get_text() if marker is not None else None),
        description=description or FALLBACK_DESCRIPTION,
    )


class DetailPageScraper:
    """Downloads entry pages and parses them into EntryDetail."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: int = 30,
        execution_id: str | None = None,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = create_execution_logger("detail_scraper", execution_id)

    def fetch_detail(self, link: str) -> EntryDetail:
        """Fetch and parse one entry page.

        Raises:
            requests.RequestException: If the page cannot be downloaded
        """
        response = self.session.get(link, timeout=self.timeout)
        response.raise_for_status()

        detail = parse_detail(response.text)
        self.logger.info(
            "Parsed entry page",
            entry_link=link,
            category=detail.category.name,
        )
        return detail
