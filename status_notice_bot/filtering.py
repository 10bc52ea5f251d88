"""Filter pipeline deciding which feed entries get a note."""

from dataclasses import dataclass, field

from .dedup import entry_unique_key
from .logging_config import ExecutionLogger, create_execution_logger
from .models import FeedEntry

RECENCY_WINDOW_MS = 60 * 60 * 1000


@dataclass
class FilterResult:
    """Entries to notify about and the processed key list to persist."""

    to_notify: list[FeedEntry] = field(default_factory=list)
    processed_keys: list[str] = field(default_factory=list)


def is_relevant(title: str, service_name: str, platform_name: str) -> bool:
    """Case-sensitive substring match on either configured name."""
    return service_name in title or platform_name in title


def select_entries(
    entries: list[FeedEntry],
    processed_keys: list[str],
    *,
    status_page_root: str,
    service_name: str,
    platform_name: str,
    now_ms: int,
    test_mode: bool = False,
    logger: ExecutionLogger | None = None,
) -> FilterResult:
    """Apply the exclusion rules to ``entries`` in feed order.

    Every relevant entry not seen before is appended to the processed list,
    including entries that are then dropped as too old. In test mode the
    processed list is left alone and neither dedup nor recency is applied.
    """
    logger = logger or create_execution_logger("filter")
    new_keys = list(processed_keys)
    seen = set(new_keys)
    oldest_allowed = now_ms - RECENCY_WINDOW_MS
    to_notify = []

    for entry in entries:
        # The document root is the feed's own link, not a report
        if entry.link == status_page_root:
            logger.log_entry_decision(entry.title, "skipped_document_root")
            continue

        if not is_relevant(entry.title, service_name, platform_name):
            logger.log_entry_decision(entry.title, "skipped_irrelevant")
            continue

        key = entry_unique_key(entry)

        if not test_mode:
            if key in seen:
                logger.log_entry_decision(entry.title, "skipped_duplicate", entry_key=key)
                continue

            new_keys.append(key)
            seen.add(key)

            if entry.published < oldest_allowed:
                logger.log_entry_decision(entry.title, "skipped_too_old", entry_key=key)
                continue

        logger.log_entry_decision(entry.title, "selected", entry_key=key)
        to_notify.append(entry)

    logger.info(
        f"Selected {len(to_notify)} of {len(entries)} entries",
        selected=len(to_notify),
        total=len(entries),
        processed_count=len(new_keys),
    )
    return FilterResult(to_notify=to_notify, processed_keys=new_keys)
