"""Deduplication module for Status Notice Bot.

Processed entries are tracked as one comma-joined string stored under a single
well-known key. The key is absent, never an empty string, when nothing has
been processed.
"""

from urllib.parse import urlparse

import boto3
from botocore.exceptions import ClientError

from .logging_config import create_execution_logger
from .models import FeedEntry

SEPARATOR = ","


def entry_unique_key(entry: FeedEntry) -> str:
    """Return ``{last path segment of link}-{published}`` for an entry.

    A link without path segments gives an empty id part, e.g. ``-1700000000000``.
    """
    path = urlparse(entry.link).path
    entry_id = path.split("/")[-1]
    return f"{entry_id}-{entry.published}"


def parse_processed_entries(raw_value: str | None) -> list[str]:
    """Split a stored value back into its keys.

    ``None`` and the empty string both read as no keys, since
    ``"".split(",")`` would yield a single bogus empty key.
    """
    if not raw_value:
        return []
    return raw_value.split(SEPARATOR)


def serialize_processed_entries(keys: list[str]) -> str | None:
    """Join keys for storage; ``None`` means the key must be deleted."""
    if not keys:
        return None
    return SEPARATOR.join(keys)


class ProcessedEntryStore:
    """Single-key string store for processed entry keys, backed by DynamoDB."""

    KEY_ATTRIBUTE = "kv_key"
    VALUE_ATTRIBUTE = "value"

    def __init__(
        self,
        table_name: str,
        kv_key: str,
        aws_region: str = "us-east-1",
        execution_id: str | None = None,
    ):
        """Initialize the store.

        Args:
            table_name: DynamoDB table used as the key-value namespace
            kv_key: The well-known key holding the processed entry list
            aws_region: AWS region for the DynamoDB client
            execution_id: Execution ID for logging context
        """
        self.table_name = table_name
        self.kv_key = kv_key
        self.logger = create_execution_logger("deduplicator", execution_id)
        self.dynamodb = boto3.resource("dynamodb", region_name=aws_region)
        self.table = self.dynamodb.Table(table_name)

        self.logger.info(
            "ProcessedEntryStore initialized",
            table_name=table_name,
            kv_key=kv_key,
            aws_region=aws_region,
        )

    def get_raw(self) -> str | None:
        """Return the stored string, or None when the key is absent."""
        try:
            response = self.table.get_item(Key={self.KEY_ATTRIBUTE: self.kv_key})
        except ClientError as e:
            self.logger.error(
                f"Error reading processed entries: {e}",
                kv_key=self.kv_key,
                error=str(e),
            )
            raise

        item = response.get("Item")
        if item is None:
            return None
        return item.get(self.VALUE_ATTRIBUTE)

    def load(self) -> list[str]:
        """Read the processed entry keys; an absent key is an empty list."""
        keys = parse_processed_entries(self.get_raw())
        self.logger.info("Loaded processed entries", count=len(keys))
        return keys

    def save(self, keys: list[str]) -> None:
        """Rewrite the whole list, deleting the key when it is empty."""
        value = serialize_processed_entries(keys)
        try:
            if value is None:
                self.table.delete_item(Key={self.KEY_ATTRIBUTE: self.kv_key})
                self.logger.info("Deleted empty processed entry list", kv_key=self.kv_key)
            else:
                self.table.put_item(
                    Item={self.KEY_ATTRIBUTE: self.kv_key, self.VALUE_ATTRIBUTE: value}
                )
                self.logger.info(
                    "Stored processed entries", kv_key=self.kv_key, count=len(keys)
                )
        except ClientError as e:
            self.logger.error(
                f"Error storing processed entries: {e}",
                kv_key=self.kv_key,
                error=str(e),
            )
            raise
