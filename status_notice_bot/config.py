"""Configuration management for Status Notice Bot."""

import os
from dataclasses import dataclass

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class MisskeyConfig:
    """Configuration for the Misskey API."""

    origin: str
    token: str
    visibility: str = "home"
    timeout: int = 30


def _get_bool(var_name: str, default: bool = False) -> bool:
    """Read a boolean environment variable."""
    raw_value = os.getenv(var_name)
    if raw_value is None or not raw_value.strip():
        return default
    return raw_value.strip().lower() in TRUE_VALUES


def _get_int(var_name: str, default: int) -> int:
    raw_value = os.getenv(var_name)
    if raw_value is None:
        return default
    try:
        value = int(raw_value)
    except ValueError:
        return default
    return value if value > 0 else default


class Config:
    """Main configuration manager."""

    REQUIRED_SETTINGS = (
        "service_host",
        "status_page_host",
        "service_name",
        "platform_name",
    )

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.service_host = os.getenv("SERVICE_HOST", "").strip().rstrip("/")
        self.status_page_host = os.getenv("STATUS_PAGE_HOST", "").strip().rstrip("/")
        self.service_name = os.getenv("SERVICE_NAME", "")
        self.platform_name = os.getenv("PLATFORM_NAME", "")
        self.misskey_api_token = os.getenv("MISSKEY_API_TOKEN", "").strip()
        self.misskey_secret_name = os.getenv(
            "MISSKEY_SECRET_NAME", "status-notice-bot-token"
        )
        self.processed_entries_kv_key = os.getenv(
            "PROCESSED_ENTRIES_KV_KEY", "processed_entries"
        )
        self.dynamodb_table = os.getenv("DYNAMODB_TABLE", "status-notice-bot-kv")
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.test_mode = _get_bool("TEST_MODE")
        self.allow_exec_via_http = _get_bool("ALLOW_EXEC_VIA_HTTP")
        self.enrich_entries = _get_bool("ENRICH_ENTRIES", default=True)
        self.http_timeout = _get_int("HTTP_TIMEOUT", 30)

    def validate(self) -> None:
        """Raise ValueError when a required setting is missing."""
        missing = [
            name.upper() for name in self.REQUIRED_SETTINGS if not getattr(self, name)
        ]
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

    @property
    def service_root(self) -> str:
        return self.service_host + "/"

    @property
    def status_page_root(self) -> str:
        """The status page document root; feed items linking here are not reports."""
        return self.status_page_host + "/"

    @property
    def feed_url(self) -> str:
        return self.status_page_host + "/feed"

    def get_misskey_config(self, token: str | None = None) -> MisskeyConfig:
        """Get Misskey configuration.

        The token is taken from ``MISSKEY_API_TOKEN`` unless one retrieved
        from Secrets Manager is passed in.
        """
        return MisskeyConfig(
            origin=self.service_host,
            token=token if token is not None else self.misskey_api_token,
            timeout=self.http_timeout,
        )
