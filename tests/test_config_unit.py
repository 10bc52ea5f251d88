"""Unit tests for configuration management."""

import os
from unittest.mock import patch

import pytest

from status_notice_bot.config import Config

BASE_ENV = {
    "SERVICE_HOST": "https://misskey.example/",
    "STATUS_PAGE_HOST": "https://status.example.com",
    "SERVICE_NAME": "Acme",
    "PLATFORM_NAME": "Cloud",
}


class TestConfigUnit:
    """Unit tests for Config class."""

    def test_derived_urls(self):
        with patch.dict(os.environ, BASE_ENV, clear=True):
            config = Config()

        assert config.service_root == "https://misskey.example/"
        assert config.status_page_root == "https://status.example.com/"
        assert config.feed_url == "https://status.example.com/feed"

    def test_defaults(self):
        with patch.dict(os.environ, BASE_ENV, clear=True):
            config = Config()

        assert config.processed_entries_kv_key == "processed_entries"
        assert config.dynamodb_table == "status-notice-bot-kv"
        assert config.aws_region == "us-east-1"
        assert config.test_mode is False
        assert config.allow_exec_via_http is False
        assert config.enrich_entries is True
        assert config.http_timeout == 30

    @pytest.mark.parametrize(
        "raw_value, expected",
        [("true", True), ("1", True), ("YES", True), ("false", False), ("0", False), ("", False)],
    )
    def test_boolean_flags(self, raw_value, expected):
        env = {**BASE_ENV, "TEST_MODE": raw_value, "ALLOW_EXEC_VIA_HTTP": raw_value}
        with patch.dict(os.environ, env, clear=True):
            config = Config()

        assert config.test_mode is expected
        assert config.allow_exec_via_http is expected

    def test_invalid_timeout_falls_back(self):
        with patch.dict(os.environ, {**BASE_ENV, "HTTP_TIMEOUT": "soon"}, clear=True):
            assert Config().http_timeout == 30

    def test_validate_reports_missing_settings(self):
        with patch.dict(os.environ, {"SERVICE_HOST": "https://misskey.example"}, clear=True):
            config = Config()

        with pytest.raises(ValueError) as exc_info:
            config.validate()

        message = str(exc_info.value)
        assert "STATUS_PAGE_HOST" in message
        assert "SERVICE_NAME" in message
        assert "PLATFORM_NAME" in message
        assert "SERVICE_HOST" not in message.replace("STATUS_PAGE_HOST", "")

    def test_misskey_config(self):
        with patch.dict(os.environ, {**BASE_ENV, "MISSKEY_API_TOKEN": "tok"}, clear=True):
            config = Config()

        misskey_config = config.get_misskey_config()
        assert misskey_config.origin == "https://misskey.example"
        assert misskey_config.token == "tok"
        assert misskey_config.visibility == "home"
        assert config.get_misskey_config("from-secret").token == "from-secret"
