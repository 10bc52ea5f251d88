"""Main Lambda handler for Status Notice Bot."""

import json
import os
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import boto3
import requests
from botocore.exceptions import ClientError

from .availability import probe_host
from .config import Config
from .dedup import ProcessedEntryStore
from .enrich import DetailPageScraper
from .filtering import select_entries
from .logging_config import create_execution_logger, setup_structured_logging
from .misskey import MisskeyPublisher, format_feed_message, format_message
from .models import DeliveryResult, FeedEntry
from .rss import USER_AGENT, FeedProcessor

setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))

LIVENESS_BODY = "The bot is alive."
TEST_RUN_PATH = "/test-run"
METRICS_NAMESPACE = "Status-Notice-Bot"
TOKEN_KEYS = ("token", "api_token", "misskey_token", "i")


@dataclass
class RunReport:
    """What one pipeline run did."""

    skipped: bool = False
    results: list[DeliveryResult] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Entry point for both the schedule and HTTP invocations.

    Args:
        event: Lambda event data
        context: Lambda context object

    Returns:
        Response dictionary
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("main", execution_id)

    config = Config()

    if is_http_event(event):
        return handle_http(event, config, execution_id)

    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        lambda_function_name=getattr(context, "function_name", "unknown"),
    )
    try:
        report = run(config, execution_id)
    except Exception as e:
        main_logger.error(f"Scheduled run failed: {e}", error=str(e))
        main_logger.log_execution_end(success=False, error=str(e))
        raise

    main_logger.info(
        "Scheduled run results",
        skipped=report.skipped,
        results=[result.to_dict() for result in report.results],
    )
    main_logger.log_execution_end(success=True, metrics=report.metrics)
    return {
        "statusCode": 200,
        "body": json.dumps(
            {
                "execution_id": execution_id,
                "skipped": report.skipped,
                "metrics": report.metrics,
            }
        ),
    }


def is_http_event(event: dict[str, Any]) -> bool:
    """Function URL and API Gateway events carry a path; schedules do not."""
    if not isinstance(event, dict):
        return False
    return any(key in event for key in ("rawPath", "path", "httpMethod"))


def handle_http(
    event: dict[str, Any], config: Config, execution_id: str
) -> dict[str, Any]:
    """Serve the liveness text, or run the pipeline on the manual-trigger path."""
    path = event.get("rawPath") or event.get("path") or "/"

    if path == TEST_RUN_PATH and config.allow_exec_via_http:
        http_logger = create_execution_logger("http", execution_id)
        http_logger.info("Manual run requested", path=path)
        try:
            report = run(config, execution_id)
        except Exception as e:
            http_logger.error(f"Manual run failed: {e}", error=str(e))
            return {
                "statusCode": 500,
                "headers": {"content-type": "application/json"},
                "body": json.dumps({"error": str(e)}),
            }
        return {
            "statusCode": 200,
            "headers": {"content-type": "application/json"},
            "body": json.dumps(
                [result.to_dict() for result in report.results],
                ensure_ascii=False,
                default=str,
            ),
        }

    return {
        "statusCode": 200,
        "headers": {"content-type": "text/plain"},
        "body": LIVENESS_BODY,
    }


def run(config: Config, execution_id: str, now_ms: int | None = None) -> RunReport:
    """
    Run the pipeline once: probe, load dedup list, filter the feed, persist
    the dedup list, then compose and deliver one note per selected entry.

    Args:
        config: Runtime configuration
        execution_id: Execution ID for logging context
        now_ms: Current time in epoch milliseconds, defaults to the clock

    Returns:
        RunReport; ``skipped`` is set when a probed host was unreachable
    """
    logger = create_execution_logger("pipeline", execution_id)
    config.validate()

    metrics = {
        "entries_found": 0,
        "entries_selected": 0,
        "notes_posted": 0,
        "notes_failed": 0,
    }

    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})

    if not probe_host(
        session, config.service_root, config.service_name, logger, config.http_timeout
    ):
        return RunReport(skipped=True, metrics=metrics)

    token = config.misskey_api_token
    if not token and not config.test_mode:
        token = get_misskey_token(
            config.misskey_secret_name, config.aws_region, execution_id
        )
    publisher = MisskeyPublisher(
        config.get_misskey_config(token), execution_id=execution_id, session=session
    )

    if not probe_host(
        session, config.status_page_host, "status page", logger, config.http_timeout
    ):
        return RunReport(skipped=True, metrics=metrics)

    store = ProcessedEntryStore(
        table_name=config.dynamodb_table,
        kv_key=config.processed_entries_kv_key,
        aws_region=config.aws_region,
        execution_id=execution_id,
    )
    processed_keys = store.load()

    feed_processor = FeedProcessor(
        timeout=config.http_timeout, execution_id=execution_id, session=session
    )
    entries = feed_processor.parse_feed(config.feed_url)
    metrics["entries_found"] = len(entries)

    if now_ms is None:
        now_ms = int(time.time() * 1000)

    selection = select_entries(
        entries,
        processed_keys,
        status_page_root=config.status_page_root,
        service_name=config.service_name,
        platform_name=config.platform_name,
        now_ms=now_ms,
        test_mode=config.test_mode,
        logger=logger,
    )
    metrics["entries_selected"] = len(selection.to_notify)

    # Entries are marked processed before delivery is attempted
    store.save(selection.processed_keys)

    if config.enrich_entries:
        scraper = DetailPageScraper(
            session=session, timeout=config.http_timeout, execution_id=execution_id
        )

        def compose(entry: FeedEntry) -> str:
            detail = scraper.fetch_detail(entry.link)
            return format_message(
                detail.category.label, entry.title, detail.description, entry.link
            )

    else:
        compose = format_feed_message

    results = publisher.publish_all(
        selection.to_notify, compose, dry_run=config.test_mode
    )

    if not config.test_mode:
        metrics["notes_posted"] = sum(1 for result in results if result.success)
    metrics["notes_failed"] = sum(1 for result in results if not result.success)

    logger.log_metrics(metrics)
    send_cloudwatch_metrics(metrics, config.aws_region, execution_id)

    return RunReport(results=results, metrics=metrics)


def get_misskey_token(secret_name: str, aws_region: str, execution_id: str) -> str:
    """
    Retrieve the Misskey API token from AWS Secrets Manager.

    Plain string secrets are used as-is; JSON object secrets are searched for
    one of ``TOKEN_KEYS``, then for the first non-empty string value. The
    token itself is never logged.

    Raises:
        RuntimeError: If the secret cannot be retrieved or holds no token
    """
    secrets_logger = create_execution_logger("secrets_manager", execution_id)

    if not secret_name or not secret_name.strip():
        raise ValueError("Secret name cannot be empty")

    try:
        secrets_logger.info(
            f"Retrieving Misskey token from Secrets Manager: {secret_name}"
        )
        secrets_client = boto3.client("secretsmanager", region_name=aws_region)
        response = secrets_client.get_secret_value(SecretId=secret_name)

        secret_value = response.get("SecretString")
        if not secret_value or not secret_value.strip():
            raise ValueError(f"Secret {secret_name} contains empty value")

        try:
            secret_data = json.loads(secret_value)
        except json.JSONDecodeError:
            secrets_logger.info("Retrieved token from plain text secret")
            return secret_value.strip()

        if not isinstance(secret_data, dict):
            raise ValueError(f"JSON secret {secret_name} must be an object")

        for key in TOKEN_KEYS:
            value = secret_data.get(key)
            if isinstance(value, str) and value.strip():
                secrets_logger.info("Retrieved token from JSON secret")
                return value.strip()

        for value in secret_data.values():
            if isinstance(value, str) and value.strip():
                secrets_logger.info("Using first available value from JSON secret")
                return value.strip()

        raise ValueError(f"No token found in JSON secret {secret_name}")

    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        secrets_logger.error(
            f"AWS Secrets Manager error retrieving {secret_name}: {error_code}"
        )
        raise RuntimeError(f"Failed to retrieve secret {secret_name}") from e
    except ValueError as e:
        secrets_logger.error(f"Invalid secret format for {secret_name}: {e}")
        raise RuntimeError(f"Invalid secret format for {secret_name}") from e


def send_cloudwatch_metrics(
    metrics: dict[str, Any], aws_region: str, execution_id: str
) -> None:
    """
    Send run metrics to CloudWatch. Failures are logged and never raised.

    Args:
        metrics: Dictionary containing run metrics
        aws_region: AWS region for CloudWatch client
        execution_id: Execution ID for logging context
    """
    metrics_logger = create_execution_logger("cloudwatch_metrics", execution_id)

    metric_names = {
        "entries_found": "EntriesFound",
        "entries_selected": "EntriesSelected",
        "notes_posted": "NotesPosted",
        "notes_failed": "NotesFailed",
    }
    metric_data = [
        {
            "MetricName": metric_name,
            "Value": metrics.get(key, 0),
            "Unit": "Count",
        }
        for key, metric_name in metric_names.items()
    ]

    try:
        cloudwatch = boto3.client("cloudwatch", region_name=aws_region)
        cloudwatch.put_metric_data(Namespace=METRICS_NAMESPACE, MetricData=metric_data)
        metrics_logger.info(
            "Sent metrics to CloudWatch",
            metrics_sent=len(metric_data),
            namespace=METRICS_NAMESPACE,
        )
    except Exception as e:
        metrics_logger.error(f"Failed to send CloudWatch metrics: {e}", error=str(e))
