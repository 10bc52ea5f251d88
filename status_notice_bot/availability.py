"""Liveness probes run before touching the feed or the Misskey API."""

import requests

from .logging_config import ExecutionLogger


def probe_host(
    session: requests.Session,
    url: str,
    label: str,
    logger: ExecutionLogger,
    timeout: int = 30,
) -> bool:
    """Send a HEAD request to ``url`` and report whether it answered 2xx.

    Unreachable hosts are an expected condition: they are logged and
    reported as ``False``, never raised.
    """
    try:
        response = session.head(url, timeout=timeout, allow_redirects=True)
    except requests.RequestException as e:
        logger.warning(f"Could not connect to {label}: {e}", url=url, error=str(e))
        return False

    if not response.ok:
        logger.warning(
            f"Could not connect to {label}: HTTP {response.status_code}",
            url=url,
            status_code=response.status_code,
        )
        return False

    logger.debug(f"{label} is reachable", url=url, status_code=response.status_code)
    return True
