"""
Shared httpx plumbing for payment provider clients.

Every provider call goes through an httpx.AsyncClient with a fixed timeout.
Tests inject an httpx.MockTransport through the `transport` argument, so no
real network access is needed.
"""

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


def build_client(
    base_url: str,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs: Any,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=timeout,
        transport=transport,
        **kwargs,
    )


def json_body(response: httpx.Response) -> dict:
    """
    Parse a provider response as a JSON object.

    Non-JSON bodies and JSON that isn't an object both come back as {} so
    callers can use .get() chains without guarding every level.
    """
    try:
        body = response.json()
    except ValueError:
        logger.debug(f"Non-JSON response ({response.status_code}): {response.text[:200]}")
        return {}
    return body if isinstance(body, dict) else {}


def describe_http_error(exc: httpx.HTTPError) -> str:
    """Readable message for a transport-level failure (timeout, DNS, reset...)."""
    if isinstance(exc, httpx.TimeoutException):
        return f"Request timed out: {exc}" if str(exc) else "Request timed out"
    return str(exc) or exc.__class__.__name__


def as_text(value: Any) -> Optional[str]:
    """Vendor ids arrive as str or int; PayoutResult stores text. Empty → None."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    return str(value)
