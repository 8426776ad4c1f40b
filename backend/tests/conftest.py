"""
Shared test fixtures for the creator payments test suite.

Provider HTTP exchanges are faked with httpx.MockTransport: a `FakeProvider`
records every request it receives and answers from a route table, so tests
can assert both on the normalized PayoutResult and on what was sent.

The autouse fixture `reset_cashfree_token` clears the process-wide Cashfree
token slot so one test's cached token never leaks into another.
"""

import asyncio
import json
import os
import sys

import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from config import BulkpeSettings, CashfreePayoutSettings, RazorpaySettings, Settings
from services.cashfree_payouts import get_token_cache


class FakeProvider:
    """
    Route table for httpx.MockTransport.

    routes: {(METHOD, path): response_or_callable}
      - an httpx.Response is returned as is
      - a dict is returned as a 200 JSON response
      - a callable gets the request and returns either of the above
      - an Exception instance is raised (e.g. httpx.ConnectTimeout)
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": f"no route {request.method} {request.url.path}"})
        if callable(handler) and not isinstance(handler, httpx.Response):
            handler = handler(request)
        if isinstance(handler, Exception):
            raise handler
        if isinstance(handler, dict):
            return httpx.Response(200, json=handler)
        return handler

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def json_sent(self, index: int) -> dict:
        return json.loads(self.requests[index].content)


def run(coro):
    """Drive an async gateway call to completion."""
    return asyncio.run(coro)


@pytest.fixture(autouse=True)
def reset_cashfree_token():
    get_token_cache().clear()
    yield
    get_token_cache().clear()


@pytest.fixture
def bulkpe_settings():
    return BulkpeSettings(api_key="bulkpe_test_key")


@pytest.fixture
def cashfree_settings():
    return CashfreePayoutSettings(app_id="CF_APP_123", secret_key="cf_secret", environment="sandbox")


@pytest.fixture
def razorpay_settings():
    return RazorpaySettings(
        key_id="rzp_test_abc",
        key_secret="rzp_secret",
        payout_account_number="7878780080316316",
    )


@pytest.fixture
def settings(bulkpe_settings, cashfree_settings, razorpay_settings):
    return Settings(
        bulkpe=bulkpe_settings,
        cashfree=cashfree_settings,
        razorpay=razorpay_settings,
    )


@pytest.fixture
def empty_settings():
    return Settings()
