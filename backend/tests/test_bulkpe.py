"""
Tests for services/bulkpe.py.

All HTTP traffic goes through FakeProvider (httpx.MockTransport).
"""

import sys
import os

import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import FakeProvider, run
from config import BulkpeSettings
from services.bulkpe import (
    check_bulkpe_payout_status,
    initiate_bulkpe_payout,
    is_bulkpe_configured,
)

INITIATE = ("POST", "/client/initiatepayout")


def initiate(settings, provider, **kwargs):
    return run(initiate_bulkpe_payout(
        settings,
        "creator@okaxis",
        820,
        "Asha Verma",
        "WD-1001",
        transport=provider.transport,
        **kwargs,
    ))


# ===========================================================================
# Configuration
# ===========================================================================

class TestConfiguration:

    def test_configured(self, bulkpe_settings):
        assert is_bulkpe_configured(bulkpe_settings)

    def test_not_configured(self):
        assert not is_bulkpe_configured(BulkpeSettings())

    def test_missing_key_fails_without_network(self):
        provider = FakeProvider()
        result = initiate(BulkpeSettings(), provider)
        assert result.success is False
        assert "BULKPE_API_KEY" in result.error
        assert provider.requests == []

    def test_status_missing_key_fails_without_network(self):
        provider = FakeProvider()
        result = run(check_bulkpe_payout_status(BulkpeSettings(), "TXN1", transport=provider.transport))
        assert result.success is False
        assert result.error == "Bulkpe API key not configured"
        assert provider.requests == []


# ===========================================================================
# Initiate payout
# ===========================================================================

class TestInitiatePayout:

    def test_success_nested_data(self, bulkpe_settings):
        provider = FakeProvider({INITIATE: {
            "status": True,
            "statusCode": 200,
            "message": "Payout initiated",
            "data": {"transaction_id": "BPE123", "reference_id": "WD-1001", "status": "PENDING"},
        }})
        result = initiate(bulkpe_settings, provider)

        assert result.success is True
        assert result.provider == "bulkpe"
        assert result.provider_transaction_id == "BPE123"
        assert result.reference_id == "WD-1001"
        assert result.status == "PENDING"
        assert result.error is None

    def test_request_shape(self, bulkpe_settings):
        provider = FakeProvider({INITIATE: {"status": True, "data": {"transaction_id": "BPE1"}}})
        initiate(bulkpe_settings, provider)

        sent = provider.json_sent(0)
        assert sent == {
            "amount": 820,
            "payment_mode": "UPI",
            "upi": "creator@okaxis",
            "beneficiaryName": "Asha Verma",
            "reference_id": "WD-1001",
            "transaction_note": "Mingree Payout - WD-1001",
        }
        request = provider.requests[0]
        assert request.headers["Authorization"] == "Bearer bulkpe_test_key"
        assert str(request.url).startswith("https://api.bulkpe.in/")

    def test_custom_note(self, bulkpe_settings):
        provider = FakeProvider({INITIATE: {"status": True, "data": {}}})
        initiate(bulkpe_settings, provider, note="March campaign")
        assert provider.json_sent(0)["transaction_note"] == "March campaign"

    def test_misspelt_transaction_id(self, bulkpe_settings):
        provider = FakeProvider({INITIATE: {"statusCode": 200, "data": {"transcation_id": 99812}}})
        result = initiate(bulkpe_settings, provider)
        assert result.success is True
        assert result.provider_transaction_id == "99812"

    def test_flat_payload_defaults(self, bulkpe_settings):
        """No `data` wrapper and no status string → PENDING, our reference id."""
        provider = FakeProvider({INITIATE: {"status": True, "transaction_id": "T-9"}})
        result = initiate(bulkpe_settings, provider)
        assert result.success is True
        assert result.provider_transaction_id == "T-9"
        assert result.reference_id == "WD-1001"
        assert result.status == "PENDING"

    def test_vendor_rejection(self, bulkpe_settings):
        provider = FakeProvider({INITIATE: {"status": False, "statusCode": 400, "message": "Invalid VPA"}})
        result = initiate(bulkpe_settings, provider)
        assert result.success is False
        assert result.error == "Invalid VPA"

    def test_vendor_rejection_without_message(self, bulkpe_settings):
        provider = FakeProvider({INITIATE: {"status": False}})
        result = initiate(bulkpe_settings, provider)
        assert result.success is False
        assert result.error == "Payout failed (HTTP 200)"

    def test_http_error_status(self, bulkpe_settings):
        provider = FakeProvider({INITIATE: httpx.Response(401, json={"message": "Unauthorized"})})
        result = initiate(bulkpe_settings, provider)
        assert result.success is False
        assert result.error == "Unauthorized"

    def test_non_json_body(self, bulkpe_settings):
        provider = FakeProvider({INITIATE: httpx.Response(502, text="<html>Bad gateway</html>")})
        result = initiate(bulkpe_settings, provider)
        assert result.success is False
        assert result.error == "Payout failed (HTTP 502)"

    def test_timeout_is_a_result(self, bulkpe_settings):
        provider = FakeProvider({INITIATE: httpx.ReadTimeout("timed out")})
        result = initiate(bulkpe_settings, provider)
        assert result.success is False
        assert "timed out" in result.error.lower()

    def test_connection_error_is_a_result(self, bulkpe_settings):
        provider = FakeProvider({INITIATE: httpx.ConnectError("connection refused")})
        result = initiate(bulkpe_settings, provider)
        assert result.success is False
        assert result.error == "connection refused"

    def test_no_retry(self, bulkpe_settings):
        provider = FakeProvider({INITIATE: httpx.Response(500, json={"message": "boom"})})
        initiate(bulkpe_settings, provider)
        assert len(provider.requests) == 1


# ===========================================================================
# Status
# ===========================================================================

class TestPayoutStatus:

    @pytest.mark.parametrize("status,success", [
        ("SUCCESS", True),
        ("PENDING", False),
        ("FAILED", False),
    ])
    def test_status_mapping(self, bulkpe_settings, status, success):
        provider = FakeProvider({("GET", "/client/transaction/BPE123"): {
            "status": True,
            "data": {"transaction_id": "BPE123", "status": status, "utr": "412345678901"},
        }})
        result = run(check_bulkpe_payout_status(bulkpe_settings, "BPE123", transport=provider.transport))
        assert result.success is success
        assert result.status == status
        assert result.provider_transaction_id == "BPE123"
        assert result.utr == "412345678901"

    def test_status_http_error(self, bulkpe_settings):
        provider = FakeProvider({("GET", "/client/transaction/NOPE"): httpx.Response(404, json={"message": "Not found"})})
        result = run(check_bulkpe_payout_status(bulkpe_settings, "NOPE", transport=provider.transport))
        assert result.success is False
        assert result.error == "Not found"

    def test_status_network_error(self, bulkpe_settings):
        provider = FakeProvider({("GET", "/client/transaction/X"): httpx.ConnectError("dns failure")})
        result = run(check_bulkpe_payout_status(bulkpe_settings, "X", transport=provider.transport))
        assert result.success is False
        assert result.error == "dns failure"
