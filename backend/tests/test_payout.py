"""
Tests for services/payout.py — provider dispatch.

Test categories:
  1. PROVIDER PARSING
  2. CONFIGURED PROVIDERS
  3. INITIATE DISPATCH (right module, right arguments)
  4. STATUS DISPATCH
  5. UNKNOWN / UNCONFIGURED PROVIDERS

One FakeProvider serves all three vendors: their paths never overlap
(/client/..., /payout/v1/..., /v1/...).
"""

import sys
import os
import time

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import FakeProvider, run
from config import Settings
from models.schemas import PayoutRequest
from services.cashfree_payouts import beneficiary_id_for
from services.payout import (
    PayoutProvider,
    configured_providers,
    get_payout_status,
    initiate_payout,
    parse_provider,
)


def all_vendor_routes():
    return {
        ("POST", "/client/initiatepayout"): {
            "status": True,
            "data": {"transaction_id": "BPE1", "status": "PENDING"},
        },
        ("GET", "/client/transaction/BPE1"): {
            "status": True,
            "data": {"transaction_id": "BPE1", "status": "SUCCESS", "utr": "UTR-BPE"},
        },
        ("POST", "/payout/v1/authorize"): {
            "status": "SUCCESS",
            "subCode": "200",
            "data": {"token": "tok", "expiry": time.time() + 300},
        },
        ("GET", f"/payout/v1/getBeneficiary/{beneficiary_id_for('creator@okaxis')}"): {
            "status": "SUCCESS",
            "subCode": "200",
            "data": {"vpa": "creator@okaxis"},
        },
        ("POST", "/payout/v1/requestTransfer"): {
            "status": "PENDING",
            "subCode": "201",
            "message": "Transfer initiated",
            "data": {"referenceId": "CF77"},
        },
        ("GET", "/payout/v1/getTransferStatus"): {
            "status": "SUCCESS",
            "subCode": "200",
            "data": {"transfer": {"transferId": "WD-9", "referenceId": "CF77", "status": "SUCCESS", "utr": "UTR-CF"}},
        },
        ("POST", "/v1/contacts"): {"id": "cont_1"},
        ("POST", "/v1/fund_accounts"): {"id": "fa_1"},
        ("POST", "/v1/payouts"): {"id": "pout_1", "status": "processing", "reference_id": "WD-9"},
        ("GET", "/v1/payouts/pout_1"): {"id": "pout_1", "status": "processed", "utr": "UTR-RZP"},
    }


def make_request(provider="bulkpe", **overrides) -> PayoutRequest:
    fields = {
        "provider": provider,
        "upi_id": "creator@okaxis",
        "amount": 820,
        "beneficiary_name": "Asha Verma",
        "reference_id": "WD-9",
    }
    fields.update(overrides)
    return PayoutRequest(**fields)


# ===========================================================================
# 1. PROVIDER PARSING
# ===========================================================================

class TestParseProvider:

    @pytest.mark.parametrize("name,expected", [
        ("bulkpe",     PayoutProvider.BULKPE),
        ("cashfree",   PayoutProvider.CASHFREE),
        ("razorpayx",  PayoutProvider.RAZORPAYX),
        ("RazorpayX",  PayoutProvider.RAZORPAYX),
        (" cashfree ", PayoutProvider.CASHFREE),
    ])
    def test_known(self, name, expected):
        assert parse_provider(name) is expected

    @pytest.mark.parametrize("name", ["", "paypal", "razorpay", "stripe"])
    def test_unknown(self, name):
        assert parse_provider(name) is None


# ===========================================================================
# 2. CONFIGURED PROVIDERS
# ===========================================================================

class TestConfiguredProviders:

    def test_all_configured(self, settings):
        assert configured_providers(settings) == {
            "bulkpe": True,
            "cashfree": True,
            "razorpayx": True,
        }

    def test_none_configured(self, empty_settings):
        assert configured_providers(empty_settings) == {
            "bulkpe": False,
            "cashfree": False,
            "razorpayx": False,
        }

    def test_razorpayx_needs_account_number(self, settings):
        partial = Settings(
            bulkpe=settings.bulkpe,
            cashfree=settings.cashfree,
            razorpay=settings.razorpay.model_copy(update={"payout_account_number": None}),
        )
        assert configured_providers(partial)["razorpayx"] is False


# ===========================================================================
# 3. INITIATE DISPATCH
# ===========================================================================

class TestInitiateDispatch:

    def test_bulkpe(self, settings):
        provider = FakeProvider(all_vendor_routes())
        result = run(initiate_payout(settings, make_request("bulkpe", note="June"), transport=provider.transport))

        assert result.provider == "bulkpe"
        assert result.success is True
        assert result.provider_transaction_id == "BPE1"
        assert provider.paths() == ["/client/initiatepayout"]
        assert provider.json_sent(0)["transaction_note"] == "June"

    def test_cashfree(self, settings):
        provider = FakeProvider(all_vendor_routes())
        result = run(initiate_payout(settings, make_request("cashfree"), transport=provider.transport))

        assert result.provider == "cashfree"
        assert result.success is True
        assert result.status == "PENDING"
        assert provider.paths()[-1] == "/payout/v1/requestTransfer"
        transfer = provider.json_sent(len(provider.requests) - 1)
        assert transfer["transferId"] == "WD-9"
        assert transfer["remarks"] == "withdrawal"

    def test_cashfree_note_becomes_remarks(self, settings):
        provider = FakeProvider(all_vendor_routes())
        run(initiate_payout(settings, make_request("cashfree", note="campaign 12"), transport=provider.transport))
        assert provider.json_sent(len(provider.requests) - 1)["remarks"] == "campaign 12"

    def test_razorpayx(self, settings):
        provider = FakeProvider(all_vendor_routes())
        result = run(initiate_payout(
            settings,
            make_request("razorpayx", beneficiary_email="asha@example.com"),
            transport=provider.transport,
        ))

        assert result.provider == "razorpayx"
        assert result.success is True
        assert result.status == "processing"
        assert provider.paths() == ["/v1/contacts", "/v1/fund_accounts", "/v1/payouts"]
        assert provider.json_sent(0)["email"] == "asha@example.com"

    def test_provider_name_case_insensitive(self, settings):
        provider = FakeProvider(all_vendor_routes())
        result = run(initiate_payout(settings, make_request("BULKPE"), transport=provider.transport))
        assert result.provider == "bulkpe"

    def test_only_one_vendor_called(self, settings):
        provider = FakeProvider(all_vendor_routes())
        run(initiate_payout(settings, make_request("razorpayx"), transport=provider.transport))
        assert all(path.startswith("/v1/") for path in provider.paths())


# ===========================================================================
# 4. STATUS DISPATCH
# ===========================================================================

class TestStatusDispatch:

    def test_bulkpe(self, settings):
        provider = FakeProvider(all_vendor_routes())
        result = run(get_payout_status(settings, "bulkpe", "BPE1", transport=provider.transport))
        assert result.success is True
        assert result.utr == "UTR-BPE"

    def test_cashfree(self, settings):
        provider = FakeProvider(all_vendor_routes())
        result = run(get_payout_status(settings, "cashfree", "WD-9", transport=provider.transport))
        assert result.success is True
        assert result.utr == "UTR-CF"
        assert provider.requests[-1].url.params["transferId"] == "WD-9"

    def test_razorpayx(self, settings):
        provider = FakeProvider(all_vendor_routes())
        result = run(get_payout_status(settings, "razorpayx", "pout_1", transport=provider.transport))
        assert result.success is True
        assert result.utr == "UTR-RZP"


# ===========================================================================
# 5. UNKNOWN / UNCONFIGURED PROVIDERS
# ===========================================================================

class TestFailures:

    def test_unknown_provider_initiate(self, settings):
        provider = FakeProvider(all_vendor_routes())
        result = run(initiate_payout(settings, make_request("paypal"), transport=provider.transport))
        assert result.success is False
        assert result.provider == "paypal"
        assert result.error == "Unknown payout provider: paypal"
        assert provider.requests == []

    def test_unknown_provider_status(self, settings):
        result = run(get_payout_status(settings, "paypal", "X1"))
        assert result.success is False
        assert "paypal" in result.error

    @pytest.mark.parametrize("name", ["bulkpe", "cashfree", "razorpayx"])
    def test_unconfigured_provider_no_network(self, empty_settings, name):
        provider = FakeProvider(all_vendor_routes())
        result = run(initiate_payout(empty_settings, make_request(name), transport=provider.transport))
        assert result.success is False
        assert result.provider == name
        assert result.error
        assert provider.requests == []
