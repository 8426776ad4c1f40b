"""
Razorpay Orders for sponsor wallet deposits.

Flow:
  1. Sponsor asks to add `base_amount` INR to their wallet
  2. create_deposit_order() charges base_amount + 18% GST as one Razorpay order
  3. The browser checkout returns (order_id, payment_id, signature)
  4. verify_payment_signature() checks
       HMAC_SHA256(key_secret, "<order_id>|<payment_id>") == signature
  5. The caller credits base_amount (not the GST) to the wallet

Unlike the payout clients, failures here raise PaymentProviderError: a deposit
that cannot be created is a failed request, not a result to record.
"""

import hashlib
import hmac
import logging
from typing import Optional

import httpx

from config import RazorpaySettings
from models.schemas import DepositBreakdown
from services.fees import calculate_deposit_with_gst
from services.money import to_paise
from services.provider_http import as_text, build_client, describe_http_error, json_body

logger = logging.getLogger(__name__)


class PaymentProviderError(RuntimeError):
    """A payment provider is unconfigured, unreachable, or rejected the call."""


class ProviderNotConfiguredError(PaymentProviderError):
    pass


def is_razorpay_configured(settings: RazorpaySettings) -> bool:
    return settings.is_configured


def get_razorpay_key_id(settings: RazorpaySettings) -> str:
    """Public key id handed to the browser checkout."""
    if not settings.key_id:
        raise ProviderNotConfiguredError("RAZORPAY_KEY_ID is required")
    return settings.key_id


async def create_order(
    settings: RazorpaySettings,
    amount: float,
    currency: str = "INR",
    notes: Optional[dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """
    Create a Razorpay order for `amount` rupees.

    Returns:
        The order as returned by Razorpay (id, amount in paise, currency, ...)

    Raises:
        ProviderNotConfiguredError: key id / secret missing
        PaymentProviderError:       network failure or Razorpay rejected the order
    """
    if not settings.is_configured:
        raise ProviderNotConfiguredError("RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET are required")

    request = {
        "amount": to_paise(amount),
        "currency": currency,
        "notes": notes or {},
    }

    try:
        async with build_client(
            settings.base_url,
            settings.timeout,
            transport,
            auth=(settings.key_id, settings.key_secret),
        ) as client:
            response = await client.post("/orders", json=request)
    except httpx.HTTPError as e:
        logger.error(f"[RAZORPAY] Order creation failed: {e}")
        raise PaymentProviderError(describe_http_error(e)) from e

    body = json_body(response)
    if not response.is_success or not body.get("id"):
        error = body.get("error") if isinstance(body.get("error"), dict) else {}
        message = as_text(error.get("description")) or f"Order creation failed (HTTP {response.status_code})"
        logger.error(f"[RAZORPAY] Order rejected: {message}")
        raise PaymentProviderError(message)

    logger.info(f"[RAZORPAY] Order {body['id']} created for {request['amount']} paise")
    return body


async def create_deposit_order(
    settings: RazorpaySettings,
    base_amount: float,
    notes: Optional[dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> tuple[dict, DepositBreakdown]:
    """
    Create an order charging base_amount + GST.

    Returns:
        (order, breakdown) — breakdown.base_amount is what the wallet receives
    """
    breakdown = calculate_deposit_with_gst(base_amount)
    order_notes = {
        "type": "wallet_deposit",
        "baseAmount": str(breakdown.base_amount),
        "gstAmount": str(breakdown.gst_amount),
    }
    if notes:
        order_notes.update(notes)

    order = await create_order(
        settings,
        breakdown.total_payable,
        notes=order_notes,
        transport=transport,
    )
    return order, breakdown


def verify_payment_signature(
    settings: RazorpaySettings,
    order_id: str,
    payment_id: str,
    signature: str,
) -> bool:
    """
    Check a checkout signature.

    Raises:
        ProviderNotConfiguredError: key secret missing (cannot verify anything)
    """
    if not settings.key_secret:
        raise ProviderNotConfiguredError("RAZORPAY_KEY_SECRET is required")

    message = f"{order_id}|{payment_id}".encode()
    expected = hmac.new(settings.key_secret.encode(), message, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected.encode(), signature.encode())
