"""
RazorpayX UPI payout client.

API details:
  Base URL:  https://api.razorpay.com/v1
  Auth:      HTTP basic (RAZORPAY_KEY_ID : RAZORPAY_KEY_SECRET)
  Contact:   POST /contacts        (Razorpay returns the existing contact on a repeat)
  Fund acct: POST /fund_accounts   (vpa, also de-duplicated server side)
  Payout:    POST /payouts         (amount in paise, X-Payout-Idempotency header)
  Status:    GET  /payouts/{id}

Payout status mapping:
  processed                     → success, utr set
  processing | pending | queued → success (in flight)
  anything else                 → failure "Payout status: <status>"

Razorpay error bodies look like {"error": {"code": ..., "description": ...}}.
"""

import logging
from typing import Optional

import httpx

from config import RazorpaySettings
from models.schemas import PayoutResult
from services.money import to_paise
from services.provider_http import as_text, build_client, describe_http_error, json_body

logger = logging.getLogger(__name__)

PROVIDER = "razorpayx"
IN_FLIGHT_STATUSES = ("processing", "pending", "queued")


class RazorpayXError(RuntimeError):
    """Raised inside this module when a contact / fund account call fails."""


def is_razorpayx_configured(settings: RazorpaySettings) -> bool:
    return settings.is_payouts_configured


def idempotency_key_for(reference_id: str) -> str:
    return f"payout_{reference_id}"


def _client(settings: RazorpaySettings, transport: Optional[httpx.AsyncBaseTransport]) -> httpx.AsyncClient:
    return build_client(
        settings.base_url,
        settings.timeout,
        transport,
        auth=(settings.key_id, settings.key_secret),
    )


def _error_description(body: dict, fallback: str) -> str:
    error = body.get("error")
    if isinstance(error, dict):
        return as_text(error.get("description")) or fallback
    return fallback


async def _create(client: httpx.AsyncClient, path: str, request: dict) -> dict:
    response = await client.post(path, json=request)
    body = json_body(response)
    if not response.is_success or not body.get("id"):
        raise RazorpayXError(_error_description(body, f"{path} failed (HTTP {response.status_code})"))
    return body


async def _ensure_fund_account(
    client: httpx.AsyncClient,
    upi_id: str,
    user_name: str,
    user_email: Optional[str],
    user_phone: Optional[str],
) -> str:
    """Create (or re-use) the contact + vpa fund account, return the fund account id."""
    contact_request = {"name": user_name, "type": "customer"}
    if user_email:
        contact_request["email"] = user_email
    if user_phone:
        contact_request["contact"] = user_phone

    contact = await _create(client, "/contacts", contact_request)
    logger.info(f"[RAZORPAYX] Contact ready: {contact['id']}")

    fund_account = await _create(client, "/fund_accounts", {
        "contact_id": contact["id"],
        "account_type": "vpa",
        "vpa": {"address": upi_id},
    })
    logger.info(f"[RAZORPAYX] Fund account ready: {fund_account['id']}")
    return fund_account["id"]


def _result_from_payout(payout: dict, reference_id: Optional[str] = None) -> PayoutResult:
    payout_id = as_text(payout.get("id"))
    status = as_text(payout.get("status"))

    if status == "processed":
        return PayoutResult(
            success=True,
            provider=PROVIDER,
            provider_transaction_id=payout_id,
            reference_id=as_text(payout.get("reference_id")) or reference_id,
            utr=as_text(payout.get("utr")) or payout_id,
            status=status,
        )
    if status in IN_FLIGHT_STATUSES:
        return PayoutResult(
            success=True,
            provider=PROVIDER,
            provider_transaction_id=payout_id,
            reference_id=as_text(payout.get("reference_id")) or reference_id,
            utr=payout_id,
            status=status,
        )
    return PayoutResult(
        success=False,
        provider=PROVIDER,
        provider_transaction_id=payout_id,
        reference_id=as_text(payout.get("reference_id")) or reference_id,
        status=status,
        error=f"Payout status: {status}",
    )


async def initiate_razorpayx_payout(
    settings: RazorpaySettings,
    upi_id: str,
    amount: float,
    user_name: str,
    reference_id: str,
    user_email: Optional[str] = None,
    user_phone: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PayoutResult:
    """
    Pay `amount` INR to a UPI id from the RazorpayX business account.

    The idempotency key is derived from reference_id alone, so retrying the
    same reference cannot create a second payout.
    """
    if not settings.is_configured:
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            reference_id=reference_id,
            error="RazorpayX not configured. Please add RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET.",
        )
    if not settings.payout_account_number:
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            reference_id=reference_id,
            error="RazorpayX account number not configured. Please add RAZORPAYX_ACCOUNT_NUMBER.",
        )

    amount_in_paise = to_paise(amount)
    logger.info(
        f"[RAZORPAYX] Initiating payout ref={reference_id} "
        f"amount=₹{amount:,.2f} ({amount_in_paise} paise)"
    )

    try:
        async with _client(settings, transport) as client:
            fund_account_id = await _ensure_fund_account(
                client, upi_id, user_name, user_email, user_phone,
            )
            response = await client.post(
                "/payouts",
                json={
                    "account_number": settings.payout_account_number,
                    "fund_account_id": fund_account_id,
                    "amount": amount_in_paise,
                    "currency": "INR",
                    "mode": "UPI",
                    "purpose": "payout",
                    "queue_if_low_balance": False,
                    "reference_id": reference_id,
                    "narration": f"Mingree Creator Payout - {reference_id}",
                },
                headers={"X-Payout-Idempotency": idempotency_key_for(reference_id)},
            )
    except RazorpayXError as e:
        logger.warning(f"[RAZORPAYX] Payout {reference_id} failed before payout call: {e}")
        return PayoutResult(success=False, provider=PROVIDER, reference_id=reference_id, error=str(e))
    except httpx.HTTPError as e:
        logger.error(f"[RAZORPAYX] Network error for {reference_id}: {e}")
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            reference_id=reference_id,
            error=describe_http_error(e),
        )

    body = json_body(response)
    logger.debug(f"[RAZORPAYX] Payout response {response.status_code}: {body}")

    if not response.is_success:
        error = _error_description(body, f"Payout failed (HTTP {response.status_code})")
        logger.warning(f"[RAZORPAYX] Payout {reference_id} rejected: {error}")
        return PayoutResult(success=False, provider=PROVIDER, reference_id=reference_id, error=error)

    return _result_from_payout(body, reference_id)


async def check_razorpayx_payout_status(
    settings: RazorpaySettings,
    payout_id: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PayoutResult:
    """success=True only for a processed payout."""
    if not settings.is_configured:
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            provider_transaction_id=payout_id,
            error="RazorpayX not configured",
        )

    try:
        async with _client(settings, transport) as client:
            response = await client.get(f"/payouts/{payout_id}")
    except httpx.HTTPError as e:
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            provider_transaction_id=payout_id,
            error=describe_http_error(e),
        )

    body = json_body(response)
    if not response.is_success:
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            provider_transaction_id=payout_id,
            error=_error_description(body, f"Failed to fetch payout status (HTTP {response.status_code})"),
        )

    status = as_text(body.get("status"))
    payout_ref = as_text(body.get("id")) or payout_id
    return PayoutResult(
        success=status == "processed",
        provider=PROVIDER,
        provider_transaction_id=payout_ref,
        reference_id=as_text(body.get("reference_id")),
        utr=as_text(body.get("utr")) or payout_ref,
        status=status,
    )
