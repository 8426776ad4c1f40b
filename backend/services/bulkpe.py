"""
Bulkpe UPI payout client.

API details:
  Initiate:  POST {base}/client/initiatepayout
  Status:    GET  {base}/client/transaction/{transaction_id}
  Auth:      Authorization: Bearer <BULKPE_API_KEY>

Bulkpe signals success either with `status: true` or `statusCode: 200`, and
nests the payload under `data` (sometimes not). The transaction id field is
spelled `transcation_id` in some responses; both spellings are accepted.

Every failure (missing key, rejection, network error) is returned as a
PayoutResult with success=False. Nothing here raises, and nothing retries.
"""

import logging
from typing import Optional

import httpx

from config import BulkpeSettings
from models.schemas import PayoutResult
from services.provider_http import as_text, build_client, describe_http_error, json_body

logger = logging.getLogger(__name__)

PROVIDER = "bulkpe"
DEFAULT_STATUS = "PENDING"


def is_bulkpe_configured(settings: BulkpeSettings) -> bool:
    return settings.is_configured


def _client(settings: BulkpeSettings, transport: Optional[httpx.AsyncBaseTransport]) -> httpx.AsyncClient:
    return build_client(
        settings.base_url,
        settings.timeout,
        transport,
        headers={
            "Authorization": f"Bearer {settings.api_key}",
            "Content-Type": "application/json",
        },
    )


def _payload(body: dict) -> dict:
    data = body.get("data")
    return data if isinstance(data, dict) else body


async def initiate_bulkpe_payout(
    settings: BulkpeSettings,
    upi_id: str,
    amount: float,
    beneficiary_name: str,
    reference_id: str,
    note: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PayoutResult:
    """
    Send `amount` INR to a UPI id through Bulkpe.

    Args:
        settings:         Bulkpe credentials
        upi_id:           Beneficiary VPA, e.g. "creator@okaxis"
        amount:           Amount in INR (rupees, not paise)
        beneficiary_name: Name shown to the beneficiary's bank
        reference_id:     Our idempotency / reference id for this payout
        note:             Transaction note (defaults to "Mingree Payout - <ref>")

    Returns:
        PayoutResult — success=True means Bulkpe accepted the payout, which may
        still be PENDING on the rails.
    """
    if not settings.is_configured:
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            reference_id=reference_id,
            error="Bulkpe API key not configured. Please add BULKPE_API_KEY.",
        )

    request = {
        "amount": amount,
        "payment_mode": "UPI",
        "upi": upi_id,
        "beneficiaryName": beneficiary_name,
        "reference_id": reference_id,
        "transaction_note": note or f"Mingree Payout - {reference_id}",
    }

    logger.info(f"[BULKPE] Initiating payout ref={reference_id} amount=₹{amount:,.2f}")

    try:
        async with _client(settings, transport) as client:
            response = await client.post("/client/initiatepayout", json=request)
    except httpx.HTTPError as e:
        logger.error(f"[BULKPE] Network error for ref={reference_id}: {e}")
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            reference_id=reference_id,
            error=describe_http_error(e),
        )

    body = json_body(response)
    logger.debug(f"[BULKPE] Response {response.status_code}: {body}")

    if response.is_success and (body.get("status") is True or body.get("statusCode") == 200):
        data = _payload(body)
        return PayoutResult(
            success=True,
            provider=PROVIDER,
            provider_transaction_id=as_text(data.get("transaction_id") or data.get("transcation_id")),
            reference_id=as_text(data.get("reference_id")) or reference_id,
            status=as_text(data.get("status")) or DEFAULT_STATUS,
        )

    error = as_text(body.get("message")) or f"Payout failed (HTTP {response.status_code})"
    logger.warning(f"[BULKPE] Payout rejected ref={reference_id}: {error}")
    return PayoutResult(
        success=False,
        provider=PROVIDER,
        reference_id=reference_id,
        error=error,
    )


async def check_bulkpe_payout_status(
    settings: BulkpeSettings,
    transaction_id: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PayoutResult:
    """success=True only once Bulkpe reports the transaction as SUCCESS."""
    if not settings.is_configured:
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            provider_transaction_id=transaction_id,
            error="Bulkpe API key not configured",
        )

    try:
        async with _client(settings, transport) as client:
            response = await client.get(f"/client/transaction/{transaction_id}")
    except httpx.HTTPError as e:
        logger.error(f"[BULKPE] Status check failed for {transaction_id}: {e}")
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            provider_transaction_id=transaction_id,
            error=describe_http_error(e),
        )

    body = json_body(response)
    if not response.is_success:
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            provider_transaction_id=transaction_id,
            error=as_text(body.get("message")) or f"Failed to check payout status (HTTP {response.status_code})",
        )

    data = _payload(body)
    status = as_text(data.get("status"))
    return PayoutResult(
        success=status == "SUCCESS",
        provider=PROVIDER,
        provider_transaction_id=as_text(data.get("transaction_id")) or transaction_id,
        reference_id=as_text(data.get("reference_id")),
        utr=as_text(data.get("utr")),
        status=status,
    )
