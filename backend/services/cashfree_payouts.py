"""
Cashfree Payouts (v1) UPI client.

API details:
  Base URL:   sandbox    https://payout-gamma.cashfree.com/payout/v1
              production https://payout-api.cashfree.com/payout/v1
  Auth:       POST /authorize with X-Client-Id / X-Client-Secret → bearer token
  Beneficiary GET  /getBeneficiary/{beneId}, POST /addBeneficiary
  Transfer:   POST /requestTransfer
  Status:     GET  /getTransferStatus?transferId=...

Responses carry `status` ("SUCCESS" | "PENDING" | "ERROR"), a string
`subCode` mirroring the HTTP code, `message`, and a `data` object.

Token cache:
  One bearer token per process, held in TokenCache {token, expires_at}.
  Refreshed lazily when absent or within TOKEN_EXPIRY_SKEW of expiry. There is
  no lock: two concurrent refreshes both succeed and the later one wins.

Pipeline for a payout:
  1. authorize (cached)
  2. ensure the beneficiary exists (beneId is a hash of the UPI id) and that
     an existing beneficiary is registered to the same UPI id
  3. request the transfer

Failures at any step come back as PayoutResult(success=False, error=...).
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from config import CashfreePayoutSettings
from models.schemas import PayoutResult
from services.provider_http import as_text, build_client, describe_http_error, json_body

logger = logging.getLogger(__name__)

PROVIDER = "cashfree"
TOKEN_EXPIRY_SKEW = 60.0     # seconds shaved off the token's expiry
DEFAULT_TOKEN_TTL = 300.0    # Cashfree tokens live ~5 minutes when expiry is missing
BENE_ID_PREFIX = "bene_"
BENE_ID_HASH_LENGTH = 40    # beneId stays under Cashfree's 50 character limit
DEFAULT_ADDRESS = "India"    # addBeneficiary requires a non-empty address1


class CashfreeError(RuntimeError):
    """Raised inside this module for a failed authorize/beneficiary step."""


@dataclass
class TokenCache:
    token: Optional[str] = None
    expires_at: float = 0.0

    def is_valid(self, now: Optional[float] = None) -> bool:
        if now is None:
            now = time.time()
        return self.token is not None and now < self.expires_at - TOKEN_EXPIRY_SKEW

    def store(self, token: str, expires_at: float) -> None:
        self.token = token
        self.expires_at = expires_at

    def clear(self) -> None:
        self.token = None
        self.expires_at = 0.0


# Process-wide token slot
_token_cache = TokenCache()


def get_token_cache() -> TokenCache:
    return _token_cache


def is_cashfree_payouts_configured(settings: CashfreePayoutSettings) -> bool:
    return settings.is_configured


def normalize_vpa(upi_id: str) -> str:
    return upi_id.strip().lower()


def beneficiary_id_for(upi_id: str) -> str:
    """
    Stable Cashfree beneId for a UPI id.

    A sha256 prefix of the normalized VPA, so "john.doe@ybl" and "john_doe@ybl"
    never share a beneficiary. Case and surrounding whitespace are ignored.
    """
    digest = hashlib.sha256(normalize_vpa(upi_id).encode()).hexdigest()
    return f"{BENE_ID_PREFIX}{digest[:BENE_ID_HASH_LENGTH]}"


def _is_ok(body: dict) -> bool:
    return body.get("status") == "SUCCESS" or str(body.get("subCode")) == "200"


def _token_rejected(response: httpx.Response, body: dict) -> bool:
    """Cashfree answers a revoked or rotated token with 401, or subCode 403."""
    return response.status_code == 401 or str(body.get("subCode")) == "403"


def _message(body: dict, fallback: str) -> str:
    return as_text(body.get("message")) or as_text(body.get("error")) or fallback


# ===========================================================================
# Auth
# ===========================================================================

async def _authorize(
    client: httpx.AsyncClient,
    settings: CashfreePayoutSettings,
    cache: TokenCache,
) -> str:
    if cache.is_valid():
        return cache.token

    logger.info("[CASHFREE] Refreshing payout auth token")
    response = await client.post(
        "/authorize",
        headers={
            "X-Client-Id": settings.app_id,
            "X-Client-Secret": settings.secret_key,
        },
    )
    body = json_body(response)
    data = body.get("data") or {}
    token = as_text(data.get("token")) if isinstance(data, dict) else None

    if not response.is_success or not _is_ok(body) or not token:
        cache.clear()
        raise CashfreeError(_message(body, f"Cashfree authorization failed (HTTP {response.status_code})"))

    expiry = data.get("expiry")
    expires_at = float(expiry) if isinstance(expiry, (int, float)) else time.time() + DEFAULT_TOKEN_TTL
    cache.store(token, expires_at)
    return token


# ===========================================================================
# Beneficiary
# ===========================================================================

async def _ensure_beneficiary(
    client: httpx.AsyncClient,
    token: str,
    cache: TokenCache,
    upi_id: str,
    beneficiary_name: str,
    email: Optional[str],
    phone: Optional[str],
) -> str:
    """
    Return the beneId for upi_id, creating the beneficiary if Cashfree has none.

    An existing beneficiary must be registered to the same VPA; anything else
    raises CashfreeError so no transfer is requested.
    """
    bene_id = beneficiary_id_for(upi_id)
    auth = {"Authorization": f"Bearer {token}"}

    response = await client.get(f"/getBeneficiary/{bene_id}", headers=auth)
    body = json_body(response)
    if response.is_success and _is_ok(body):
        data = body.get("data") if isinstance(body.get("data"), dict) else {}
        registered_vpa = as_text(data.get("vpa"))
        if registered_vpa is None or normalize_vpa(registered_vpa) != normalize_vpa(upi_id):
            logger.error(f"[CASHFREE] Beneficiary {bene_id} is registered to {registered_vpa!r}, not {upi_id!r}")
            raise CashfreeError(f"Beneficiary {bene_id} is registered to a different UPI id")
        return bene_id

    if _token_rejected(response, body):
        cache.clear()

    if str(body.get("subCode")) != "404" and response.status_code != 404:
        raise CashfreeError(_message(body, f"Beneficiary lookup failed (HTTP {response.status_code})"))

    logger.info(f"[CASHFREE] Adding beneficiary {bene_id}")
    request = {
        "beneId": bene_id,
        "name": beneficiary_name,
        "vpa": upi_id,
        "address1": DEFAULT_ADDRESS,
    }
    if email:
        request["email"] = email
    if phone:
        request["phone"] = phone

    response = await client.post("/addBeneficiary", json=request, headers=auth)
    body = json_body(response)
    # 409: added concurrently by another request, which is fine
    if (response.is_success and _is_ok(body)) or str(body.get("subCode")) == "409":
        return bene_id

    if _token_rejected(response, body):
        cache.clear()

    raise CashfreeError(_message(body, f"Failed to add beneficiary (HTTP {response.status_code})"))


# ===========================================================================
# Public API
# ===========================================================================

async def initiate_upi_payout(
    settings: CashfreePayoutSettings,
    upi_id: str,
    amount: float,
    beneficiary_name: str,
    transfer_id: str,
    purpose: str = "withdrawal",
    beneficiary_email: Optional[str] = None,
    beneficiary_phone: Optional[str] = None,
    token_cache: Optional[TokenCache] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PayoutResult:
    """
    Send `amount` INR to a UPI id through Cashfree Payouts.

    Args:
        settings:         Cashfree payout credentials + environment
        upi_id:           Beneficiary VPA
        amount:           Amount in INR
        beneficiary_name: Beneficiary display name
        transfer_id:      Our reference id; Cashfree rejects duplicates
        purpose:          Transfer remarks
        token_cache:      Defaults to the process-wide cache

    Returns:
        PayoutResult — SUCCESS and PENDING transfers both count as success.
    """
    if not settings.is_configured:
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            reference_id=transfer_id,
            status="FAILED",
            error="Cashfree payouts not configured. Please add CASHFREE_APP_ID and CASHFREE_SECRET_KEY.",
        )

    cache = token_cache if token_cache is not None else _token_cache
    logger.info(f"[CASHFREE] Initiating payout transfer_id={transfer_id} amount=₹{amount:,.2f}")

    try:
        async with build_client(settings.base_url, settings.timeout, transport) as client:
            token = await _authorize(client, settings, cache)
            bene_id = await _ensure_beneficiary(
                client, token, cache, upi_id, beneficiary_name,
                beneficiary_email, beneficiary_phone,
            )
            response = await client.post(
                "/requestTransfer",
                json={
                    "beneId": bene_id,
                    "amount": f"{amount:.2f}",
                    "transferId": transfer_id,
                    "transferMode": "upi",
                    "remarks": purpose,
                },
                headers={"Authorization": f"Bearer {token}"},
            )
    except CashfreeError as e:
        logger.warning(f"[CASHFREE] Payout {transfer_id} failed before transfer: {e}")
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            reference_id=transfer_id,
            status="FAILED",
            error=str(e),
        )
    except httpx.HTTPError as e:
        logger.error(f"[CASHFREE] Network error for {transfer_id}: {e}")
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            reference_id=transfer_id,
            status="FAILED",
            error=describe_http_error(e),
        )

    body = json_body(response)
    logger.debug(f"[CASHFREE] requestTransfer {response.status_code}: {body}")
    status = as_text(body.get("status"))
    data = body.get("data") if isinstance(body.get("data"), dict) else {}

    if response.is_success and status in ("SUCCESS", "PENDING"):
        return PayoutResult(
            success=True,
            provider=PROVIDER,
            provider_transaction_id=as_text(data.get("referenceId")),
            reference_id=transfer_id,
            utr=as_text(data.get("utr")) or as_text(data.get("referenceId")),
            status=status,
        )

    if _token_rejected(response, body):
        cache.clear()

    error = _message(body, f"Payout failed (HTTP {response.status_code})")
    logger.warning(f"[CASHFREE] Transfer {transfer_id} rejected: {error}")
    return PayoutResult(
        success=False,
        provider=PROVIDER,
        reference_id=transfer_id,
        status="FAILED",
        error=error,
    )


async def get_upi_payout_status(
    settings: CashfreePayoutSettings,
    transfer_id: str,
    token_cache: Optional[TokenCache] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PayoutResult:
    """success=True only once the transfer status is SUCCESS."""
    if not settings.is_configured:
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            reference_id=transfer_id,
            status="UNKNOWN",
            error="Cashfree payouts not configured",
        )

    cache = token_cache if token_cache is not None else _token_cache

    try:
        async with build_client(settings.base_url, settings.timeout, transport) as client:
            token = await _authorize(client, settings, cache)
            response = await client.get(
                "/getTransferStatus",
                params={"transferId": transfer_id},
                headers={"Authorization": f"Bearer {token}"},
            )
    except CashfreeError as e:
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            reference_id=transfer_id,
            status="UNKNOWN",
            error=str(e),
        )
    except httpx.HTTPError as e:
        logger.error(f"[CASHFREE] Status check failed for {transfer_id}: {e}")
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            reference_id=transfer_id,
            status="UNKNOWN",
            error=describe_http_error(e),
        )

    body = json_body(response)
    data = body.get("data") if isinstance(body.get("data"), dict) else {}
    transfer = data.get("transfer") if isinstance(data.get("transfer"), dict) else {}

    if _token_rejected(response, body):
        cache.clear()

    if not response.is_success or not _is_ok(body) or not transfer:
        return PayoutResult(
            success=False,
            provider=PROVIDER,
            reference_id=transfer_id,
            status="UNKNOWN",
            error=_message(body, f"Failed to fetch payout status (HTTP {response.status_code})"),
        )

    status = as_text(transfer.get("status"))
    return PayoutResult(
        success=status == "SUCCESS",
        provider=PROVIDER,
        provider_transaction_id=as_text(transfer.get("referenceId")),
        reference_id=as_text(transfer.get("transferId")) or transfer_id,
        utr=as_text(transfer.get("utr")),
        status=status,
    )
