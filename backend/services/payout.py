"""
Payout dispatch across providers.

A withdrawal approved upstream is paid out through exactly one provider:

  bulkpe     → services.bulkpe
  cashfree   → services.cashfree_payouts
  razorpayx  → services.razorpayx

Each provider module normalizes its vendor's responses into PayoutResult;
this module only picks the module and forwards the call. No retries here:
a failed result is returned to the caller to decide.
"""

import logging
from enum import Enum
from typing import Optional

import httpx

from config import Settings
from models.schemas import PayoutRequest, PayoutResult
from services.bulkpe import check_bulkpe_payout_status, initiate_bulkpe_payout
from services.cashfree_payouts import get_upi_payout_status, initiate_upi_payout
from services.razorpayx import check_razorpayx_payout_status, initiate_razorpayx_payout

logger = logging.getLogger(__name__)


class PayoutProvider(str, Enum):
    BULKPE = "bulkpe"
    CASHFREE = "cashfree"
    RAZORPAYX = "razorpayx"


def parse_provider(name: str) -> Optional[PayoutProvider]:
    try:
        return PayoutProvider(name.strip().lower())
    except ValueError:
        return None


def configured_providers(settings: Settings) -> dict[str, bool]:
    """{provider_name: is_configured} for every payout provider."""
    return {
        PayoutProvider.BULKPE.value: settings.bulkpe.is_configured,
        PayoutProvider.CASHFREE.value: settings.cashfree.is_configured,
        PayoutProvider.RAZORPAYX.value: settings.razorpay.is_payouts_configured,
    }


def _unknown_provider(name: str) -> PayoutResult:
    return PayoutResult(
        success=False,
        provider=name,
        error=f"Unknown payout provider: {name}",
    )


async def initiate_payout(
    settings: Settings,
    request: PayoutRequest,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PayoutResult:
    """Initiate request.amount INR to request.upi_id via request.provider."""
    provider = parse_provider(request.provider)
    if provider is None:
        return _unknown_provider(request.provider)

    logger.info(
        f"Payout via {provider.value}: ref={request.reference_id}, "
        f"amount=₹{request.amount:,.2f}"
    )

    if provider is PayoutProvider.BULKPE:
        result = await initiate_bulkpe_payout(
            settings.bulkpe,
            request.upi_id,
            request.amount,
            request.beneficiary_name,
            request.reference_id,
            note=request.note,
            transport=transport,
        )
    elif provider is PayoutProvider.CASHFREE:
        result = await initiate_upi_payout(
            settings.cashfree,
            request.upi_id,
            request.amount,
            request.beneficiary_name,
            request.reference_id,
            purpose=request.note or "withdrawal",
            beneficiary_email=request.beneficiary_email,
            beneficiary_phone=request.beneficiary_phone,
            transport=transport,
        )
    else:
        result = await initiate_razorpayx_payout(
            settings.razorpay,
            request.upi_id,
            request.amount,
            request.beneficiary_name,
            request.reference_id,
            user_email=request.beneficiary_email,
            user_phone=request.beneficiary_phone,
            transport=transport,
        )

    if result.success:
        logger.info(f"Payout {request.reference_id} accepted by {provider.value}: status={result.status}")
    else:
        logger.warning(f"Payout {request.reference_id} failed on {provider.value}: {result.error}")
    return result


async def get_payout_status(
    settings: Settings,
    provider_name: str,
    payout_id: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PayoutResult:
    """
    Look up a payout by the id that provider uses for status checks:
    Bulkpe transaction id, Cashfree transfer id, RazorpayX payout id.
    """
    provider = parse_provider(provider_name)
    if provider is None:
        return _unknown_provider(provider_name)

    if provider is PayoutProvider.BULKPE:
        return await check_bulkpe_payout_status(settings.bulkpe, payout_id, transport=transport)
    if provider is PayoutProvider.CASHFREE:
        return await get_upi_payout_status(settings.cashfree, payout_id, transport=transport)
    return await check_razorpayx_payout_status(settings.razorpay, payout_id, transport=transport)
