"""
Mingree Creator Payments API — FastAPI application.

Endpoints:

  Tiers & pricing (pure, no provider calls)
    GET  /api/tiers                     full tier catalog
    GET  /api/tiers/lookup?followers=N  tier for a follower count (or not eligible)
    GET  /api/tiers/{tier_id}           one tier
    POST /api/pricing/creator-payment   tier × promotion style
    POST /api/pricing/sponsor-payment   creator payment + 10% platform fee
    POST /api/pricing/deposit           deposit + 18% GST (or 5% intl fee)
    POST /api/pricing/withdrawal        withdrawal − 18% GST
    GET  /api/wallet/info               wallet rules

  Deposits (Razorpay Orders)
    POST /api/deposits/orders           create order for base + GST
    POST /api/deposits/verify           verify checkout signature

  Payouts (Bulkpe / Cashfree / RazorpayX)
    GET  /api/payouts/providers         which providers are configured
    POST /api/payouts                   initiate a UPI payout
    GET  /api/payouts/{provider}/{id}   payout status

Error handling:
  - Invalid input (below minimum, bad signature) → 400
  - Unknown tier / provider → 404
  - Razorpay not configured → 503, Razorpay failure → 502
  - Payout failures are NOT HTTP errors: the normalized PayoutResult is
    returned with success=false and the vendor's error text
"""

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

import config
from models.schemas import (
    CreatorPaymentRequest,
    CreatorPaymentResponse,
    DepositOrderRequest,
    DepositOrderResponse,
    DepositQuoteRequest,
    PayoutRequest,
    PayoutResult,
    SponsorPaymentRequest,
    Tier,
    TierLookupResponse,
    VerifyPaymentRequest,
    WalletInfo,
    WithdrawalQuoteRequest,
)
from services.fees import (
    MIN_WITHDRAWAL_AMOUNT,
    calculate_deposit_with_gst,
    calculate_international_deposit,
    calculate_sponsor_payment,
    calculate_withdrawal_with_gst,
    wallet_info,
)
from services.payout import configured_providers, get_payout_status, initiate_payout, parse_provider
from services.pricing import calculate_creator_payment
from services.razorpay_orders import (
    PaymentProviderError,
    ProviderNotConfiguredError,
    create_deposit_order,
    get_razorpay_key_id,
    verify_payment_signature,
)
from services.tiers import MIN_FOLLOWERS, TIERS, format_followers, get_tier_by_followers, get_tier_by_id

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Settings: built once from the environment, overridable in tests
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> config.Settings:
    settings = config.load_settings()
    logger.info(f"Payout providers configured: {configured_providers(settings)}")
    return settings


def _error(status_code: int, message: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"status": "error", "message": message},
    )


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Mingree Creator Payments API",
    description="Creator tier pricing, fee/GST breakdowns, deposits and UPI payouts",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===========================================================================
# Tiers
# ===========================================================================

@app.get("/api/tiers")
async def list_tiers():
    return {"min_followers": MIN_FOLLOWERS, "tiers": list(TIERS)}


@app.get("/api/tiers/lookup", response_model=TierLookupResponse)
async def lookup_tier(followers: int = Query(ge=0)):
    tier = get_tier_by_followers(followers)
    return TierLookupResponse(
        followers=followers,
        formatted_followers=format_followers(followers),
        eligible=tier is not None,
        tier=tier,
    )


@app.get("/api/tiers/{tier_id}", response_model=Tier)
async def read_tier(tier_id: int):
    tier = get_tier_by_id(tier_id)
    if tier is None:
        raise _error(404, f"Tier not found: {tier_id}")
    return tier


# ===========================================================================
# Pricing quotes
# ===========================================================================

@app.post("/api/pricing/creator-payment", response_model=CreatorPaymentResponse)
async def quote_creator_payment(request: CreatorPaymentRequest):
    priced = calculate_creator_payment(request.followers, request.promotion_style)
    if priced is None:
        raise _error(
            400,
            f"At least {format_followers(MIN_FOLLOWERS)} followers are required "
            f"(got {request.followers:,})",
        )

    tier, payment = priced
    return CreatorPaymentResponse(
        tier=tier,
        promotion_style=request.promotion_style,
        creator_payment=payment,
    )


@app.post("/api/pricing/sponsor-payment")
async def quote_sponsor_payment(request: SponsorPaymentRequest):
    return calculate_sponsor_payment(request.creator_payment)


@app.post("/api/pricing/deposit")
async def quote_deposit(request: DepositQuoteRequest):
    if request.international:
        return calculate_international_deposit(request.base_amount)
    return calculate_deposit_with_gst(request.base_amount)


@app.post("/api/pricing/withdrawal")
async def quote_withdrawal(request: WithdrawalQuoteRequest):
    if request.amount < MIN_WITHDRAWAL_AMOUNT:
        raise _error(400, f"Minimum withdrawal amount is ₹{MIN_WITHDRAWAL_AMOUNT}")
    return calculate_withdrawal_with_gst(request.amount)


@app.get("/api/wallet/info", response_model=WalletInfo)
async def read_wallet_info():
    return wallet_info()


# ===========================================================================
# Deposits: Razorpay Orders
# ===========================================================================

@app.post("/api/deposits/orders", response_model=DepositOrderResponse)
async def create_deposit(
    request: DepositOrderRequest,
    settings: config.Settings = Depends(get_settings),
):
    try:
        order, breakdown = await create_deposit_order(settings.razorpay, request.base_amount)
        key_id = get_razorpay_key_id(settings.razorpay)
    except ProviderNotConfiguredError as e:
        logger.error(f"Deposit order unavailable: {e}")
        raise _error(503, "Razorpay not configured")
    except PaymentProviderError as e:
        logger.error(f"Failed to create deposit order: {e}")
        raise _error(502, "Failed to create payment order")

    return DepositOrderResponse(
        order_id=order["id"],
        amount=order.get("amount", 0),
        currency=order.get("currency", "INR"),
        key_id=key_id,
        base_amount=breakdown.base_amount,
        gst_amount=breakdown.gst_amount,
        total_payable=breakdown.total_payable,
    )


@app.post("/api/deposits/verify")
async def verify_deposit(
    request: VerifyPaymentRequest,
    settings: config.Settings = Depends(get_settings),
):
    try:
        valid = verify_payment_signature(
            settings.razorpay,
            request.order_id,
            request.payment_id,
            request.signature,
        )
    except ProviderNotConfiguredError:
        raise _error(503, "Razorpay not configured")

    if not valid:
        logger.warning(f"Invalid payment signature for order {request.order_id}")
        raise _error(400, "Invalid payment signature")

    return {"status": "success", "order_id": request.order_id, "payment_id": request.payment_id}


# ===========================================================================
# Payouts
# ===========================================================================

@app.get("/api/payouts/providers")
async def list_payout_providers(settings: config.Settings = Depends(get_settings)):
    return configured_providers(settings)


@app.post("/api/payouts", response_model=PayoutResult)
async def create_payout(
    request: PayoutRequest,
    settings: config.Settings = Depends(get_settings),
):
    if parse_provider(request.provider) is None:
        raise _error(404, f"Unknown payout provider: {request.provider}")
    return await initiate_payout(settings, request)


@app.get("/api/payouts/{provider}/{payout_id}", response_model=PayoutResult)
async def read_payout_status(
    provider: str,
    payout_id: str,
    settings: config.Settings = Depends(get_settings),
):
    if parse_provider(provider) is None:
        raise _error(404, f"Unknown payout provider: {provider}")
    return await get_payout_status(settings, provider, payout_id)


# ===========================================================================
# Main entry point
# ===========================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
