"""
Pydantic models for the Mingree creator payments backend.

Models:
  - Tier: one follower-count bracket of the static tier catalog
  - PromotionStyle: content format a creator commits to (price multiplier key)
  - SponsorPaymentBreakdown / DepositBreakdown / InternationalDepositBreakdown /
    WithdrawalBreakdown: computed fee and tax value objects
  - PayoutResult: normalized outcome of a payout attempt, any provider
  - API request / response models for main.py
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Amounts keep whatever numeric type the caller passed in (int stays int).
Amount = Union[int, float]


# ---------------------------------------------------------------------------
# Tier: immutable row of the tier catalog
#
# min_followers is inclusive, max_followers is exclusive.
# ---------------------------------------------------------------------------
class Tier(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    min_followers: int
    max_followers: int
    base_payment: int  # whole INR


class PromotionStyle(str, Enum):
    FACE_AD = "face_ad"        # face on camera
    SHARE_ONLY = "share_only"  # direct share
    LYRICALS = "lyricals"      # lyric / page repost


# ---------------------------------------------------------------------------
# Breakdown value objects: produced per request, never persisted here
# ---------------------------------------------------------------------------
class SponsorPaymentBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    creator_payment: Amount
    platform_fee: Amount
    total_payable: Amount


class DepositBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_amount: Amount
    gst_amount: Amount
    total_payable: Amount


class InternationalDepositBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_amount: Amount
    processing_fee: Amount
    total_payable: Amount


class WithdrawalBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: Amount
    gst_amount: Amount
    net_amount: Amount  # what reaches the creator's account


# ---------------------------------------------------------------------------
# PayoutResult: common shape across Bulkpe, Cashfree and RazorpayX
#
# provider_transaction_id is the vendor's own id for the transfer:
#   Bulkpe → transaction_id, Cashfree → referenceId, RazorpayX → payout id
# ---------------------------------------------------------------------------
class PayoutResult(BaseModel):
    success: bool
    provider: str
    provider_transaction_id: Optional[str] = None
    reference_id: Optional[str] = None
    utr: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# API request / response models
# ---------------------------------------------------------------------------
class TierLookupResponse(BaseModel):
    followers: int
    formatted_followers: str
    eligible: bool
    tier: Optional[Tier] = None


class CreatorPaymentRequest(BaseModel):
    followers: int = Field(ge=0)
    promotion_style: str = PromotionStyle.FACE_AD.value


class CreatorPaymentResponse(BaseModel):
    tier: Tier
    promotion_style: str
    creator_payment: int


class SponsorPaymentRequest(BaseModel):
    creator_payment: float = Field(ge=0, allow_inf_nan=False)


class DepositQuoteRequest(BaseModel):
    base_amount: float = Field(gt=0, allow_inf_nan=False)
    international: bool = False


class WithdrawalQuoteRequest(BaseModel):
    amount: float = Field(gt=0, allow_inf_nan=False)


class WalletInfo(BaseModel):
    min_withdrawal_amount: int
    currency: str
    gst_percent: int


class DepositOrderRequest(BaseModel):
    base_amount: float = Field(gt=0, allow_inf_nan=False)


class DepositOrderResponse(BaseModel):
    order_id: str
    amount: int  # paise, as echoed by Razorpay
    currency: str
    key_id: str
    base_amount: Amount
    gst_amount: int
    total_payable: Amount


class VerifyPaymentRequest(BaseModel):
    order_id: str
    payment_id: str
    signature: str


class PayoutRequest(BaseModel):
    provider: str
    upi_id: str = Field(min_length=3)
    amount: float = Field(gt=0, allow_inf_nan=False)
    beneficiary_name: str = Field(min_length=1)
    reference_id: str = Field(min_length=1)
    note: Optional[str] = None
    beneficiary_email: Optional[str] = None
    beneficiary_phone: Optional[str] = None
