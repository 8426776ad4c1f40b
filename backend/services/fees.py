"""
Platform fee and tax breakdowns.

  Sponsor campaign payment:  creator payment + 10% platform fee (no GST here)
  Wallet deposit (India):    base amount + 18% GST
  Wallet deposit (intl):     base amount + 5% processing fee, 2 decimal places
  Creator withdrawal:        requested amount − 18% GST = net paid out

All functions are pure. Inputs are trusted: negative or non-finite amounts
produce meaningless output rather than an error.

Note on the international fee: it is computed as round(base × 5) / 100, i.e.
the rounding happens BEFORE the division by 100, unlike the other fees which
round the final rupee amount. Kept as is until product confirms the intent.
"""

from models.schemas import (
    DepositBreakdown,
    InternationalDepositBreakdown,
    SponsorPaymentBreakdown,
    WalletInfo,
    WithdrawalBreakdown,
)
from services.money import round_half_up, round_to_paise

# ---------------------------------------------------------------------------
# Rates (percent)
# ---------------------------------------------------------------------------
PLATFORM_FEE_PERCENT = 10
GST_PERCENT = 18
INTERNATIONAL_FEE_PERCENT = 5

TAX_RATES = {
    "PLATFORM_FEE_PERCENT": PLATFORM_FEE_PERCENT,
    "GST_PERCENT": GST_PERCENT,
    "INTERNATIONAL_FEE_PERCENT": INTERNATIONAL_FEE_PERCENT,
}

# Wallet rules
MIN_WITHDRAWAL_AMOUNT = 500  # INR
WALLET_CURRENCY = "INR"


def calculate_sponsor_payment(creator_payment: float) -> SponsorPaymentBreakdown:
    platform_fee = round_half_up(creator_payment * PLATFORM_FEE_PERCENT / 100)
    return SponsorPaymentBreakdown(
        creator_payment=creator_payment,
        platform_fee=platform_fee,
        total_payable=creator_payment + platform_fee,
    )


def calculate_deposit_with_gst(base_amount: float) -> DepositBreakdown:
    """What a sponsor pays to credit base_amount into their wallet."""
    gst_amount = round_half_up(base_amount * GST_PERCENT / 100)
    return DepositBreakdown(
        base_amount=base_amount,
        gst_amount=gst_amount,
        total_payable=base_amount + gst_amount,
    )


def calculate_international_deposit(base_amount: float) -> InternationalDepositBreakdown:
    processing_fee = round_half_up(base_amount * INTERNATIONAL_FEE_PERCENT) / 100
    total_payable = base_amount + processing_fee
    return InternationalDepositBreakdown(
        base_amount=base_amount,
        processing_fee=round_to_paise(processing_fee),
        total_payable=round_to_paise(total_payable),
    )


def calculate_withdrawal_with_gst(amount: float) -> WithdrawalBreakdown:
    """GST is taken out of the requested amount; the rest is paid out."""
    gst_amount = round_half_up(amount * GST_PERCENT / 100)
    return WithdrawalBreakdown(
        amount=amount,
        gst_amount=gst_amount,
        net_amount=amount - gst_amount,
    )


def wallet_info() -> WalletInfo:
    return WalletInfo(
        min_withdrawal_amount=MIN_WITHDRAWAL_AMOUNT,
        currency=WALLET_CURRENCY,
        gst_percent=GST_PERCENT,
    )
