"""
Creator tier catalog.

Maps a creator's follower count to a base per-post payment (INR).

Tier table (min inclusive, max exclusive):
  Tier 1–3     500 – 5K        → ₹20 – ₹60   (listed, below eligibility)
  Tier 4       5K – 10K        → ₹80
  ...
  Tier 19      5M – 10M        → ₹380
  Tier 20      10M – 100M      → ₹400

Eligibility starts at MIN_FOLLOWERS (5,000). Anything at or above the last
tier's upper bound collapses into the last tier rather than failing.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from models.schemas import Tier

logger = logging.getLogger(__name__)

MIN_FOLLOWERS = 5_000

# ---------------------------------------------------------------------------
# Tier table, contiguous: TIERS[i].max_followers == TIERS[i + 1].min_followers
# ---------------------------------------------------------------------------
_TIER_BOUNDS = [
    # (min_followers_inclusive, max_followers_exclusive)
    (500,        1_000),
    (1_000,      2_000),
    (2_000,      5_000),
    (5_000,      10_000),
    (10_000,     20_000),
    (20_000,     35_000),
    (35_000,     50_000),
    (50_000,     75_000),
    (75_000,     100_000),
    (100_000,    150_000),
    (150_000,    200_000),
    (200_000,    300_000),
    (300_000,    500_000),
    (500_000,    750_000),
    (750_000,    1_000_000),
    (1_000_000,  2_000_000),
    (2_000_000,  3_000_000),
    (3_000_000,  5_000_000),
    (5_000_000,  10_000_000),
    (10_000_000, 100_000_000),
]
PAYMENT_STEP = 20  # INR added per tier

TIERS: tuple[Tier, ...] = tuple(
    Tier(
        id=rank,
        name=f"Tier {rank}",
        min_followers=low,
        max_followers=high,
        base_payment=PAYMENT_STEP * rank,
    )
    for rank, (low, high) in enumerate(_TIER_BOUNDS, start=1)
)


def get_tier_by_followers(followers: int) -> Optional[Tier]:
    """
    Find the tier for a follower count.

    Returns None when followers < MIN_FOLLOWERS (creator not eligible).
    Falls back to the last tier when the count is past every upper bound.
    """
    if followers < MIN_FOLLOWERS:
        return None

    for tier in TIERS:
        if tier.min_followers <= followers < tier.max_followers:
            return tier

    logger.debug(f"Followers {followers:,} above table, using {TIERS[-1].name}")
    return TIERS[-1]


def get_tier_by_id(tier_id: int) -> Optional[Tier]:
    for tier in TIERS:
        if tier.id == tier_id:
            return tier
    return None


def format_followers(count: int) -> str:
    """
    Short display form: 1200000 → "1.2M", 8000 → "8K", 500 → "500".

    Rounds the exact decimal count half-up, so 1150000 → "1.2M". A browser's
    Number.toFixed rounds the binary double instead and shows "1.1M" there.
    """
    if count >= 1_000_000:
        millions = (Decimal(count) / 1_000_000).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return f"{millions}M"
    if count >= 1_000:
        thousands = (Decimal(count) / 1_000).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return f"{thousands}K"
    return str(count)
