"""
Creator payment pricing.

Per-post creator payment = tier base_payment × promotion style multiplier,
rounded half-up to whole INR.

  face_ad     → 1.00  (face on camera, full base price)
  share_only  → 0.90  (direct share, 10% less)
  lyricals    → 0.60  (lyric / page repost)

An unrecognized style prices at 1.00. This is a silent fallback, not an error.
"""

import logging
from typing import Optional

from models.schemas import PromotionStyle, Tier
from services.money import round_half_up
from services.tiers import get_tier_by_followers

logger = logging.getLogger(__name__)

DEFAULT_MULTIPLIER = 1.0

PROMOTION_STYLE_MULTIPLIERS: dict[str, float] = {
    PromotionStyle.FACE_AD.value: 1.0,
    PromotionStyle.SHARE_ONLY.value: 0.90,
    PromotionStyle.LYRICALS.value: 0.60,
}


def get_style_multiplier(promotion_style: str) -> float:
    if isinstance(promotion_style, PromotionStyle):
        promotion_style = promotion_style.value
    multiplier = PROMOTION_STYLE_MULTIPLIERS.get(promotion_style)
    if multiplier is None:
        logger.debug(f"Unknown promotion style {promotion_style!r}, using {DEFAULT_MULTIPLIER}")
        return DEFAULT_MULTIPLIER
    return multiplier


def get_payment_by_style(base_payment: float, promotion_style: str) -> int:
    """
    Apply the promotion style multiplier to a base payment.

    Args:
        base_payment:    Tier base payment in INR
        promotion_style: One of PromotionStyle values (anything else → 1.0)

    Returns:
        Payment in whole INR
    """
    return round_half_up(base_payment * get_style_multiplier(promotion_style))


def calculate_creator_payment(
    followers: int,
    promotion_style: str,
) -> Optional[tuple[Tier, int]]:
    """
    Tier lookup followed by style pricing.

    Returns (tier, payment), or None when the creator is below MIN_FOLLOWERS.
    """
    tier = get_tier_by_followers(followers)
    if tier is None:
        return None
    return tier, get_payment_by_style(tier.base_payment, promotion_style)
