"""
Environment configuration for the payments backend.

Credentials are read from the process environment (optionally seeded from a
.env file) and frozen into a Settings object once. Gateways receive their
slice of Settings explicitly; nothing below the HTTP layer calls os.getenv.

A missing credential is a valid "unconfigured" state, not a startup error.
"""

import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

load_dotenv()

BULKPE_API_URL = "https://api.bulkpe.in"
CASHFREE_PAYOUT_SANDBOX_URL = "https://payout-gamma.cashfree.com/payout/v1"
CASHFREE_PAYOUT_PRODUCTION_URL = "https://payout-api.cashfree.com/payout/v1"
RAZORPAY_API_URL = "https://api.razorpay.com/v1"

DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds, per outbound provider call


class BulkpeSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = None
    base_url: str = BULKPE_API_URL
    timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class CashfreePayoutSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    app_id: Optional[str] = None
    secret_key: Optional[str] = None
    environment: str = "sandbox"
    timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def is_configured(self) -> bool:
        # Placeholder app ids ship in sample .env files
        return bool(
            self.app_id
            and self.secret_key
            and "placeholder" not in self.app_id
        )

    @property
    def base_url(self) -> str:
        if self.environment == "production":
            return CASHFREE_PAYOUT_PRODUCTION_URL
        return CASHFREE_PAYOUT_SANDBOX_URL


class RazorpaySettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    key_id: Optional[str] = None
    key_secret: Optional[str] = None
    payout_account_number: Optional[str] = None
    base_url: str = RAZORPAY_API_URL
    timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def is_configured(self) -> bool:
        """Orders (deposits) only need the API key pair."""
        return bool(self.key_id and self.key_secret)

    @property
    def is_payouts_configured(self) -> bool:
        """RazorpayX payouts also need the business account number."""
        return self.is_configured and bool(self.payout_account_number)


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    bulkpe: BulkpeSettings = BulkpeSettings()
    cashfree: CashfreePayoutSettings = CashfreePayoutSettings()
    razorpay: RazorpaySettings = RazorpaySettings()


def _read(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(name, "")
    value = value.strip() if value else ""
    return value or None


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from an environment mapping (defaults to os.environ).

    Empty values are treated as absent. PAYMENT_REQUEST_TIMEOUT overrides the
    per-call timeout for every provider.
    """
    if env is None:
        env = os.environ

    timeout_raw = _read(env, "PAYMENT_REQUEST_TIMEOUT")
    timeout = float(timeout_raw) if timeout_raw else DEFAULT_REQUEST_TIMEOUT

    return Settings(
        bulkpe=BulkpeSettings(
            api_key=_read(env, "BULKPE_API_KEY"),
            timeout=timeout,
        ),
        cashfree=CashfreePayoutSettings(
            app_id=_read(env, "CASHFREE_APP_ID"),
            secret_key=_read(env, "CASHFREE_SECRET_KEY"),
            environment=(_read(env, "CASHFREE_ENVIRONMENT") or "sandbox").lower(),
            timeout=timeout,
        ),
        razorpay=RazorpaySettings(
            key_id=_read(env, "RAZORPAY_KEY_ID"),
            key_secret=_read(env, "RAZORPAY_KEY_SECRET"),
            payout_account_number=_read(env, "RAZORPAYX_ACCOUNT_NUMBER"),
            timeout=timeout,
        ),
    )
