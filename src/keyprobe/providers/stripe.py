"""Stripe secret key provider implementation.

Stripe keys control real money. They are validated so the repository owner
can be told directly, but are never exposed in the UI or statistics.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, ClassVar

from keyprobe.core.models import ApiType, Category
from keyprobe.core.outcome import ValidationOutcome
from keyprobe.core.transport import ProviderRequest
from keyprobe.providers.base import BaseProvider
from keyprobe.providers.registry import register_provider
from keyprobe.validator.classifier import DEFAULT_PERMISSION_INDICATORS, contains_any

if TYPE_CHECKING:
    from keyprobe.core.outcome import Success
    from keyprobe.core.transport import ProviderResponse


@register_provider(
    name="Stripe",
    api_type=ApiType.STRIPE,
    category=Category.FINANCIAL,
    patterns=[
        r"\b(sk_live_[A-Za-z0-9]{24,99})\b",
        r"\b(rk_live_[A-Za-z0-9]{24,99})\b",
    ],
    scraper_enabled=True,
    verification_enabled=True,
    display_in_ui=False,
    hidden_from_ui_reason="Financial keys are reported to the owner, never published",
    notify_owner_directly=True,
)
class StripeProvider(BaseProvider):
    """Stripe live secret and restricted key provider.

    Validation uses GET /v1/balance, a read-only call. Restricted keys
    without balance access get a permission error, which still proves the
    key is live.
    """

    VALIDATION_ENDPOINT = "https://api.stripe.com/v1/balance"

    permission_indicators: ClassVar[frozenset[str]] = DEFAULT_PERMISSION_INDICATORS | {
        "required permissions"
    }

    def is_valid_key_format(self, key: str) -> bool:
        """Key is a live secret (sk_live_) or restricted (rk_live_) key."""
        return key.startswith(("sk_live_", "rk_live_")) and len(key) >= 32

    def build_request(self, key: str) -> ProviderRequest:
        """Build the balance request."""
        return ProviderRequest(
            method="GET",
            url=self.VALIDATION_ENDPOINT,
            headers={"Authorization": f"Bearer {key}"},
        )

    def parse_success(self, response: ProviderResponse) -> Success:
        """Sum the available balance across currencies, in major units."""
        available = response.json()["available"]
        balance = sum(
            (Decimal(entry["amount"]) / 100 for entry in available),
            Decimal(0),
        )
        return ValidationOutcome.success(
            response.status_code,
            has_credits=balance > 0,
            credit_balance=balance,
        )

    def interpret_response(self, response: ProviderResponse) -> ValidationOutcome:
        """A restricted key refused for missing scope is still live."""
        if response.status_code == 403 and contains_any(
            response.text, self.permission_indicators
        ):
            return ValidationOutcome.success(response.status_code)
        return super().interpret_response(response)
