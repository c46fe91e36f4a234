"""OpenRouter API key provider implementation.

This module implements detection and validation for OpenRouter keys. The
credits endpoint reports the remaining balance without spending any.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, ClassVar

from keyprobe.core.models import ApiType, Category
from keyprobe.core.outcome import ValidationOutcome
from keyprobe.core.transport import ProviderRequest
from keyprobe.providers.base import BaseProvider
from keyprobe.providers.registry import register_provider
from keyprobe.validator.classifier import RateLimitPolicy, contains_any

if TYPE_CHECKING:
    from keyprobe.core.outcome import Success
    from keyprobe.core.transport import ProviderResponse


@register_provider(
    name="OpenRouter",
    api_type=ApiType.OPENROUTER,
    category=Category.AI_LLM,
    patterns=[
        r"sk-or-[a-zA-Z0-9]{24,48}",
        r"sk-or-v1-[a-zA-Z0-9]{48,64}",
    ],
    scraper_enabled=True,
    verification_enabled=True,
    display_in_ui=True,
    notify_owner_directly=False,
)
class OpenRouterProvider(BaseProvider):
    """OpenRouter API key provider.

    Validation uses GET /api/v1/credits. Any 429 proves the key
    authenticated, and error bodies about quota, permissions or moderation
    still come from an accepted key.
    """

    VALIDATION_ENDPOINT = "https://openrouter.ai/api/v1/credits"
    REFERER = "https://github.com/keyprobe/keyprobe"

    rate_limit_policy: ClassVar[RateLimitPolicy] = RateLimitPolicy.ASSUME_VALID

    _ACCEPTED_ERROR_PHRASES: ClassVar[frozenset[str]] = frozenset(
        {"rate_limit_exceeded", "moderation"}
    )

    def is_valid_key_format(self, key: str) -> bool:
        """Key starts with sk-or- and has at least 24 characters after it."""
        return key.startswith("sk-or-") and len(key) >= 30

    def build_request(self, key: str) -> ProviderRequest:
        """Build the credits request."""
        return ProviderRequest(
            method="GET",
            url=self.VALIDATION_ENDPOINT,
            headers={
                "Authorization": f"Bearer {key}",
                "Referer": self.REFERER,
            },
        )

    def parse_success(self, response: ProviderResponse) -> Success:
        """Compute the remaining balance from total credits and usage."""
        data = response.json().get("data")
        if not data:
            return ValidationOutcome.success(response.status_code)

        total = Decimal(str(data.get("total_credits", 0)))
        used = Decimal(str(data.get("total_usage", 0)))
        remaining = total - used
        return ValidationOutcome.success(
            response.status_code,
            has_credits=remaining > 0,
            credit_balance=remaining,
        )

    def interpret_response(self, response: ProviderResponse) -> ValidationOutcome:
        """Treat quota and permission errors as proof of a valid key."""
        status = response.status_code
        if status >= 400 and status not in (401, 402, 403, 429):
            indicators = (
                self.quota_indicators
                | self.permission_indicators
                | self._ACCEPTED_ERROR_PHRASES
            )
            if contains_any(response.text, indicators):
                return ValidationOutcome.success(status)
        return super().interpret_response(response)
