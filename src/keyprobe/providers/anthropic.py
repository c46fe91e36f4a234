"""Anthropic API key provider implementation.

This module implements detection and validation for Anthropic API keys,
supporting both standard API keys and admin keys.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from keyprobe.core.models import ApiType, Category, ModelInfo
from keyprobe.core.outcome import ValidationOutcome
from keyprobe.core.transport import ProviderRequest
from keyprobe.providers.base import BaseProvider
from keyprobe.providers.registry import register_provider
from keyprobe.validator.classifier import contains_any

if TYPE_CHECKING:
    from keyprobe.core.outcome import Success
    from keyprobe.core.transport import ProviderResponse


@register_provider(
    name="Anthropic",
    api_type=ApiType.ANTHROPIC,
    category=Category.AI_LLM,
    patterns=[
        # API key (version flexible: api01, api02, api03, etc.)
        r"\b(sk-ant-api\d{2}-[a-zA-Z0-9\-_]{80,120})\b",
        # Admin key
        r"\b(sk-ant-admin\d{0,2}-[a-zA-Z0-9\-_]{20,})\b",
    ],
    scraper_enabled=True,
    verification_enabled=True,
    display_in_ui=True,
    notify_owner_directly=False,
)
class AnthropicProvider(BaseProvider):
    """Anthropic API key provider.

    Supports detection of:
    - API keys: sk-ant-api03-xxx (version number may vary)
    - Admin keys: sk-ant-admin-xxx

    Validation uses GET /v1/models, which needs the anthropic-version header
    and does not consume tokens.
    """

    # Anthropic API version for validation requests
    ANTHROPIC_VERSION = "2023-06-01"

    VALIDATION_ENDPOINT = "https://api.anthropic.com/v1/models"

    def is_valid_key_format(self, key: str) -> bool:
        """Key starts with sk-ant- and is long enough to be real."""
        return key.startswith("sk-ant-") and len(key) >= 40

    def build_request(self, key: str) -> ProviderRequest:
        """Build the model listing request.

        Anthropic requires both x-api-key and anthropic-version headers.
        """
        return ProviderRequest(
            method="GET",
            url=self.VALIDATION_ENDPOINT,
            headers={
                "x-api-key": key,
                "anthropic-version": self.ANTHROPIC_VERSION,
            },
        )

    def parse_success(self, response: ProviderResponse) -> Success:
        """Collect the listed models."""
        models = [
            ModelInfo(
                model_id=item["id"],
                display_name=item.get("display_name", item["id"]),
                model_group="Claude",
            )
            for item in response.json()["data"]
        ]
        return ValidationOutcome.success(response.status_code, models=models)

    def interpret_response(self, response: ProviderResponse) -> ValidationOutcome:
        """Handle the 400 responses Anthropic sends for authenticated keys.

        - 400 mentioning credit or balance: valid key, no credits
        - any other 400: the key authenticated, the request was refused
        """
        if response.status_code == 400:
            if contains_any(response.text, ("credit", "balance")):
                return ValidationOutcome.valid_no_credits(
                    response.status_code,
                    "Insufficient credit balance",
                )
            return ValidationOutcome.success(response.status_code)
        return super().interpret_response(response)
