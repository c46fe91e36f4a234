"""Groq API key provider implementation.

This module implements detection and validation for Groq API keys.
Groq provides fast inference with an OpenAI-compatible API.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from keyprobe.core.models import ApiType, Category, ModelInfo
from keyprobe.core.outcome import ValidationOutcome
from keyprobe.core.transport import ProviderRequest
from keyprobe.providers.base import BaseProvider
from keyprobe.providers.registry import register_provider

if TYPE_CHECKING:
    from keyprobe.core.outcome import Success
    from keyprobe.core.transport import ProviderResponse


@register_provider(
    name="Groq",
    api_type=ApiType.GROQ,
    category=Category.AI_LLM,
    patterns=[
        # gsk_ prefix + 50+ alphanumeric characters
        r"\b(gsk_[a-zA-Z0-9]{50,})\b",
    ],
    scraper_enabled=True,
    verification_enabled=True,
    display_in_ui=True,
    notify_owner_directly=False,
)
class GroqProvider(BaseProvider):
    """Groq API key provider.

    Groq uses an OpenAI-compatible API, so validation uses /openai/v1/models.
    """

    VALIDATION_ENDPOINT = "https://api.groq.com/openai/v1/models"

    def is_valid_key_format(self, key: str) -> bool:
        """Key starts with gsk_ and has 50+ characters after it."""
        return key.startswith("gsk_") and len(key) >= 54 and key[4:].isalnum()

    def build_request(self, key: str) -> ProviderRequest:
        """Build the model listing request."""
        return ProviderRequest(
            method="GET",
            url=self.VALIDATION_ENDPOINT,
            headers={"Authorization": f"Bearer {key}"},
        )

    def parse_success(self, response: ProviderResponse) -> Success:
        """Collect the listed models."""
        models = [
            ModelInfo(
                model_id=item["id"],
                display_name=item["id"],
                model_group=item.get("owned_by"),
            )
            for item in response.json()["data"]
        ]
        return ValidationOutcome.success(response.status_code, has_credits=True, models=models)
