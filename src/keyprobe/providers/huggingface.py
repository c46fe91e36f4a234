"""Hugging Face API key provider implementation.

This module implements detection and validation for Hugging Face access
tokens, which are commonly used for accessing models and the Inference API.
"""

from keyprobe.core.models import ApiType, Category
from keyprobe.core.transport import ProviderRequest
from keyprobe.providers.base import BaseProvider
from keyprobe.providers.registry import register_provider


@register_provider(
    name="HuggingFace",
    api_type=ApiType.HUGGINGFACE,
    category=Category.AI_LLM,
    patterns=[
        # User access token: hf_ prefix + 34 alphanumeric characters
        r"\b(hf_[a-zA-Z0-9]{34})\b",
    ],
    scraper_enabled=True,
    verification_enabled=True,
    display_in_ui=True,
    notify_owner_directly=False,
)
class HuggingFaceProvider(BaseProvider):
    """Hugging Face API key provider.

    Validation uses GET /api/whoami-v2 which returns user information
    and token scopes.
    """

    VALIDATION_ENDPOINT = "https://huggingface.co/api/whoami-v2"

    def is_valid_key_format(self, key: str) -> bool:
        """Token is hf_ followed by 34 alphanumeric characters."""
        return len(key) == 37 and key.startswith("hf_") and key[3:].isalnum()

    def build_request(self, key: str) -> ProviderRequest:
        """Build the whoami request."""
        return ProviderRequest(
            method="GET",
            url=self.VALIDATION_ENDPOINT,
            headers={"Authorization": f"Bearer {key}"},
        )
