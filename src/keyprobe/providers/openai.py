"""OpenAI API key provider implementation.

This module implements detection and validation for OpenAI API keys,
including project and service-account keys.
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

# Model id prefix -> (group, description)
_MODEL_GROUPS: tuple[tuple[str, str, str | None], ...] = (
    ("gpt-4", "GPT-4", None),
    ("gpt-3.5", "GPT-3.5", None),
    ("o1", "O1", "OpenAI's reasoning model"),
    ("text-embedding", "Embeddings", "Text embedding model"),
    ("dall-e", "DALL-E", "Image generation model"),
    ("whisper", "Whisper", "Speech recognition model"),
    ("tts", "TTS", "Text-to-speech model"),
)


@register_provider(
    name="OpenAI",
    api_type=ApiType.OPENAI,
    category=Category.AI_LLM,
    patterns=[
        r"sk-[A-Za-z0-9\-]{20,}",
        r"sk-proj-[A-Za-z0-9\-]{20,}",
        r"sk-svcacct-[A-Za-z0-9\-]{20,}",
        r"sk-[A-Za-z0-9]{48}",
        r"Bearer sk-[A-Za-z0-9\-]{20,}",
    ],
    scraper_enabled=True,
    verification_enabled=True,
    display_in_ui=True,
    notify_owner_directly=False,
)
class OpenAIProvider(BaseProvider):
    """OpenAI API key provider.

    Supports detection of legacy (sk-), project (sk-proj-) and service
    account (sk-svcacct-) keys, including keys quoted in auth headers.

    Validation uses GET /v1/models, which costs nothing and lists the
    models the key can use.
    """

    VALIDATION_ENDPOINT = "https://api.openai.com/v1/models"

    def is_valid_key_format(self, key: str) -> bool:
        """Key starts with sk- and has at least 20 characters after it."""
        return key.startswith("sk-") and len(key) >= 23

    def build_request(self, key: str) -> ProviderRequest:
        """Build the model listing request."""
        return ProviderRequest(
            method="GET",
            url=self.VALIDATION_ENDPOINT,
            headers={"Authorization": f"Bearer {key}"},
        )

    def interpret_response(self, response: ProviderResponse) -> ValidationOutcome:
        """A 429 mentioning "exceeded" is quota exhaustion, not throttling."""
        if response.status_code == 429 and contains_any(response.text, ("exceeded",)):
            return ValidationOutcome.valid_no_credits(response.status_code, "Quota exceeded")
        return super().interpret_response(response)

    def parse_success(self, response: ProviderResponse) -> Success:
        """A working model listing means the key can make requests."""
        models = [self._model_info(item["id"]) for item in response.json()["data"]]
        return ValidationOutcome.success(
            response.status_code,
            has_credits=True,
            models=models,
        )

    @staticmethod
    def _model_info(model_id: str) -> ModelInfo:
        for prefix, group, description in _MODEL_GROUPS:
            if model_id.startswith(prefix):
                if prefix == "gpt-4" and "turbo" in model_id:
                    description = "GPT-4 Turbo model with enhanced capabilities"
                elif prefix == "gpt-4" and "vision" in model_id:
                    description = "GPT-4 model with vision capabilities"
                return ModelInfo(
                    model_id=model_id,
                    display_name=model_id,
                    description=description,
                    model_group=group,
                )
        return ModelInfo(model_id=model_id, display_name=model_id, model_group="Other")
