"""Unit tests for Anthropic provider implementation."""

import json

import pytest

from keyprobe.core.outcome import Success, Unauthorized, ValidNoCredits
from keyprobe.core.transport import ProviderResponse
from keyprobe.providers.anthropic import AnthropicProvider

API_KEY = "sk-ant-api03-" + "AbCdEfGh12-_" * 8
ADMIN_KEY = "sk-ant-admin01-" + "XyZ0987654321abcdefgh"


@pytest.fixture
def provider() -> AnthropicProvider:
    """Create provider instance."""
    return AnthropicProvider()


class TestAnthropicPatterns:
    """Tests for Anthropic key pattern matching."""

    def test_api_key(self, provider: AnthropicProvider) -> None:
        """Standard API keys are detected."""
        assert provider.extract_keys(f'ANTHROPIC_API_KEY="{API_KEY}"') == [API_KEY]

    def test_admin_key(self, provider: AnthropicProvider) -> None:
        """Admin keys are detected."""
        assert provider.extract_keys(f"key: {ADMIN_KEY}") == [ADMIN_KEY]

    def test_format_check(self, provider: AnthropicProvider) -> None:
        """Format pre-check requires the sk-ant- prefix."""
        assert provider.is_valid_key_format(API_KEY)
        assert not provider.is_valid_key_format("sk-ant-short")
        assert not provider.is_valid_key_format("sk-" + "a" * 60)


class TestAnthropicValidation:
    """Tests for Anthropic request building and response handling."""

    def test_request_headers(self, provider: AnthropicProvider) -> None:
        """Validation sends x-api-key and anthropic-version."""
        request = provider.build_request(API_KEY)
        assert request.url == "https://api.anthropic.com/v1/models"
        assert request.headers == {"x-api-key": API_KEY, "anthropic-version": "2023-06-01"}

    def test_success_lists_models(self, provider: AnthropicProvider) -> None:
        """Listed models carry their display names."""
        body = json.dumps(
            {"data": [{"id": "claude-3-haiku-20240307", "display_name": "Claude 3 Haiku"}]}
        )
        outcome = provider.interpret_response(ProviderResponse(200, body))

        assert isinstance(outcome, Success)
        assert outcome.models is not None
        assert outcome.models[0].display_name == "Claude 3 Haiku"
        assert outcome.models[0].model_group == "Claude"

    def test_low_balance(self, provider: AnthropicProvider) -> None:
        """A 400 about credit balance means no credits."""
        body = '{"error": {"message": "Your credit balance is too low"}}'
        outcome = provider.interpret_response(ProviderResponse(400, body))
        assert isinstance(outcome, ValidNoCredits)
        assert outcome.detail == "Insufficient credit balance"

    def test_other_400_is_valid(self, provider: AnthropicProvider) -> None:
        """Other 400s come from an authenticated key."""
        outcome = provider.interpret_response(ProviderResponse(400, '{"error": "bad"}'))
        assert isinstance(outcome, Success)
        assert outcome.status_code == 400

    def test_unauthorized(self, provider: AnthropicProvider) -> None:
        """A 401 rejects the key."""
        assert isinstance(provider.interpret_response(ProviderResponse(401)), Unauthorized)
