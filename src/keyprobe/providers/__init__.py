"""Provider contract, registry and reference provider implementations."""

from keyprobe.providers.anthropic import AnthropicProvider
from keyprobe.providers.base import BaseProvider, RateLimitPolicy
from keyprobe.providers.github import GitHubProvider
from keyprobe.providers.groq import GroqProvider
from keyprobe.providers.huggingface import HuggingFaceProvider
from keyprobe.providers.openai import OpenAIProvider
from keyprobe.providers.openrouter import OpenRouterProvider
from keyprobe.providers.registry import (
    PROVIDER_API_VERSION,
    ProviderRegistration,
    ProviderRegistry,
    build_registration,
    get_registry,
    register_provider,
    reset_registry,
)
from keyprobe.providers.stripe import StripeProvider

__all__ = [
    "PROVIDER_API_VERSION",
    "AnthropicProvider",
    "BaseProvider",
    "GitHubProvider",
    "GroqProvider",
    "HuggingFaceProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
    "ProviderRegistration",
    "ProviderRegistry",
    "RateLimitPolicy",
    "StripeProvider",
    "build_registration",
    "get_registry",
    "register_provider",
    "reset_registry",
]
