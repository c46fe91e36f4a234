"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Generator

import httpx
import pytest
import pytest_asyncio

from keyprobe.core.models import ApiType, Category
from keyprobe.core.transport import ProviderRequest
from keyprobe.providers.base import BaseProvider
from keyprobe.providers.registry import ProviderRegistry, build_registration, reset_registry
from keyprobe.utils.config import MatcherSettings, ValidatorSettings, reset_settings
from keyprobe.validator.engine import ValidationEngine, reset_engine

STUB_KEY = "stub-0123456789abcdef"


class StubProvider(BaseProvider):
    """Minimal provider used to exercise the engine."""

    def is_valid_key_format(self, key: str) -> bool:
        return key.startswith("stub-") and len(key) == 21

    def build_request(self, key: str) -> ProviderRequest:
        return ProviderRequest(
            method="GET",
            url="https://stub.example.com/v1/check",
            headers={"Authorization": f"Bearer {key}"},
        )


STUB_REGISTRATION = build_registration(
    StubProvider,
    name="Stub",
    api_type=ApiType.MISTRAL,
    category=Category.AI_LLM,
    patterns=[r"\b(stub-[a-z0-9]{16})\b"],
    scraper_enabled=True,
    verification_enabled=True,
    display_in_ui=True,
    notify_owner_directly=False,
)


def make_response(
    status_code: int,
    body: str = "",
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Build an httpx response as the engine's client would return it."""
    return httpx.Response(status_code, text=body, headers=headers)


@pytest.fixture(autouse=True)
def _isolate_globals() -> Generator[None, None, None]:
    """Reset global settings, registry and engine around every test."""
    reset_settings()
    reset_registry()
    reset_engine()
    yield
    reset_settings()
    reset_registry()
    reset_engine()


@pytest.fixture
def fast_settings() -> ValidatorSettings:
    """Validator settings with short timeouts and no jitter."""
    return ValidatorSettings(
        timeout_seconds=2.0,
        request_timeout_seconds=1.0,
        max_attempts=3,
        backoff_base_seconds=0.01,
        backoff_max_seconds=0.05,
        backoff_jitter=0.0,
        max_concurrent=4,
    )


@pytest.fixture
def matcher_settings() -> MatcherSettings:
    """Matcher settings with small windows."""
    return MatcherSettings(
        max_text_length=100_000,
        max_line_length=200,
        max_match_length=100,
        regex_timeout_seconds=0.5,
    )


@pytest_asyncio.fixture
async def engine(fast_settings: ValidatorSettings) -> AsyncGenerator[ValidationEngine, None]:
    """An open engine with fast retry settings."""
    async with ValidationEngine(settings=fast_settings) as engine:
        yield engine


@pytest.fixture
def stub_provider() -> StubProvider:
    """A provider instance whose key format is 'stub-' + 16 chars."""
    return StubProvider()


@pytest.fixture
def stub_key() -> str:
    """A key that passes the stub provider's format check."""
    return STUB_KEY


@pytest.fixture
def respond() -> Callable[..., httpx.Response]:
    """Factory for canned HTTP responses."""
    return make_response


@pytest.fixture
def stub_registry() -> ProviderRegistry:
    """A registry serving only the stub provider."""
    return ProviderRegistry(registrations=[STUB_REGISTRATION])
