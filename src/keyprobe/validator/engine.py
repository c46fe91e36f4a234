"""Async validation engine for API keys.

This module runs a provider's validation request with the shared execution
contract: format pre-check, bounded timeout, retry with exponential backoff
on transient failures, and reduction of everything that can happen to a
single :class:`ValidationOutcome`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from keyprobe.core.outcome import OutcomeKind, ValidationOutcome
from keyprobe.core.transport import ProviderResponse
from keyprobe.utils.config import ValidatorSettings, get_settings
from keyprobe.utils.redaction import create_redaction_filter, mask_key, truncate
from keyprobe.validator.backoff import BackoffPolicy, parse_retry_after
from keyprobe.validator.classifier import RateLimitPolicy

if TYPE_CHECKING:
    from collections.abc import Callable

    from keyprobe.core.transport import ProviderRequest
    from keyprobe.providers.base import BaseProvider

logger = logging.getLogger(__name__)

# Failures worth another attempt; anything else from httpx is a bad request.
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


@dataclass
class ValidationCandidate:
    """A key waiting for validation.

    Attributes:
        provider_name: Name of the provider (e.g., 'OpenAI').
        key: The key to validate.
        source: Where the key was found.
        outcome: Result of validation (set after validate).
    """

    provider_name: str
    key: str
    source: str = ""
    outcome: ValidationOutcome | None = None

    @property
    def is_validated(self) -> bool:
        """Check if this candidate has been validated."""
        return self.outcome is not None

    @property
    def is_valid(self) -> bool:
        """Check if this candidate is validated and the key works."""
        return self.outcome is not None and self.outcome.is_valid_key


@dataclass
class ValidationStats:
    """Outcome counts from a validation batch."""

    total: int = 0
    validated: int = 0
    success: int = 0
    unauthorized: int = 0
    valid_no_credits: int = 0
    http_errors: int = 0
    network_errors: int = 0
    provider_errors: int = 0

    def add_outcome(self, outcome: ValidationOutcome) -> None:
        """Update stats based on an outcome."""
        self.validated += 1
        match outcome.kind:
            case OutcomeKind.SUCCESS:
                self.success += 1
            case OutcomeKind.UNAUTHORIZED:
                self.unauthorized += 1
            case OutcomeKind.VALID_NO_CREDITS:
                self.valid_no_credits += 1
            case OutcomeKind.HTTP_ERROR:
                self.http_errors += 1
            case OutcomeKind.NETWORK_ERROR:
                self.network_errors += 1
            case OutcomeKind.PROVIDER_ERROR:
                self.provider_errors += 1


class ValidationEngine:
    """Runs provider validations over one shared HTTP client.

    The engine keeps no per-call state, so any number of validations may
    run concurrently on the same instance.

    Example:
        ```python
        async with ValidationEngine() as engine:
            outcome = await engine.validate(provider, "sk-test123")
            print(outcome.kind.value)
        ```
    """

    def __init__(
        self,
        settings: ValidatorSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            settings: Timeout, retry and concurrency settings.
            client: HTTP client to share; created on first use if omitted.
        """
        self.settings = settings or get_settings().validator
        self._client = client
        self._owns_client = client is None
        self._semaphore: asyncio.Semaphore | None = None

    @property
    def is_open(self) -> bool:
        """Check if the engine has a client ready for requests."""
        return self._client is not None

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure the HTTP client is created."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.request_timeout_seconds),
                headers={"User-Agent": self.settings.user_agent},
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    def _get_semaphore(self) -> asyncio.Semaphore:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.settings.max_concurrent)
        return self._semaphore

    async def close(self) -> None:
        """Close the HTTP client if this engine created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
        self._semaphore = None

    async def __aenter__(self) -> ValidationEngine:
        """Enter async context manager."""
        await self._ensure_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager."""
        await self.close()

    async def validate(self, provider: BaseProvider, key: str) -> ValidationOutcome:
        """Validate a single key against a provider.

        Never raises: every failure is reduced to an outcome.

        Args:
            provider: The provider to validate against.
            key: The API key to validate.

        Returns:
            Exactly one outcome for the key.
        """
        try:
            return await self._validate(provider, key)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Exception text may quote the key
            redact = create_redaction_filter([key])
            detail = truncate(redact(f"Unexpected error: {e!s}"))
            logger.error(
                "Unexpected error validating %s key %s: %s",
                type(provider).__name__,
                mask_key(key),
                detail,
            )
            return ValidationOutcome.provider_error(detail)

    async def _validate(self, provider: BaseProvider, key: str) -> ValidationOutcome:
        if not key or not key.strip():
            return ValidationOutcome.provider_error("Empty key")

        masked = mask_key(key)
        redact = create_redaction_filter([key])
        if not provider.is_valid_key_format(key):
            logger.debug("Key %s rejected by %s format check", masked, provider.name)
            return ValidationOutcome.provider_error("Invalid key format")

        request = provider.build_request(key)
        budget = self.settings.timeout_seconds

        try:
            async with asyncio.timeout(budget):
                response = await self._send_with_retry(provider, request, masked, redact)
        except TimeoutError:
            logger.error(
                "Validation of %s key %s exceeded %.1fs budget",
                provider.name,
                masked,
                budget,
            )
            return ValidationOutcome.network_error(f"Timed out after {budget:g}s")
        except httpx.RequestError as e:
            detail = truncate(redact(f"Request failed: {e!s}"))
            logger.error("Request for %s key %s failed: %s", provider.name, masked, detail)
            return ValidationOutcome.provider_error(detail)

        if isinstance(response, ValidationOutcome):
            return response

        logger.debug(
            "%s response for key %s: status=%d body=%s",
            provider.name,
            masked,
            response.status_code,
            truncate(redact(response.text)),
        )

        outcome = provider.interpret_response(response)
        self._log_outcome(provider, masked, outcome, redact)
        return outcome

    async def _send_with_retry(
        self,
        provider: BaseProvider,
        request: ProviderRequest,
        masked: str,
        redact: Callable[[str], str],
    ) -> ProviderResponse | ValidationOutcome:
        """Send a request, retrying transient failures.

        Returns:
            The response, or a NetworkError once the attempts run out.
        """
        backoff = BackoffPolicy(
            base=self.settings.backoff_base_seconds,
            max_delay=self.settings.backoff_max_seconds,
            jitter=self.settings.backoff_jitter,
        )
        attempts = self.settings.max_attempts
        last_error = "no attempt made"

        for attempt in range(attempts):
            minimum_wait = 0.0
            try:
                response = await self._send(request)
            except TRANSIENT_ERRORS as e:
                last_error = redact(f"{type(e).__name__}: {e!s}")
                logger.debug(
                    "Transient failure for %s key %s (attempt %d/%d): %s",
                    provider.name,
                    masked,
                    attempt + 1,
                    attempts,
                    last_error,
                )
            else:
                if (
                    response.status_code == 429
                    and provider.rate_limit_policy is RateLimitPolicy.RETRY
                ):
                    last_error = "Rate limited (HTTP 429)"
                    minimum_wait = parse_retry_after(response.headers.get("retry-after"))
                else:
                    return response

            if attempt < attempts - 1:
                wait_time = backoff.delay(attempt, minimum=minimum_wait)
                logger.debug(
                    "Retrying %s key %s in %.2fs (attempt %d/%d)",
                    provider.name,
                    masked,
                    wait_time,
                    attempt + 1,
                    attempts,
                )
                await asyncio.sleep(wait_time)

        logger.error(
            "Giving up on %s key %s after %d attempts: %s",
            provider.name,
            masked,
            attempts,
            truncate(last_error),
        )
        return ValidationOutcome.network_error(
            truncate(f"Failed after {attempts} attempts: {last_error}")
        )

    async def _send(self, request: ProviderRequest) -> ProviderResponse:
        """Send one request over the shared client."""
        client = await self._ensure_client()
        response = await client.request(
            request.method,
            request.url,
            headers=request.headers,
            params=request.params,
            json=request.json_body,
        )
        return ProviderResponse(
            status_code=response.status_code,
            text=response.text,
            headers={k.lower(): v for k, v in response.headers.items()},
        )

    def _log_outcome(
        self,
        provider: BaseProvider,
        masked: str,
        outcome: ValidationOutcome,
        redact: Callable[[str], str],
    ) -> None:
        detail = redact(getattr(outcome, "detail", None) or "")
        match outcome.kind:
            case OutcomeKind.VALID_NO_CREDITS:
                logger.info(
                    "%s key %s is valid but has no usable credits (%s)",
                    provider.name,
                    masked,
                    detail or None,
                )
            case OutcomeKind.SUCCESS if getattr(outcome, "credit_balance", None) is not None:
                logger.info(
                    "%s key %s is valid with credit balance %s",
                    provider.name,
                    masked,
                    outcome.credit_balance,  # type: ignore[attr-defined]
                )
            case OutcomeKind.HTTP_ERROR:
                logger.warning(
                    "%s returned an unclassified response for key %s: %s",
                    provider.name,
                    masked,
                    detail or None,
                )
            case _:
                logger.debug("%s key %s -> %s", provider.name, masked, outcome.kind.value)

    async def validate_many(
        self,
        provider: BaseProvider,
        keys: list[str],
    ) -> list[ValidationOutcome]:
        """Validate multiple keys for a single provider.

        Args:
            provider: The provider to validate against.
            keys: Keys to validate.

        Returns:
            One outcome per key, in input order.
        """
        await self._ensure_client()
        semaphore = self._get_semaphore()

        async def validate_one(key: str) -> ValidationOutcome:
            async with semaphore:
                return await self.validate(provider, key)

        return list(await asyncio.gather(*[validate_one(k) for k in keys]))

    async def validate_batch(
        self,
        candidates: list[ValidationCandidate],
    ) -> tuple[list[ValidationCandidate], ValidationStats]:
        """Validate candidates for any registered provider.

        Args:
            candidates: Candidates to validate.

        Returns:
            Tuple of (updated candidates, validation stats).
        """
        from keyprobe.providers.registry import get_registry

        stats = ValidationStats(total=len(candidates))
        if not candidates:
            return candidates, stats

        await self._ensure_client()
        registry = get_registry()
        semaphore = self._get_semaphore()

        async def validate_candidate(candidate: ValidationCandidate) -> None:
            provider = registry.get(candidate.provider_name)
            if provider is None:
                candidate.outcome = ValidationOutcome.provider_error(
                    f"Unknown provider: {candidate.provider_name}"
                )
                return
            async with semaphore:
                candidate.outcome = await self.validate(provider, candidate.key)

        await asyncio.gather(*[validate_candidate(c) for c in candidates])

        for candidate in candidates:
            if candidate.outcome is not None:
                stats.add_outcome(candidate.outcome)

        return candidates, stats


# Global engine instance and the event loop its client belongs to
_engine: ValidationEngine | None = None
_engine_loop: asyncio.AbstractEventLoop | None = None


def get_engine() -> ValidationEngine:
    """Get the shared default engine for the running event loop.

    An httpx client and its connection pool are bound to the loop that first
    used them, so a new engine is created whenever the running loop changes
    (for example across separate ``asyncio.run`` calls).
    """
    global _engine, _engine_loop
    try:
        loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if _engine is None or (loop is not None and loop is not _engine_loop):
        _engine = ValidationEngine()
        _engine_loop = loop
    return _engine


def reset_engine() -> None:
    """Drop the shared default engine.

    Useful for testing.
    """
    global _engine, _engine_loop
    _engine = None
    _engine_loop = None


def create_engine(
    timeout_seconds: float | None = None,
    max_attempts: int | None = None,
    max_concurrent: int | None = None,
) -> ValidationEngine:
    """Create an engine from the global settings with optional overrides.

    Args:
        timeout_seconds: Overall per-key budget.
        max_attempts: Total transport attempts per key.
        max_concurrent: Maximum concurrent validations in a batch.

    Returns:
        Configured ValidationEngine instance.
    """
    overrides = {
        "timeout_seconds": timeout_seconds,
        "max_attempts": max_attempts,
        "max_concurrent": max_concurrent,
    }
    settings = get_settings().validator.model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )
    return ValidationEngine(settings=settings)
