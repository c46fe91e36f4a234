"""Base provider class and request/response types.

This module defines the abstract base class that every concrete validator
inherits from. A provider supplies only what is specific to its service: key
format, the HTTP request to send and any documented deviation from the
default status classification. Transport, timeouts, retries and the default
classification live in :mod:`keyprobe.validator.engine`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from functools import cached_property
from typing import TYPE_CHECKING, ClassVar

from keyprobe.core.transport import ProviderRequest, ProviderResponse
from keyprobe.validator.classifier import (
    DEFAULT_PERMISSION_INDICATORS,
    DEFAULT_QUOTA_INDICATORS,
    RateLimitPolicy,
    classify_response,
)

if TYPE_CHECKING:
    from keyprobe.core.matcher import PatternMatcher
    from keyprobe.core.models import ApiType, Category, ProviderDescriptor
    from keyprobe.core.outcome import Success, ValidationOutcome
    from keyprobe.validator.engine import ValidationEngine


class BaseProvider(ABC):
    """Abstract base class for provider implementations.

    Identity and capabilities come from the :class:`ProviderDescriptor`
    attached by :func:`keyprobe.providers.registry.register_provider`.
    Subclasses must implement:
    - Key format pre-check
    - Request building

    and may override ``parse_success`` to enrich successful outcomes or
    ``interpret_response`` for service-specific status quirks.
    """

    descriptor: ClassVar[ProviderDescriptor | None] = None

    rate_limit_policy: ClassVar[RateLimitPolicy] = RateLimitPolicy.SCAN_BODY
    quota_indicators: ClassVar[frozenset[str]] = DEFAULT_QUOTA_INDICATORS
    permission_indicators: ClassVar[frozenset[str]] = DEFAULT_PERMISSION_INDICATORS

    def _require_descriptor(self) -> ProviderDescriptor:
        descriptor = type(self).descriptor
        if descriptor is None:
            raise TypeError(f"{type(self).__name__} has no provider descriptor")
        return descriptor

    @property
    def name(self) -> str:
        """Unique provider name (e.g., 'OpenAI')."""
        return self._require_descriptor().name

    @property
    def api_type(self) -> ApiType:
        """Stable service-type identifier."""
        return self._require_descriptor().api_type

    @property
    def category(self) -> Category:
        """Provider category."""
        return self._require_descriptor().category

    @property
    def patterns(self) -> tuple[str, ...]:
        """Declared key patterns, in order."""
        return self._require_descriptor().patterns

    @cached_property
    def matcher(self) -> PatternMatcher:
        """Compiled matcher for this provider's patterns."""
        from keyprobe.core.matcher import PatternMatcher

        return PatternMatcher(self.patterns, name=self.name)

    def extract_keys(self, text: str) -> list[str]:
        """Find distinct candidate keys for this provider in text."""
        return self.matcher.extract_keys(text)

    @abstractmethod
    def is_valid_key_format(self, key: str) -> bool:
        """Cheap shape check run before any network call.

        Args:
            key: Candidate key.

        Returns:
            False if the key cannot belong to this provider.
        """
        ...

    @abstractmethod
    def build_request(self, key: str) -> ProviderRequest:
        """Build the validation request for a key.

        Args:
            key: The API key to validate.

        Returns:
            Request the engine will send.
        """
        ...

    def parse_success(self, response: ProviderResponse) -> Success:
        """Turn a 2xx response into a Success outcome.

        Override to extract credits or model listings from the body. Parse
        errors raised here are logged by the engine and downgraded to a
        plain Success.
        """
        from keyprobe.core.outcome import ValidationOutcome

        return ValidationOutcome.success(response.status_code)

    def interpret_response(self, response: ProviderResponse) -> ValidationOutcome:
        """Map an HTTP response to an outcome.

        The default applies the shared status conventions. Override only for
        documented service quirks and defer to ``super()`` otherwise.
        """
        return classify_response(
            response,
            parse_success=self.parse_success,
            rate_limit_policy=self.rate_limit_policy,
            quota_indicators=self.quota_indicators,
            permission_indicators=self.permission_indicators,
        )

    async def validate(
        self,
        key: str,
        engine: ValidationEngine | None = None,
    ) -> ValidationOutcome:
        """Validate a key against the live service.

        Uses the shared default engine unless one is given. Never raises.
        """
        from keyprobe.validator.engine import get_engine

        return await (engine or get_engine()).validate(self, key)

    def __repr__(self) -> str:
        """Return string representation."""
        descriptor = type(self).descriptor
        name = descriptor.name if descriptor else None
        return f"<{self.__class__.__name__}(name={name!r})>"
