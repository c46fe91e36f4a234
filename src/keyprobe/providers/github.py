"""GitHub token provider implementation.

This module implements detection and validation for GitHub personal access
tokens (classic and fine-grained) and OAuth tokens.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from keyprobe.core.models import ApiType, Category
from keyprobe.core.outcome import ValidationOutcome
from keyprobe.core.transport import ProviderRequest
from keyprobe.providers.base import BaseProvider
from keyprobe.providers.registry import register_provider
from keyprobe.validator.classifier import RateLimitPolicy, contains_any

if TYPE_CHECKING:
    from keyprobe.core.transport import ProviderResponse

_PREFIXES = ("ghp_", "gho_", "ghu_", "ghs_", "github_pat_")


@register_provider(
    name="GitHub",
    api_type=ApiType.GITHUB,
    category=Category.SOURCE_CONTROL,
    patterns=[
        r"\b(gh[pousr]_[A-Za-z0-9]{36})\b",
        r"\b(github_pat_[A-Za-z0-9_]{82})\b",
    ],
    scraper_enabled=True,
    verification_enabled=True,
    display_in_ui=True,
    notify_owner_directly=False,
)
class GitHubProvider(BaseProvider):
    """GitHub token provider.

    Validation uses GET /user. GitHub answers 403 when an authenticated
    token hits its primary rate limit, and 429 for secondary limits, which
    are worth waiting out.
    """

    VALIDATION_ENDPOINT = "https://api.github.com/user"
    API_VERSION = "2022-11-28"

    rate_limit_policy: ClassVar[RateLimitPolicy] = RateLimitPolicy.RETRY

    def is_valid_key_format(self, key: str) -> bool:
        """Token carries one of the documented prefixes."""
        return key.startswith(_PREFIXES) and len(key) >= 40

    def build_request(self, key: str) -> ProviderRequest:
        """Build the authenticated-user request."""
        return ProviderRequest(
            method="GET",
            url=self.VALIDATION_ENDPOINT,
            headers={
                "Authorization": f"Bearer {key}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": self.API_VERSION,
            },
        )

    def interpret_response(self, response: ProviderResponse) -> ValidationOutcome:
        """A rate-limited 403 still proves the token authenticated."""
        if response.status_code == 403 and (
            response.headers.get("x-ratelimit-remaining") == "0"
            or contains_any(response.text, ("rate limit",))
        ):
            return ValidationOutcome.success(response.status_code)
        return super().interpret_response(response)
