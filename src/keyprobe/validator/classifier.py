"""Shared HTTP response classification.

This module holds the status-code conventions every provider inherits and
the body scanner that recognises quota exhaustion and permission problems
in error responses.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from keyprobe.core.outcome import ValidationOutcome
from keyprobe.utils.redaction import truncate

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from keyprobe.core.outcome import Success
    from keyprobe.core.transport import ProviderResponse

logger = logging.getLogger(__name__)

DEFAULT_QUOTA_INDICATORS: frozenset[str] = frozenset(
    {
        "insufficient_quota",
        "quota exceeded",
        "exceeded your current quota",
        "quota_exceeded",
        "billing",
        "payment required",
        "insufficient credits",
        "insufficient_credits",
        "credit balance",
        "out of credits",
        "insufficient balance",
        "insufficient_balance",
        "plan limit",
    }
)

DEFAULT_PERMISSION_INDICATORS: frozenset[str] = frozenset(
    {
        "permission denied",
        "insufficient permissions",
        "insufficient_permissions",
        "does not have access",
        "not have permission",
        "access to this model",
        "model_not_found",
        "not allowed to",
        "scope",
    }
)


class BodySignal(str, Enum):
    """What an error body says about a key that was not rejected outright."""

    QUOTA = "quota"
    PERMISSION = "permission"
    NONE = "none"


class RateLimitPolicy(str, Enum):
    """How a provider reads an HTTP 429 response."""

    # Quota indicators in the body mean no credits, anything else is a
    # working key that is merely throttled.
    SCAN_BODY = "scan_body"
    # Any 429 proves the key authenticated.
    ASSUME_VALID = "assume_valid"
    # Back off and try again; exhaustion yields a network error.
    RETRY = "retry"


def contains_any(text: str, indicators: Iterable[str]) -> bool:
    """Case-insensitive check for any indicator phrase in text."""
    if not text:
        return False
    lowered = text.lower()
    return any(indicator.lower() in lowered for indicator in indicators)


def scan_body(
    body: str,
    quota_indicators: Iterable[str] = DEFAULT_QUOTA_INDICATORS,
    permission_indicators: Iterable[str] = DEFAULT_PERMISSION_INDICATORS,
) -> BodySignal:
    """Classify an error body.

    Quota wins over permission when both appear, since billing exhaustion
    is the more specific statement about the account.

    Args:
        body: Raw response body.
        quota_indicators: Phrases signalling billing or quota exhaustion.
        permission_indicators: Phrases signalling a scope restriction.

    Returns:
        The detected signal.
    """
    if contains_any(body, quota_indicators):
        return BodySignal.QUOTA
    if contains_any(body, permission_indicators):
        return BodySignal.PERMISSION
    return BodySignal.NONE


def classify_response(
    response: ProviderResponse,
    parse_success: Callable[[ProviderResponse], Success],
    rate_limit_policy: RateLimitPolicy = RateLimitPolicy.SCAN_BODY,
    quota_indicators: Iterable[str] = DEFAULT_QUOTA_INDICATORS,
    permission_indicators: Iterable[str] = DEFAULT_PERMISSION_INDICATORS,
) -> ValidationOutcome:
    """Apply the default status conventions to a response.

    Response code interpretation:
    - 2xx: Success, enriched by ``parse_success``
    - 401/403: Unauthorized
    - 402: ValidNoCredits
    - 429: per ``rate_limit_policy``
    - other: body scan, else HttpError

    Args:
        response: The HTTP response.
        parse_success: Builds the Success outcome for a 2xx response.
        rate_limit_policy: Reading of 429 responses.
        quota_indicators: Phrases signalling billing or quota exhaustion.
        permission_indicators: Phrases signalling a scope restriction.

    Returns:
        The outcome for this response.
    """
    status = response.status_code

    if 200 <= status < 300:
        return _parse_success_safely(response, parse_success)

    if status in (401, 403):
        return ValidationOutcome.unauthorized(status)

    if status == 402:
        return ValidationOutcome.valid_no_credits(status, "Payment required")

    if status == 429:
        if rate_limit_policy is RateLimitPolicy.ASSUME_VALID:
            return ValidationOutcome.success(status, has_credits=True)
        if rate_limit_policy is RateLimitPolicy.RETRY:
            return ValidationOutcome.network_error("Rate limited (HTTP 429)")
        if contains_any(response.text, quota_indicators):
            return ValidationOutcome.valid_no_credits(status, "Quota exceeded")
        return ValidationOutcome.success(status, has_credits=True)

    signal = scan_body(response.text, quota_indicators, permission_indicators)
    if signal is BodySignal.QUOTA:
        return ValidationOutcome.valid_no_credits(status, "Quota/billing issue detected")
    if signal is BodySignal.PERMISSION:
        return ValidationOutcome.success(status)

    return ValidationOutcome.http_error(
        status,
        f"API request failed with status {status}. Response: {truncate(response.text)}",
    )


def _parse_success_safely(
    response: ProviderResponse,
    parse_success: Callable[[ProviderResponse], Success],
) -> Success:
    """Run a body parser; the status code stays authoritative on failure."""
    try:
        return parse_success(response)
    except Exception as e:
        logger.error(
            "Failed to parse successful response (status %d): %s",
            response.status_code,
            truncate(str(e)),
        )
        return ValidationOutcome.success(response.status_code)
