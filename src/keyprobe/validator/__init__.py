"""Validator module for API key validation."""

from keyprobe.validator.backoff import BackoffPolicy, parse_retry_after
from keyprobe.validator.classifier import (
    DEFAULT_PERMISSION_INDICATORS,
    DEFAULT_QUOTA_INDICATORS,
    BodySignal,
    RateLimitPolicy,
    classify_response,
    contains_any,
    scan_body,
)
from keyprobe.validator.engine import (
    ValidationCandidate,
    ValidationEngine,
    ValidationStats,
    create_engine,
    get_engine,
    reset_engine,
)

__all__ = [
    "DEFAULT_PERMISSION_INDICATORS",
    "DEFAULT_QUOTA_INDICATORS",
    "BackoffPolicy",
    "BodySignal",
    "RateLimitPolicy",
    "ValidationCandidate",
    "ValidationEngine",
    "ValidationStats",
    "classify_response",
    "contains_any",
    "create_engine",
    "get_engine",
    "parse_retry_after",
    "reset_engine",
    "scan_body",
]
