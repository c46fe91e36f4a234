"""Secret masking utilities for safe logging.

This module provides functions that keep full key material and unbounded
response bodies out of log records.
"""

from collections.abc import Callable

_KEY_PREFIXES = ("bearer ", "x-api-key:")


def mask_key(
    secret: str | None,
    prefix_len: int = 4,
    suffix_len: int = 4,
) -> str:
    """Mask a secret for safe display.

    Shows a fixed window at the start and end of the secret. Secrets too
    short to hide anything are returned unchanged.

    Args:
        secret: The secret value to mask.
        prefix_len: Number of characters to show at the start.
        suffix_len: Number of characters to show at the end.

    Returns:
        Masked string like "sk-a...xyz9".

    Examples:
        >>> mask_key("sk-abc123xyz789")
        'sk-a...z789'
        >>> mask_key("short")
        'short'
    """
    if not secret:
        return ""

    prefix_len = max(prefix_len, 0)
    suffix_len = max(suffix_len, 0)
    if len(secret) <= prefix_len + suffix_len:
        return secret

    suffix = secret[-suffix_len:] if suffix_len > 0 else ""
    return f"{secret[:prefix_len]}...{suffix}"


def truncate(text: str | None, max_len: int = 200) -> str:
    """Bound a piece of text for logging.

    Args:
        text: Text to bound, typically a response body.
        max_len: Maximum number of characters kept.

    Returns:
        The text unchanged if short enough, else the first ``max_len``
        characters followed by "...".
    """
    if not text:
        return ""
    max_len = max(max_len, 0)
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."


def clean_api_key(key: str | None) -> str:
    """Strip whitespace and a leading auth-header prefix from a key.

    Examples:
        >>> clean_api_key("  Bearer sk-abc ")
        'sk-abc'
    """
    if not key:
        return ""

    cleaned = key.strip()
    lowered = cleaned.lower()
    for prefix in _KEY_PREFIXES:
        if lowered.startswith(prefix):
            return cleaned[len(prefix) :].strip()
    return cleaned


def create_redaction_filter(secrets: list[str]) -> Callable[[str], str]:
    """Create a filter that masks every occurrence of the given secrets.

    Args:
        secrets: Secret values to mask.

    Returns:
        A function that takes text and returns it with secrets masked.
    """
    replacements = [(s, mask_key(s)) for s in secrets if s]

    def filter_func(text: str) -> str:
        for secret, masked in replacements:
            text = text.replace(secret, masked)
        return text

    return filter_func
