"""Utility functions and helpers."""

from keyprobe.utils.redaction import (
    clean_api_key,
    create_redaction_filter,
    mask_key,
    truncate,
)

__all__ = [
    "clean_api_key",
    "create_redaction_filter",
    "mask_key",
    "truncate",
]
