"""Unit tests for secret masking utilities."""

import pytest

from keyprobe.utils.redaction import (
    clean_api_key,
    create_redaction_filter,
    mask_key,
    truncate,
)


class TestMaskKey:
    """Tests for mask_key function."""

    def test_long_key(self) -> None:
        """Long keys keep four characters at each end."""
        assert mask_key("sk-abc123xyz789") == "sk-a...z789"

    def test_nine_characters(self) -> None:
        """The first length that gets masked."""
        assert mask_key("123456789") == "1234...6789"

    @pytest.mark.parametrize("secret", ["12345678", "short", "a"])
    def test_short_key_unchanged(self, secret: str) -> None:
        """Keys of eight characters or fewer are returned as-is."""
        assert mask_key(secret) == secret

    @pytest.mark.parametrize("secret", ["", None])
    def test_empty(self, secret: str | None) -> None:
        """Empty input yields an empty string."""
        assert mask_key(secret) == ""

    def test_custom_window(self) -> None:
        """Prefix and suffix lengths are configurable."""
        assert mask_key("abcdefghijklmnop", prefix_len=2, suffix_len=3) == "ab...nop"

    def test_zero_suffix(self) -> None:
        """A zero suffix shows only the prefix."""
        assert mask_key("abcdefghijkl", prefix_len=3, suffix_len=0) == "abc..."

    def test_masked_never_contains_middle(self) -> None:
        """The hidden part of the key is not in the output."""
        secret = "sk-proj-SECRETMIDDLEPART-abcd"
        assert "SECRETMIDDLEPART" not in mask_key(secret)


class TestTruncate:
    """Tests for truncate function."""

    def test_long_text(self) -> None:
        """Text over the limit is cut and marked."""
        result = truncate("x" * 500)
        assert len(result) == 203
        assert result.endswith("...")

    def test_short_text_unchanged(self) -> None:
        """Text within the limit is untouched."""
        text = "y" * 50
        assert truncate(text) == text

    def test_exact_limit(self) -> None:
        """Text of exactly max_len is untouched."""
        assert truncate("z" * 200) == "z" * 200

    def test_custom_limit(self) -> None:
        """The limit is configurable."""
        assert truncate("abcdef", max_len=3) == "abc..."

    @pytest.mark.parametrize("text", ["", None])
    def test_empty(self, text: str | None) -> None:
        """Empty input yields an empty string."""
        assert truncate(text) == ""


class TestCleanApiKey:
    """Tests for clean_api_key function."""

    def test_strips_whitespace(self) -> None:
        """Surrounding whitespace is removed."""
        assert clean_api_key("  sk-abc\n") == "sk-abc"

    @pytest.mark.parametrize(
        "raw",
        ["Bearer sk-abc", "bearer sk-abc", "BEARER   sk-abc", "x-api-key: sk-abc"],
    )
    def test_strips_header_prefix(self, raw: str) -> None:
        """Auth header prefixes are removed case-insensitively."""
        assert clean_api_key(raw) == "sk-abc"

    def test_plain_key_unchanged(self) -> None:
        """A bare key passes through."""
        assert clean_api_key("gsk_abc") == "gsk_abc"

    def test_empty(self) -> None:
        """Empty input yields an empty string."""
        assert clean_api_key(None) == ""


class TestRedactionFilter:
    """Tests for create_redaction_filter."""

    def test_masks_all_occurrences(self) -> None:
        """Every occurrence of a secret is masked."""
        secret = "sk-abc123xyz789"
        redact = create_redaction_filter([secret])
        result = redact(f"key={secret} again {secret}")
        assert secret not in result
        assert result.count("sk-a...z789") == 2

    def test_ignores_empty_secrets(self) -> None:
        """Empty secrets do not corrupt the text."""
        redact = create_redaction_filter(["", "sk-abc123xyz789"])
        assert redact("nothing here") == "nothing here"
