"""Unit tests for the pattern matcher."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from keyprobe.core.exceptions import UnsafePatternError
from keyprobe.core.matcher import (
    PatternMatcher,
    check_pattern_safety,
    compile_pattern,
    scan_providers,
)
from keyprobe.utils.config import MatcherSettings

KEY_PATTERN = r"\b(key-[a-z0-9]{20})\b"
KEY_A = "key-aaaaaaaaaaaaaaaaaaaa"
KEY_B = "key-bbbbbbbbbbbbbbbbbbbb"


class TestPatternSafety:
    """Tests for the nested-repetition screen."""

    @pytest.mark.parametrize(
        "pattern",
        [
            r"(a+)+",
            r"(\w*)*",
            r"(?:x{1,5}){2,}",
            r"(a|b+)*c",
            r"((ab)+)+",
            r"(?:[a-z]+\.)+",
        ],
    )
    def test_rejects_nested_repetition(self, pattern: str) -> None:
        """Variable-length groups repeated variably are unsafe."""
        with pytest.raises(UnsafePatternError) as exc_info:
            check_pattern_safety(pattern)
        assert exc_info.value.pattern == pattern

    @pytest.mark.parametrize(
        "pattern",
        [
            r"(?:[a-z]{4}-){3}",
            r"\bsk-[A-Za-z0-9]{20,}\b",
            r"(a+)",
            r"(?:ab)+",
            r"[(+)]+",
            r"\(a+\)+",
            r"(?:sk-ant-api03-)?[A-Za-z0-9_-]{80,120}",
            r"(a{3})+",
        ],
    )
    def test_allows_bounded_patterns(self, pattern: str) -> None:
        """Fixed-length repeats and single quantifiers are safe."""
        check_pattern_safety(pattern)

    def test_compile_rejects_invalid_syntax(self) -> None:
        """Patterns that do not compile are unsafe too."""
        with pytest.raises(UnsafePatternError, match="does not compile"):
            compile_pattern(r"[a-z")

    def test_matcher_rejects_unsafe(self) -> None:
        """A matcher cannot be built from an unsafe pattern."""
        with pytest.raises(UnsafePatternError):
            PatternMatcher([KEY_PATTERN, r"(a+)+b"])


class TestExtractKeys:
    """Tests for PatternMatcher.extract_keys."""

    def test_single_key(self, matcher_settings: MatcherSettings) -> None:
        """A key in a short line is found."""
        matcher = PatternMatcher([KEY_PATTERN], settings=matcher_settings)
        assert matcher.extract_keys(f"token = '{KEY_A}'") == [KEY_A]

    def test_empty_text(self, matcher_settings: MatcherSettings) -> None:
        """Empty input yields no keys."""
        matcher = PatternMatcher([KEY_PATTERN], settings=matcher_settings)
        assert matcher.extract_keys("") == []

    def test_no_match(self, matcher_settings: MatcherSettings) -> None:
        """Text without keys yields no keys."""
        matcher = PatternMatcher([KEY_PATTERN], settings=matcher_settings)
        assert matcher.extract_keys("nothing to see here") == []

    def test_deduplicates_in_order(self, matcher_settings: MatcherSettings) -> None:
        """Repeated keys are reported once, in discovery order."""
        matcher = PatternMatcher([KEY_PATTERN], settings=matcher_settings)
        text = f"{KEY_B}\n{KEY_A}\n{KEY_B} {KEY_A}"
        assert matcher.extract_keys(text) == [KEY_B, KEY_A]

    def test_every_pattern_tried(self, matcher_settings: MatcherSettings) -> None:
        """A match by the first pattern does not stop the others."""
        matcher = PatternMatcher(
            [KEY_PATTERN, r"\b(tok_[0-9]{8})\b"],
            settings=matcher_settings,
        )
        text = f"{KEY_A} tok_12345678"
        assert matcher.extract_keys(text) == [KEY_A, "tok_12345678"]

    def test_overlapping_patterns_deduplicate(
        self, matcher_settings: MatcherSettings
    ) -> None:
        """Two patterns matching the same key report it once."""
        matcher = PatternMatcher(
            [KEY_PATTERN, r"\b(key-[a]{20})\b"],
            settings=matcher_settings,
        )
        assert matcher.extract_keys(KEY_A) == [KEY_A]

    def test_whole_match_without_group(self, matcher_settings: MatcherSettings) -> None:
        """Patterns without a capture group yield the whole match."""
        matcher = PatternMatcher([r"key-[a-z0-9]{20}"], settings=matcher_settings)
        assert matcher.extract_keys(f"x {KEY_A} y") == [KEY_A]

    def test_cleans_header_prefix(self, matcher_settings: MatcherSettings) -> None:
        """Captured auth-header prefixes are stripped."""
        matcher = PatternMatcher(
            [r"(Bearer key-[a-z0-9]{20})"],
            settings=matcher_settings,
        )
        assert matcher.extract_keys(f"Authorization: Bearer {KEY_A}") == [KEY_A]

    def test_multiline_input(self, matcher_settings: MatcherSettings) -> None:
        """Keys on different lines are all found."""
        matcher = PatternMatcher([KEY_PATTERN], settings=matcher_settings)
        text = f"first\n{KEY_A}\r\nmiddle\n\n{KEY_B}\n"
        assert matcher.extract_keys(text) == [KEY_A, KEY_B]

    def test_pattern_count(self) -> None:
        """Every declared pattern is compiled."""
        matcher = PatternMatcher([KEY_PATTERN, r"tok_[0-9]{8}"])
        assert matcher.pattern_count == 2


class TestLongLines:
    """Tests for window splitting of long lines."""

    @pytest.mark.parametrize("offset", [0, 95, 100, 190, 400, 430, 950])
    def test_key_found_at_any_offset(
        self, matcher_settings: MatcherSettings, offset: int
    ) -> None:
        """Keys straddling window edges are still found."""
        line = "." * offset + KEY_A + "." * (1000 - offset)
        matcher = PatternMatcher([KEY_PATTERN], settings=matcher_settings)
        assert matcher.extract_keys(line) == [KEY_A]

    def test_longest_key_on_window_boundary(
        self, matcher_settings: MatcherSettings
    ) -> None:
        """A key of the maximum match length filling a window overlap is found."""
        key = "k" + "a" * 99
        assert len(key) == matcher_settings.max_match_length
        line = "-" * 100 + key + "-" * 100
        matcher = PatternMatcher([r"k[a-z]{99}"], settings=matcher_settings)
        assert matcher.extract_keys(line) == [key]

    def test_many_keys_in_one_line(self, matcher_settings: MatcherSettings) -> None:
        """Every key in a long line is found exactly once."""
        keys = [f"key-{i:020d}" for i in range(30)]
        line = " ".join(keys)
        assert len(line) > matcher_settings.max_line_length
        matcher = PatternMatcher([KEY_PATTERN], settings=matcher_settings)
        assert matcher.extract_keys(line) == keys

    def test_text_length_cap(self) -> None:
        """Input beyond max_text_length is ignored."""
        settings = MatcherSettings(
            max_text_length=1000,
            max_line_length=200,
            max_match_length=100,
        )
        text = f"{KEY_A}\n" + "." * 2000 + f"\n{KEY_B}"
        matcher = PatternMatcher([KEY_PATTERN], settings=settings)
        assert matcher.extract_keys(text) == [KEY_A]


class TestRegexTimeout:
    """Tests for per-pattern timeouts."""

    def test_timed_out_pattern_is_flagged(
        self,
        matcher_settings: MatcherSettings,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A timeout flags the pattern and other patterns still run."""
        matcher = PatternMatcher(
            [r"\b(slow-[a-z]{4})\b", KEY_PATTERN],
            settings=matcher_settings,
        )
        slow = MagicMock()
        slow.finditer.side_effect = TimeoutError("regex timed out")
        matcher._patterns[0] = (r"\b(slow-[a-z]{4})\b", slow)

        with caplog.at_level(logging.WARNING):
            keys = matcher.extract_keys(f"slow-abcd {KEY_A}")

        assert keys == [KEY_A]
        assert matcher.flagged_patterns == frozenset({r"\b(slow-[a-z]{4})\b"})
        assert "exceeded" in caplog.text

    def test_timed_out_pattern_skipped_for_rest_of_input(
        self, matcher_settings: MatcherSettings
    ) -> None:
        """After a timeout the pattern is not retried on later lines."""
        matcher = PatternMatcher([r"slow"], settings=matcher_settings)
        slow = MagicMock()
        slow.finditer.side_effect = TimeoutError("regex timed out")
        matcher._patterns[0] = ("slow", slow)

        assert matcher.extract_keys("a\nb\nc\nd") == []
        assert slow.finditer.call_count == 1

    def test_timeout_passed_to_search(self, matcher_settings: MatcherSettings) -> None:
        """Each search runs under the configured timeout."""
        matcher = PatternMatcher([KEY_PATTERN], settings=matcher_settings)
        spy = MagicMock()
        spy.finditer.return_value = iter(())
        matcher._patterns[0] = (KEY_PATTERN, spy)

        matcher.extract_keys("some line")

        spy.finditer.assert_called_once_with("some line", timeout=0.5)


class TestScanProviders:
    """Tests for scan_providers."""

    def test_groups_keys_by_provider(self) -> None:
        """Only providers with matches appear in the result."""
        with_match = MagicMock()
        with_match.name = "Alpha"
        with_match.extract_keys.return_value = [KEY_A]
        without_match = MagicMock()
        without_match.name = "Beta"
        without_match.extract_keys.return_value = []

        result = scan_providers("text", [with_match, without_match])

        assert result == {"Alpha": [KEY_A]}
