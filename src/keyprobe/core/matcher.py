"""Pattern matching engine.

This module extracts candidate keys from arbitrary text using the regex
patterns a provider declares. Patterns are compiled with the ``regex``
library so every search runs under a timeout, and are screened up front for
nested repetition that would backtrack catastrophically.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import regex

from keyprobe.core.exceptions import UnsafePatternError
from keyprobe.utils.config import MatcherSettings, get_settings
from keyprobe.utils.redaction import clean_api_key

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from keyprobe.providers.base import BaseProvider

logger = logging.getLogger(__name__)

# A quantifier, optionally lazy or possessive.
_QUANTIFIER = regex.compile(r"(?:([*+?])|\{(\d*)(,?)(\d*)\})[?+]?")


def _quantifier_bounds(match: regex.Match[str]) -> tuple[int, int | None] | None:
    """Return (min, max) repetitions for a quantifier match, None if literal."""
    symbol, low, comma, high = match.groups()
    if symbol == "*":
        return 0, None
    if symbol == "+":
        return 1, None
    if symbol == "?":
        return 0, 1
    if not low and not high:
        # "{}" or "{,}" are literal braces
        return None
    minimum = int(low or 0)
    if not comma:
        return minimum, minimum
    return minimum, int(high) if high else None


def check_pattern_safety(pattern: str) -> None:
    """Reject patterns with nested variable-length repetition.

    A group whose body can match a variable number of characters, itself
    repeated a variable number of times (``(a+)+``, ``(\\w*)*``,
    ``(?:x{1,5}){2,}``), backtracks exponentially on near-miss input.

    Raises:
        UnsafePatternError: If the pattern contains such a construct.
    """
    # Per open group: does its body contain variable-length repetition?
    stack = [False]
    i = 0
    in_class = False
    length = len(pattern)

    while i < length:
        char = pattern[i]

        if char == "\\":
            i += 2
            continue

        if in_class:
            if char == "]":
                in_class = False
            i += 1
            continue

        if char == "[":
            in_class = True
            i += 1
            # A leading "]" (or "^]") is a literal member of the class
            if i < length and pattern[i] == "^":
                i += 1
            if i < length and pattern[i] == "]":
                i += 1
            continue

        if char == "(":
            stack.append(False)
            i += 1
            if i < length and pattern[i] == "?":
                # Skip the extension marker so "(?:" is not read as a quantifier
                i += 2
            continue

        if char == ")":
            inner = stack.pop() if len(stack) > 1 else False
            i += 1
            quantifier = _QUANTIFIER.match(pattern, i)
            bounds = _quantifier_bounds(quantifier) if quantifier else None
            if bounds is not None:
                low, high = bounds
                repeats_variably = high is None or high > max(low, 1)
                if inner and repeats_variably:
                    raise UnsafePatternError(
                        pattern, "nested variable-length repetition"
                    )
                inner = inner or high != low
                i = quantifier.end()
            stack[-1] = stack[-1] or inner
            continue

        quantifier = _QUANTIFIER.match(pattern, i)
        if quantifier:
            bounds = _quantifier_bounds(quantifier)
            if bounds is not None and bounds[0] != bounds[1]:
                stack[-1] = True
            i = quantifier.end()
            continue

        i += 1


def compile_pattern(pattern: str) -> regex.Pattern[str]:
    """Screen and compile a single key pattern.

    Raises:
        UnsafePatternError: If the pattern is unsafe or does not compile.
    """
    check_pattern_safety(pattern)
    try:
        return regex.compile(pattern, regex.ASCII)
    except regex.error as e:
        raise UnsafePatternError(pattern, f"does not compile: {e}") from e


class PatternMatcher:
    """Extracts distinct candidate keys for one provider.

    Every declared pattern is tried against every line of the input. Long
    lines are scanned in overlapping windows so that no single search sees
    more than ``max_line_length`` characters.

    Example:
        >>> matcher = PatternMatcher([r"gsk_[a-zA-Z0-9]{50,}"])
        >>> matcher.extract_keys(text)
        ['gsk_...']
    """

    def __init__(
        self,
        patterns: Sequence[str],
        settings: MatcherSettings | None = None,
        name: str = "",
    ) -> None:
        """Compile the patterns.

        Args:
            patterns: Ordered pattern sources.
            settings: Matcher limits; the global settings when omitted.
            name: Owner name used in log records.

        Raises:
            UnsafePatternError: If any pattern is rejected.
        """
        self.settings = settings or get_settings().matcher
        self.name = name
        self._patterns = [(source, compile_pattern(source)) for source in patterns]
        self._flagged: set[str] = set()

    @property
    def pattern_count(self) -> int:
        """Number of compiled patterns."""
        return len(self._patterns)

    @property
    def flagged_patterns(self) -> frozenset[str]:
        """Patterns that have exceeded the search timeout at least once."""
        return frozenset(self._flagged)

    def extract_keys(self, text: str) -> list[str]:
        """Return the distinct keys found in text, in order of discovery.

        Args:
            text: Arbitrary text, possibly attacker-controlled.

        Returns:
            Distinct cleaned key strings.
        """
        if not text:
            return []

        if len(text) > self.settings.max_text_length:
            logger.debug(
                "Input for %s truncated from %d to %d characters",
                self.name or "matcher",
                len(text),
                self.settings.max_text_length,
            )
            text = text[: self.settings.max_text_length]

        step = self._window_step()
        found: dict[str, None] = {}
        timed_out: set[str] = set()

        for source, pattern in self._patterns:
            for window, is_first, is_last in self._windows(text):
                if source in timed_out:
                    break
                try:
                    for match in pattern.finditer(
                        window,
                        timeout=self.settings.regex_timeout_seconds,
                    ):
                        start, end = match.span(1) if match.lastindex else match.span()
                        # Matches on an inner window edge may be cut short.
                        # A match touching the right edge is left to the next
                        # window only when that window starts before it.
                        if (not is_first and start == 0) or (
                            not is_last and end == len(window) and start > step
                        ):
                            continue
                        key = clean_api_key(match.group(1) if match.lastindex else match.group(0))
                        if key:
                            found.setdefault(key, None)
                except TimeoutError:
                    timed_out.add(source)
                    self._flagged.add(source)
                    logger.warning(
                        "Pattern %r of %s exceeded %.2fs, skipped for this input",
                        source,
                        self.name or "matcher",
                        self.settings.regex_timeout_seconds,
                    )

        return list(found)

    def _window_step(self) -> int:
        """Distance between the starts of consecutive windows."""
        size = self.settings.max_line_length
        return size - min(self.settings.max_match_length, size // 2)

    def _windows(self, text: str) -> Iterator[tuple[str, bool, bool]]:
        """Yield (window, is_first, is_last) chunks of each line."""
        size = self.settings.max_line_length
        step = self._window_step()

        for line in text.splitlines():
            if len(line) <= size:
                yield line, True, True
                continue
            start = 0
            while True:
                end = start + size
                is_last = end >= len(line)
                yield line[start:end], start == 0, is_last
                if is_last:
                    break
                start += step


def scan_providers(
    text: str,
    providers: Iterable[BaseProvider],
) -> dict[str, list[str]]:
    """Extract candidate keys for several providers at once.

    Args:
        text: Text to scan.
        providers: Providers whose patterns are applied.

    Returns:
        Mapping of provider name to the keys it matched; providers without
        matches are omitted.
    """
    results: dict[str, list[str]] = {}
    for provider in providers:
        keys = provider.extract_keys(text)
        if keys:
            results[provider.name] = keys
    return results
