"""Exceptions raised by the keyprobe framework.

None of these escape :meth:`ValidationEngine.validate`; they signal
programming or configuration errors at the framework seams.
"""


class KeyprobeError(Exception):
    """Base class for framework errors."""


class OutcomeError(KeyprobeError, ValueError):
    """An outcome factory was called with missing or invalid fields."""


class UnsafePatternError(KeyprobeError, ValueError):
    """A key pattern cannot be evaluated in bounded time."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Unsafe pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class RegistrationError(KeyprobeError):
    """A registered provider could not be turned into a usable entry."""
