"""Validation outcome taxonomy.

Every validation attempt reduces to exactly one of six outcome kinds. The
outcome classes are immutable and check the fields each kind requires on
construction. Build them through the named factories on
:class:`ValidationOutcome`.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

from keyprobe.core.exceptions import OutcomeError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from keyprobe.core.models import ModelInfo


class OutcomeKind(str, Enum):
    """Tag identifying the shape of a validation outcome."""

    SUCCESS = "success"
    UNAUTHORIZED = "unauthorized"
    VALID_NO_CREDITS = "valid_no_credits"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    PROVIDER_ERROR = "provider_error"


def _require_status(status_code: int) -> int:
    if isinstance(status_code, bool) or not isinstance(status_code, int):
        raise OutcomeError(f"status_code must be an int, got {status_code!r}")
    if not 100 <= status_code <= 599:
        raise OutcomeError(f"status_code out of range: {status_code}")
    return status_code


def _require_detail(detail: str | None) -> str:
    if not detail or not detail.strip():
        raise OutcomeError("detail is required for this outcome kind")
    return detail


@dataclass(frozen=True, eq=False)
class ValidationOutcome:
    """Base of the closed outcome taxonomy.

    Use the factory classmethods (``success``, ``unauthorized``, ...) to
    build outcomes. Outcomes are consumed, not compared: equality falls back
    to identity.
    """

    kind: ClassVar[OutcomeKind]

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        if cls.__module__ != __name__:
            raise TypeError(
                f"{cls.__name__}: the outcome taxonomy is closed, "
                "reduce provider results to one of the existing kinds"
            )

    def __post_init__(self) -> None:
        if type(self) is ValidationOutcome:
            raise OutcomeError("ValidationOutcome is abstract, use a factory")
        if "status_code" in self.__dataclass_fields__:
            _require_status(self.status_code)  # type: ignore[attr-defined]
        else:
            _require_detail(self.detail)  # type: ignore[attr-defined]

    @property
    def is_valid_key(self) -> bool:
        """True when the service accepted the key (with or without credits)."""
        return self.kind in (OutcomeKind.SUCCESS, OutcomeKind.VALID_NO_CREDITS)

    @property
    def should_retry_later(self) -> bool:
        """True only for transient failures worth re-queueing."""
        return self.kind is OutcomeKind.NETWORK_ERROR

    # Factories

    @staticmethod
    def success(
        status_code: int,
        has_credits: bool | None = None,
        credit_balance: Decimal | float | None = None,
        models: Iterable[ModelInfo] | None = None,
    ) -> Success:
        """Key is valid and usable."""
        balance = None if credit_balance is None else Decimal(str(credit_balance))
        return Success(
            status_code=status_code,
            has_credits=has_credits,
            credit_balance=balance,
            models=None if models is None else tuple(models),
        )

    @staticmethod
    def unauthorized(status_code: int, detail: str | None = None) -> Unauthorized:
        """Key was rejected by the service."""
        return Unauthorized(status_code=status_code, detail=detail)

    @staticmethod
    def valid_no_credits(
        status_code: int,
        detail: str | None = None,
    ) -> ValidNoCredits:
        """Key is valid but the account has no usable quota or balance."""
        return ValidNoCredits(status_code=status_code, detail=detail)

    @staticmethod
    def http_error(status_code: int, detail: str | None = None) -> HttpError:
        """Service answered with a status that no rule could classify."""
        return HttpError(status_code=status_code, detail=detail)

    @staticmethod
    def network_error(detail: str) -> NetworkError:
        """Transport failed or the retry budget ran out."""
        return NetworkError(detail=detail)

    @staticmethod
    def provider_error(detail: str) -> ProviderSpecificError:
        """Malformed input, parse failure or unexpected exception."""
        return ProviderSpecificError(detail=detail)


@dataclass(frozen=True, eq=False)
class Success(ValidationOutcome):
    """The key works against the live service."""

    kind: ClassVar[OutcomeKind] = OutcomeKind.SUCCESS

    status_code: int
    has_credits: bool | None = None
    credit_balance: Decimal | None = None
    models: tuple[ModelInfo, ...] | None = None


@dataclass(frozen=True, eq=False)
class Unauthorized(ValidationOutcome):
    """Definitively bad key."""

    kind: ClassVar[OutcomeKind] = OutcomeKind.UNAUTHORIZED

    status_code: int
    detail: str | None = None


@dataclass(frozen=True, eq=False)
class ValidNoCredits(ValidationOutcome):
    """Good key on an exhausted or unfunded account."""

    kind: ClassVar[OutcomeKind] = OutcomeKind.VALID_NO_CREDITS

    status_code: int
    detail: str | None = None


@dataclass(frozen=True, eq=False)
class HttpError(ValidationOutcome):
    """Unexpected service response."""

    kind: ClassVar[OutcomeKind] = OutcomeKind.HTTP_ERROR

    status_code: int
    detail: str | None = None


@dataclass(frozen=True, eq=False)
class NetworkError(ValidationOutcome):
    """Transient failure, the key should be retried later."""

    kind: ClassVar[OutcomeKind] = OutcomeKind.NETWORK_ERROR

    detail: str


@dataclass(frozen=True, eq=False)
class ProviderSpecificError(ValidationOutcome):
    """Malformed key, bad request or an exception inside the provider."""

    kind: ClassVar[OutcomeKind] = OutcomeKind.PROVIDER_ERROR

    detail: str
