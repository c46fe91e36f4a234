"""Core module containing data models, outcomes and pattern matching."""

from keyprobe.core.exceptions import (
    KeyprobeError,
    OutcomeError,
    RegistrationError,
    UnsafePatternError,
)
from keyprobe.core.matcher import (
    PatternMatcher,
    check_pattern_safety,
    compile_pattern,
    scan_providers,
)
from keyprobe.core.models import (
    ApiType,
    BotType,
    Category,
    ModelInfo,
    ProviderDescriptor,
)
from keyprobe.core.outcome import (
    HttpError,
    NetworkError,
    OutcomeKind,
    ProviderSpecificError,
    Success,
    Unauthorized,
    ValidationOutcome,
    ValidNoCredits,
)
from keyprobe.core.transport import ProviderRequest, ProviderResponse

__all__ = [
    "ApiType",
    "BotType",
    "Category",
    "HttpError",
    "KeyprobeError",
    "ModelInfo",
    "NetworkError",
    "OutcomeError",
    "OutcomeKind",
    "PatternMatcher",
    "ProviderDescriptor",
    "ProviderRequest",
    "ProviderResponse",
    "ProviderSpecificError",
    "RegistrationError",
    "Success",
    "Unauthorized",
    "UnsafePatternError",
    "ValidNoCredits",
    "ValidationOutcome",
    "check_pattern_safety",
    "compile_pattern",
    "scan_providers",
]
