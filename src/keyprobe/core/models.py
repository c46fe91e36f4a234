"""Core data models for keyprobe.

This module defines the enumerations and Pydantic models shared by the
registry, the pattern matcher and the validation engine.
"""

from enum import Enum, IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Category(IntEnum):
    """Provider grouping used for UI filtering and statistics."""

    UNKNOWN = 0
    AI_LLM = 1
    CLOUD_INFRASTRUCTURE = 2
    SOURCE_CONTROL = 3
    COMMUNICATION = 4
    DATABASE_BACKEND = 5
    MAPS_LOCATION = 6
    MONITORING = 7
    FINANCIAL = 8


class BotType(str, Enum):
    """Consumer role used to filter providers."""

    SCRAPER = "scraper"
    VERIFIER = "verifier"


class ApiType(IntEnum):
    """Stable service-type identifiers.

    Values are persisted by downstream systems; never renumber an entry.
    """

    OPENAI = 1
    ANTHROPIC = 2
    GOOGLE_AI = 3
    COHERE = 4
    HUGGINGFACE = 5
    MISTRAL = 6
    GROQ = 7
    REPLICATE = 8
    PERPLEXITY = 9
    OPENROUTER = 10
    DEEPSEEK = 11
    TOGETHER_AI = 12
    ELEVENLABS = 13
    XAI = 14
    FIREWORKS = 15
    LANGSMITH = 16
    AWS = 20
    AZURE = 21
    DIGITALOCEAN = 22
    CLOUDFLARE = 23
    HEROKU = 24
    GITHUB = 30
    GITLAB = 31
    SLACK = 40
    DISCORD = 41
    TWILIO = 42
    SENDGRID = 43
    MAILGUN = 44
    TELEGRAM = 45
    SUPABASE = 50
    FIREBASE = 51
    MONGODB_ATLAS = 52
    GOOGLE_MAPS = 60
    MAPBOX = 61
    DATADOG = 70
    SENTRY = 71
    NEW_RELIC = 72
    STRIPE = 80
    PAYPAL = 81
    SQUARE = 82


class ModelInfo(BaseModel):
    """A model exposed by an AI provider for a validated key."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str = Field(..., description="Provider model identifier")
    display_name: str = Field(default="", description="Human-readable name")
    description: Optional[str] = Field(default=None, description="Model description")
    model_group: Optional[str] = Field(default=None, description="Model family")


class ProviderDescriptor(BaseModel):
    """Immutable identity and capability metadata of one provider.

    Capability flags have no defaults: a provider that does not declare them
    never makes it into the registry.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Unique provider name")
    api_type: ApiType = Field(..., description="Stable service-type identifier")
    category: Category = Field(..., description="Provider category")
    patterns: tuple[str, ...] = Field(..., min_length=1, description="Key regex patterns")
    scraper_enabled: bool = Field(..., description="Used by the scraper bot")
    verification_enabled: bool = Field(..., description="Used by the verifier bot")
    display_in_ui: bool = Field(..., description="Keys shown in UI and statistics")
    notify_owner_directly: bool = Field(..., description="Notify the repository owner")
    scraper_disabled_reason: Optional[str] = None
    verification_disabled_reason: Optional[str] = None
    hidden_from_ui_reason: Optional[str] = None

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: Category) -> Category:
        if value is Category.UNKNOWN:
            raise ValueError("providers must declare a concrete category")
        return value

    @field_validator("patterns")
    @classmethod
    def _non_blank_patterns(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if any(not p.strip() for p in value):
            raise ValueError("patterns must not be blank")
        return value

    @property
    def is_ui_visible(self) -> bool:
        """Whether keys of this provider may be shown publicly.

        Financial providers are never visible, whatever they declare.
        """
        return self.display_in_ui and self.category is not Category.FINANCIAL
