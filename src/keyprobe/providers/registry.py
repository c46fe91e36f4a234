"""Provider registry for managing validator implementations.

Concrete providers register themselves into a module-level table with the
:func:`register_provider` class decorator. The :class:`ProviderRegistry`
turns that table into immutable lookup views on first access: it imports
the provider modules, then walks the table in registration order, excluding
any entry that is incomplete, unsafe, duplicated or fails to construct.
"""

from __future__ import annotations

import importlib
import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError

from keyprobe.core.exceptions import RegistrationError, UnsafePatternError
from keyprobe.core.models import ApiType, BotType, Category, ProviderDescriptor
from keyprobe.providers.base import BaseProvider
from keyprobe.utils.config import get_settings

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

logger = logging.getLogger(__name__)

# Major.minor.patch of the provider contract; plugins must match the major.
PROVIDER_API_VERSION = (1, 0, 0)

BUILTIN_PROVIDER_MODULES: tuple[str, ...] = (
    "keyprobe.providers.openai",
    "keyprobe.providers.openrouter",
    "keyprobe.providers.anthropic",
    "keyprobe.providers.groq",
    "keyprobe.providers.huggingface",
    "keyprobe.providers.github",
    "keyprobe.providers.stripe",
)

P = TypeVar("P", bound=type[BaseProvider])


@dataclass(frozen=True)
class ProviderRegistration:
    """One entry of the registration table.

    Attributes:
        factory: Zero-argument constructor of the provider.
        descriptor: Validated metadata, None if the declaration was invalid.
        error: Why the descriptor could not be built.
        api_version: Contract version the provider was written against.
    """

    factory: type[BaseProvider]
    descriptor: ProviderDescriptor | None
    error: str | None = None
    api_version: tuple[int, int, int] = PROVIDER_API_VERSION


_table: list[ProviderRegistration] = []
_table_lock = threading.Lock()


def build_registration(
    cls: type[BaseProvider],
    *,
    api_version: tuple[int, int, int] = PROVIDER_API_VERSION,
    **metadata: Any,
) -> ProviderRegistration:
    """Build the descriptor for a provider class and attach it.

    Never raises: invalid metadata leaves ``cls.descriptor`` as None and the
    reason in the returned entry.

    Args:
        cls: Provider class, also used as its zero-argument factory.
        api_version: Contract version the provider targets.
        **metadata: ProviderDescriptor fields.

    Returns:
        The registration entry (not added to the global table).
    """
    try:
        descriptor = ProviderDescriptor(**metadata)
        error = None
    except ValidationError as e:
        descriptor = None
        error = f"invalid provider metadata ({e.error_count()} error(s))"
        logger.error("Provider %s declared invalid metadata: %s", cls.__name__, e)

    cls.descriptor = descriptor
    return ProviderRegistration(
        factory=cls,
        descriptor=descriptor,
        error=error,
        api_version=api_version,
    )


def register_provider(
    *,
    api_version: tuple[int, int, int] = PROVIDER_API_VERSION,
    **metadata: Any,
) -> Callable[[P], P]:
    """Class decorator adding a provider to the registration table.

    All capability flags must be passed explicitly; a declaration with
    missing or invalid metadata is recorded but never served.

    Example:
        ```python
        @register_provider(
            name="Groq",
            api_type=ApiType.GROQ,
            category=Category.AI_LLM,
            patterns=[r"\\bgsk_[a-zA-Z0-9]{50,}\\b"],
            scraper_enabled=True,
            verification_enabled=True,
            display_in_ui=True,
            notify_owner_directly=False,
        )
        class GroqProvider(BaseProvider): ...
        ```
    """

    def decorator(cls: P) -> P:
        entry = build_registration(cls, api_version=api_version, **metadata)
        with _table_lock:
            _table.append(entry)
        return cls

    return decorator


def registered_providers() -> tuple[ProviderRegistration, ...]:
    """Snapshot of the registration table, in registration order."""
    with _table_lock:
        return tuple(_table)


def unregister_provider(cls: type[BaseProvider]) -> None:
    """Remove a provider class from the registration table.

    Useful for testing.
    """
    with _table_lock:
        _table[:] = [entry for entry in _table if entry.factory is not cls]


class ProviderRegistry:
    """Registry of every usable provider.

    Discovery runs once, lazily and thread-safely, on first access. After
    that all views are immutable and served without rescanning.
    """

    def __init__(
        self,
        registrations: Iterable[ProviderRegistration] | None = None,
        modules: Iterable[str] | None = None,
    ) -> None:
        """Initialize an undiscovered registry.

        Args:
            registrations: Explicit table to use instead of the global one.
            modules: Modules to import before reading the global table;
                defaults to the built-in providers plus configured extras.
        """
        self._registrations = None if registrations is None else tuple(registrations)
        self._modules = None if modules is None else tuple(modules)
        self._lock = threading.Lock()
        self._discovered = False

        self._providers: tuple[BaseProvider, ...] = ()
        self._scraper: tuple[BaseProvider, ...] = ()
        self._verifier: tuple[BaseProvider, ...] = ()
        self._by_name: Mapping[str, BaseProvider] = MappingProxyType({})
        self._by_api_type: Mapping[ApiType, BaseProvider] = MappingProxyType({})
        self._categories: Mapping[ApiType, Category] = MappingProxyType({})
        self._excluded: Mapping[str, str] = MappingProxyType({})

    # -- discovery ----------------------------------------------------

    def _ensure_discovered(self) -> None:
        if self._discovered:
            return
        with self._lock:
            if not self._discovered:
                self._discover()
                self._discovered = True

    def _discover(self) -> None:
        if self._registrations is None:
            modules = self._modules
            if modules is None:
                extra = get_settings().registry.extra_provider_modules
                modules = BUILTIN_PROVIDER_MODULES + tuple(extra)
            for module_name in modules:
                try:
                    importlib.import_module(module_name)
                except Exception:
                    logger.exception("Failed to import provider module %s", module_name)
            registrations = registered_providers()
        else:
            registrations = self._registrations

        providers: list[BaseProvider] = []
        by_name: dict[str, BaseProvider] = {}
        by_api_type: dict[ApiType, BaseProvider] = {}
        excluded: dict[str, str] = {}

        for entry in registrations:
            label = entry.factory.__name__
            try:
                provider = self._load(entry, by_name, by_api_type)
            except RegistrationError as e:
                excluded[label] = str(e)
                logger.error("Skipping provider %s: %s", label, e)
                continue
            except Exception as e:
                excluded[label] = f"construction failed: {e!s}"
                logger.exception("Skipping provider %s: construction failed", label)
                continue

            providers.append(provider)
            by_name[provider.name] = provider
            by_api_type[provider.api_type] = provider

        self._providers = tuple(providers)
        self._scraper = tuple(p for p in providers if _descriptor(p).scraper_enabled)
        self._verifier = tuple(p for p in providers if _descriptor(p).verification_enabled)
        self._by_name = MappingProxyType(by_name)
        self._by_api_type = MappingProxyType(by_api_type)
        self._categories = MappingProxyType(
            {p.api_type: p.category for p in providers}
        )
        self._excluded = MappingProxyType(excluded)

        for provider in providers:
            descriptor = _descriptor(provider)
            if descriptor.display_in_ui and not descriptor.is_ui_visible:
                logger.warning(
                    "Provider %s is financial and stays hidden from the UI "
                    "despite display_in_ui=True",
                    descriptor.name,
                )

        logger.debug(
            "Discovered %d providers (%d scraper, %d verifier, %d excluded)",
            len(self._providers),
            len(self._scraper),
            len(self._verifier),
            len(excluded),
        )

    @staticmethod
    def _load(
        entry: ProviderRegistration,
        by_name: Mapping[str, BaseProvider],
        by_api_type: Mapping[ApiType, BaseProvider],
    ) -> BaseProvider:
        """Validate one table entry and construct its provider.

        Raises:
            RegistrationError: If the entry must be excluded.
        """
        descriptor = entry.descriptor
        if descriptor is None:
            raise RegistrationError(entry.error or "no provider metadata declared")

        if entry.api_version[0] != PROVIDER_API_VERSION[0]:
            raise RegistrationError(
                f"built for provider API {entry.api_version}, "
                f"running {PROVIDER_API_VERSION}"
            )

        if descriptor.api_type in by_api_type:
            raise RegistrationError(
                f"duplicate api_type {descriptor.api_type.name}, "
                f"already served by {by_api_type[descriptor.api_type].name}"
            )
        if descriptor.name in by_name:
            raise RegistrationError(f"duplicate provider name {descriptor.name!r}")

        provider = entry.factory()
        if not isinstance(provider, BaseProvider):
            raise RegistrationError(f"factory returned {type(provider).__name__}")
        if type(provider).descriptor is not descriptor:
            raise RegistrationError("descriptor was replaced after registration")

        try:
            _ = provider.matcher
        except UnsafePatternError as e:
            raise RegistrationError(str(e)) from e

        return provider

    # -- views --------------------------------------------------------

    def all(self) -> tuple[BaseProvider, ...]:
        """Get all usable providers, in registration order."""
        self._ensure_discovered()
        return self._providers

    def scraper_providers(self) -> tuple[BaseProvider, ...]:
        """Get providers enabled for the scraper bot."""
        self._ensure_discovered()
        return self._scraper

    def verifier_providers(self) -> tuple[BaseProvider, ...]:
        """Get providers enabled for the verifier bot."""
        self._ensure_discovered()
        return self._verifier

    def get_providers_for_bot(self, role: BotType) -> tuple[BaseProvider, ...]:
        """Get providers enabled for a bot role.

        Args:
            role: The consuming bot.

        Returns:
            Providers whose descriptor enables that role.
        """
        if role is BotType.SCRAPER:
            return self.scraper_providers()
        if role is BotType.VERIFIER:
            return self.verifier_providers()
        raise ValueError(f"Unknown bot role: {role!r}")

    def get(self, name: str) -> BaseProvider | None:
        """Get a provider by name.

        Args:
            name: Provider name.

        Returns:
            Provider instance if found, None otherwise.
        """
        self._ensure_discovered()
        return self._by_name.get(name)

    def get_by_api_type(self, api_type: ApiType) -> BaseProvider | None:
        """Get a provider by service-type identifier."""
        self._ensure_discovered()
        return self._by_api_type.get(api_type)

    def get_category_for_api_type(self, api_type: ApiType) -> Category:
        """Get the category of a service type, UNKNOWN if not served."""
        self._ensure_discovered()
        return self._categories.get(api_type, Category.UNKNOWN)

    def get_api_type_categories(self) -> Mapping[ApiType, Category]:
        """Get a read-only map of every served service type to its category."""
        self._ensure_discovered()
        return self._categories

    def get_display_enabled_api_types(self) -> frozenset[ApiType]:
        """Service types whose keys may be shown in the UI and statistics.

        Financial providers are never included. Use this to reconcile stored
        results of providers that were hidden or removed.
        """
        self._ensure_discovered()
        return frozenset(
            p.api_type for p in self._providers if _descriptor(p).is_ui_visible
        )

    def get_verification_enabled_api_types(self) -> frozenset[ApiType]:
        """Service types the verifier bot validates."""
        self._ensure_discovered()
        return frozenset(p.api_type for p in self._verifier)

    def get_owner_notify_api_types(self) -> frozenset[ApiType]:
        """Service types whose valid keys are reported to the owner directly."""
        self._ensure_discovered()
        return frozenset(
            p.api_type for p in self._providers if _descriptor(p).notify_owner_directly
        )

    def excluded(self) -> Mapping[str, str]:
        """Providers left out during discovery, mapped to the reason."""
        self._ensure_discovered()
        return self._excluded

    def names(self) -> list[str]:
        """Get all provider names."""
        self._ensure_discovered()
        return list(self._by_name)

    def __len__(self) -> int:
        """Return number of usable providers."""
        self._ensure_discovered()
        return len(self._providers)

    def __contains__(self, name: object) -> bool:
        """Check if a provider name is served."""
        self._ensure_discovered()
        return name in self._by_name


def _descriptor(provider: BaseProvider) -> ProviderDescriptor:
    descriptor = type(provider).descriptor
    assert descriptor is not None
    return descriptor


# Global registry instance
_registry: ProviderRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> ProviderRegistry:
    """Get the global provider registry.

    Discovery runs on the first lookup made through it.

    Returns:
        The global ProviderRegistry instance.
    """
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = ProviderRegistry()
    return _registry


def reset_registry() -> None:
    """Drop the global registry so the next access rediscovers.

    Useful for testing.
    """
    global _registry
    with _registry_lock:
        _registry = None
