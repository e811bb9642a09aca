"""Dependency injection module."""

from typing import Type

from commentary.util.di.base import Component, ProviderBase
from commentary.util.di.core import ProdConfigProvider
from commentary.util.di.domain import ProdDomainProvider
from commentary.util.di.infrastructure import (
    PersistenceProvider,
    ProdPersistenceProvider,
)
from commentary.util.error import DependencyInjectionError

# Every container is built from these; swappable bases resolve via get_provider
PROVIDERS: list[Type[ProviderBase]] = [
    ProdConfigProvider,
    ProdDomainProvider,
    PersistenceProvider,
]


def get_provider(
    base: Type[ProviderBase], use_mock: bool = False
) -> Type[ProviderBase]:
    """Resolve a provider class.

    A base without subclasses is used as is. Otherwise the subclass whose
    ``__is_mock__`` equals ``use_mock`` is picked.

    Raises:
        DependencyInjectionError: If no subclass of the requested kind exists
    """
    subclasses = base.__subclasses__()
    if not subclasses:
        return base

    impl = next(
        (c for c in subclasses if getattr(c, "__is_mock__", False) == use_mock),
        None,
    )
    if not impl:
        kind = "mock" if use_mock else "production"
        component_name = getattr(base, "__mock_component__", base.__name__)
        raise DependencyInjectionError(
            f"No {kind} implementation for {component_name}"
        )
    return impl


__all__ = [
    "Component",
    "ProviderBase",
    "PROVIDERS",
    "get_provider",
    "ProdConfigProvider",
    "ProdDomainProvider",
    "PersistenceProvider",
    "ProdPersistenceProvider",
]
