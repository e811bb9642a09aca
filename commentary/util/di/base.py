"""Base classes for dependency injection providers."""

from typing import ClassVar, Literal

from dishka import Provider

# Swappable components; only storage has a mock
Component = Literal["persistence"]


class ProviderBase(Provider):
    """Base for all providers.

    A provider with subclasses is a swappable component named by
    ``__mock_component__``; each subclass sets ``__is_mock__``.
    """

    __mock_component__: ClassVar[Component | None] = None
    __is_mock__: ClassVar[bool] = False
