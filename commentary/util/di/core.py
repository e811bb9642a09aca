"""Core DI providers (non-mockable)."""

from dishka import Scope, from_context

from commentary.config import Settings
from commentary.domain.model import DocumentSchema
from commentary.util.di.base import ProviderBase


class ProdConfigProvider(ProviderBase):
    """Config provider - concrete, no mocks needed.

    Settings and the document schema are chosen by whoever builds the
    container and handed in as container context.
    """

    settings = from_context(provides=Settings, scope=Scope.APP)
    schema = from_context(provides=DocumentSchema, scope=Scope.APP)
