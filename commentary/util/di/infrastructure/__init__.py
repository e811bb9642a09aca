"""Infrastructure providers.

Implementations are imported here so that get_provider finds them among
their base's subclasses.
"""

from .persistence import PersistenceProvider, ProdPersistenceProvider

__all__ = [
    "PersistenceProvider",
    "ProdPersistenceProvider",
]
