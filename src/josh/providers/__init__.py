"""Storage providers for josh."""

from josh.providers.base import JoshProvider, ProviderContext
from josh.providers.memory import MapProvider

__all__ = ["JoshProvider", "MapProvider", "ProviderContext"]
