"""josh — a small async key/value storage helper.

A :class:`Josh` instance is a named store.  It hands every operation to
a pluggable provider, applying path resolution and a serializer /
deserializer pair on the way.  :class:`MapProvider` keeps everything in
memory and is the default.
"""

from josh.exceptions import (
    JoshArgumentError,
    JoshConfigError,
    JoshDataError,
    JoshDestroyedError,
    JoshError,
    JoshOperandError,
)
from josh.josh import ALL, Josh, JoshState
from josh.matcher import ByPredicate, ByValue, Matcher
from josh.providers import JoshProvider, MapProvider, ProviderContext
from josh.schema import ExportDocument, JoshOptions

__all__ = [
    "ALL",
    "ByPredicate",
    "ByValue",
    "ExportDocument",
    "Josh",
    "JoshArgumentError",
    "JoshConfigError",
    "JoshDataError",
    "JoshDestroyedError",
    "JoshError",
    "JoshOperandError",
    "JoshOptions",
    "JoshProvider",
    "JoshState",
    "MapProvider",
    "Matcher",
    "ProviderContext",
]
