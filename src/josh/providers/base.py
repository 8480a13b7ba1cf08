# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Provider protocol — the contract every josh backend implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from josh._internal.paths import split_key_path

if TYPE_CHECKING:
    from josh.josh import Josh

# Predicates may be sync or async; they receive the stored value (or the
# value at ``path`` when one is given).
Predicate = Callable[[Any], bool] | Callable[[Any], Awaitable[bool]]
Mapper = Callable[[Any], Any]
Scalar = str | int | float | bool


@dataclass
class ProviderContext:
    """Everything a provider receives at construction.

    Attributes:
        name:     Name of the owning :class:`~josh.Josh` instance.
        instance: The owning instance, if any.
        options:  Backend-specific options, passed through untouched.
    """

    name: str = "unknown"
    instance: Josh | None = None
    options: dict[str, Any] = field(default_factory=dict)


class JoshProvider(ABC):
    """Abstract base for all storage providers.

    A provider owns a single ``key -> value`` mapping of *stored* values
    (whatever the serializer produced) plus an auto-increment counter.
    Every operation is a coroutine; callers always ``await``.

    Paths address locations inside one entry's value (``"a.b[0]"``).  An
    empty path means the whole entry.  Missing keys and unresolved paths
    are ordinary outcomes — they yield ``None`` / ``False`` / a no-op,
    never an exception.  ``math`` is the one exception to that rule.
    """

    def __init__(self, context: ProviderContext | None = None) -> None:
        context = context or ProviderContext()
        self.name = context.name
        self.instance = context.instance
        self.options = context.options

    async def init(self) -> bool:
        """Prepare the backend.  Must complete before any other call."""
        return True

    # ── reads ────────────────────────────────────────────────

    @abstractmethod
    async def has(self, key: str, path: str) -> bool:
        """Return ``True`` if the key (or the path inside it) exists."""
        ...

    @abstractmethod
    async def get(self, key: str, path: str) -> Any:
        """Return the value at *path*, the whole entry if empty, else ``None``."""
        ...

    @abstractmethod
    async def get_all(self) -> dict[str, Any]: ...

    @abstractmethod
    async def get_many(self, keys: list[str]) -> dict[str, Any]:
        """Return the entries for *keys*.  Unknown keys are omitted."""
        ...

    @abstractmethod
    async def random(self, count: int) -> dict[str, Any]:
        """Return *count* distinct entries chosen at random."""
        ...

    @abstractmethod
    async def random_key(self, count: int) -> list[str]: ...

    @abstractmethod
    async def keys(self) -> list[str]: ...

    @abstractmethod
    async def values(self) -> list[Any]: ...

    @abstractmethod
    async def count(self) -> int: ...

    # ── writes ───────────────────────────────────────────────

    @abstractmethod
    async def set(self, key: str, path: str, value: Any) -> None:
        """Replace the entry, or only the subtree at *path*."""
        ...

    @abstractmethod
    async def set_many(self, data: dict[str, Any], overwrite: bool) -> None:
        """Bulk ``set``.  With ``overwrite=False`` existing keys are kept."""
        ...

    @abstractmethod
    async def delete(self, key: str, path: str) -> None:
        """Delete the entry, or only the field at *path*.  No-op if absent."""
        ...

    @abstractmethod
    async def clear(self) -> None: ...

    @abstractmethod
    async def delete_many(self, keys_or_paths: list[str]) -> None:
        """Delete each ``"key.path"`` string in turn."""
        ...

    # ── array and number helpers ─────────────────────────────

    @abstractmethod
    async def push(self, key: str, path: str, value: Any, allow_dupes: bool) -> None: ...

    @abstractmethod
    async def remove(self, key: str, path: str, value_or_fn: Any) -> None: ...

    @abstractmethod
    async def inc(self, key: str, path: str) -> None: ...

    @abstractmethod
    async def dec(self, key: str, path: str) -> None: ...

    @abstractmethod
    async def math(self, key: str, path: str, operation: str, operand: float) -> None:
        """Apply *operation* to the number at (key, path).

        Raises:
            JoshOperandError: If no numeric value exists at the target.
        """
        ...

    # ── queries ──────────────────────────────────────────────

    @abstractmethod
    async def find_by_fn(self, fn: Predicate, path: str | None = None) -> dict[str, Any] | None: ...

    @abstractmethod
    async def find_by_value(self, path: str, value: Scalar) -> dict[str, Any] | None: ...

    @abstractmethod
    async def filter_by_fn(self, fn: Predicate, path: str | None = None) -> dict[str, Any]: ...

    @abstractmethod
    async def filter_by_value(self, path: str, value: Scalar) -> dict[str, Any]: ...

    @abstractmethod
    async def map_by_fn(self, fn: Mapper, path: str | None = None) -> list[Any]: ...

    @abstractmethod
    async def map_by_path(self, path: str) -> list[Any]: ...

    @abstractmethod
    async def includes(self, key: str, path: str, value: Any) -> bool: ...

    @abstractmethod
    async def some_by_fn(self, fn: Predicate, path: str | None = None) -> bool: ...

    @abstractmethod
    async def some_by_value(self, path: str, value: Scalar) -> bool: ...

    @abstractmethod
    async def every_by_fn(self, fn: Predicate, path: str | None = None) -> bool: ...

    @abstractmethod
    async def every_by_value(self, path: str, value: Scalar) -> bool: ...

    # ── lifecycle ────────────────────────────────────────────

    @abstractmethod
    async def auto_id(self) -> str:
        """Allocate the next id: ``"1"``, ``"2"``, … never reused."""
        ...

    @abstractmethod
    async def destroy(self) -> None:
        """Irreversibly tear down the backend and its data."""
        ...

    @staticmethod
    def get_key_and_path(key_or_path: str) -> tuple[str, str]:
        """Split a ``"key.path"`` string into its key and path."""
        return split_key_path(key_or_path)
