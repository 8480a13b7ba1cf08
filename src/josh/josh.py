# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Josh — the front-facing storage handle."""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from pydantic import ValidationError

from josh._internal.calls import resolve
from josh._internal.clock import Clock, SystemClock, epoch_millis
from josh._internal.paths import get_at, merge, split_key_path
from josh.exceptions import (
    JoshArgumentError,
    JoshConfigError,
    JoshDataError,
    JoshDestroyedError,
)
from josh.matcher import ByPredicate, parse_matcher
from josh.providers.base import JoshProvider, ProviderContext
from josh.schema import ExportDocument, JoshOptions

logger = logging.getLogger(__name__)


class _All:
    """Sentinel selecting every key, see :attr:`Josh.all`."""

    def __repr__(self) -> str:
        return "Josh.all"


ALL = _All()


class JoshState(Enum):
    INITIALIZING = "initializing"
    READY = "ready"
    DESTROYED = "destroyed"


def _identity(data: Any, key: str | None = None, path: str | None = None) -> Any:
    return data


class Josh:
    """A named key/value store backed by a pluggable provider.

    Every public method first waits for the provider's ``init()`` to
    finish, then resolves ``"key.path"`` arguments, runs values through
    the serializer on the way in and the deserializer on the way out,
    and delegates to the provider.

    Parameters:
        name:             Namespace of this instance.  Required.
        provider:         Provider factory, called with a
                          :class:`ProviderContext`.  Defaults to
                          :class:`~josh.providers.MapProvider`.
        provider_options: Backend-specific options, passed through.
        auto_ensure:      Stored value returned by :meth:`get` when a
                          key is absent.  It is not written back.
        serializer:       ``(value, key, path) -> stored``, sync or async.
        deserializer:     ``(stored, key, path) -> value``, sync or async.
        clock:            Injectable clock for export timestamps.

    Example::

        users = Josh("users")
        uid = await users.auto_id()
        await users.set(uid, {"name": "alice", "tags": []})
        await users.push(f"{uid}.tags", "admin")
        await users.get(f"{uid}.name")  # "alice"

    Composite operations (``update``, ``ensure``, ``push``) read and
    then write; they are not atomic against concurrent writers.
    """

    all = ALL

    def __init__(
        self,
        name: str | None = None,
        *,
        provider: Callable[..., Any] | None = None,
        provider_options: dict[str, Any] | None = None,
        auto_ensure: Any = None,
        serializer: Callable[..., Any] | None = None,
        deserializer: Callable[..., Any] | None = None,
        clock: Clock | None = None,
    ) -> None:
        if not name:
            raise JoshConfigError("Name option not found")

        supplied = {
            "provider": provider,
            "provider_options": provider_options,
            "auto_ensure": auto_ensure,
            "serializer": serializer,
            "deserializer": deserializer,
        }
        try:
            options = JoshOptions(
                name=name, **{k: v for k, v in supplied.items() if v is not None}
            )
        except ValidationError as exc:
            raise JoshConfigError(f"Invalid options for Josh '{name}': {exc}") from exc

        self._name = options.name
        self._serializer = options.serializer or _identity
        self._deserializer = options.deserializer or _identity
        self._auto_ensure = options.auto_ensure
        self._clock = clock or SystemClock()

        context = ProviderContext(name=options.name, instance=self, options=options.provider_options)
        factory = options.provider
        if isinstance(factory, type) and not issubclass(factory, JoshProvider):
            raise JoshConfigError(f"{factory.__name__} is not a valid JoshProvider")
        try:
            instance = factory(context)
        except TypeError as exc:
            raise JoshConfigError(f"Provider factory rejected its context: {exc}") from exc
        if not isinstance(instance, JoshProvider):
            raise JoshConfigError(f"{type(instance).__name__} is not a valid JoshProvider")
        self._provider: JoshProvider = instance

        self._state = JoshState.INITIALIZING
        self._init_task: asyncio.Future[None] | None = None
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; Josh '%s' will initialize on first use", self._name)
        else:
            self._start()

    @classmethod
    def from_options(cls, options: JoshOptions, *, clock: Clock | None = None) -> Josh:
        """Build an instance from an already validated :class:`JoshOptions`."""
        return cls(
            options.name,
            provider=options.provider,
            provider_options=options.provider_options,
            auto_ensure=options.auto_ensure,
            serializer=options.serializer,
            deserializer=options.deserializer,
            clock=clock,
        )

    @classmethod
    def multi(cls, names: list[str], **options: Any) -> dict[str, Josh]:
        """Create one instance per name, sharing every other option."""
        if not names:
            raise JoshConfigError("Names list not found or is empty")
        return {name: cls(name, **options) for name in names}

    # ── lifecycle ────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self._name

    @property
    def provider(self) -> JoshProvider:
        return self._provider

    @property
    def state(self) -> JoshState:
        return self._state

    def _start(self) -> asyncio.Future[None]:
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        return self._init_task

    async def _initialize(self) -> None:
        await self._provider.init()
        if self._state is JoshState.INITIALIZING:
            self._state = JoshState.READY
        logger.debug("Josh '%s' ready", self._name)

    async def ready_check(self) -> None:
        """Wait for the provider to be ready.

        Raises:
            JoshDestroyedError: If :meth:`destroy` has been called.
        """
        if self._state is JoshState.INITIALIZING:
            await self._start()
        if self._state is JoshState.DESTROYED:
            raise JoshDestroyedError(self._name)

    async def destroy(self) -> None:
        """Destroy the provider and its data.  The instance is unusable afterwards."""
        await self.ready_check()
        await self._provider.destroy()
        self._state = JoshState.DESTROYED
        logger.debug("Josh '%s' destroyed", self._name)

    # ── serialization ────────────────────────────────────────

    def set_serializer(self, fn: Callable[..., Any]) -> Josh:
        if not callable(fn):
            raise JoshArgumentError("Serializer must be callable")
        self._serializer = fn
        return self

    def set_deserializer(self, fn: Callable[..., Any]) -> Josh:
        if not callable(fn):
            raise JoshArgumentError("Deserializer must be callable")
        self._deserializer = fn
        return self

    async def _serialize(self, value: Any, key: str | None = None, path: str = "") -> Any:
        return await resolve(self._serializer(value, key, path))

    async def _deserialize(self, stored: Any, key: str | None = None, path: str = "") -> Any:
        if stored is None:
            return None
        return await resolve(self._deserializer(stored, key, path))

    async def _deserialize_entries(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {key: await self._deserialize(value, key) for key, value in data.items()}

    @staticmethod
    def _resolve(key_or_path: str) -> tuple[str, str]:
        if not isinstance(key_or_path, str) or not key_or_path:
            raise JoshArgumentError("Key or path must be a non-empty string")
        return split_key_path(key_or_path)

    # ── reads ────────────────────────────────────────────────

    async def has(self, key_or_path: str) -> bool:
        """Return ``True`` if the key, or the path inside it, exists.

        Never raises for bad input or provider failures; those are
        logged and reported as ``False``.
        """
        await self.ready_check()

        try:
            key, path = self._resolve(key_or_path)
            return bool(await self._provider.has(key, path))
        except Exception as error:
            logger.warning("Error on %r: %s", key_or_path, error)
            return False

    async def get(self, key_or_path: str) -> Any:
        """Return the deserialized value for a key or ``"key.path"``.

        The whole entry is deserialized first; the sub-path is then read
        from the deserialized value.  Absent keys yield the deserialized
        ``auto_ensure`` value, or ``None``.
        """
        await self.ready_check()

        key, path = self._resolve(key_or_path)
        if await self._provider.has(key, path):
            stored = await self._provider.get(key, "")
        elif self._auto_ensure is not None:
            stored = copy.deepcopy(self._auto_ensure)
        else:
            return None

        value = await self._deserialize(stored, key, path)
        return get_at(value, path) if path else value

    async def get_many(self, keys: list[str] | _All) -> dict[str, Any]:
        """Return the deserialized entries for *keys*, or all with :attr:`Josh.all`."""
        await self.ready_check()

        if keys is ALL:
            data = await self._provider.get_all()
        elif isinstance(keys, (list, tuple, set)):
            data = await self._provider.get_many(list(keys))
        else:
            raise JoshArgumentError("Keys must be a list of keys or Josh.all")
        return await self._deserialize_entries(data)

    async def random(self, count: int = 1) -> dict[str, Any]:
        await self.ready_check()
        return await self._deserialize_entries(await self._provider.random(count))

    async def random_key(self, count: int = 1) -> list[str]:
        await self.ready_check()
        return await self._provider.random_key(count)

    async def keys(self) -> list[str]:
        await self.ready_check()
        return await self._provider.keys()

    async def values(self) -> list[Any]:
        await self.ready_check()
        return [await self._deserialize(value) for value in await self._provider.values()]

    async def size(self) -> int:
        await self.ready_check()
        return await self._provider.count()

    # ── writes ───────────────────────────────────────────────

    async def set(self, key_or_path: str, value: Any) -> Josh:
        """Store *value* at a key, or at the path inside it."""
        await self.ready_check()

        key, path = self._resolve(key_or_path)
        await self._provider.set(key, path, await self._serialize(value, key, path))
        return self

    async def set_many(self, data: Mapping[str, Any], overwrite: bool = False) -> Josh:
        """Store many whole entries.  Paths are not supported here."""
        await self.ready_check()

        serialized = {key: await self._serialize(value, key) for key, value in data.items()}
        await self._provider.set_many(serialized, overwrite)
        return self

    async def update(self, key_or_path: str, value_or_fn: Any) -> Josh:
        """Merge a partial value into the existing one.

        *value_or_fn* is either the partial value or a (sync or async)
        function receiving the previous value and returning the partial.

        Raises:
            JoshDataError: If there is no previous value.
        """
        await self.ready_check()

        previous = await self.get(key_or_path)
        if previous is None:
            raise JoshDataError(f"Previous value not found for '{key_or_path}'")

        if callable(value_or_fn):
            partial = await resolve(value_or_fn(copy.deepcopy(previous)))
        else:
            partial = value_or_fn

        await self.set(key_or_path, merge(copy.deepcopy(previous), partial))
        return self

    async def ensure(self, key_or_path: str, default_value: Any) -> Any:
        """Return the existing value, or store and return *default_value*."""
        await self.ready_check()

        if not await self.has(key_or_path):
            await self.set(key_or_path, default_value)
            return default_value
        return await self.get(key_or_path)

    async def delete(self, key_or_path: str | list[str] | _All) -> Josh:
        """Delete a key, a path, a list of keys/paths, or everything (:attr:`Josh.all`)."""
        await self.ready_check()

        if key_or_path is ALL:
            await self._provider.clear()
        elif isinstance(key_or_path, str):
            key, path = self._resolve(key_or_path)
            await self._provider.delete(key, path)
        elif isinstance(key_or_path, (list, tuple)):
            await self._provider.delete_many(list(key_or_path))
        else:
            raise JoshArgumentError("Delete target must be a key, a list of keys or Josh.all")
        return self

    # ── array and number helpers ─────────────────────────────

    async def push(self, key_or_path: str, value: Any, allow_dupes: bool = True) -> Josh:
        """Append *value* to the list at a key or path.

        With ``allow_dupes=False`` the value is skipped if an equal one is
        already present.  Non-list targets are left alone.
        """
        await self.ready_check()

        key, path = self._resolve(key_or_path)
        await self._provider.push(key, path, await self._serialize(value, key, path), allow_dupes)
        return self

    async def remove(self, key_or_path: str, value_or_fn: Any) -> Josh:
        """Remove every matching element from the list at a key or path."""
        await self.ready_check()

        key, path = self._resolve(key_or_path)
        await self._provider.remove(key, path, value_or_fn)
        return self

    async def inc(self, key_or_path: str) -> Josh:
        await self.ready_check()

        key, path = self._resolve(key_or_path)
        await self._provider.inc(key, path)
        return self

    async def dec(self, key_or_path: str) -> Josh:
        await self.ready_check()

        key, path = self._resolve(key_or_path)
        await self._provider.dec(key, path)
        return self

    async def math(self, key_or_path: str, operation: str, operand: float) -> Josh:
        """Apply a math operation to a stored number.

        Supports ``+ - * / % ^`` and their English names (``add``,
        ``subtract``, ``multiply``, ``divide``, ``modulo``, ``exponent``),
        plus ``random``.

        Raises:
            JoshOperandError: If the target holds no number.
        """
        await self.ready_check()

        key, path = self._resolve(key_or_path)
        await self._provider.math(key, path, operation, operand)
        return self

    async def auto_id(self) -> str:
        """Return a fresh id for inserting a new value."""
        await self.ready_check()
        return await self._provider.auto_id()

    # ── queries ──────────────────────────────────────────────

    async def find(self, path_or_fn: Any, value_or_path: Any = None) -> dict[str, Any] | None:
        """Return the first matching ``{key: value}``, or ``None``.

        Call as ``find("path", value)`` or ``find(fn, "optional.path")``.
        """
        await self.ready_check()

        matcher = parse_matcher(path_or_fn, value_or_path)
        if isinstance(matcher, ByPredicate):
            found = await self._provider.find_by_fn(matcher.predicate, matcher.path)
        else:
            found = await self._provider.find_by_value(matcher.path, matcher.value)
        return None if found is None else await self._deserialize_entries(found)

    async def filter(self, path_or_fn: Any, value_or_path: Any = None) -> dict[str, Any]:
        """Return every matching entry.  Same call shapes as :meth:`find`."""
        await self.ready_check()

        matcher = parse_matcher(path_or_fn, value_or_path)
        if isinstance(matcher, ByPredicate):
            found = await self._provider.filter_by_fn(matcher.predicate, matcher.path)
        else:
            found = await self._provider.filter_by_value(matcher.path, matcher.value)
        return await self._deserialize_entries(found)

    async def some(self, path_or_fn: Any, value_or_path: Any = None) -> bool:
        await self.ready_check()

        matcher = parse_matcher(path_or_fn, value_or_path)
        if isinstance(matcher, ByPredicate):
            return await self._provider.some_by_fn(matcher.predicate, matcher.path)
        return await self._provider.some_by_value(matcher.path, matcher.value)

    async def every(self, path_or_fn: Any, value_or_path: Any = None) -> bool:
        await self.ready_check()

        matcher = parse_matcher(path_or_fn, value_or_path)
        if isinstance(matcher, ByPredicate):
            return await self._provider.every_by_fn(matcher.predicate, matcher.path)
        return await self._provider.every_by_value(matcher.path, matcher.value)

    async def map(self, path_or_fn: Any, path: str | None = None) -> list[Any]:
        """Map every stored value through a function, or pluck a path from each."""
        await self.ready_check()

        if callable(path_or_fn):
            return await self._provider.map_by_fn(path_or_fn, path)
        if isinstance(path_or_fn, str):
            return await self._provider.map_by_path(path_or_fn)
        raise JoshArgumentError("Map requires a function or a path string")

    async def includes(self, key_or_path: str, value: Any) -> bool:
        """Return ``True`` if the list at a key or path contains *value*."""
        await self.ready_check()

        key, path = self._resolve(key_or_path)
        return await self._provider.includes(key, path, value)

    # ── import / export ──────────────────────────────────────

    async def export_json(self) -> str:
        """Export all stored values as a JSON document.

        The whole dataset is loaded into memory to build the document.
        """
        await self.ready_check()

        document = ExportDocument(
            name=self._name,
            export_timestamp=epoch_millis(self._clock),
            entries=await self._provider.get_all(),
        )
        return document.model_dump_json(by_alias=True, indent=2)

    async def import_json(
        self,
        data: str | bytes | Mapping[str, Any],
        overwrite: bool = True,
        clear: bool = False,
    ) -> Josh:
        """Load a document produced by :meth:`export_json`.

        Parameters:
            data:      JSON text, or the already parsed mapping.
            overwrite: Replace keys that already exist.
            clear:     Delete everything before importing.

        Raises:
            JoshDataError: If *data* is not a valid export document.
        """
        await self.ready_check()

        try:
            if isinstance(data, (str, bytes)):
                document = ExportDocument.model_validate_json(data)
            else:
                document = ExportDocument.model_validate(data)
        except ValidationError as exc:
            raise JoshDataError(f"Invalid export document: {exc}") from exc

        if clear:
            await self._provider.clear()
        await self._provider.set_many(document.entries, overwrite)
        return self
