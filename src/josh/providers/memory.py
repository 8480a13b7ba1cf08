# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""MapProvider — zero-config, dict-backed provider for development and testing."""

from __future__ import annotations

import copy
import logging
import math
import random
from collections.abc import Iterator
from typing import Any

from josh._internal.calls import resolve
from josh._internal.paths import get_at, has_at, set_at, unset_at
from josh.exceptions import JoshArgumentError, JoshOperandError
from josh.providers.base import JoshProvider, Mapper, Predicate, ProviderContext, Scalar

logger = logging.getLogger(__name__)

_MISSING = object()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _strictly_equal(left: Any, right: Any) -> bool:
    """Equality that never treats a bool as equal to a number."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(
            _strictly_equal(value, right[key]) for key, value in left.items()
        )
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(map(_strictly_equal, left, right))
    return left == right


def _remainder(value: float, operand: float) -> float:
    # Sign follows the dividend, like C's fmod.
    if isinstance(value, int) and isinstance(operand, int):
        result = abs(value) % abs(operand)
        return -result if value < 0 else result
    return math.fmod(value, operand)


_OPERATIONS = {
    "add": lambda value, operand: value + operand,
    "sub": lambda value, operand: value - operand,
    "multi": lambda value, operand: value * operand,
    "div": lambda value, operand: value / operand,
    "exp": lambda value, operand: value**operand,
    "mod": _remainder,
    "rand": lambda value, operand: math.floor(random.random() * math.floor(operand)),
}

_ALIASES = {
    "add": "add",
    "addition": "add",
    "+": "add",
    "sub": "sub",
    "subtract": "sub",
    "-": "sub",
    "multi": "multi",
    "multiply": "multi",
    "*": "multi",
    "div": "div",
    "divide": "div",
    "/": "div",
    "exp": "exp",
    "exponent": "exp",
    "^": "exp",
    "mod": "mod",
    "modulo": "mod",
    "%": "mod",
    "rand": "rand",
    "random": "rand",
}


class MapProvider(JoshProvider):
    """In-memory provider using a plain dict.  Data is lost on process exit.

    Values are deep-copied on the way in and on the way out, so callers
    can never mutate a stored entry behind the provider's back.
    Predicates and mappers see the live stored value and must treat it
    as read-only.
    """

    def __init__(self, context: ProviderContext | None = None) -> None:
        super().__init__(context)
        self._cache: dict[str, Any] = {}
        self._ids = 0

    async def init(self) -> bool:
        logger.debug("MapProvider '%s' ready", self.name)
        return True

    # ── internal helpers ─────────────────────────────────────

    def _lookup(self, key: str, path: str | None) -> Any:
        """Return the stored value at (key, path), or ``_MISSING``."""
        if key not in self._cache:
            return _MISSING
        value = self._cache[key]
        if not path:
            return value
        return get_at(value, path, _MISSING)

    def _targets(self, path: str | None) -> Iterator[tuple[str, Any, Any]]:
        """Yield ``(key, entry, value_at_path)`` for entries where *path* resolves."""
        for key, entry in list(self._cache.items()):
            target = get_at(entry, path, _MISSING) if path else entry
            if target is _MISSING:
                continue
            yield key, entry, target

    def _write(self, key: str, path: str, value: Any) -> None:
        if path:
            try:
                self._cache[key] = set_at(self._cache.get(key), path, value)
            except ValueError as exc:
                raise JoshArgumentError(f"Cannot write '{key}.{path}': {exc}") from exc
        else:
            self._cache[key] = value

    # ── reads ────────────────────────────────────────────────

    async def has(self, key: str, path: str) -> bool:
        if not path:
            return key in self._cache
        return key in self._cache and has_at(self._cache[key], path)

    async def get(self, key: str, path: str) -> Any:
        value = self._lookup(key, path)
        return None if value is _MISSING else copy.deepcopy(value)

    async def get_all(self) -> dict[str, Any]:
        return copy.deepcopy(self._cache)

    async def get_many(self, keys: list[str]) -> dict[str, Any]:
        wanted = set(keys)
        return {key: copy.deepcopy(value) for key, value in self._cache.items() if key in wanted}

    async def random(self, count: int) -> dict[str, Any]:
        keys = random.sample(list(self._cache), min(count, len(self._cache)))
        return {key: copy.deepcopy(self._cache[key]) for key in keys}

    async def random_key(self, count: int) -> list[str]:
        return random.sample(list(self._cache), min(count, len(self._cache)))

    async def keys(self) -> list[str]:
        return list(self._cache.keys())

    async def values(self) -> list[Any]:
        return copy.deepcopy(list(self._cache.values()))

    async def count(self) -> int:
        return len(self._cache)

    # ── writes ───────────────────────────────────────────────

    async def set(self, key: str, path: str, value: Any) -> None:
        self._write(key, path, copy.deepcopy(value))

    async def set_many(self, data: dict[str, Any], overwrite: bool) -> None:
        for key, value in data.items():
            if not overwrite and key in self._cache:
                continue
            self._cache[key] = copy.deepcopy(value)

    async def delete(self, key: str, path: str) -> None:
        if not path:
            self._cache.pop(key, None)
        elif key in self._cache:
            unset_at(self._cache[key], path)

    async def clear(self) -> None:
        self._cache.clear()
        logger.debug("MapProvider '%s' cleared", self.name)

    async def delete_many(self, keys_or_paths: list[str]) -> None:
        for key_or_path in keys_or_paths:
            await self.delete(*self.get_key_and_path(key_or_path))

    # ── array and number helpers ─────────────────────────────

    async def push(self, key: str, path: str, value: Any, allow_dupes: bool) -> None:
        current = self._lookup(key, path)
        if not isinstance(current, list):
            return
        if not allow_dupes and any(_strictly_equal(item, value) for item in current):
            return
        current.append(copy.deepcopy(value))

    async def remove(self, key: str, path: str, value_or_fn: Any) -> None:
        current = self._lookup(key, path)
        if not isinstance(current, list):
            return

        kept: list[Any] = []
        for item in current:
            if callable(value_or_fn):
                matched = await resolve(value_or_fn(item))
            else:
                matched = _strictly_equal(item, value_or_fn)
            if not matched:
                kept.append(item)
        self._write(key, path, kept)

    async def inc(self, key: str, path: str) -> None:
        value = self._lookup(key, path)
        if _is_number(value):
            self._write(key, path, value + 1)

    async def dec(self, key: str, path: str) -> None:
        value = self._lookup(key, path)
        if _is_number(value):
            self._write(key, path, value - 1)

    async def math(self, key: str, path: str, operation: str, operand: float) -> None:
        value = self._lookup(key, path)
        if not _is_number(value):
            raise JoshOperandError(key, path)

        name = _ALIASES.get(operation)
        if name is None:
            logger.debug("Unknown math operation %r on '%s'; value unchanged", operation, key)
            return

        try:
            result = _OPERATIONS[name](value, operand)
        except (ZeroDivisionError, ValueError, OverflowError) as exc:
            raise JoshOperandError(
                key, path, f"cannot apply '{operation}' with operand {operand}"
            ) from exc
        if isinstance(result, complex):
            raise JoshOperandError(
                key, path, f"'{operation}' with operand {operand} has no real result"
            )
        self._write(key, path, result)

    # ── queries ──────────────────────────────────────────────

    async def find_by_fn(self, fn: Predicate, path: str | None = None) -> dict[str, Any] | None:
        for key, entry, target in self._targets(path):
            if await resolve(fn(target)):
                return {key: copy.deepcopy(entry)}
        return None

    async def find_by_value(self, path: str, value: Scalar) -> dict[str, Any] | None:
        for key, entry, target in self._targets(path):
            if _strictly_equal(target, value):
                return {key: copy.deepcopy(entry)}
        return None

    async def filter_by_fn(self, fn: Predicate, path: str | None = None) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for key, entry, target in self._targets(path):
            if await resolve(fn(target)):
                data[key] = copy.deepcopy(entry)
        return data

    async def filter_by_value(self, path: str, value: Scalar) -> dict[str, Any]:
        return {
            key: copy.deepcopy(entry)
            for key, entry, target in self._targets(path)
            if _strictly_equal(target, value)
        }

    async def map_by_fn(self, fn: Mapper, path: str | None = None) -> list[Any]:
        results: list[Any] = []
        for key in list(self._cache):
            target = self._lookup(key, path)
            results.append(await resolve(fn(None if target is _MISSING else target)))
        return results

    async def map_by_path(self, path: str) -> list[Any]:
        return [copy.deepcopy(get_at(entry, path)) for entry in self._cache.values()]

    async def includes(self, key: str, path: str, value: Any) -> bool:
        current = self._lookup(key, path)
        if not isinstance(current, list):
            return False
        return any(_strictly_equal(item, value) for item in current)

    async def some_by_fn(self, fn: Predicate, path: str | None = None) -> bool:
        for _, _, target in self._targets(path):
            if await resolve(fn(target)):
                return True
        return False

    async def some_by_value(self, path: str, value: Scalar) -> bool:
        return any(_strictly_equal(target, value) for _, _, target in self._targets(path))

    async def every_by_fn(self, fn: Predicate, path: str | None = None) -> bool:
        for key in list(self._cache):
            target = self._lookup(key, path)
            if target is _MISSING or not await resolve(fn(target)):
                return False
        return True

    async def every_by_value(self, path: str, value: Scalar) -> bool:
        for key in list(self._cache):
            target = self._lookup(key, path)
            if target is _MISSING or not _strictly_equal(target, value):
                return False
        return True

    # ── lifecycle ────────────────────────────────────────────

    async def auto_id(self) -> str:
        self._ids += 1
        return str(self._ids)

    async def destroy(self) -> None:
        self._cache.clear()
        logger.debug("MapProvider '%s' destroyed", self.name)
