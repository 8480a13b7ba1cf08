# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Matcher — the two call shapes accepted by find/filter/some/every."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from josh.exceptions import JoshArgumentError
from josh.providers.base import Predicate, Scalar

_SCALARS = (str, int, float, bool)


@dataclass(frozen=True)
class ByValue:
    """Match entries whose value at ``path`` equals ``value``."""

    path: str
    value: Scalar


@dataclass(frozen=True)
class ByPredicate:
    """Match entries for which ``predicate`` is truthy.

    The predicate receives the value at ``path``, or the whole stored
    value when ``path`` is ``None``.
    """

    predicate: Predicate
    path: str | None = None


Matcher = ByValue | ByPredicate


def parse_matcher(path_or_fn: Any, value_or_path: Any = None) -> Matcher:
    """Turn the overloaded ``(path, value)`` / ``(fn, path)`` arguments into a Matcher.

    Raises:
        JoshArgumentError: If the arguments fit neither shape.
    """
    if callable(path_or_fn):
        if value_or_path is not None and not isinstance(value_or_path, str):
            raise JoshArgumentError("Path given with a predicate must be a string")
        return ByPredicate(predicate=path_or_fn, path=value_or_path or None)

    if not isinstance(path_or_fn, str):
        raise JoshArgumentError("First argument must be a path string or a predicate function")
    if not isinstance(value_or_path, _SCALARS):
        raise JoshArgumentError("Value to match must be a string, number or boolean")
    return ByValue(path=path_or_fn, value=value_or_path)
