# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Deep path helpers — read, write and delete inside nested values.

Paths use the familiar dot/bracket notation::

    "a.b.c"        -> ["a", "b", "c"]
    "c[4].a[1]"    -> ["c", "4", "a", "1"]
    'a["x.y"].b'   -> ["a", "x.y", "b"]

Digit segments index lists.  Every other segment addresses a mapping
field.  The empty path denotes the whole value.
"""

from __future__ import annotations

import re
from collections.abc import MutableMapping, MutableSequence
from typing import Any

_TOKEN = re.compile(r"""\[(\d+)\]|\[(["'])(.*?)\2\]|([^.\[\]]+)""")

_MISSING = object()


def split_key_path(key_or_path: str) -> tuple[str, str]:
    """Split ``"key.some.path"`` into ``("key", "some.path")``."""
    key, _, path = key_or_path.partition(".")
    return key, path


def parse_path(path: str) -> list[str]:
    """Tokenize *path* into its segments."""
    if not path:
        return []
    segments: list[str] = []
    for match in _TOKEN.finditer(path):
        index, _, quoted, plain = match.groups()
        if index is not None:
            segments.append(index)
        elif quoted is not None:
            segments.append(quoted)
        else:
            segments.append(plain)
    return segments


def is_container(value: Any) -> bool:
    return isinstance(value, (MutableMapping, MutableSequence)) and not isinstance(
        value, (str, bytes, bytearray)
    )


def _is_index(segment: str) -> bool:
    return segment.isdigit()


def _mapping_key(node: MutableMapping[Any, Any], segment: str) -> Any:
    # Python dicts may carry real int keys where JSON would have "1".
    if segment not in node and _is_index(segment) and int(segment) in node:
        return int(segment)
    return segment


def _step(node: Any, segment: str) -> Any:
    if isinstance(node, MutableMapping):
        key = _mapping_key(node, segment)
        return node[key] if key in node else _MISSING
    if is_container(node):
        if _is_index(segment) and int(segment) < len(node):
            return node[int(segment)]
    return _MISSING


def _lookup(container: Any, segments: list[str]) -> Any:
    node = container
    for segment in segments:
        node = _step(node, segment)
        if node is _MISSING:
            break
    return node


def get_at(container: Any, path: str, default: Any = None) -> Any:
    """Return the value at *path* inside *container*, or *default*."""
    value = _lookup(container, parse_path(path))
    return default if value is _MISSING else value


def has_at(container: Any, path: str) -> bool:
    """Return ``True`` if *path* resolves to a location inside *container*."""
    return _lookup(container, parse_path(path)) is not _MISSING


def _assign(node: Any, segment: str, value: Any) -> None:
    if isinstance(node, MutableMapping):
        node[_mapping_key(node, segment)] = value
        return
    if not _is_index(segment):
        raise ValueError(f"Cannot set field '{segment}' on a list")
    index = int(segment)
    if index < len(node):
        node[index] = value
        return
    node.extend([None] * (index - len(node)))
    node.append(value)


def set_at(container: Any, path: str, value: Any) -> Any:
    """Write *value* at *path*, creating intermediate containers.

    The container is mutated in place and returned.  A non-container
    root is replaced by a fresh ``dict``.  Intermediates become lists
    when the following segment is an index, dicts otherwise.
    """
    segments = parse_path(path)
    if not segments:
        return value

    root = container if is_container(container) else {}
    node = root
    for position, segment in enumerate(segments[:-1]):
        child = _step(node, segment)
        if not is_container(child):
            child = [] if _is_index(segments[position + 1]) else {}
            _assign(node, segment, child)
        node = child
    _assign(node, segments[-1], value)
    return root


def unset_at(container: Any, path: str) -> bool:
    """Remove the field or list index at *path*.

    Returns ``True`` if something was removed.  List elements after the
    removed index shift down by one.
    """
    segments = parse_path(path)
    if not segments:
        return False

    parent = _lookup(container, segments[:-1])
    last = segments[-1]
    if isinstance(parent, MutableMapping):
        key = _mapping_key(parent, last)
        if key in parent:
            del parent[key]
            return True
        return False
    if is_container(parent) and _is_index(last) and int(last) < len(parent):
        del parent[int(last)]
        return True
    return False


def merge(target: Any, source: Any) -> Any:
    """Recursively merge *source* into *target* and return the result.

    Mappings merge key by key; anything else is replaced by *source*.
    *target* is mutated when it is a mapping.
    """
    if isinstance(target, MutableMapping) and isinstance(source, MutableMapping):
        for key, value in source.items():
            target[key] = merge(target[key], value) if key in target else value
        return target
    return source
