# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Custom exceptions for the josh package."""

from __future__ import annotations

from typing import ClassVar


class JoshError(Exception):
    """Base exception for all josh errors.

    Every subclass carries a coarse ``kind`` tag so callers can branch on
    the category without matching on message text.
    """

    kind: ClassVar[str] = "josh"


class JoshConfigError(JoshError):
    """Raised when a :class:`~josh.Josh` instance is misconfigured."""

    kind = "config"


class JoshDestroyedError(JoshError):
    """Raised when an operation is attempted on a destroyed instance."""

    kind = "lifecycle"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Josh '{name}' has been destroyed")


class JoshArgumentError(JoshError):
    """Raised when an operation receives arguments of the wrong shape."""

    kind = "argument"


class JoshOperandError(JoshError):
    """Raised when ``math`` finds no usable numeric value at its target."""

    kind = "operand"

    def __init__(self, key: str, path: str, detail: str = "") -> None:
        self.key = key
        self.path = path
        target = f"{key}.{path}" if path else key
        msg = f"No numeric value found at '{target}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class JoshDataError(JoshError):
    """Raised when an operation requires existing data that is missing."""

    kind = "data"
