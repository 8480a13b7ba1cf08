# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Helpers for user callables that may be sync or async."""

from __future__ import annotations

import asyncio
from typing import Any


async def resolve(result: Any) -> Any:
    """Await *result* if a callable handed back a coroutine."""
    if asyncio.iscoroutine(result):
        result = await result
    return result
