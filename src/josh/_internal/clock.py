# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Time source for export timestamps.

``Josh.export_json`` stamps each document with ``epoch_millis(clock)``.
Tests inject a fake clock to pin that value.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Anything with a ``now()`` returning an aware datetime."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


def epoch_millis(clock: Clock) -> int:
    """Return the clock's current time as integer epoch milliseconds."""
    return int(clock.now().timestamp() * 1000)
