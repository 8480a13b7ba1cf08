"""Shared test fixtures."""

from datetime import UTC, datetime

import pytest

from josh import Josh
from josh.providers import MapProvider, ProviderContext


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self._now = start

    def now(self) -> datetime:
        return datetime.fromtimestamp(self._now, tz=UTC)

    def advance(self, seconds: float) -> None:
        self._now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider():
    return MapProvider(ProviderContext(name="tests"))


@pytest.fixture
async def josh(clock):
    return Josh("tests", clock=clock)


@pytest.fixture
def sample_values():
    return {
        "object": {"a": 1, "b": 2, "c": 3, "d": 4},
        "array": [1, 2, 3, 4, 5],
        "number": 42,
        "string": "Test string.",
        "boolean": False,
        "complexObject": {
            "a": 1,
            "b": 2,
            "c": [1, 2, 3, 4, {"a": [1, 2, 3, 4]}],
            "d": {"1": "one", "2": "two"},
        },
        "null": None,
    }
