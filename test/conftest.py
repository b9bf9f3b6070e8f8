from __future__ import annotations

import typing
from unittest import mock

import pytest


class FakeClock:
    """A monotonic clock which only moves when told to."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> typing.Generator[FakeClock, None, None]:
    fake = FakeClock()
    with mock.patch("httpreq.util.timeout.monotonic", fake):
        yield fake
