"""Test configuration and fixtures."""
import asyncio

import pytest

from registry import RoomRegistry
from signaling import SignalRouter


class FakeConnection:
    """In-memory connection handle that records what it was sent."""

    def __init__(self, name: str, fail: bool = False, hang: bool = False):
        self.connection_id = name
        self.fail = fail
        self.hang = hang
        self.sent = []

    async def send(self, message: dict) -> None:
        if self.fail:
            raise ConnectionResetError("peer went away")
        if self.hang:
            await asyncio.sleep(3600)
        self.sent.append(message)

    def of_type(self, message_type: str):
        return [m for m in self.sent if m["type"] == message_type]

    def __repr__(self):
        return f"FakeConnection({self.connection_id})"


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def router(registry):
    return SignalRouter(registry, send_timeout=0.05)


@pytest.fixture
def connections():
    """Factory for named fake connections."""
    def make(name, **kwargs):
        return FakeConnection(name, **kwargs)
    return make
