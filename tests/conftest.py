import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from app import create_app
from backend import RoomRegistry
from session import PeerSession


class FakeWebSocket:
    """Stands in for a Starlette WebSocket: records what the server sends."""

    def __init__(self, fail_sends: bool = False):
        self.sent = []
        self.closed = None
        self.fail_sends = fail_sends

    async def send_text(self, data: str):
        if self.fail_sends:
            raise RuntimeError("transport is closing")
        self.sent.append(data)

    async def send_bytes(self, data: bytes):
        if self.fail_sends:
            raise RuntimeError("transport is closing")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason=None):
        self.closed = (code, reason)

    def messages(self):
        return [json.loads(data) for data in self.sent]


class StuckWebSocket(FakeWebSocket):
    """A client whose sends hang until `release` is set, like a full TCP buffer."""

    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()

    async def send_text(self, data: str):
        await self.release.wait()
        self.sent.append(data)


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def make_session():
    def _make(fail_sends: bool = False):
        return PeerSession(FakeWebSocket(fail_sends=fail_sends))
    return _make


@pytest.fixture
def client():
    app = create_app(registry=RoomRegistry(), public_dir=None)
    with TestClient(app) as test_client:
        yield test_client
