"""Test configuration and fixtures."""

import asyncio

import pytest

from ttvchat.chat.exceptions import ConnectionError, ConnectionLostError


class FakeWebSocket:
    """In-memory stand-in for TwitchWebSocket."""

    def __init__(self):
        self.sent: list[str] = []
        self.frames: asyncio.Queue = asyncio.Queue()
        self.closed = False
        self.fail_send = False

    def feed(self, *lines: str) -> None:
        """Queue one frame holding the given CRLF-terminated lines."""
        self.frames.put_nowait("".join(f"{line}\r\n" for line in lines))

    def drop(self) -> None:
        """Make the next read fail as if the server went away."""
        self.frames.put_nowait(None)

    @property
    def privmsgs(self) -> list[str]:
        return [line for line in self.sent if line.startswith("PRIVMSG")]

    async def send_line(self, line: str) -> None:
        if self.fail_send:
            raise ConnectionLostError("send failed")
        self.sent.append(line)

    async def receive_frame(self) -> str:
        frame = await self.frames.get()
        if frame is None:
            raise ConnectionLostError("closed by server")
        return frame

    async def close(self) -> None:
        self.closed = True


class FakeConnector:
    """Transport factory that records every socket it opens."""

    def __init__(self, fail: bool = False):
        self.sockets: list[FakeWebSocket] = []
        self.fail = fail
        self.calls = 0

    async def __call__(self) -> FakeWebSocket:
        self.calls += 1
        if self.fail:
            raise ConnectionError("refused")
        ws = FakeWebSocket()
        self.sockets.append(ws)
        return ws

    @property
    def last(self) -> FakeWebSocket:
        return self.sockets[-1]


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Poll until predicate() is true or fail the test."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("condition not reached in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def connector():
    return FakeConnector()
