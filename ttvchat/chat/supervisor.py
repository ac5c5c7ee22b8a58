"""
Supervisor that starts, replaces and tears down chat sessions.
"""

import asyncio
import logging
from typing import Optional

from ttvchat.chat.exceptions import ChatError
from ttvchat.chat.models import ChatMessage, ConnectionCredentials
from ttvchat.chat.session import Connector, Session

logger = logging.getLogger(__name__)

CHANNEL_CAPACITY = 128


class Supervisor:
    """
    Multiplexes a stable inbound queue onto a series of sessions.

    Each ``join`` starts a new session generation with its own pair of
    queues. A proxy task republishes the generation's inbound messages
    onto ``messages``, which lives as long as the supervisor. A
    connection that drops is not restarted until the next ``join``.
    """

    def __init__(
        self,
        connect: Optional[Connector] = None,
        capacity: int = CHANNEL_CAPACITY,
    ):
        self._connect = connect
        self._capacity = capacity

        self._messages: asyncio.Queue[ChatMessage] = asyncio.Queue(maxsize=capacity)

        # Current session's outgoing queue and task, replaced together under _lock
        self._lock = asyncio.Lock()
        self._outgoing: Optional[asyncio.Queue[str]] = None
        self._handle: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def messages(self) -> "asyncio.Queue[ChatMessage]":
        """Durable queue of inbound messages across all sessions."""
        return self._messages

    @property
    def active(self) -> bool:
        """Check if a session task is currently running."""
        return self._handle is not None and not self._handle.done()

    @property
    def generation(self) -> int:
        """Number of sessions started so far."""
        return self._generation

    async def send(self, text: str) -> None:
        """Queue a line for the current session, or drop it if there is none."""
        async with self._lock:
            outgoing = self._outgoing
            handle = self._handle

        if outgoing is None or handle is None:
            logger.debug("No active session, dropping outgoing message")
            return

        if not outgoing.full():
            outgoing.put_nowait(text)
            return

        # Block while the queue is full, but not past the end of its session
        put = asyncio.ensure_future(outgoing.put(text))
        try:
            await asyncio.wait({put, handle}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not put.done():
                put.cancel()
                logger.debug("Session ended, dropping outgoing message")

    async def join(self, credentials: ConnectionCredentials) -> None:
        """Abort any running session and start a new one."""
        async with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                logger.info("Aborted previous session")

            self._generation += 1
            inbound: asyncio.Queue[Optional[ChatMessage]] = asyncio.Queue(maxsize=self._capacity)
            outgoing: asyncio.Queue[str] = asyncio.Queue(maxsize=self._capacity)
            self._outgoing = outgoing

            session = Session(credentials, inbound, outgoing, connect=self._connect)
            self._handle = asyncio.create_task(
                self._supervise(session, inbound, outgoing),
                name=f"chat-session-{self._generation}",
            )

        logger.info(
            f"Started session {self._generation} for channel #{credentials.channel}"
        )

    async def leave(self) -> None:
        """Abort the running session, if any. Buffered messages are kept."""
        async with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None
                logger.info("Left channel")
            self._outgoing = None

    async def _supervise(
        self,
        session: Session,
        inbound: "asyncio.Queue[Optional[ChatMessage]]",
        outgoing: "asyncio.Queue[str]",
    ) -> None:
        """Run one session generation with its proxy task."""
        proxy = asyncio.create_task(self._forward(inbound))
        try:
            try:
                await session.run()
            except ChatError as e:
                logger.warning(f"Session for #{session.channel} failed: {e}")
            except Exception as e:
                logger.error(f"Unexpected session error: {e}", exc_info=True)

            async with self._lock:
                if self._outgoing is outgoing:
                    self._outgoing = None

            logger.info(
                f"Session for #{session.channel} ended, call join() or reconnect() to resume"
            )

            # Ended on its own: let the proxy forward everything already published
            await inbound.put(None)
            await proxy
        finally:
            proxy.cancel()

    async def _forward(self, inbound: "asyncio.Queue[Optional[ChatMessage]]") -> None:
        while True:
            message = await inbound.get()
            if message is None:
                return
            await self._messages.put(message)
