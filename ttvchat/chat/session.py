"""
A single chat connection: handshake, then pump frames in both directions.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ttvchat.chat.exceptions import ConnectionLostError
from ttvchat.chat.models import ChatMessage, ConnectionCredentials
from ttvchat.chat.parser import parse_plain, parse_tagged
from ttvchat.chat.websocket import TwitchWebSocket

logger = logging.getLogger(__name__)

TAGS_CAPABILITY = "twitch.tv/tags"
TAGS_ACK = f"ACK :{TAGS_CAPABILITY}"

# Appended to a repeated line so the server does not drop it as a duplicate
REPEAT_MARKER = " \U000E0000"

Connector = Callable[[], Awaitable[TwitchWebSocket]]


def dedupe_line(line: str, last_sent: str) -> Optional[str]:
    """
    Apply the repeat-message workaround to an outgoing line.

    An empty line repeats the last transmitted one. A line equal to the
    last transmitted one has REPEAT_MARKER toggled so the wire text
    always differs from the previous transmission.

    Returns:
        Text to transmit, or None if there is nothing to repeat
    """
    if not line:
        if not last_sent:
            return None
        line = last_sent

    if line == last_sent:
        if line.endswith(REPEAT_MARKER):
            line = line[: -len(REPEAT_MARKER)]
        else:
            line += REPEAT_MARKER

    return line


class Session:
    """
    One live handshake-plus-message-pump attached to a single socket.

    ``run()`` returns when the socket read path fails and otherwise only
    ends by cancellation.
    """

    def __init__(
        self,
        credentials: ConnectionCredentials,
        inbound: "asyncio.Queue[ChatMessage]",
        outbound: "asyncio.Queue[str]",
        connect: Optional[Connector] = None,
    ):
        self.credentials = credentials
        self._inbound = inbound
        self._outbound = outbound
        self._connect = connect or TwitchWebSocket.connect

        self._conn: Optional[TwitchWebSocket] = None
        self._tags_enabled = False
        self._last_sent = ""

    @property
    def channel(self) -> str:
        return self.credentials.channel

    async def run(self) -> None:
        """
        Connect, perform the handshake and service the socket.

        Raises:
            ConnectionError: If the socket cannot be opened
            ConnectionLostError: If a handshake line cannot be sent
        """
        self._conn = await self._connect()
        try:
            await self._handshake()
            await self._service()
        finally:
            await self._conn.close()

    async def _handshake(self) -> None:
        creds = self.credentials
        await self._conn.send_line(f"PASS oauth:{creds.auth_token}")
        await self._conn.send_line(f"NICK {creds.nickname}")
        await self._conn.send_line(f"JOIN #{creds.channel}")
        await self._conn.send_line(f"CAP REQ :{TAGS_CAPABILITY}")
        logger.info(f"Joined channel #{creds.channel} as {creds.nickname}")

    async def _service(self) -> None:
        recv_task: Optional[asyncio.Task] = None
        send_task: Optional[asyncio.Task] = None
        try:
            while True:
                if recv_task is None:
                    recv_task = asyncio.create_task(self._conn.receive_frame())
                if send_task is None:
                    send_task = asyncio.create_task(self._outbound.get())

                done, _ = await asyncio.wait(
                    {recv_task, send_task},
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if recv_task in done:
                    task, recv_task = recv_task, None
                    try:
                        payload = task.result()
                    except ConnectionLostError as e:
                        logger.info(f"Connection to #{self.channel} dropped: {e}")
                        return
                    for line in payload.split("\r\n"):
                        if line:
                            await self._dispatch(line)

                if send_task in done:
                    task, send_task = send_task, None
                    await self._transmit(task.result())
        finally:
            for task in (recv_task, send_task):
                if task is not None:
                    task.cancel()

    async def _dispatch(self, line: str) -> None:
        """Route one inbound protocol line."""
        if TAGS_ACK in line:
            logger.debug("Server acknowledged message tags")
            self._tags_enabled = True
        elif self._tags_enabled and "PRIVMSG" in line:
            await self._publish(parse_tagged(line))
        elif "PRIVMSG" in line:
            await self._publish(parse_plain(line))
        elif line.startswith("PING"):
            logger.debug(f"< {line}")
            try:
                await self._conn.send_line("PONG" + line[len("PING"):])
            except ConnectionLostError as e:
                logger.warning(f"Failed to answer PING: {e}")
        else:
            logger.debug(f"< {line}")

    async def _publish(self, message: Optional[ChatMessage]) -> None:
        if message is None:
            return
        await self._inbound.put(message)

    async def _transmit(self, line: str) -> None:
        text = dedupe_line(line, self._last_sent)
        if text is None:
            logger.debug("Nothing to repeat yet, dropping empty line")
            return

        self._last_sent = text
        try:
            await self._conn.send_line(f"PRIVMSG #{self.channel} :{text}")
        except ConnectionLostError as e:
            logger.warning(f"Failed to send message to #{self.channel}: {e}")
