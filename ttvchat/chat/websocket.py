"""
WebSocket connection management for Twitch chat.
"""

import aiohttp
import asyncio
import logging
from typing import Optional, Union

from ttvchat.chat.exceptions import (
    ConnectionError as ChatConnectionError,
    ConnectionLostError,
)

logger = logging.getLogger(__name__)

TWITCH_IRC_URL = "ws://irc-ws.chat.twitch.tv:80"


def decode_payload(payload: Union[str, bytes]) -> str:
    """
    Decode a frame payload as text.

    Invalid UTF-8 is not dropped: each byte is mapped to the character
    with the same code point instead.
    """
    if isinstance(payload, str):
        return payload

    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError:
        return payload.decode("latin-1")


class TwitchWebSocket:
    """
    WebSocket connection to the Twitch IRC gateway.

    Automatic pong replies to WebSocket pings are left to aiohttp.
    """

    def __init__(
        self,
        ws: aiohttp.ClientWebSocketResponse,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._ws = ws
        self._session = session
        self._closed = False

    @classmethod
    async def connect(
        cls,
        url: str = TWITCH_IRC_URL,
        timeout: float = 10.0,
    ) -> "TwitchWebSocket":
        """
        Open the WebSocket connection.

        Args:
            url: Gateway URL
            timeout: Connection timeout in seconds

        Returns:
            Connected TwitchWebSocket instance

        Raises:
            ConnectionError: If the connection cannot be opened
        """
        logger.info(f"Connecting to {url}")

        session = aiohttp.ClientSession()
        try:
            ws = await asyncio.wait_for(
                session.ws_connect(url, autoping=True),
                timeout=timeout,
            )
        except aiohttp.ClientError as e:
            await session.close()
            raise ChatConnectionError(f"WebSocket connection failed: {e}")
        except asyncio.TimeoutError:
            await session.close()
            raise ChatConnectionError("Connection timeout")
        except BaseException:
            # Cancelled mid-connect, e.g. by a newer join
            await session.close()
            raise

        return cls(ws=ws, session=session)

    async def send_line(self, line: str) -> None:
        """Send one protocol line as a text frame."""
        try:
            await self._ws.send_str(line)
        except Exception as e:
            raise ConnectionLostError(f"Failed to send message: {e}")
        logger.debug(f"> {line}")

    async def receive_frame(self) -> str:
        """
        Receive the next data frame as text.

        Returns:
            Decoded frame payload

        Raises:
            ConnectionLostError: If the connection is closed or fails
        """
        while True:
            if self._closed:
                raise ConnectionLostError("WebSocket already closed")

            try:
                msg = await self._ws.receive()
            except Exception as e:
                raise ConnectionLostError(f"Error receiving message: {e}")

            if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                return decode_payload(msg.data)
            elif msg.type in (
                aiohttp.WSMsgType.CLOSE,
                aiohttp.WSMsgType.CLOSING,
                aiohttp.WSMsgType.CLOSED,
            ):
                raise ConnectionLostError("WebSocket closed by server")
            elif msg.type == aiohttp.WSMsgType.ERROR:
                raise ConnectionLostError(f"WebSocket error: {self._ws.exception()}")
            else:
                logger.debug(f"Ignoring frame of type {msg.type}")

    async def close(self) -> None:
        """Close the WebSocket connection."""
        if self._closed:
            return

        self._closed = True

        try:
            if not self._ws.closed:
                await self._ws.close()
        except Exception as e:
            logger.warning(f"Error closing WebSocket: {e}")

        try:
            if self._session is not None:
                await self._session.close()
        except Exception as e:
            logger.warning(f"Error closing session: {e}")

        logger.info("WebSocket connection closed")

    @property
    def closed(self) -> bool:
        """Check if connection is closed."""
        return self._closed
