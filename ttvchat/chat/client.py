"""
Main Twitch chat client.
"""

import logging
from typing import AsyncIterator, Optional

from ttvchat.chat.models import ChatMessage, ConnectionCredentials
from ttvchat.chat.oauth import get_auth_token
from ttvchat.chat.session import Connector
from ttvchat.chat.supervisor import Supervisor
from ttvchat.models import Config

logger = logging.getLogger(__name__)


class TwitchChat:
    """
    Twitch chat client that survives reconnects and channel switches.

    Usage:
        async with TwitchChat(load_config()) as chat:
            await chat.join("somechannel")
            await chat.send("hello")
            async for message in chat.messages():
                print(f"{message.author}: {message.text}")

    A dropped connection is not restored automatically; call
    ``reconnect()`` or ``join()`` to resume.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        connect: Optional[Connector] = None,
    ):
        """
        Initialize chat client.

        Args:
            config: Configuration snapshot (channel, token, nickname)
            connect: Transport factory, defaults to the Twitch WebSocket
        """
        self._config = config if config is not None else Config()
        self._supervisor = Supervisor(connect=connect)

    @property
    def config(self) -> Config:
        """Current configuration snapshot."""
        return self._config

    @property
    def is_connected(self) -> bool:
        """Check if a session is currently running."""
        return self._supervisor.active

    async def join(self, channel: str) -> None:
        """Switch to ``channel``, aborting the current connection."""
        credentials = ConnectionCredentials.from_config(
            self._config.model_copy(update={"channel": channel})
        )
        self._config.channel = channel
        await self._supervisor.join(credentials)

    async def leave(self) -> None:
        await self._supervisor.leave()

    async def reconnect(self) -> None:
        """Join the last known channel again."""
        if not self._config.channel:
            logger.warning("No channel to reconnect to")
            return
        await self.join(self._config.channel)

    async def send(self, text: str) -> None:
        """Send a chat line. Dropped silently when not connected."""
        await self._supervisor.send(text)

    async def receive(self) -> ChatMessage:
        """Wait for the next inbound chat message."""
        return await self._supervisor.messages.get()

    async def messages(self) -> AsyncIterator[ChatMessage]:
        """Iterate over inbound chat messages forever."""
        while True:
            yield await self.receive()

    async def fetch_auth_token(self, **kwargs) -> str:
        """Capture an OAuth token through the browser and keep it in the config."""
        token = await get_auth_token(**kwargs)
        self._config.oauth = token
        logger.info("Auth token has been set")
        return token

    async def close(self) -> None:
        await self.leave()

    async def __aenter__(self) -> "TwitchChat":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
