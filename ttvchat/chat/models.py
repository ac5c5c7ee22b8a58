"""
Message models for Twitch chat.
"""

import random
from dataclasses import dataclass, field
from typing import Optional

from ttvchat.models import Config

# Twitch accepts any password for anonymous "justinfan" logins
DEFAULT_AUTH_TOKEN = "anonymous"


def anonymous_nickname() -> str:
    """Generate a read-only anonymous login name."""
    return f"justinfan{random.randint(10000, 999999)}"


def normalize_channel(channel: str) -> str:
    """Strip a leading '#' and lower-case the channel name."""
    return channel.strip().lstrip("#").lower()


@dataclass(frozen=True)
class ChatMessage:
    """Represents a chat message."""
    author: str
    display_color: Optional[str]
    text: str


@dataclass(frozen=True)
class ConnectionCredentials:
    """Everything a single connection needs to log in and join a channel."""
    channel: str
    auth_token: str = DEFAULT_AUTH_TOKEN
    nickname: str = field(default_factory=anonymous_nickname)

    @classmethod
    def from_config(cls, config: Config) -> "ConnectionCredentials":
        """
        Build credentials from a configuration snapshot.

        Args:
            config: Current configuration

        Returns:
            Credentials for one join

        Raises:
            ValueError: If the configuration has no channel
        """
        channel = normalize_channel(config.channel or "")
        if not channel:
            raise ValueError("Cannot connect without a channel")

        return cls(
            channel=channel,
            auth_token=(config.oauth or DEFAULT_AUTH_TOKEN).removeprefix("oauth:"),
            nickname=config.nick or anonymous_nickname(),
        )
