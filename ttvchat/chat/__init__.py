"""
Twitch WebSocket chat client that survives reconnects and channel switches.
"""

from ttvchat.chat.client import TwitchChat
from ttvchat.chat.models import ChatMessage, ConnectionCredentials
from ttvchat.chat.parser import parse_plain, parse_tagged
from ttvchat.chat.supervisor import Supervisor
from ttvchat.chat.oauth import get_auth_token
from ttvchat.chat.exceptions import (
    ChatError,
    ConnectionError,
    ConnectionLostError,
    AuthenticationError,
)

__all__ = [
    "TwitchChat",
    "ChatMessage",
    "ConnectionCredentials",
    "parse_plain",
    "parse_tagged",
    "Supervisor",
    "get_auth_token",
    "ChatError",
    "ConnectionError",
    "ConnectionLostError",
    "AuthenticationError",
]
