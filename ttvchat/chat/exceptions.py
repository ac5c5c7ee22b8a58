"""
Custom exceptions for the Twitch chat client.
"""


class ChatError(Exception):
    """Base exception for all chat errors."""
    pass


class ConnectionError(ChatError):
    """Failed to open the WebSocket or complete the handshake."""
    pass


class ConnectionLostError(ChatError):
    """WebSocket connection was lost."""
    pass


class AuthenticationError(ChatError):
    """Failed to obtain an OAuth token."""
    pass
