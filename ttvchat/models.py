"""Data models and schemas for ttvchat."""

from typing import Optional

from pydantic import BaseModel


class Config(BaseModel):
    """Persisted configuration snapshot."""

    # Last joined channel
    channel: Optional[str] = None

    # OAuth token captured by `ttvchat login`
    oauth: Optional[str] = None

    # Login name, anonymous when unset
    nick: Optional[str] = None
