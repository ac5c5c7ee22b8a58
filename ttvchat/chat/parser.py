"""
Parsers for raw Twitch IRC lines.

Two line shapes carry chat messages:

    :nick!nick@nick.tmi.twitch.tv PRIVMSG #channel :text
    @color=#FF0000;display-name=Nick :nick!nick@nick.tmi.twitch.tv PRIVMSG #channel :text

The second shape is only sent after the server acknowledges the
``twitch.tv/tags`` capability. Both parsers return None for anything
that is not a renderable chat line and never raise.
"""

from typing import Dict, Optional

from ttvchat.chat.models import ChatMessage

CRLF = "\r\n"


def parse_tags(tags: str) -> Dict[str, str]:
    """
    Parse a ``key=value;key=value`` tag block.

    Later duplicates win, pairs without '=' are skipped.
    """
    parsed = {}
    for pair in tags.lstrip("@").split(";"):
        key, sep, value = pair.partition("=")
        if sep:
            parsed[key] = value
    return parsed


def parse_plain(line: str) -> Optional[ChatMessage]:
    """
    Parse an untagged PRIVMSG line.

    Args:
        line: A single protocol line without its terminator

    Returns:
        ChatMessage, or None if the line is not a user chat line
    """
    line = line.split(CRLF, 1)[0]

    # The author lives in the first token; a '!' in the text does not count
    prefix, sep, _ = line.split(" ", 1)[0].partition("!")
    if not sep or not prefix.startswith(":"):
        return None

    # The text itself may contain ':'
    parts = line.split(":", 2)
    if len(parts) < 3:
        return None

    return ChatMessage(author=prefix[1:], display_color=None, text=parts[2])


def parse_tagged(line: str) -> Optional[ChatMessage]:
    """
    Parse a PRIVMSG line carrying a leading tag block.

    Args:
        line: A single protocol line without its terminator

    Returns:
        ChatMessage, or None if the line lacks a display-name tag
        or the expected delimiters
    """
    line = line.split(CRLF, 1)[0]

    tags, sep, tail = line.partition(" :")
    if not sep:
        return None

    _author_info, sep, text = tail.partition(" :")
    if not sep:
        return None

    parsed = parse_tags(tags)
    author = parsed.get("display-name")
    if author is None:
        return None

    return ChatMessage(
        author=author,
        display_color=parsed.get("color"),
        text=text,
    )
