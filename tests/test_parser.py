"""Tests for the IRC line parsers."""

import pytest

from ttvchat.chat.models import ChatMessage
from ttvchat.chat.parser import parse_plain, parse_tagged, parse_tags


def test_parse_plain_message():
    """Test parsing an untagged PRIVMSG line."""
    message = parse_plain(":nick!x@y PRIVMSG #c :hello")

    assert message == ChatMessage(author="nick", display_color=None, text="hello")


@pytest.mark.parametrize(
    "text",
    ["see you at 10:30", "a;b;c", "wow!!", ":starts with colon", ""],
)
def test_parse_plain_keeps_text_verbatim(text):
    """Test that delimiters inside the text survive."""
    message = parse_plain(f":nick!nick@nick.tmi.twitch.tv PRIVMSG #chan :{text}")

    assert message is not None
    assert message.author == "nick"
    assert message.text == text


def test_parse_plain_without_bang():
    """Test that server lines without a user prefix are not chat messages."""
    assert parse_plain(":tmi.twitch.tv 001 justinfan123 :Welcome, GLHF!") is None
    assert parse_plain(":nick PRIVMSG #c :hello") is None


def test_parse_plain_missing_text_delimiter():
    """Test that a line without a text segment degrades to None."""
    assert parse_plain(":nick!x@y PRIVMSG #c") is None


def test_parse_plain_strips_leftover_terminator():
    """Test that a trailing CRLF is not part of the text."""
    message = parse_plain(":nick!x@y PRIVMSG #c :hello\r\n")

    assert message.text == "hello"


def test_parse_tagged_message():
    """Test parsing a tagged line whose text contains ' :'."""
    message = parse_tagged("display-name=Bob;color=#FF0000 :nick!x PRIVMSG #c :hi :there")

    assert message == ChatMessage(author="Bob", display_color="#FF0000", text="hi :there")


def test_parse_tagged_real_line():
    """Test parsing a line as Twitch sends it, with the leading '@'."""
    line = (
        "@badge-info=;badges=;color=#1E90FF;display-name=SomeUser;emotes=;"
        "first-msg=0;id=abc;mod=0;tmi-sent-ts=1700000000000;user-id=42 "
        ":someuser!someuser@someuser.tmi.twitch.tv PRIVMSG #chan :hello there"
    )
    message = parse_tagged(line)

    assert message.author == "SomeUser"
    assert message.display_color == "#1E90FF"
    assert message.text == "hello there"


def test_parse_tagged_without_display_name():
    """Test that a missing display-name means no message."""
    line = "color=#FF0000;user-id=42 :nick!x PRIVMSG #c :hi"

    assert parse_tagged(line) is None


def test_parse_tagged_without_color():
    """Test that color is optional and an empty color is kept as given."""
    assert parse_tagged("display-name=Bob :nick!x PRIVMSG #c :hi").display_color is None
    assert parse_tagged("color=;display-name=Bob :nick!x PRIVMSG #c :hi").display_color == ""


def test_parse_tagged_empty_text():
    """Test a tagged line with empty text."""
    message = parse_tagged("display-name=Bob :nick!x PRIVMSG #c :")

    assert message.text == ""


@pytest.mark.parametrize(
    "line",
    [
        "display-name=Bob",
        "display-name=Bob :nick!x PRIVMSG #c",
        "",
    ],
)
def test_parse_tagged_missing_delimiters(line):
    """Test that lines without both ' :' separators degrade to None."""
    assert parse_tagged(line) is None


def test_parse_tags():
    """Test tag parsing rules."""
    tags = parse_tags("@a=1;broken;b=;a=2")

    assert tags == {"a": "2", "b": ""}


def test_parse_plain_bang_only_in_text():
    """Test that a '!' after the prefix token does not make an author."""
    assert parse_plain(":tmi.twitch.tv NOTICE #c :Slow mode on! Wait 30s") is None
    assert parse_plain(":tmi.twitch.tv PRIVMSG #c :hi!there") is None
