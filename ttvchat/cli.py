"""Command-line interface for ttvchat."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from ttvchat import __version__
from ttvchat.chat import AuthenticationError, ChatMessage, TwitchChat
from ttvchat.config import default_config_path, load_config, save_config

logger = logging.getLogger(__name__)


def format_message(message: ChatMessage) -> str:
    """Render a chat message for the terminal."""
    author = click.style(message.author, bold=True)
    return f"{author}: {message.text}"


async def handle_input(chat: TwitchChat, line: str) -> bool:
    """
    Handle one line typed by the user.

    Lines starting with '/' are commands, anything else is sent to chat.
    An empty line repeats the last message.

    Returns:
        False when the user asked to quit
    """
    line = line.rstrip("\r\n")

    if not line.startswith("/"):
        await chat.send(line)
        return True

    command, _, arg = line[1:].partition(" ")
    arg = arg.strip()

    if command == "quit":
        return False
    elif command == "join":
        if not arg:
            click.echo("Usage: /join <channel>")
        else:
            try:
                await chat.join(arg)
            except ValueError as e:
                click.echo(f"Cannot join: {e}")
    elif command == "leave":
        await chat.leave()
    elif command == "reconnect":
        await chat.reconnect()
    else:
        click.echo(f"Unknown command: /{command}")

    return True


async def _print_messages(chat: TwitchChat) -> None:
    async for message in chat.messages():
        click.echo(format_message(message))


async def _run_chat(chat: TwitchChat, channel: str) -> None:
    loop = asyncio.get_running_loop()

    async with chat:
        await chat.join(channel)
        printer = asyncio.create_task(_print_messages(chat))
        try:
            while True:
                line = await loop.run_in_executor(None, sys.stdin.readline)
                # EOF
                if not line:
                    break
                if not await handle_input(chat, line):
                    break
        finally:
            printer.cancel()


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to state YAML file (default: ~/.ttvchat/state.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show protocol traffic")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool):
    """ttvchat - read and write Twitch chat from the terminal."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path or default_config_path()


@cli.command()
@click.argument("channel", required=False)
@click.option("--nick", help="Login name (defaults to the saved one or anonymous)")
@click.pass_context
def chat(ctx: click.Context, channel: Optional[str], nick: Optional[str]):
    """Join CHANNEL (or the last joined one) and chat from stdin.

    Commands: /join <channel>, /leave, /reconnect, /quit.
    """
    config_path = ctx.obj["config_path"]
    cfg = load_config(config_path)

    channel = channel or cfg.channel
    if not channel:
        logger.error("No channel given and none saved. Usage: ttvchat chat <channel>")
        sys.exit(1)

    if nick:
        cfg.nick = nick

    client = TwitchChat(cfg)
    try:
        asyncio.run(_run_chat(client, channel))
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, leaving chat")
    finally:
        save_config(client.config, config_path)


@cli.command()
@click.option("--port", type=int, default=4537, help="Local redirect port")
@click.option("--no-browser", is_flag=True, help="Do not open a browser automatically")
@click.option("--timeout", type=float, default=300.0, help="Seconds to wait for the token")
@click.pass_context
def login(ctx: click.Context, port: int, no_browser: bool, timeout: float):
    """Authorize ttvchat to send messages and save the token."""
    config_path = ctx.obj["config_path"]
    client = TwitchChat(load_config(config_path))

    try:
        asyncio.run(
            client.fetch_auth_token(port=port, open_browser=not no_browser, timeout=timeout)
        )
    except AuthenticationError as e:
        logger.error(f"Login failed: {e}")
        sys.exit(1)

    save_config(client.config, config_path)
    click.echo("Auth token has been saved.")


@cli.command("config")
@click.pass_context
def show_config(ctx: click.Context):
    """Show the saved configuration."""
    config_path = ctx.obj["config_path"]
    cfg = load_config(config_path)

    click.echo(f"Config file: {config_path}")
    click.echo(f"  channel: {cfg.channel or '-'}")
    click.echo(f"  nick:    {cfg.nick or '(anonymous)'}")
    click.echo(f"  token:   {'set' if cfg.oauth else 'not set'}")


if __name__ == "__main__":
    cli()
