"""
One-shot OAuth token capture through a local web server.

Twitch's implicit grant flow redirects the browser to
``http://localhost:<port>/#access_token=...``. The fragment never
reaches the server, so the served page reads it and POSTs it back.
"""

import asyncio
import logging
import webbrowser
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from aiohttp import web

from ttvchat.chat.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://id.twitch.tv/oauth2/authorize"
DEFAULT_CLIENT_ID = "m0y30jcckwn2a7m7hh0djrg47wvbuk"
DEFAULT_PORT = 4537
SCOPES = "chat:read chat:edit"

WEB_DIR = Path(__file__).parent / "web"

TOKEN_FUTURE_KEY = web.AppKey("token_future", asyncio.Future)


def build_authorize_url(client_id: str = DEFAULT_CLIENT_ID, port: int = DEFAULT_PORT) -> str:
    """Build the URL the user opens to grant chat access."""
    params = {
        "response_type": "token",
        "client_id": client_id,
        "scope": SCOPES,
        "redirect_uri": f"http://localhost:{port}",
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


async def _serve_index(request: web.Request) -> web.FileResponse:
    return web.FileResponse(WEB_DIR / "index.html")


async def _serve_script(request: web.Request) -> web.FileResponse:
    return web.FileResponse(
        WEB_DIR / "script.js",
        headers={"Content-Type": "application/javascript"},
    )


async def _handle_token(request: web.Request) -> web.Response:
    try:
        payload = await request.json()
    except ValueError:
        raise web.HTTPBadRequest(text="Expected a JSON body")

    token = payload.get("token") if isinstance(payload, dict) else None
    if not token:
        raise web.HTTPBadRequest(text="Missing token")

    future: asyncio.Future = request.app[TOKEN_FUTURE_KEY]
    if not future.done():
        future.set_result(token)

    return web.Response(text="OK")


def create_app(token_future: asyncio.Future) -> web.Application:
    """Build the token capture application."""
    app = web.Application()
    app[TOKEN_FUTURE_KEY] = token_future
    app.router.add_get("/", _serve_index)
    app.router.add_get("/script.js", _serve_script)
    app.router.add_post("/token", _handle_token)
    return app


async def get_auth_token(
    client_id: str = DEFAULT_CLIENT_ID,
    port: int = DEFAULT_PORT,
    open_browser: bool = True,
    timeout: Optional[float] = None,
) -> str:
    """
    Capture an OAuth token from a browser redirect.

    Args:
        client_id: Twitch application client ID
        port: Local port registered as the redirect URI
        open_browser: Try to open the authorize URL automatically
        timeout: Seconds to wait for the token, None waits forever

    Returns:
        The access token

    Raises:
        AuthenticationError: If the server cannot start or no token arrives
    """
    url = build_authorize_url(client_id, port)
    token_future = asyncio.get_running_loop().create_future()

    runner = web.AppRunner(create_app(token_future))
    await runner.setup()
    try:
        site = web.TCPSite(runner, "localhost", port)
        try:
            await site.start()
        except OSError as e:
            raise AuthenticationError(f"Cannot listen on port {port}: {e}")

        logger.info(f"Complete authentication at {url}")
        if open_browser and not webbrowser.open(url):
            logger.warning("Failed to open browser automatically, please navigate manually")

        logger.info("Waiting for token...")
        try:
            return await asyncio.wait_for(token_future, timeout=timeout)
        except asyncio.TimeoutError:
            raise AuthenticationError("Timed out waiting for the OAuth redirect")
    finally:
        await runner.cleanup()
