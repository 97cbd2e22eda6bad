"""
Webhook server setup.
"""

from aiohttp import web

from borsbot.core.logging import get_logger
from borsbot.services.process import BorsProcess
from borsbot.webhooks.github import BORS_PROCESS, handle_github_webhook

logger = get_logger(__name__)


def create_webhook_app(process: BorsProcess) -> web.Application:
    """Build the aiohttp application that feeds webhooks into ``process``."""
    app = web.Application()
    app[BORS_PROCESS] = process
    app.router.add_post("/github", handle_github_webhook)
    return app


async def start_webhook_server(
    process: BorsProcess, host: str = "0.0.0.0", port: int = 8080
) -> web.AppRunner:
    """
    Start the webhook server.

    Args:
        process: Event process receiving parsed events
        host: Host to bind to
        port: Port to bind to

    Returns:
        The runner, to be cleaned up on shutdown
    """
    runner = web.AppRunner(create_webhook_app(process))
    await runner.setup()

    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Webhook server started on {host}:{port}")
    return runner
