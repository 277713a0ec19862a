"""
Process entry point for the Kintai bot.

Runs two things side by side on one event loop:
- the Discord client that handles work commands
- a Starlette liveness server (uvicorn) for the hosting platform
"""

import asyncio
import os
import sys
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from starlette.applications import Starlette
from starlette.routing import Route

from kintai.channels.discord import DiscordChannel
from kintai.config import PROJECT_DIR, OrgDirectory, Settings
from kintai.logger import get_logger, setup_logging
from kintai.routes.health_routes import health_check, liveness
from kintai.sheets import SheetStore
from kintai.work import WorkService

logger = get_logger(__name__)


def create_app() -> Starlette:
    return Starlette(
        routes=[
            Route("/", liveness, methods=["GET", "POST"]),
            Route("/health", health_check, methods=["GET"]),
        ],
    )


def build_channel(settings: Settings) -> DiscordChannel:
    """Wire the org directory, sheet store and work service into a Discord channel."""
    directory = OrgDirectory.from_file(settings.org_conf_path)
    logger.info(f"Loaded {len(directory)} organizations from {settings.org_conf_path}")

    store = SheetStore(credentials_path=settings.credentials_path)
    service = WorkService(store, directory)
    return DiscordChannel({"token": settings.discord_token}, service)


async def serve(settings: Settings):
    channel = build_channel(settings)

    config = uvicorn.Config(
        create_app(),
        host=settings.host,
        port=settings.port,
        log_level="warning",
    )
    server = uvicorn.Server(config)

    logger.info(f"Liveness server listening on {settings.host}:{settings.port}")
    try:
        await asyncio.gather(server.serve(), channel.connect())
    finally:
        await channel.disconnect()


def main(settings: Optional[Settings] = None):
    load_dotenv(PROJECT_DIR / ".env")

    if "--debug" in sys.argv:
        os.environ["LOG_LEVEL"] = "DEBUG"

    settings = settings or Settings.from_env()
    setup_logging(level=settings.log_level, log_file=settings.log_file)

    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Shutting down")


if __name__ == "__main__":
    main()
