"""Habitly — main entry point.

Starts all subsystems:
1. Logging
2. HTTP API (database init + quote seeding run in the app's startup)
"""

import asyncio
import logging

import uvicorn

from habitly.api import create_app
from habitly.config import CHAT_MODEL, CHAT_PROVIDER, HOST, LOG_LEVEL, PORT

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)-5s %(name)s — %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("habitly")


async def main():
    """Boot sequence."""
    log.info("=" * 50)
    log.info("Habitly starting up...")
    log.info("Chat assistant: provider=%s model=%s", CHAT_PROVIDER, CHAT_MODEL)
    log.info("=" * 50)

    app = create_app()
    server = uvicorn.Server(uvicorn.Config(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower()))
    log.info("Listening on http://%s:%d", HOST, PORT)

    try:
        await server.serve()
    except (KeyboardInterrupt, SystemExit):
        log.info("Shutting down...")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
