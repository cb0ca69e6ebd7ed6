"""Entry point: bootstrap the runtime and serve the web surface"""

import asyncio

import uvicorn

from tmuxbar import config
from tmuxbar.runtime import bootstrap
from tmuxbar.telemetry import get_logger, setup_logging
from tmuxbar.web.server import WebServer

logger = get_logger(__name__)


def create_app(persist: bool = True) -> WebServer:
    """Build the runtime components and wrap them in a WebServer."""
    return WebServer(bootstrap(persist=persist))


async def serve(host: str = config.WEB_HOST, port: int = config.WEB_PORT) -> None:
    server = create_app()
    await server.components.start()

    uvicorn_config = uvicorn.Config(server.app, host=host, port=port, log_level="info")
    uvicorn_server = uvicorn.Server(uvicorn_config)
    logger.info(f"tmuxbar serving at http://{host}:{port}")

    try:
        await uvicorn_server.serve()
    finally:
        server.components.stop()


def main():
    setup_logging()
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
