"""Server entry point - runs the bundle API under uvicorn."""

import asyncio
import logging
import signal
from typing import Optional

import uvicorn

from swapbundler.api.app import create_app
from swapbundler.config import Settings, get_settings

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


class BundleServer:
    """Serves the bundle API until SIGINT/SIGTERM."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.server: Optional[uvicorn.Server] = None
        self._stop = asyncio.Event()

    def _build_server(self) -> uvicorn.Server:
        config = uvicorn.Config(
            create_app(self.settings),
            host=self.settings.api_host,
            port=self.settings.api_port,
            log_level="debug" if self.settings.debug else "info",
        )
        return uvicorn.Server(config)

    async def run(self):
        configure_logging(self.settings.debug)
        logger.info(
            f"Starting swapbundler ({self.settings.environment}) on "
            f"{self.settings.api_host}:{self.settings.api_port}"
        )
        logger.debug(f"Settings: {self.settings.get_safe_dict()}")

        self.server = self._build_server()
        serve_task = asyncio.create_task(self.server.serve())
        stop_task = asyncio.create_task(self._stop.wait())

        # Either the server exits on its own or a signal arrives
        await asyncio.wait({serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)

        self.server.should_exit = True
        stop_task.cancel()
        results = await asyncio.gather(serve_task, stop_task, return_exceptions=True)
        if isinstance(results[0], Exception):
            logger.error(f"API server error: {results[0]}")
            raise results[0]
        logger.info("Shutdown complete")

    def shutdown(self):
        """Signal shutdown."""
        logger.info("Shutdown requested")
        self._stop.set()


def main():
    """Main entry point."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    server = BundleServer()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, server.shutdown)

    try:
        loop.run_until_complete(server.run())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        loop.close()


if __name__ == "__main__":
    main()
