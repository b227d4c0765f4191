#!/usr/bin/env python3
"""Zigbee switch to light bridge."""

import asyncio
import logging
import signal
import sys

from exceptions import ConfigError, DispatcherError
from switch2light_app import Switch2Light, load_config

logger = logging.getLogger(__name__)


async def main() -> int:
    """Main entry point. Returns the process exit status."""
    try:
        config = load_config()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    logging.getLogger().setLevel(config.log_level)

    app = Switch2Light(config)
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    exit_code = 0

    async def runner():
        nonlocal exit_code
        try:
            await app.start()
        except asyncio.CancelledError:
            pass
        except DispatcherError as e:
            logger.error(f"Fatal error: {e}", exc_info=True)
            exit_code = 1
        finally:
            await app.stop()
            stop_event.set()

    task = loop.create_task(runner())

    def _shutdown():
        if not task.done():
            logger.info("Shutting down...")
            app.dispatcher.request_stop()
            task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _shutdown)
        except NotImplementedError:
            pass

    await stop_event.wait()
    return exit_code


def run():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
