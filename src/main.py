"""Main entry point for the Lightsync service."""

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from config import load_config
from devices import build_default_registry
from devices.manager import DeviceManager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)


def log_update(accessory_id: str, characteristic: str, value: Any) -> None:
    """Default bridge listener: log pushed characteristic updates."""
    logger.debug(f"{accessory_id} {characteristic} -> {value}")


async def main(config_dir: Path | None = None) -> None:
    """Main entry point."""
    logger.info("Starting Lightsync...")

    try:
        config = load_config(config_dir)
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    logging.getLogger().setLevel(config.log_level.upper())

    registry = build_default_registry()
    device_manager = DeviceManager(config, registry, listener=log_update)
    await device_manager.initialize()
    logger.info(f"Initialized {len(device_manager.get_accessories())} accessories")

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Signal handlers are unavailable on some platforms
            pass

    try:
        await stop.wait()
    finally:
        await device_manager.shutdown()
        logger.info("Shutdown complete")


def run() -> None:
    """Synchronous entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
