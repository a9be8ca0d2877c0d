"""Run chromedriver with one session until it dies or the process is interrupted."""

from __future__ import annotations

import asyncio
import logging

from chromedroid.config import Settings, get_settings
from chromedroid.driver.service import build_driver

logger = logging.getLogger(__name__)


async def run_from_settings(settings: Settings) -> None:
    """Start a driver from settings and hold its session open."""
    driver = build_driver(settings)
    died = asyncio.Event()
    try:
        session_id = await driver.start(on_die=died.set)
        logger.info(
            "chrome session %s on %s proxied at http://%s:%d",
            session_id,
            driver.config.package,
            driver.proxy_host,
            driver.proxy_port,
        )
        await died.wait()
        logger.warning("chromedriver died, shutting down")
    finally:
        await driver.stop()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(run_from_settings(get_settings()))


if __name__ == "__main__":
    main()
