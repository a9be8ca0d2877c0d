import asyncio
import logging
import sys

from chromedroid.config import get_settings
from chromedroid.driver.service import build_driver
from chromedroid.shared.exceptions import ChromedroidError

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger("verify_chromedriver")

# Needs chromedriver on PATH, adb, and one device/emulator with Chrome installed.
TEST_URL = "https://example.com/"


async def main() -> int:
    settings = get_settings()
    driver = build_driver(settings)
    logger.info("Starting chromedriver verification against %s...", driver.config.package)

    try:
        # 1. Launch + session
        session_id = await driver.start(on_die=lambda: logger.error("chromedriver died mid-run"))
        logger.info(f"Session created: {session_id}")

        # 2. Navigate through the proxy
        base = f"/{driver.config.url_base}/session/{session_id}"
        resp = await driver.proxy_to(f"{base}/url", "POST", {"url": TEST_URL})
        logger.info(f"Navigate status: {resp.status_code}")

        resp = await driver.proxy_to(f"{base}/url", "GET")
        logger.info(f"Current URL: {resp.body}")

        # 3. Tear the session down
        await driver.delete_session()
        logger.info("SUCCESS: session deleted")
        return 0
    except ChromedroidError as e:
        logger.error(f"FAILURE: {e}")
        return 1
    finally:
        await driver.stop()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
