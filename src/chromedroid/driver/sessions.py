"""Chromedriver session creation and teardown."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from chromedroid.driver.interfaces import DeviceBridge, RequestProxy
from chromedroid.driver.session import DriverSession, ProxyResponse
from chromedroid.shared.exceptions import (
    AdbError,
    BridgeUnavailableError,
    TeardownError,
    UnexpectedSessionResponseError,
)

logger = logging.getLogger(__name__)

# Chromedriver's error text when it cannot reach the device
_ADB_FAILURE = "Failed to run adb command"

_SESSION_ID_PATTERN = re.compile(r"/([^/]+)$")

# Bridge restarts attempted before giving up
_MAX_BRIDGE_RESTARTS = 1


class SessionManager:
    """Create and delete the single chromedriver session for one device."""

    def __init__(self, proxy: RequestProxy, bridge: DeviceBridge, *, url_base: str = "wd/hub") -> None:
        self._proxy = proxy
        self._bridge = bridge
        self._session_path = f"/{url_base.strip('/')}/session"
        self.session: DriverSession | None = None

    async def create_session(self, package: str) -> str:
        """Ask chromedriver for a session attached to ``package``.

        A "Failed to run adb command" answer triggers one ADB restart and
        one retry.

        Args:
            package: Android package chromedriver should drive.

        Returns:
            The new session id.

        Raises:
            ProxyError: If chromedriver could not be reached.
            BridgeUnavailableError: If adb still fails after a restart.
            UnexpectedSessionResponseError: For any other non-redirect answer.
        """
        payload = {
            "sessionId": None,
            "desiredCapabilities": {"chromeOptions": {"androidPackage": package}},
        }
        restarts = 0
        while True:
            logger.info("creating chrome session for %s", package)
            resp = await self._proxy.proxy_to(self._session_path, "POST", payload)

            location = _header(resp, "location")
            if resp.status_code == 303 and location:
                session_id = _session_id_from_location(location, resp)
                self.session = DriverSession(session_id=session_id, package=package)
                logger.info("started chrome session %s", session_id)
                return session_id

            if not _is_adb_failure(resp.body):
                logger.error(
                    "chromedriver create session did not work: status=%d body=%s",
                    resp.status_code,
                    _dump(resp.body),
                )
                raise UnexpectedSessionResponseError(
                    f"Did not get session redirect from Chromedriver "
                    f"(status={resp.status_code}, body={_dump(resp.body)})",
                    status_code=resp.status_code,
                    body=resp.body,
                )

            logger.error("chromedriver had trouble running adb")
            if restarts >= _MAX_BRIDGE_RESTARTS:
                raise BridgeUnavailableError("Chromedriver wasn't able to use adb. Is the server up?")
            restarts += 1
            await self._resync_bridge()

    async def delete_session(self) -> None:
        """Delete the active session.

        Raises:
            ProxyError: If chromedriver could not be reached.
            TeardownError: If there is no session or chromedriver did not answer 200.
        """
        session = self.session
        if session is None:
            raise TeardownError("no active session")

        resp = await self._proxy.proxy_to(f"{self._session_path}/{session.session_id}", "DELETE")
        if resp.status_code != 200:
            raise TeardownError(f"status was not 200 (got {resp.status_code}) deleting session {session.session_id}")
        logger.info("deleted chrome session %s", session.session_id)
        self.session = None

    async def _resync_bridge(self) -> None:
        logger.error("restarting adb for chromedriver")
        try:
            await self._bridge.restart_server()
        except AdbError as exc:
            logger.warning("adb restart failed, retrying anyway: %s", exc)
        try:
            # Listing devices makes the fresh server reconnect to them.
            await self._bridge.get_connected_devices()
        except AdbError as exc:
            logger.warning("adb device listing failed: %s", exc)


def _header(resp: ProxyResponse, name: str) -> str | None:
    for key, value in resp.headers.items():
        if key.lower() == name:
            return value
    return None


def _session_id_from_location(location: str, resp: ProxyResponse) -> str:
    match = _SESSION_ID_PATTERN.search(location)
    if match is None:
        raise UnexpectedSessionResponseError(
            f"no session id in redirect location {location!r}",
            status_code=resp.status_code,
            body=resp.body,
        )
    return match.group(1)


def _is_adb_failure(body: Any) -> bool:
    if not isinstance(body, dict):
        return False
    value = body.get("value")
    if not isinstance(value, dict):
        return False
    message = value.get("message")
    return isinstance(message, str) and _ADB_FAILURE in message


def _dump(body: Any) -> str:
    try:
        return json.dumps(body)
    except (TypeError, ValueError):
        return repr(body)
