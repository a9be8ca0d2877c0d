"""Facade composing chromedriver supervision and session management."""

from __future__ import annotations

import logging
from typing import Any

from chromedroid.config import Settings
from chromedroid.driver.adb import AdbBridge
from chromedroid.driver.interfaces import DeviceBridge, RequestProxy
from chromedroid.driver.process import DeathCallback, ProcessSupervisor
from chromedroid.driver.proxy import HttpxRequestProxy
from chromedroid.driver.session import ProxyResponse
from chromedroid.driver.sessions import SessionManager
from chromedroid.shared.models import StartupConfig

logger = logging.getLogger(__name__)


class ChromeAndroidDriver:
    """Run chromedriver against Chrome on an Android device.

    ``start`` resolves the binary, launches it, and opens a session; ``stop``
    kills it and stops the browser app on the device.
    """

    is_proxy = True

    def __init__(
        self,
        config: StartupConfig,
        *,
        supervisor: ProcessSupervisor,
        sessions: SessionManager,
        bridge: DeviceBridge,
        proxy: RequestProxy,
    ) -> None:
        self.config = config
        self.supervisor = supervisor
        self.sessions = sessions
        self.bridge = bridge
        self.proxy = proxy

    @property
    def proxy_host(self) -> str:
        return self.config.proxy_host

    @property
    def proxy_port(self) -> int:
        return self.config.port

    @property
    def session_id(self) -> str | None:
        session = self.sessions.session
        return session.session_id if session is not None else None

    async def start(self, on_die: DeathCallback | None = None) -> str:
        """Launch chromedriver and open a session on the configured package.

        The first failing stage aborts the rest; call :meth:`stop` afterwards
        either way.

        Args:
            on_die: Called if chromedriver dies after it became ready.

        Returns:
            The chromedriver session id.
        """
        binary = self.supervisor.resolve_binary(self.config.chromedriver_bin)
        await self.supervisor.launch(binary, self.config.launch_args, on_die=on_die)
        return await self.sessions.create_session(self.config.package)

    async def stop(self) -> None:
        """Kill chromedriver and stop the app on the device. Never raises.

        Without a launched chromedriver this does nothing, so the device is
        left alone.
        """
        if self.supervisor.process is None:
            logger.debug("stop requested before chromedriver was launched")
            return
        await self.supervisor.stop()
        try:
            await self.bridge.get_connected_devices()
            await self.bridge.stop_app(self.config.package)
        except Exception as exc:
            logger.error("device cleanup after chromedriver stop failed: %s", exc)

    async def delete_session(self) -> None:
        await self.sessions.delete_session()

    async def proxy_to(self, path: str, method: str, body: Any = None) -> ProxyResponse:
        return await self.proxy.proxy_to(path, method, body)


def build_driver(settings: Settings) -> ChromeAndroidDriver:
    """Wire a driver from settings."""
    config = settings.startup_config()
    bridge = AdbBridge(
        adb_bin=settings.adb_bin,
        timeout=settings.adb_timeout_seconds,
        serial=settings.adb_device_serial or None,
    )
    proxy = HttpxRequestProxy(
        config.proxy_host,
        config.port,
        timeout=settings.proxy_timeout_seconds or None,
    )
    return ChromeAndroidDriver(
        config,
        supervisor=ProcessSupervisor(
            stop_timeout=settings.stop_timeout_seconds,
            drain_timeout=settings.exit_drain_timeout_seconds,
        ),
        sessions=SessionManager(proxy, bridge, url_base=config.url_base),
        bridge=bridge,
        proxy=proxy,
    )
