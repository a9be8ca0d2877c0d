"""Protocol interfaces for driver dependency injection."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from chromedroid.driver.session import ProxyResponse
from chromedroid.shared.models import AdbDevice


@runtime_checkable
class DeviceBridge(Protocol):
    """Protocol for the ADB server chromedriver talks to."""

    async def restart_server(self) -> None:
        """Kill and restart the ADB server.

        Raises:
            AdbError: If the server could not be restarted
        """
        ...

    async def get_connected_devices(self) -> list[AdbDevice]:
        """List devices known to the ADB server.

        Returns:
            Devices in the order ``adb devices`` reports them

        Raises:
            AdbError: If the device list could not be read
        """
        ...

    async def stop_app(self, package: str) -> None:
        """Force-stop an application on the current device.

        Args:
            package: Android package name

        Raises:
            AdbError: If no device is selected or the command fails
        """
        ...


@runtime_checkable
class RequestProxy(Protocol):
    """Protocol for forwarding HTTP requests to chromedriver."""

    async def proxy_to(self, path: str, method: str, body: Any = None) -> ProxyResponse:
        """Send one request and return the raw outcome.

        Args:
            path: Absolute request path, e.g. ``/wd/hub/session``
            method: HTTP method
            body: JSON-serialisable payload, or None

        Returns:
            Response status, headers and parsed body

        Raises:
            ProxyError: If the request could not be completed
        """
        ...
