"""ADB server management for chromedriver-controlled devices."""

from __future__ import annotations

import asyncio
import logging

from chromedroid.shared.exceptions import AdbError
from chromedroid.shared.models import AdbDevice

logger = logging.getLogger(__name__)


class AdbBridge:
    """ADB-backed implementation of the DeviceBridge protocol.

    Uses ``adb`` CLI through async subprocess calls. The first online device
    reported by :meth:`get_connected_devices` becomes the target for
    :meth:`stop_app` unless a serial was given up front.
    """

    def __init__(self, *, adb_bin: str = "adb", timeout: int = 30, serial: str | None = None) -> None:
        self._adb_bin = adb_bin
        self._timeout = timeout
        self._serial = serial or None

    @property
    def serial(self) -> str | None:
        return self._serial

    async def restart_server(self) -> None:
        """Kill the ADB server and start a fresh one.

        Raises:
            AdbError: If ``start-server`` fails.
        """
        _, stderr, rc = await self._run("kill-server")
        if rc != 0:
            # Nothing to kill is fine; start-server decides success.
            logger.debug("adb kill-server rc=%d: %s", rc, stderr)
        _, stderr, rc = await self._run("start-server")
        if rc != 0:
            raise AdbError(f"ADB start-server failed (rc={rc}): {stderr}")
        logger.info("restarted adb server")

    async def get_connected_devices(self) -> list[AdbDevice]:
        """List devices attached to the ADB server.

        Returns:
            Parsed ``adb devices`` rows, including offline/unauthorized ones.

        Raises:
            AdbError: If the command fails.
        """
        stdout, stderr, rc = await self._run("devices")
        if rc != 0:
            raise AdbError(f"ADB devices failed (rc={rc}): {stderr}")
        devices = parse_devices(stdout)
        if self._serial is None:
            online = [d for d in devices if d.online]
            if online:
                self._serial = online[0].serial
                logger.info("selected adb device %s", self._serial)
        logger.debug("adb devices: %s", [d.serial for d in devices])
        return devices

    async def stop_app(self, package: str) -> None:
        """Force-stop ``package`` on the selected device.

        Raises:
            AdbError: If no device is selected or the command fails.
        """
        if self._serial is None:
            raise AdbError("no device selected, call get_connected_devices() first")
        _, stderr, rc = await self._run("-s", self._serial, "shell", "am", "force-stop", package)
        if rc != 0:
            raise AdbError(f"ADB force-stop {package} failed (rc={rc}): {stderr}")
        logger.info("stopped %s on %s", package, self._serial)

    async def _run(self, *args: str) -> tuple[str, str, int]:
        """Run an ADB command and return (stdout, stderr, returncode)."""
        cmd = [self._adb_bin, *args]
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise AdbError(f"ADB command timed out: {' '.join(cmd)}") from exc
        except FileNotFoundError as exc:
            raise AdbError(f"adb binary not found: {self._adb_bin}") from exc

        return (
            stdout_b.decode(errors="replace").strip(),
            stderr_b.decode(errors="replace").strip(),
            proc.returncode or 0,
        )


def parse_devices(output: str) -> list[AdbDevice]:
    """Parse ``adb devices`` output into device rows."""
    devices: list[AdbDevice] = []
    for raw in output.splitlines():
        line = raw.strip()
        if not line or line.startswith("List of devices") or line.startswith("*"):
            continue
        parts = line.split()
        if len(parts) < 2:
            continue
        devices.append(AdbDevice(serial=parts[0], state=parts[1]))
    return devices
