"""Hierarchical exception types for chromedroid."""

from __future__ import annotations

from typing import Any


class ChromedroidError(Exception):
    """Base exception for all chromedroid errors."""


# ── Driver process ─────────────────────────────────────────────


class DriverError(ChromedroidError):
    """Chromedriver process lifecycle error."""


class DriverResolutionError(DriverError):
    """Chromedriver binary could not be found on PATH."""


class DriverSpawnError(DriverError):
    """The OS refused to start the chromedriver process."""


class DriverPrematureExitError(DriverError):
    """Chromedriver exited before it reported readiness."""


# ── Sessions ───────────────────────────────────────────────────


class SessionError(ChromedroidError):
    """Chromedriver session create/delete failed."""


class BridgeUnavailableError(SessionError):
    """Chromedriver kept failing to run adb after a bridge restart."""


class UnexpectedSessionResponseError(SessionError):
    """Session creation returned something other than a redirect."""

    def __init__(self, message: str, *, status_code: int, body: Any) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TeardownError(SessionError):
    """Session deletion failed."""


# ── Transport / bridge ─────────────────────────────────────────


class ProxyError(ChromedroidError):
    """HTTP request to chromedriver could not be completed."""


class AdbError(ChromedroidError):
    """ADB server or command error."""
