"""Shared pytest fixtures for the chromedroid test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from chromedroid.config import Settings
from chromedroid.driver.session import ProxyResponse
from chromedroid.shared.models import AdbDevice, StartupConfig


@pytest.fixture()
def settings() -> Settings:
    """Return a Settings instance with test defaults."""
    return Settings(
        chromedriver_bin="chromedriver",
        proxy_host="127.0.0.1",
        proxy_port=9515,
        adb_bin="adb",
        adb_timeout_seconds=5,
    )


@pytest.fixture()
def startup_config() -> StartupConfig:
    return StartupConfig(chromedriver_bin="chromedriver", port=9515)


@pytest.fixture()
def mock_bridge() -> AsyncMock:
    """Mock DeviceBridge with one online device."""
    mock = AsyncMock()
    mock.restart_server = AsyncMock(return_value=None)
    mock.get_connected_devices = AsyncMock(return_value=[AdbDevice(serial="emulator-5554", state="device")])
    mock.stop_app = AsyncMock(return_value=None)
    return mock


@pytest.fixture()
def mock_proxy() -> AsyncMock:
    """Mock RequestProxy answering session creation with a redirect."""
    mock = AsyncMock()
    mock.proxy_to = AsyncMock(
        return_value=ProxyResponse(status_code=303, headers={"location": "/wd/hub/session/abc123"}, body=None)
    )
    return mock
