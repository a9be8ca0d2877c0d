"""Tests for shared domain models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from chromedroid.shared.models import AdbDevice, StartupConfig


class TestStartupConfig:
    def test_defaults(self) -> None:
        config = StartupConfig()
        assert config.chromedriver_bin == "chromedriver"
        assert config.port == 9515
        assert config.package == "com.android.chrome"
        assert config.launch_args == ["--url-base=wd/hub"]

    def test_chromium_package(self) -> None:
        assert StartupConfig(chromium=True).package == "org.chromium.chrome.testshell"

    def test_frozen(self) -> None:
        config = StartupConfig()
        with pytest.raises(ValidationError):
            config.port = 1234  # type: ignore[misc]

    def test_port_range(self) -> None:
        with pytest.raises(ValidationError):
            StartupConfig(port=0)


class TestAdbDevice:
    def test_online(self) -> None:
        assert AdbDevice(serial="emulator-5554", state="device").online is True
        assert AdbDevice(serial="emulator-5554", state="offline").online is False
