"""Frozen Pydantic domain models shared by all modules."""

from __future__ import annotations

from pydantic import BaseModel, Field

from chromedroid.shared.enums import ChromePackage


class StartupConfig(BaseModel):
    """Immutable input for one driver lifecycle."""

    model_config = {"frozen": True}

    chromedriver_bin: str = "chromedriver"
    url_base: str = "wd/hub"
    proxy_host: str = "127.0.0.1"
    port: int = Field(default=9515, ge=1, le=65535)
    chromium: bool = False

    @property
    def package(self) -> str:
        if self.chromium:
            return ChromePackage.CHROMIUM.value
        return ChromePackage.CHROME.value

    @property
    def launch_args(self) -> list[str]:
        return [f"--url-base={self.url_base}"]


class AdbDevice(BaseModel):
    """One row of ``adb devices`` output."""

    model_config = {"frozen": True}

    serial: str
    state: str

    @property
    def online(self) -> bool:
        return self.state == "device"
