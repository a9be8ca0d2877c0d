"""Centralised configuration via Pydantic Settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from chromedroid.shared.models import StartupConfig


class Settings(BaseSettings):
    """Application-wide configuration loaded from environment variables."""

    model_config = {"env_prefix": "CHROMEDROID_", "frozen": True}

    # Chromedriver
    chromedriver_bin: str = "chromedriver"
    chromedriver_url_base: str = "wd/hub"
    stop_timeout_seconds: float = 5.0
    # Grace for trailing output once chromedriver has exited
    exit_drain_timeout_seconds: float = 0.5

    # Proxy target (chromedriver binds this port itself)
    proxy_host: str = "127.0.0.1"
    proxy_port: int = 9515
    # 0 disables the request timeout
    proxy_timeout_seconds: float = 0.0

    # Target app: com.android.chrome, or the chromium test shell when set
    chromium: bool = False

    # ADB
    adb_bin: str = "adb"
    adb_timeout_seconds: int = 30
    adb_device_serial: str = ""

    def startup_config(self) -> StartupConfig:
        return StartupConfig(
            chromedriver_bin=self.chromedriver_bin,
            url_base=self.chromedriver_url_base,
            proxy_host=self.proxy_host,
            port=self.proxy_port,
            chromium=self.chromium,
        )


def get_settings() -> Settings:
    """Factory, overridable in tests."""
    return Settings()
