"""Domain enumerations used across all modules."""

from __future__ import annotations

from enum import Enum, unique


@unique
class LaunchState(str, Enum):
    """Outcome latch for one chromedriver launch attempt."""

    PENDING = "pending"
    RESOLVED = "resolved"


@unique
class ChromePackage(str, Enum):
    """Android packages chromedriver can attach to."""

    CHROME = "com.android.chrome"
    CHROMIUM = "org.chromium.chrome.testshell"
