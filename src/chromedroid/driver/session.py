"""Runtime values exchanged with a running chromedriver."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class DriverSession:
    """Active chromedriver session bound to one Android package."""

    session_id: str
    package: str


@dataclass(frozen=True, slots=True)
class ProxyResponse:
    """Status, headers and parsed body of one proxied request."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None
