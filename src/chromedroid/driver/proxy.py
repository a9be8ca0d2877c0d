"""HTTP transport forwarding requests to a local chromedriver."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from chromedroid.driver.session import ProxyResponse
from chromedroid.shared.exceptions import ProxyError

logger = logging.getLogger(__name__)


class HttpxRequestProxy:
    """Forward requests to chromedriver with httpx.

    Implements the ``RequestProxy`` protocol. Redirects are returned to the
    caller untouched since chromedriver answers session creation with 303.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 9515, *, timeout: float | None = None) -> None:
        self._base_url = f"http://{host}:{port}"
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    async def proxy_to(self, path: str, method: str, body: Any = None) -> ProxyResponse:
        """Send ``method path`` to chromedriver.

        Args:
            path: Absolute request path.
            method: HTTP method.
            body: JSON payload or None.

        Returns:
            Response status, headers and parsed body.

        Raises:
            ProxyError: If the request could not be completed.
        """
        url = f"{self._base_url}{path}"
        logger.debug("proxying %s %s", method, url)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=False) as client:
                resp = await client.request(method, url, json=body)
        except httpx.HTTPError as exc:
            raise ProxyError(f"proxy {method} {path} failed: {exc!r}") from exc

        return ProxyResponse(
            status_code=resp.status_code,
            headers=dict(resp.headers),
            body=_parse_body(resp),
        )


def _parse_body(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text
