"""JSON-over-HTTP client shared by the LNURL resolver and the mint client.

Every failure surfaces as an :class:`HttpClientError` subclass so callers map
one small hierarchy into their own domain errors instead of handling httpx
exceptions directly.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type
from types import TracebackType

import httpx

logger = logging.getLogger(__name__)


class HttpClientError(Exception):
    """Base error for a JSON request that did not produce a usable body."""

    def __init__(self, message: str, *, url: str) -> None:
        super().__init__(message)
        self.url = url


class HttpStatusError(HttpClientError):
    """The server answered with a non-2xx status."""

    def __init__(self, url: str, status_code: int, detail: str) -> None:
        super().__init__(f"status {status_code} from {url}: {detail}", url=url)
        self.status_code = status_code
        self.detail = detail


class HttpTransportError(HttpClientError):
    """The request never got a response (DNS, connect, TLS, timeout)."""


class HttpDecodeError(HttpClientError):
    """The response body is not JSON."""


def _error_detail(response: httpx.Response) -> str:
    """Human-readable reason from an error response.

    Cashu mints answer ``{"detail": ...}``, LNURL hosts ``{"reason": ...}``;
    anything else falls back to the raw body.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        for key in ("detail", "reason"):
            if body.get(key):
                return str(body[key])
    return response.text


class AsyncHttpClient:
    """Asynchronous JSON client around httpx.AsyncClient.

    - Relative paths join ``base_url``; absolute URLs pass through untouched.
    - Applies a default timeout, overridable per request.
    - Returns decoded JSON or raises an :class:`HttpClientError`.
    - Accepts a custom transport so tests can swap in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        url = self._url(path)
        kwargs: Dict[str, Any] = {"params": params, "json": json}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.debug("%s %s failed: %r", method, url, e)
            raise HttpTransportError(f"Could not reach {url}: {e}", url=url) from e

        if not resp.is_success:
            raise HttpStatusError(url, resp.status_code, _error_detail(resp))
        try:
            return resp.json()
        except ValueError as e:
            raise HttpDecodeError(f"Invalid JSON from {url}", url=url) from e

    async def get_json(
        self, path: str, *, params: Optional[Dict[str, Any]] = None, **kwargs: Any
    ) -> Any:
        return await self.request_json("GET", path, params=params, **kwargs)

    async def post_json(
        self, path: str, json: Optional[Dict[str, Any]] = None, **kwargs: Any
    ) -> Any:
        return await self.request_json("POST", path, json=json, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHttpClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
