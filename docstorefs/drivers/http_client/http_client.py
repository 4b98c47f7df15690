"""HTTP client driver using httpx.AsyncClient.

Shared transport for the document-store proxy: one pooled
``httpx.AsyncClient`` per driver, created lazily on first request and kept
until :meth:`HttpClientDriver.aclose`.
"""

from __future__ import annotations

from typing import Any

import httpx

from docstorefs.kernel.exceptions import HttpClientError
from docstorefs.kernel.logging import get_logger

logger = get_logger(__name__)


class HttpClientDriver:
    """Async HTTP calls with connection pooling and JSON parsing.

    Parameters
    ----------
    base_url : str
        Optional base URL prefix for all requests.
    timeout : float
        Request timeout in seconds (default: 30.0).
    headers : dict[str, str] | None
        Default headers included in every request.
    follow_redirects : bool
        Whether to follow HTTP redirects (default: True).
    raise_for_status : bool
        If True, raise :class:`HttpClientError` on non-2xx responses
        (default: True).

    Examples
    --------
    ::

        http = HttpClientDriver(
            base_url="http://localhost:3000/api/mongodb",
            headers={"x-mongodb-connection": "mongodb://localhost:27017"},
        )
        result = await http.aget("/list-databases")
        print(result["body"])
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        follow_redirects: bool = True,
        raise_for_status: bool = True,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._default_headers = dict(headers) if headers else {}
        self._follow_redirects = follow_redirects
        self._raise_for_status = raise_for_status
        self._client: httpx.AsyncClient | None = None
        # Test hook: inject a custom transport
        self._transport: httpx.AsyncBaseTransport | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        """Lazily create the httpx client on first use."""
        if self._client is None:
            kwargs: dict[str, Any] = {
                "base_url": self._base_url,
                "timeout": self._timeout,
                "headers": self._default_headers,
                "follow_redirects": self._follow_redirects,
            }
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._client = httpx.AsyncClient(**kwargs)
            logger.debug("Opened HTTP client for {base_url}", base_url=self._base_url or "<none>")
        return self._client

    def _merge_headers(self, headers: dict[str, str] | None) -> dict[str, str] | None:
        """Merge per-request headers with defaults."""
        if not headers:
            return None
        return {**self._default_headers, **headers}

    def _parse_response(self, response: httpx.Response) -> dict[str, Any]:
        """Parse an httpx response into a standard dict.

        Returns
        -------
        dict[str, Any]
            ``{"status_code": int, "headers": dict, "body": Any}``
            where body is parsed JSON if content-type is JSON, else raw text.
        """
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                body = response.json()
            except ValueError:
                body = response.text
        else:
            body = response.text

        return {
            "status_code": response.status_code,
            "headers": dict(response.headers),
            "body": body,
        }

    def _check_status(self, result: dict[str, Any]) -> dict[str, Any]:
        """Raise HttpClientError if status is non-2xx and raise_for_status is enabled."""
        if self._raise_for_status:
            status = result["status_code"]
            if status < 200 or status >= 300:
                raise HttpClientError(
                    status_code=status,
                    body=result["body"],
                    message=f"HTTP {status}: {result['body']}",
                )
        return result

    async def aget(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Make an async GET request.

        Parameters
        ----------
        url : str
            The URL (or path if base_url is set).
        headers : dict[str, str] | None
            Optional per-request headers.
        params : dict[str, Any] | None
            Optional query parameters.
        """
        client = self._get_client()
        response = await client.get(
            url, headers=self._merge_headers(headers), params=params, **kwargs
        )
        return self._check_status(self._parse_response(response))

    async def aput(
        self,
        url: str,
        json: Any | None = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Make an async PUT request with a JSON body."""
        client = self._get_client()
        response = await client.put(url, json=json, headers=self._merge_headers(headers), **kwargs)
        return self._check_status(self._parse_response(response))

    async def apatch(
        self,
        url: str,
        json: Any | None = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Make an async PATCH request with a JSON body."""
        client = self._get_client()
        response = await client.patch(
            url, json=json, headers=self._merge_headers(headers), **kwargs
        )
        return self._check_status(self._parse_response(response))

    async def adelete(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Make an async DELETE request."""
        client = self._get_client()
        response = await client.delete(url, headers=self._merge_headers(headers), **kwargs)
        return self._check_status(self._parse_response(response))

    async def aclose(self) -> None:
        """Close the underlying httpx client and release connection pool resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["HttpClientDriver", "HttpClientError"]
