"""Document store driver for the HTTP proxy.

The proxy exposes the store as a handful of REST routes and picks the
target cluster from a connection-string header sent with every request:

.. code-block:: text

    GET    list-databases
    GET    list-collections/{db}
    GET    documents/{db}/{collection}[?meta=1&filter=<json>]
    GET    document/{db}/{collection}/{id}       (name or _id match)
    PUT    document/{db}/{collection}/{id}       (upsert)
    PATCH  document/{db}/{collection}/{id}       (null unsets a field)
    DELETE document/{db}/{collection}/{id}
    GET    images/{db}/{collection}/{id}
    GET    mkdir/{db}[/{collection}]
    DELETE drop/{db}[/{collection}]
    GET    test
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote

import httpx

from docstorefs.drivers.http_client.http_client import HttpClientDriver
from docstorefs.kernel.config.models import DEFAULT_CONNECTION_HEADER
from docstorefs.kernel.domain.document import resolve_image_ref
from docstorefs.kernel.exceptions import HttpClientError, StoreIOError
from docstorefs.kernel.logging import get_logger

logger = get_logger(__name__)


def _route(*segments: str) -> str:
    return "/".join(quote(segment, safe="") for segment in segments)


def _store_path(*segments: str | None) -> str:
    return "/" + "/".join(segment for segment in segments if segment)


def _filter_identifier(filter: dict[str, Any]) -> str:
    """The document id to put in the URL for a ``name``/``_id`` filter."""
    for key in ("name", "_id"):
        if filter.get(key) is not None:
            return str(filter[key])
    raise StoreIOError("", f"unsupported document filter: {filter!r}")


def _error_detail(error: HttpClientError) -> str:
    body = error.body
    if isinstance(body, dict):
        return str(body.get("details") or body.get("error") or f"HTTP {error.status_code}")
    return str(error)


class ProxyDocumentStore:
    """DocumentStore driver backed by the document-store HTTP proxy.

    Parameters
    ----------
    connection_string : str
        Forwarded to the proxy in the connection header of every request.
    base_url : str
        Base URL of the proxy (e.g. ``http://localhost:3000/api/mongodb``).
    timeout : float
        Request timeout in seconds.
    connection_header : str
        Name of the header carrying the connection string.
    http : HttpClientDriver | None
        Pre-built transport, mainly for tests.
    """

    def __init__(
        self,
        connection_string: str,
        base_url: str = "",
        timeout: float = 30.0,
        connection_header: str = DEFAULT_CONNECTION_HEADER,
        http: HttpClientDriver | None = None,
    ) -> None:
        self.connection_string = connection_string
        self._http = http or HttpClientDriver(
            base_url=base_url,
            timeout=timeout,
            headers={connection_header: connection_string},
        )

    async def _request(self, method: str, path: str, url: str, **kwargs: Any) -> Any:
        """Send one request and return the parsed body.

        Raises
        ------
        StoreIOError
            For non-2xx statuses and transport failures.
        """
        call = {
            "GET": self._http.aget,
            "PUT": self._http.aput,
            "PATCH": self._http.apatch,
            "DELETE": self._http.adelete,
        }[method]
        try:
            result = await call(url, **kwargs)
        except HttpClientError as e:
            logger.warning("{method} {url} failed: HTTP {status}", method=method, url=url,
                           status=e.status_code)
            raise StoreIOError(path, _error_detail(e)) from e
        except httpx.HTTPError as e:
            logger.warning("{method} {url} failed: {error}", method=method, url=url, error=e)
            raise StoreIOError(path, f"request failed: {e}") from e
        return result["body"]

    @staticmethod
    def _expect_list(body: Any, path: str) -> list[Any]:
        if not isinstance(body, list):
            raise StoreIOError(path, f"malformed response: expected a list, got {type(body).__name__}")
        return body

    async def alist_databases(self) -> list[str]:
        body = await self._request("GET", "/", "list-databases")
        return [str(name) for name in self._expect_list(body, "/") if name]

    async def alist_collections(self, database: str) -> list[str]:
        path = _store_path(database)
        body = await self._request("GET", path, _route("list-collections", database))
        return [str(name) for name in self._expect_list(body, path)]

    async def afind(
        self,
        database: str,
        collection: str,
        *,
        meta_only: bool = False,
        filter: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        path = _store_path(database, collection)
        params: dict[str, str] = {}
        if meta_only:
            params["meta"] = "1"
        if filter:
            params["filter"] = json.dumps(filter)
        body = await self._request(
            "GET", path, _route("documents", database, collection), params=params or None
        )
        return [doc for doc in self._expect_list(body, path) if isinstance(doc, dict)]

    async def afind_one(
        self, database: str, collection: str, identifier: str
    ) -> dict[str, Any] | None:
        path = _store_path(database, collection, identifier)
        try:
            body = await self._request(
                "GET", path, _route("document", database, collection, identifier)
            )
        except StoreIOError as e:
            if isinstance(e.__cause__, HttpClientError) and e.__cause__.status_code == 404:
                return None
            raise
        if not isinstance(body, dict):
            raise StoreIOError(path, "malformed response: expected a document")
        return body

    async def areplace_one(
        self,
        database: str,
        collection: str,
        filter: dict[str, Any],
        record: dict[str, Any],
        *,
        upsert: bool = True,
    ) -> None:
        # The proxy always upserts; it matches on the record's _id when present.
        identifier = _filter_identifier(filter)
        path = _store_path(database, collection, identifier)
        await self._request(
            "PUT", path, _route("document", database, collection, identifier), json=record
        )

    async def apatch_one(
        self, database: str, collection: str, identifier: str, updates: dict[str, Any]
    ) -> int:
        path = _store_path(database, collection, identifier)
        body = await self._request(
            "PATCH", path, _route("document", database, collection, identifier), json=updates
        )
        return int(body.get("modifiedCount", 0)) if isinstance(body, dict) else 0

    async def adelete_one(self, database: str, collection: str, filter: dict[str, Any]) -> int:
        identifier = _filter_identifier(filter)
        path = _store_path(database, collection, identifier)
        body = await self._request(
            "DELETE", path, _route("document", database, collection, identifier)
        )
        if not isinstance(body, dict) or "deletedCount" not in body:
            raise StoreIOError(path, "malformed response: missing deletedCount")
        return int(body["deletedCount"])

    async def aget_images(self, database: str, collection: str, identifier: str) -> list[str]:
        path = _store_path(database, collection, identifier)
        try:
            body = await self._request(
                "GET", path, _route("images", database, collection, identifier)
            )
        except StoreIOError as e:
            if isinstance(e.__cause__, HttpClientError) and e.__cause__.status_code == 404:
                return []
            raise
        refs = body.get("images", []) if isinstance(body, dict) else []
        return [url for ref in refs if (url := resolve_image_ref(ref)) is not None]

    async def acreate(self, database: str, collection: str | None = None) -> None:
        segments = [database] if collection is None else [database, collection]
        await self._request("GET", _store_path(*segments), _route("mkdir", *segments))

    async def adrop(self, database: str, collection: str | None = None) -> None:
        segments = [database] if collection is None else [database, collection]
        await self._request("DELETE", _store_path(*segments), _route("drop", *segments))

    async def aping(self) -> bool:
        try:
            body = await self._request("GET", "/", "test")
        except StoreIOError:
            return False
        return bool(body.get("success")) if isinstance(body, dict) else False

    async def aclose(self) -> None:
        await self._http.aclose()


__all__ = ["ProxyDocumentStore"]
