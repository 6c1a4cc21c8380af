"""
Default fetch capability backed by httpx.AsyncClient.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

import httpx

from .errors import NetworkError
from .types import MultipartBody, RequestInit, UrlEncodedBody, WireBody
from .utils import has_header, merge_headers


FORM_CONTENT_TYPE = {"Content-Type": "application/x-www-form-urlencoded"}


def _multipart_files(body: MultipartBody) -> List[Tuple[str, Any]]:
    # Plain fields ride along as filename-less parts so httpx always builds
    # multipart/form-data, even when there are no file parts.
    parts: List[Tuple[str, Any]] = []
    for key, value in body.fields.items():
        if isinstance(value, (list, tuple)):
            parts.extend((key, (None, str(item))) for item in value)
        else:
            parts.append((key, (None, str(value))))
    parts.extend(body.files.items())
    return parts


def _request_kwargs(headers: Mapping[str, str], body: Optional[WireBody]) -> Dict[str, Any]:
    """Translate request headers and a wire body into httpx request arguments."""
    if body is None:
        return {"headers": dict(headers)}
    if isinstance(body, (str, bytes)):
        return {"headers": dict(headers), "content": body}
    if isinstance(body, UrlEncodedBody):
        if not has_header(headers, "Content-Type"):
            headers = merge_headers(headers, FORM_CONTENT_TYPE)
        return {"headers": dict(headers), "content": urlencode(list(body.pairs))}
    if isinstance(body, MultipartBody):
        return {"headers": dict(headers), "files": _multipart_files(body)}
    raise TypeError(f"Unsupported wire body: {type(body).__name__}")


class HttpxFetch:
    """
    Fetch capability over httpx.

    Creates its own AsyncClient lazily unless one is supplied; only a client
    it created is closed by aclose().
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._http_client = client
        self._owns_client = client is None
        self._timeout = timeout

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            if self._timeout is None:
                self._http_client = httpx.AsyncClient()
            else:
                self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def __call__(self, url: str, init: RequestInit) -> httpx.Response:
        client = self._get_client()
        try:
            return await client.request(
                method=init.method,
                url=url,
                **_request_kwargs(init.headers, init.body),
            )
        except httpx.TimeoutException as e:
            raise NetworkError("Request timeout", {"url": url}, timeout=True) from e
        except httpx.RequestError as e:
            raise NetworkError(str(e) or type(e).__name__, {"url": url}) from e

    async def aclose(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None
