"""
URL building, header merging and response body reading.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

import httpx

from .errors import ConfigurationError
from .types import RequestParams


_TRAILING_SLASHES = re.compile(r"/+$")

_SCALARS = (str, int, float)  # bool is an int


def join_url(base_url: str, endpoint: str) -> str:
    """
    Join a base URL and an endpoint path.

    join_url("https://api.example.com/", "v1/me") -> "https://api.example.com/v1/me"
    """
    base = _TRAILING_SLASHES.sub("", base_url)
    path = endpoint if endpoint.startswith("/") else f"/{endpoint}"
    return f"{base}{path}"


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, _SCALARS)


def with_params(url: str, params: Optional[RequestParams] = None) -> str:
    """
    Append query parameters to ``url``.

    None values are dropped, lists and tuples become repeated keys
    (tag=a&tag=b), scalars are stringified. Anything else is rejected so a
    nested object never turns into a silently broken URL.
    """
    if not params:
        return url

    pairs: List[Tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue

        if isinstance(value, (list, tuple)):
            for item in value:
                if item is None:
                    continue
                if not _is_scalar(item):
                    raise ConfigurationError(
                        f'apizel: params object is not supported (key="{key}", url="{url}")',
                        {"key": key, "url": url},
                    )
                pairs.append((key, _stringify(item)))
            continue

        if not _is_scalar(value):
            raise ConfigurationError(
                f'apizel: params object is not supported (key="{key}", url="{url}")',
                {"key": key, "url": url},
            )

        pairs.append((key, _stringify(value)))

    query = urlencode(pairs)
    if not query:
        return url
    return f"{url}&{query}" if "?" in url else f"{url}?{query}"


def merge_headers(*parts: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Merge header mappings left to right; later keys win, None is skipped."""
    merged: Dict[str, str] = {}
    for part in parts:
        if not part:
            continue
        for key, value in part.items():
            merged[key] = value
    return merged


def has_header(headers: Mapping[str, str], name: str) -> bool:
    """Case-insensitive header presence check."""
    lowered = name.lower()
    return any(key.lower() == lowered for key in headers)


def is_json_response(response: httpx.Response) -> bool:
    """Check the declared content type for application/json."""
    return "application/json" in response.headers.get("content-type", "")


async def read_body(response: httpx.Response) -> Any:
    """
    Decode a response body without ever raising.

    - 204 is always None
    - JSON content type: parsed JSON, or None when it does not parse
    - anything else: text, or None when the body cannot be read
    """
    if response.status_code == 204:
        return None

    try:
        await response.aread()
    except (httpx.HTTPError, httpx.StreamError):
        return None

    if is_json_response(response):
        try:
            return response.json()
        except ValueError:
            return None

    try:
        return response.text
    except (LookupError, ValueError):
        return None
