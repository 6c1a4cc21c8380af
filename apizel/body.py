"""
Request body classification and encoding.
"""

import json
from typing import Any, Dict, Mapping, Tuple

from .errors import ConfigurationError
from .types import (
    BinaryBody,
    JsonBody,
    MultipartBody,
    RequestBody,
    TextBody,
    UrlEncodedBody,
    WireBody,
)
from .utils import has_header, merge_headers


_VARIANTS = (JsonBody, TextBody, BinaryBody, MultipartBody, UrlEncodedBody)

JSON_CONTENT_TYPE = {"Content-Type": "application/json"}


def classify_body(value: Any) -> RequestBody:
    """
    Map an arbitrary payload to one of the supported body variants.

    Variants pass through; str is text, bytes-like is binary, anything else
    is JSON. Multipart and URL-encoded payloads must be built explicitly.
    """
    if isinstance(value, _VARIANTS):
        return value
    if isinstance(value, str):
        return TextBody(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BinaryBody(bytes(value))
    return JsonBody(value)


def encode_body(headers: Mapping[str, str], value: Any) -> Tuple[Dict[str, str], WireBody]:
    """
    Return the headers to send with and the wire body for ``value``.

    Only JSON bodies touch headers: Content-Type: application/json is added
    to a fresh copy when the merged headers carry no Content-Type.
    """
    body = classify_body(value)

    if isinstance(body, TextBody):
        return dict(headers), body.text
    if isinstance(body, BinaryBody):
        return dict(headers), body.data
    if isinstance(body, (MultipartBody, UrlEncodedBody)):
        return dict(headers), body

    try:
        text = json.dumps(body.value, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"apizel: body is not JSON serializable ({e})",
            {"type": type(body.value).__name__},
        ) from e

    if has_header(headers, "Content-Type"):
        return dict(headers), text
    return merge_headers(headers, JSON_CONTENT_TYPE), text
