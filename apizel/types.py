"""
apizel Type Definitions

Configuration, per-call options, hook contexts and request body variants.
"""

from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import httpx

from .signals import AbortSignal


ParamScalar = Union[str, int, float, bool]
ParamValue = Union[ParamScalar, None, Sequence[ParamScalar]]
RequestParams = Mapping[str, ParamValue]


# =============================================================================
# Request Body Variants
# =============================================================================

@dataclass(frozen=True)
class JsonBody:
    """Any value to be serialized as JSON text."""
    value: Any


@dataclass(frozen=True)
class TextBody:
    """Raw text, sent unchanged."""
    text: str


@dataclass(frozen=True)
class BinaryBody:
    """Raw bytes, sent unchanged."""
    data: bytes


@dataclass(frozen=True)
class MultipartBody:
    """
    multipart/form-data payload.

    The transport generates the boundary and the Content-Type header, so the
    encoder never touches headers for this variant.
    """
    fields: Mapping[str, Any] = field(default_factory=dict)
    files: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UrlEncodedBody:
    """application/x-www-form-urlencoded payload as ordered pairs."""
    pairs: Sequence[Tuple[str, str]] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UrlEncodedBody":
        pairs = []
        for key, value in data.items():
            if isinstance(value, (list, tuple)):
                pairs.extend((key, str(item)) for item in value)
            else:
                pairs.append((key, str(value)))
        return cls(tuple(pairs))


RequestBody = Union[JsonBody, TextBody, BinaryBody, MultipartBody, UrlEncodedBody]

# What actually goes to the fetch capability once encoding is done.
WireBody = Union[str, bytes, MultipartBody, UrlEncodedBody]


# =============================================================================
# Request Descriptors
# =============================================================================

@dataclass(frozen=True)
class RequestMeta:
    """Minimal description of a request, passed to should_attach_token."""
    method: str
    endpoint: str


@dataclass
class RequestOptions:
    """Per-call options."""

    # Per-call headers, applied last
    headers: Optional[Dict[str, str]] = None
    # Flat query parameters
    params: Optional[RequestParams] = None
    # External cancellation
    signal: Optional[AbortSignal] = None
    # Timeout in milliseconds (None, 0 or negative disables it)
    timeout_ms: Optional[float] = None


@dataclass
class RequestInit:
    """What the fetch capability receives alongside the URL."""
    method: str
    headers: Dict[str, str]
    body: Optional[WireBody] = None
    signal: Optional[AbortSignal] = None


@dataclass
class RequestHookContext:
    """Context passed to on_request. Observation only."""
    method: str
    endpoint: str
    url: str
    init: RequestInit


@dataclass
class ResponseHookContext:
    """Context passed to on_response. Observation only."""
    method: str
    endpoint: str
    url: str
    init: RequestInit
    response: httpx.Response
    data: Any


FetchLike = Callable[[str, RequestInit], Awaitable[httpx.Response]]
RequestHook = Callable[[RequestHookContext], Optional[Awaitable[None]]]
ResponseHook = Callable[[ResponseHookContext], Optional[Awaitable[None]]]
TokenGetter = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]


# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class ApizelConfig:
    """Client configuration. Never mutated once a client is built from it."""

    # Base URL every endpoint is joined to
    base_url: str = ""
    # Headers sent with every request (lowest precedence)
    headers: Optional[Dict[str, str]] = None
    # Fetch capability (default: HttpxFetch)
    fetch_impl: Optional[FetchLike] = None
    # Observation hooks
    on_request: Optional[RequestHook] = None
    on_response: Optional[ResponseHook] = None
    # Current access token producer, sync or async
    get_access_token: Optional[TokenGetter] = None
    # Which requests get an Authorization header (default: all)
    should_attach_token: Optional[Callable[[RequestMeta], bool]] = None
    # Produces a new access token after a 401
    refresh: Optional[Callable[[], Awaitable[str]]] = None
    # Called when refresh raises
    on_refresh_failed: Optional[Callable[[], Optional[Awaitable[None]]]] = None
    # Enable debug logging (default: False)
    debug: bool = False
