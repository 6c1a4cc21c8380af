"""
apizel
A small async HTTP client over a fetch-like primitive.

URL and query building, header merging, body encoding, cancellation and
timeouts, observation hooks, and single-flight token refresh on 401.
"""

from .client import ApiClient, apizel, create_api, merge_config
from .types import (
    ApizelConfig,
    RequestOptions,
    RequestMeta,
    RequestInit,
    RequestHookContext,
    ResponseHookContext,
    JsonBody,
    TextBody,
    BinaryBody,
    MultipartBody,
    UrlEncodedBody,
)
from .errors import (
    ApizelError,
    ConfigurationError,
    CancellationError,
    HttpError,
    NetworkError,
    is_http_error,
    is_cancellation_error,
)
from .signals import AbortController, AbortSignal, compose_signal, composed_signal
from .transport import HttpxFetch
from .utils import join_url, with_params, merge_headers, read_body

__version__ = "0.1.0"
__all__ = [
    # Client
    "ApiClient",
    "apizel",
    "create_api",
    "merge_config",
    # Types
    "ApizelConfig",
    "RequestOptions",
    "RequestMeta",
    "RequestInit",
    "RequestHookContext",
    "ResponseHookContext",
    "JsonBody",
    "TextBody",
    "BinaryBody",
    "MultipartBody",
    "UrlEncodedBody",
    # Errors
    "ApizelError",
    "ConfigurationError",
    "CancellationError",
    "HttpError",
    "NetworkError",
    "is_http_error",
    "is_cancellation_error",
    # Signals
    "AbortController",
    "AbortSignal",
    "compose_signal",
    "composed_signal",
    # Transport
    "HttpxFetch",
    # Utilities
    "join_url",
    "with_params",
    "merge_headers",
    "read_body",
]
