"""
apizel Client

The request executor and the client factory. Every verb funnels into one
request pipeline: URL and header resolution, body encoding, cancellation,
observation hooks, and a single 401 refresh-and-retry.
"""

import inspect
import logging
from dataclasses import fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from .body import encode_body
from .errors import ConfigurationError, HttpError
from .refresh import RefreshCoordinator
from .signals import AbortSignal, composed_signal, run_with_signal
from .transport import HttpxFetch
from .types import (
    ApizelConfig,
    RequestHookContext,
    RequestInit,
    RequestMeta,
    RequestOptions,
    ResponseHookContext,
)
from .utils import join_url, merge_headers, read_body, with_params


logger = logging.getLogger("apizel")

_BODYLESS_METHODS = frozenset({"GET", "DELETE"})

_CONFIG_FIELDS = frozenset(f.name for f in fields(ApizelConfig))


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _always_attach(meta: RequestMeta) -> bool:
    return True


def _bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _resolve_options(options: Optional[RequestOptions], overrides: Dict[str, Any]) -> RequestOptions:
    if options is None:
        return RequestOptions(**overrides)
    if overrides:
        return replace(options, **overrides)
    return options


def merge_config(base: ApizelConfig, overrides: Optional[Mapping[str, Any]] = None) -> ApizelConfig:
    """
    Return a new config with ``overrides`` applied on top of ``base``.

    Headers merge key-wise (override wins); every other field present in
    ``overrides`` replaces the base value. ``base`` is left untouched.
    """
    changes = dict(overrides or {})
    unknown = sorted(set(changes) - _CONFIG_FIELDS)
    if unknown:
        raise ConfigurationError(
            f"Unknown config field(s): {', '.join(unknown)}",
            {"fields": unknown},
        )
    changes["headers"] = merge_headers(base.headers, changes.get("headers"))
    return replace(base, **changes)


class ApiClient:
    """
    apizel client.

    Verb methods return the decoded response body: parsed JSON for JSON
    responses, text otherwise, None for 204.
    """

    def __init__(self, config: ApizelConfig) -> None:
        """Initialize the client from a private copy of ``config``."""
        self._config = replace(config, headers=merge_headers(config.headers))
        self._fetch = config.fetch_impl or HttpxFetch()
        self._owns_fetch = config.fetch_impl is None
        self._should_attach_token = config.should_attach_token or _always_attach
        self._refresher = RefreshCoordinator(config.refresh)

        self._log(f"ApiClient initialized (base_url={self._config.base_url!r})")

    @property
    def config(self) -> ApizelConfig:
        """A copy of this client's configuration."""
        return replace(self._config, headers=merge_headers(self._config.headers))

    def _log(self, message: str, *args: Any) -> None:
        """Log debug message."""
        if self._config.debug:
            logger.debug(f"[apizel] {message}", *args)

    # =========================================================================
    # Verbs
    # =========================================================================

    async def get(self, endpoint: str, options: Optional[RequestOptions] = None, **kwargs: Any) -> Any:
        """Send a GET request and return the decoded body."""
        return await self._request("GET", endpoint, None, _resolve_options(options, kwargs))

    async def delete(self, endpoint: str, options: Optional[RequestOptions] = None, **kwargs: Any) -> Any:
        """Send a DELETE request and return the decoded body."""
        return await self._request("DELETE", endpoint, None, _resolve_options(options, kwargs))

    async def post(
        self,
        endpoint: str,
        body: Any = None,
        options: Optional[RequestOptions] = None,
        **kwargs: Any,
    ) -> Any:
        """Send a POST request with an optional body and return the decoded body."""
        return await self._request("POST", endpoint, body, _resolve_options(options, kwargs))

    async def put(
        self,
        endpoint: str,
        body: Any = None,
        options: Optional[RequestOptions] = None,
        **kwargs: Any,
    ) -> Any:
        """Send a PUT request with an optional body and return the decoded body."""
        return await self._request("PUT", endpoint, body, _resolve_options(options, kwargs))

    async def patch(
        self,
        endpoint: str,
        body: Any = None,
        options: Optional[RequestOptions] = None,
        **kwargs: Any,
    ) -> Any:
        """Send a PATCH request with an optional body and return the decoded body."""
        return await self._request("PATCH", endpoint, body, _resolve_options(options, kwargs))

    def extend(self, overrides: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "ApiClient":
        """
        Derive a new client with overridden configuration.

        The derived client has its own refresh state and shares nothing
        mutable with this one.
        """
        changes = dict(overrides or {})
        changes.update(kwargs)
        return ApiClient(merge_config(self._config, changes))

    # =========================================================================
    # Request Pipeline
    # =========================================================================

    async def _request(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        options: Optional[RequestOptions] = None,
    ) -> Any:
        """Run one call through the pipeline."""
        options = options or RequestOptions()
        meta = RequestMeta(method=method, endpoint=endpoint)
        url = with_params(join_url(self._config.base_url, endpoint), options.params)

        # Taken before this call's own response can start a refresh.
        can_try_refresh = self._refresher.can_refresh()

        with composed_signal(options.signal, options.timeout_ms) as signal:
            return await run_with_signal(
                signal,
                self._execute(meta, url, body, options, signal, can_try_refresh),
            )

    async def _execute(
        self,
        meta: RequestMeta,
        url: str,
        body: Any,
        options: RequestOptions,
        signal: Optional[AbortSignal],
        can_try_refresh: bool,
    ) -> Any:
        token_header: Optional[Dict[str, str]] = None
        if self._config.get_access_token is not None and self._should_attach_token(meta):
            token = await _maybe_await(self._config.get_access_token())
            if token:
                token_header = _bearer(token)

        headers = merge_headers(self._config.headers, token_header, options.headers)

        wire_body = None
        if body is not None and meta.method not in _BODYLESS_METHODS:
            headers, wire_body = encode_body(headers, body)

        init = RequestInit(method=meta.method, headers=headers, body=wire_body, signal=signal)
        retried = False

        while True:
            response, data = await self._send(meta, url, init)

            if response.is_success:
                return data

            if response.status_code == 401 and can_try_refresh and not retried:
                retried = True
                self._log(f"401 on {meta.method} {url}, refreshing token")
                try:
                    new_token = await self._refresher.refresh_once()
                except Exception:
                    await self._notify_refresh_failed()
                    raise
                init = replace(init, headers=merge_headers(init.headers, _bearer(new_token)))
                self._log(f"Retrying {meta.method} {url}")
                continue

            raise HttpError(
                status=response.status_code,
                data=data,
                method=meta.method,
                endpoint=meta.endpoint,
                url=url,
                message=f"HTTP {response.status_code}",
            )

    async def _send(
        self,
        meta: RequestMeta,
        url: str,
        init: RequestInit,
    ) -> Tuple[httpx.Response, Any]:
        """One network round trip wrapped by the observation hooks."""
        if self._config.on_request is not None:
            await _maybe_await(self._config.on_request(
                RequestHookContext(method=meta.method, endpoint=meta.endpoint, url=url, init=init)
            ))

        self._log(f"{init.method} {url}")
        response = await self._fetch(url, init)
        data = await read_body(response)
        self._log(f"{init.method} {url} -> {response.status_code}")

        if self._config.on_response is not None:
            await _maybe_await(self._config.on_response(
                ResponseHookContext(
                    method=meta.method,
                    endpoint=meta.endpoint,
                    url=url,
                    init=init,
                    response=response,
                    data=data,
                )
            ))

        return response, data

    async def _notify_refresh_failed(self) -> None:
        hook = self._config.on_refresh_failed
        if hook is None:
            return
        try:
            await _maybe_await(hook())
        except Exception:
            logger.warning("[apizel] on_refresh_failed hook raised", exc_info=True)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def aclose(self) -> None:
        """Close the default transport if this client created it."""
        if self._owns_fetch and isinstance(self._fetch, HttpxFetch):
            await self._fetch.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


# =============================================================================
# Factory Functions
# =============================================================================

def apizel(config: Optional[ApizelConfig] = None, **kwargs: Any) -> ApiClient:
    """
    Create a new client.

    Accepts an ApizelConfig, keyword fields, or both (keywords override).
    """
    if config is None:
        config = ApizelConfig()
    if kwargs:
        config = merge_config(config, kwargs)
    return ApiClient(config)


def create_api(config: Optional[ApizelConfig] = None, **kwargs: Any) -> ApiClient:
    """Create a new client. Same as apizel()."""
    return apizel(config, **kwargs)
