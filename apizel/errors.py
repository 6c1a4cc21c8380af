"""
apizel Error Classes

Callers tell cancellation, HTTP failure and configuration misuse apart by
error type, never by inspecting messages.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class ApizelError(Exception):
    """Base error class for apizel."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "name": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ConfigurationError(ApizelError):
    """Programmer mistake: bad params shape, missing refresh, unknown config key."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class CancellationError(ApizelError):
    """The call was aborted by its signal or its timeout. Carries no status."""

    def __init__(self, reason: Any = None, message: Optional[str] = None):
        if message is None:
            if isinstance(reason, TimeoutError):
                message = f"Request timed out: {reason}"
            else:
                message = "Request aborted"
        super().__init__("CANCELLED", message, {"reason": repr(reason)} if reason is not None else None)
        self.reason = reason

    @property
    def timed_out(self) -> bool:
        """True when the cancellation came from the call's timeout."""
        return isinstance(self.reason, TimeoutError)


class HttpError(ApizelError):
    """A response completed with a non-success status."""

    def __init__(
        self,
        status: int,
        data: Any,
        method: str,
        endpoint: str,
        url: str,
        message: Optional[str] = None,
    ):
        super().__init__(
            "HTTP_ERROR",
            message or f"HTTP {status}",
            {"method": method, "endpoint": endpoint, "url": url},
        )
        self.status = status
        self.data = data
        self.method = method
        self.endpoint = endpoint
        self.url = url

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["status"] = self.status
        result["data"] = self.data
        return result

    def __repr__(self) -> str:
        return f"HttpError(status={self.status!r}, method={self.method!r}, url={self.url!r})"


class NetworkError(ApizelError):
    """Transport failure raised by the default httpx transport."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, timeout: bool = False):
        super().__init__("NETWORK_ERROR", message, details)
        self.timeout = timeout


def is_http_error(error: Any) -> bool:
    """Check if error is an HttpError."""
    return isinstance(error, HttpError)


def is_cancellation_error(error: Any) -> bool:
    """Check if error is a CancellationError."""
    return isinstance(error, CancellationError)
