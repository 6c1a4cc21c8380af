"""
Cancellation signals and timeout composition.

An AbortController owns an AbortSignal; aborting the controller notifies each
listener of the signal once. compose_signal ORs a caller's signal with a
timeout into one derived signal, and run_with_signal turns an abort into a
CancellationError for whatever the call is awaiting at that moment.
"""

import asyncio
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator, List, Optional, Tuple, TypeVar

from .errors import CancellationError


T = TypeVar("T")

Listener = Callable[[Any], None]


def _noop() -> None:
    pass


class AbortSignal:
    """Read side of a cancellation source."""

    def __init__(self) -> None:
        self._aborted = False
        self._reason: Any = None
        self._listeners: List[Listener] = []

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> Any:
        return self._reason

    def add_listener(self, listener: Listener) -> None:
        """Register a one-shot listener called with the abort reason."""
        if self._aborted or listener in self._listeners:
            return
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        """Deregister a listener. Unknown listeners are ignored."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def throw_if_aborted(self) -> None:
        if self._aborted:
            raise CancellationError(self._reason)

    def _abort(self, reason: Any) -> None:
        if self._aborted:
            return
        self._aborted = True
        self._reason = reason
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener(reason)

    def __repr__(self) -> str:
        return f"AbortSignal(aborted={self._aborted!r}, reason={self._reason!r})"


class AbortController:
    """Write side of a cancellation source."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: Any = None) -> None:
        """Abort the signal. Later calls are no-ops."""
        self.signal._abort("aborted" if reason is None else reason)


def compose_signal(
    signal: Optional[AbortSignal] = None,
    timeout_ms: Optional[float] = None,
) -> Tuple[Optional[AbortSignal], Callable[[], None]]:
    """
    Merge a caller signal with a timeout.

    Returns the signal to use and a cleanup function releasing the timer and
    the listener. Without a positive timeout the caller's signal is returned
    as-is. Must be called from a running event loop when a timeout is given.
    """
    if not timeout_ms or timeout_ms <= 0:
        return signal, _noop

    controller = AbortController()

    if signal is not None and signal.aborted:
        controller.abort(signal.reason)
        return controller.signal, _noop

    def on_abort(reason: Any) -> None:
        controller.abort(reason)

    if signal is not None:
        signal.add_listener(on_abort)

    loop = asyncio.get_running_loop()
    timer = loop.call_later(
        timeout_ms / 1000.0,
        controller.abort,
        TimeoutError(f"timeout after {timeout_ms}ms"),
    )

    def cleanup() -> None:
        timer.cancel()
        if signal is not None:
            signal.remove_listener(on_abort)

    return controller.signal, cleanup


@contextmanager
def composed_signal(
    signal: Optional[AbortSignal] = None,
    timeout_ms: Optional[float] = None,
) -> Iterator[Optional[AbortSignal]]:
    """Context manager form of compose_signal; cleanup runs on exit."""
    derived, cleanup = compose_signal(signal, timeout_ms)
    try:
        yield derived
    finally:
        cleanup()


async def run_with_signal(signal: Optional[AbortSignal], awaitable: Awaitable[T]) -> T:
    """
    Await ``awaitable`` and cancel it when ``signal`` aborts.

    The abort surfaces as CancellationError carrying the signal's reason. A
    cancellation of the calling task itself stays an asyncio.CancelledError.
    """
    if signal is None:
        return await awaitable

    task = asyncio.ensure_future(awaitable)

    def on_abort(_reason: Any) -> None:
        task.cancel()

    if signal.aborted:
        task.cancel()
    else:
        signal.add_listener(on_abort)

    try:
        return await task
    except asyncio.CancelledError:
        if signal.aborted and task.cancelled():
            raise CancellationError(signal.reason) from None
        raise
    finally:
        signal.remove_listener(on_abort)
