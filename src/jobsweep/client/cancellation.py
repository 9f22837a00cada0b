"""
Cancellation - Composable abort signals for in-flight requests.

A request can be aborted by several independent sources: its own timeout
and any number of caller-supplied tokens. This module provides a small
token type and a combinator that fires with the reason of whichever
source fired first.

Example:
    >>> with TimeoutSignal(30.0) as timeout, CombinedSignal(timeout, caller_token) as signal:
    ...     response = await signal.run(send_request())
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional


class RequestAbortedError(Exception):
    """Raised when a request is aborted by a cancellation source"""

    def __init__(self, reason: Any = None):
        message = str(reason) if reason is not None else "Request was aborted"
        super().__init__(message)
        self.reason = reason


class RequestTimeoutError(RequestAbortedError):
    """Abort reason used by TimeoutSignal"""
    pass


Listener = Callable[["CancellationToken"], None]


class CancellationToken:
    """
    One-shot cancellation handle.

    The first call to cancel() wins; its reason is kept and every
    registered listener is invoked exactly once.
    """

    def __init__(self):
        self._cancelled = False
        self._reason: Any = None
        self._listeners: List[Listener] = []
        self._event: Optional[asyncio.Event] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Any:
        return self._reason

    def cancel(self, reason: Any = None) -> bool:
        """
        Cancel the token.

        Returns:
            True if this call cancelled the token, False if it already was
        """
        if self._cancelled:
            return False

        self._cancelled = True
        self._reason = reason if reason is not None else RequestAbortedError()

        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener(self)

        if self._event is not None:
            self._event.set()
        return True

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback fired on cancellation.

        Returns:
            Function that detaches the listener again
        """
        if self._cancelled:
            listener(self)
            return lambda: None

        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def wait(self) -> Any:
        """Wait until the token is cancelled and return the reason"""
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        await self._event.wait()
        return self._reason

    def release(self):
        """Release held resources (no-op for plain tokens)"""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(cancelled={self._cancelled}, reason={self._reason!r})"


class TimeoutSignal(CancellationToken):
    """
    Token that cancels itself after a delay.

    The timer is a loop.call_later handle, so it never outlives the event
    loop. release() cancels it.
    """

    def __init__(self, seconds: float, loop: Optional[asyncio.AbstractEventLoop] = None):
        super().__init__()
        self.seconds = seconds
        loop = loop or asyncio.get_running_loop()
        self._handle: Optional[asyncio.TimerHandle] = loop.call_later(seconds, self._expire)

    def _expire(self):
        self._handle = None
        self.cancel(
            RequestTimeoutError(f"API request timed out after {self.seconds * 1000:.0f} ms")
        )

    def release(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def pending(self) -> bool:
        """True while the timer is armed"""
        return self._handle is not None


class CombinedSignal(CancellationToken):
    """
    Token that fires when any of its sources fires.

    The reason propagated is that of the first source to fire. Sources
    already cancelled at construction time fire the combined signal
    immediately.
    """

    def __init__(self, *sources: Optional[CancellationToken]):
        super().__init__()
        self.sources = [source for source in sources if source is not None]
        self._detachers: List[Callable[[], None]] = []

        for source in self.sources:
            if source.cancelled:
                self.cancel(source.reason)
                break
            self._detachers.append(source.add_listener(self._on_source_cancelled))

    def _on_source_cancelled(self, source: CancellationToken):
        self.cancel(source.reason)

    def release(self):
        """Detach from all sources (the sources themselves are left alone)"""
        for detach in self._detachers:
            detach()
        self._detachers.clear()

    async def run(self, awaitable: Awaitable) -> Any:
        """
        Await `awaitable` unless the signal fires first.

        Raises:
            RequestAbortedError: If the signal fired before completion
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise self._abort_error()

        work = asyncio.ensure_future(awaitable)
        watcher = asyncio.ensure_future(self.wait())

        try:
            await asyncio.wait({work, watcher}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            watcher.cancel()

        if work.done():
            return work.result()

        work.cancel()
        try:
            await work
        except asyncio.CancelledError:
            pass
        raise self._abort_error()

    def _abort_error(self) -> RequestAbortedError:
        if isinstance(self.reason, RequestAbortedError):
            return self.reason
        return RequestAbortedError(self.reason)
