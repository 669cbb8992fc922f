"""Rate-limiting and timing helpers.

* :func:`debounce` collapses a burst of calls into one trailing call.
* :func:`throttle` runs at most one call per interval, leading edge only.
* :func:`measure` times a synchronous or asynchronous call.

Debounce and throttle read time and arm timers through a
:class:`Scheduler`.  The default :class:`AsyncioScheduler` uses the
running event loop; :class:`ThreadScheduler` serves code without one.
Intervals are seconds and are not validated.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

_logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Host timer facility used by :class:`Debounced` and :class:`Throttled`."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...

    def now(self) -> float: ...

    def spawn(self, awaitable: Awaitable[Any]) -> None: ...


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


class ThreadScheduler:
    """Schedule callbacks on daemon :class:`threading.Timer` threads."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> threading.Timer:
        timer = threading.Timer(delay, callback, args)
        timer.daemon = True
        timer.start()
        return timer

    def now(self) -> float:
        return time.monotonic()

    def spawn(self, awaitable: Awaitable[Any]) -> None:
        asyncio.run(_await(awaitable))


class AsyncioScheduler:
    """Schedule callbacks on an asyncio event loop.

    Without an explicit *loop* the running loop is looked up each time a
    timer is armed, so one scheduler can outlive a single ``asyncio.run``.
    When no loop is running, timers fall back to :class:`ThreadScheduler`.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._tasks: set[asyncio.Future[Any]] = set()
        self._fallback = ThreadScheduler()

    def _get_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        loop = self._get_loop()
        if loop is None:
            return self._fallback.call_later(delay, callback, *args)
        return loop.call_later(delay, callback, *args)

    def now(self) -> float:
        return time.monotonic()

    def spawn(self, awaitable: Awaitable[Any]) -> None:
        loop = self._get_loop()
        if loop is None:
            self._fallback.spawn(awaitable)
            return
        task = asyncio.ensure_future(awaitable, loop=loop)
        # The loop only keeps weak references to tasks.
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


class Debounced:
    """Wrapper returned by :func:`debounce`.

    Holds at most one pending timer.  Every call cancels it and arms a
    new one carrying that call's arguments, so only the last call of a
    burst reaches the wrapped function.
    """

    def __init__(self, fn: Callable[..., Any], delay: float, scheduler: Scheduler | None = None) -> None:
        functools.update_wrapper(self, fn)
        self._fn = fn
        self._delay = delay
        self._scheduler: Scheduler = scheduler if scheduler is not None else AsyncioScheduler()
        self._handle: TimerHandle | None = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        """Whether an invocation is scheduled and has not fired yet."""
        return self._handle is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            self._cancel_locked()
            self._generation += 1
            self._handle = self._scheduler.call_later(self._delay, self._fire, self._generation, args, kwargs)
        _logger.debug("Debounce armed for %s (%.3fs)", getattr(self._fn, "__qualname__", self._fn), self._delay)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        # Decorated methods share one timer across instances; the receiver
        # of the last call is the one passed on.
        if instance is None:
            return self
        return functools.partial(self, instance)

    def _cancel_locked(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, generation: int, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        with self._lock:
            # A timer thread may already be running when it gets cancelled.
            if generation != self._generation or self._handle is None:
                return
            self._handle = None
        result = self._fn(*args, **kwargs)
        if inspect.isawaitable(result):
            self._scheduler.spawn(result)

    def cancel(self) -> None:
        """Drop the pending invocation, if any."""
        with self._lock:
            self._cancel_locked()


class Throttled:
    """Wrapper returned by :func:`throttle`.

    Calls arriving less than ``limit`` seconds after the last executed
    call are dropped, not deferred.
    """

    def __init__(self, fn: Callable[..., Any], limit: float, scheduler: Scheduler | None = None) -> None:
        functools.update_wrapper(self, fn)
        self._fn = fn
        self._limit = limit
        self._scheduler: Scheduler = scheduler if scheduler is not None else AsyncioScheduler()
        self._last_executed: float | None = None
        self._lock = threading.Lock()

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        now = self._scheduler.now()
        with self._lock:
            if self._last_executed is not None and now - self._last_executed < self._limit:
                _logger.debug("Throttled call to %s dropped", getattr(self._fn, "__qualname__", self._fn))
                return None
            self._last_executed = now
        return self._fn(*args, **kwargs)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return functools.partial(self, instance)


def debounce(fn: Callable[..., Any], delay: float, *, scheduler: Scheduler | None = None) -> Debounced:
    """Delay *fn* until *delay* seconds have passed without another call.

    The wrapper returns ``None``; the eventual call uses the arguments of
    the last invocation.  Awaitables returned by *fn* are handed to the
    scheduler to run.
    """
    return Debounced(fn, delay, scheduler)


def throttle(fn: Callable[..., Any], limit: float, *, scheduler: Scheduler | None = None) -> Throttled:
    """Run *fn* at most once per *limit* seconds.

    The first call always runs.  An executed call returns *fn*'s result;
    a dropped call returns ``None``.
    """
    return Throttled(fn, limit, scheduler)


async def _measure_awaitable(awaitable: Awaitable[Any], start: float) -> float:
    await awaitable
    return time.perf_counter() - start


def measure(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> float | Awaitable[float]:
    """Time one call of *fn* in seconds.

    If *fn* returns an awaitable, a coroutine is returned instead that
    resolves to the elapsed time once the awaitable completes.
    """
    start = time.perf_counter()
    result = fn(*args, **kwargs)
    if inspect.isawaitable(result):
        return _measure_awaitable(result, start)
    return time.perf_counter() - start


class Perf:
    """Timing namespace bound to one scheduler."""

    def __init__(self, scheduler: Scheduler | None = None) -> None:
        self._scheduler: Scheduler = scheduler if scheduler is not None else AsyncioScheduler()

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @staticmethod
    def measure(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> float | Awaitable[float]:
        return measure(fn, *args, **kwargs)

    def debounce(self, fn: Callable[..., Any], delay: float) -> Debounced:
        return Debounced(fn, delay, self._scheduler)

    def throttle(self, fn: Callable[..., Any], limit: float) -> Throttled:
        return Throttled(fn, limit, self._scheduler)
