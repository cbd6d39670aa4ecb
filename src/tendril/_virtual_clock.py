"""Deterministic virtual clock for timer-driven code.

:class:`VirtualClock` swaps a host's four timer primitives
(``set_timeout``, ``clear_timeout``, ``set_interval``,
``clear_interval``) for simulated versions, using the interceptor
registry to install and later remove them.  While active, scheduled
callbacks never run on their own; a test moves time forward with
:meth:`VirtualClock.advance` and every callback whose tick is reached
runs synchronously, on the caller's stack.

States::

    REAL ──activate()──▶ FAKE ──deactivate()──▶ REAL

**Ordering.**  ``advance`` walks the ticks in ascending order.  All
callbacks due at one tick run in scheduling order, and each is removed
from the queue before it runs.  A callback that schedules another one
inside the window being advanced sees it fire during the same call.

**Intervals.**  An interval keeps one id for its whole life.  Each
firing re-queues the next occurrence under that id *before* calling the
user function, so clearing the id (even from inside the function)
cancels the chain.
"""

from __future__ import annotations

import contextlib
import enum
import functools
import logging
import types
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, ClassVar

from tendril import timers
from tendril._errors import (
    ClockAlreadyActiveError,
    InactiveClockError,
    InvalidDurationError,
)
from tendril._registry import Handle, Registry
from tendril._settings import Settings

logger = logging.getLogger(__name__)


class ClockMode(enum.Enum):
    REAL = "real"
    FAKE = "fake"


@dataclass
class VirtualClockState:
    """Simulated time and the queue of pending callbacks."""

    now: int = 0
    pending: dict[int, dict[int, Callable[[], Any]]] = field(default_factory=dict)
    scheduled_at: dict[int, int] = field(default_factory=dict)
    next_id: int = 1

    def new_id(self) -> int:
        timer_id = self.next_id
        self.next_id += 1
        return timer_id

    def schedule(self, timer_id: int, tick: int, callback: Callable[[], Any]) -> None:
        self.pending.setdefault(tick, {})[timer_id] = callback
        self.scheduled_at[timer_id] = tick

    def cancel(self, timer_id: int) -> bool:
        tick = self.scheduled_at.pop(timer_id, None)
        if tick is None:
            return False
        bucket = self.pending[tick]
        del bucket[timer_id]
        if not bucket:
            del self.pending[tick]
        return True

    def next_due(self, limit: int) -> int | None:
        due = [tick for tick in self.pending if tick <= limit]
        return min(due) if due else None

    def pop_next(self, tick: int) -> Callable[[], Any] | None:
        """Remove and return the oldest callback queued at *tick*."""
        bucket = self.pending.get(tick)
        if not bucket:
            return None
        timer_id = next(iter(bucket))
        callback = bucket.pop(timer_id)
        del self.scheduled_at[timer_id]
        if not bucket:
            del self.pending[tick]
        return callback


class VirtualClock:
    """Simulated time for code scheduling work through timer primitives.

    Args:
        registry: Registry used to instrument the host.  The virtual
            clock releases only its own four handles on deactivation.
        host: Object (or mapping) exposing the four timer primitives.
            Defaults to the :mod:`tendril.timers` module.
        settings: Source of ``clock.minimum_delay``.  Defaults to
            ``Settings()`` (environment and ``.env``).

    Only one clock at a time may fake a given host, whichever registry
    it uses.

    Usage::

        clock = VirtualClock(Registry())
        with clock.activated():
            timers.set_timeout(callback, 100)
            clock.advance(100)          # callback runs here
    """

    _faked_hosts: ClassVar[list[Any]] = []

    def __init__(
        self,
        registry: Registry,
        host: Any = None,
        *,
        settings: Settings | None = None,
    ) -> None:
        resolved = settings if settings is not None else Settings()
        self._registry = registry
        self._host = host if host is not None else timers
        self._minimum_delay = resolved.clock.minimum_delay
        self._mode = ClockMode.REAL
        self._state = VirtualClockState()
        self._handles: list[Handle] = []

    def __repr__(self) -> str:
        return (
            f"<VirtualClock mode={self._mode.value} now={self._state.now} "
            f"pending={self.pending_count()}>"
        )

    # -- state ------------------------------------------------------------

    @property
    def mode(self) -> ClockMode:
        return self._mode

    @property
    def active(self) -> bool:
        return self._mode is ClockMode.FAKE

    @property
    def now(self) -> int:
        """Current simulated tick (``0`` while real)."""
        return self._state.now

    def pending_count(self) -> int:
        return len(self._state.scheduled_at)

    # -- lifecycle --------------------------------------------------------

    def activate(self, fn: Callable[[], Any] | None = None) -> Any:
        """Enter simulated time.

        With *fn*, call it immediately and return to real time once it
        finishes, whether it returns or raises.  Its return value is
        passed back to the caller.

        Raises:
            ClockAlreadyActiveError: This clock, or another one on the same
                host, is already active.
            NotCallableError: The host lacks one of the four primitives.
        """
        if self.active:
            raise ClockAlreadyActiveError("Virtual clock is already active")
        if any(host is self._host for host in VirtualClock._faked_hosts):
            raise ClockAlreadyActiveError(
                f"Another virtual clock is already active on {_describe(self._host)}",
            )

        replacements = {
            "set_timeout": self._set_timeout,
            "clear_timeout": self._clear_timeout,
            "set_interval": self._set_interval,
            "clear_interval": self._clear_interval,
        }
        handles: list[Handle] = []
        try:
            for name in timers.TIMER_NAMES:
                handles.append(
                    self._registry.stub(self._host, name, replacements[name]),
                )
        except Exception:
            for handle in reversed(handles):
                handle.release()
            raise

        self._handles = handles
        VirtualClock._faked_hosts.append(self._host)
        self._state = VirtualClockState()
        self._mode = ClockMode.FAKE
        logger.debug("Virtual clock activated on %s", _describe(self._host))

        if fn is None:
            return None
        try:
            return fn()
        finally:
            self.deactivate()

    def deactivate(self) -> None:
        """Restore the real primitives and forget all pending callbacks."""
        if not self.active:
            return
        for handle in reversed(self._handles):
            handle.release()
        self._handles = []
        VirtualClock._faked_hosts[:] = [
            host for host in VirtualClock._faked_hosts if host is not self._host
        ]
        self._state = VirtualClockState()
        self._mode = ClockMode.REAL
        logger.debug("Virtual clock deactivated")

    @contextlib.contextmanager
    def activated(self) -> Iterator[VirtualClock]:
        """Context-manager form of scoped activation."""
        self.activate()
        try:
            yield self
        finally:
            self.deactivate()

    # -- time -------------------------------------------------------------

    def advance(self, duration: int) -> None:
        """Move simulated time forward by *duration* ticks.

        Raises:
            InvalidDurationError: *duration* is not a positive ``int``.
            InactiveClockError: The clock is not active.
        """
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise InvalidDurationError(
                f"duration must be a positive integer, got {duration!r}",
            )
        if not self.active:
            raise InactiveClockError("Virtual clock is not active")

        state = self._state
        limit = state.now + duration
        logger.debug("Advancing virtual clock %d -> %d", state.now, limit)
        while self._state is state:
            tick = state.next_due(limit)
            if tick is None:
                break
            state.now = max(state.now, tick)
            callback = state.pop_next(tick)
            if callback is not None:
                callback()
        if self._state is state:
            state.now = max(state.now, limit)

    # -- fake primitives --------------------------------------------------

    def _set_timeout(
        self,
        _real: Callable[..., Any],
        fn: Callable[..., Any],
        delay: Any = None,
        *args: Any,
    ) -> int:
        state = self._state
        timer_id = state.new_id()
        callback = functools.partial(fn, *args) if args else fn
        state.schedule(timer_id, state.now + self._delay(delay), callback)
        return timer_id

    def _clear_timeout(self, _real: Callable[..., Any], timer_id: Any = None) -> None:
        if isinstance(timer_id, int):
            self._state.cancel(timer_id)

    def _set_interval(
        self,
        _real: Callable[..., Any],
        fn: Callable[..., Any],
        delay: Any = None,
        *args: Any,
    ) -> int:
        state = self._state
        timer_id = state.new_id()
        period = self._delay(delay)

        def recur() -> None:
            state.schedule(timer_id, state.now + period, recur)
            fn(*args)

        state.schedule(timer_id, state.now + period, recur)
        return timer_id

    def _clear_interval(self, _real: Callable[..., Any], timer_id: Any = None) -> None:
        self._clear_timeout(_real, timer_id)

    def _delay(self, value: Any) -> int:
        return timers.parse_delay(value, self._minimum_delay)


def _describe(host: Any) -> str:
    if isinstance(host, types.ModuleType):
        return host.__name__
    return type(host).__name__
