"""Real timer-registration primitives.

A small host environment offering the four classic timer entry points,
backed by :class:`threading.Timer`.  Delays are in **milliseconds**::

    timer_id = timers.set_timeout(callback, 250)
    timers.clear_timeout(timer_id)

Application code that looks the primitives up through this module
(``timers.set_timeout(...)``, not ``from tendril.timers import
set_timeout``) can be switched to simulated time with
:class:`tendril.VirtualClock`, which instruments exactly these four
names.

Delay values are parsed permissively by :func:`parse_delay`, which the
virtual clock shares.
"""

from __future__ import annotations

import itertools
import logging
import re
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

MINIMUM_DELAY = 1

TIMER_NAMES = ("set_timeout", "clear_timeout", "set_interval", "clear_interval")

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

_lock = threading.Lock()
_active: dict[int, threading.Timer] = {}
_ids = itertools.count(1)


def parse_delay(value: Any, minimum: int = MINIMUM_DELAY) -> int:
    """Coerce *value* to a whole number of ticks, never below *minimum*.

    - numbers (and bools) are truncated to ``int``;
    - strings contribute their leading integer (``"25ms"`` → 25);
    - a one-element list or tuple is parsed as its element;
    - any other object goes through ``int()``.

    Anything that does not produce an integer (``None``, ``"soon"``,
    NaN, infinity) and anything below *minimum* yields *minimum*.
    """
    ticks = _coerce(value)
    if ticks is None or ticks < minimum:
        return minimum
    return ticks


def _coerce(value: Any) -> int | None:
    if isinstance(value, (list, tuple)):
        return _coerce(value[0]) if len(value) == 1 else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def set_timeout(fn: Callable[..., Any], delay: Any = None, *args: Any) -> int:
    """Call ``fn(*args)`` once after *delay* milliseconds; return its id."""
    timer_id = next(_ids)

    def fire() -> None:
        with _lock:
            if _active.pop(timer_id, None) is None:
                return
        fn(*args)

    _start(timer_id, parse_delay(delay), fire)
    return timer_id


def clear_timeout(timer_id: Any) -> None:
    """Cancel a pending timeout or interval; unknown ids are ignored."""
    with _lock:
        timer = _active.pop(timer_id, None) if isinstance(timer_id, int) else None
    if timer is not None:
        timer.cancel()


def set_interval(fn: Callable[..., Any], delay: Any = None, *args: Any) -> int:
    """Call ``fn(*args)`` every *delay* milliseconds until cleared."""
    timer_id = next(_ids)
    period = parse_delay(delay)

    def fire() -> None:
        with _lock:
            if timer_id not in _active:
                return
            _schedule(timer_id, period, fire)
        fn(*args)

    _start(timer_id, period, fire)
    return timer_id


def clear_interval(timer_id: Any) -> None:
    """Stop an interval; identical to :func:`clear_timeout`."""
    clear_timeout(timer_id)


def _start(timer_id: int, delay_ms: int, fire: Callable[[], None]) -> None:
    with _lock:
        _schedule(timer_id, delay_ms, fire)


def _schedule(timer_id: int, delay_ms: int, fire: Callable[[], None]) -> None:
    # Caller holds _lock.
    timer = threading.Timer(delay_ms / 1000, fire)
    timer.daemon = True
    _active[timer_id] = timer
    timer.start()
    logger.debug("Timer %d scheduled in %d ms", timer_id, delay_ms)
