"""Wall-clock source for profiled calls.

Profiling needs *real* elapsed time, measured around each intercepted
call.  Simulated timer time is a separate concern and lives in
:mod:`tendril._virtual_clock`; activating the virtual clock never
changes what this port reports.

``time.perf_counter()`` is used because profiled calls often finish in
microseconds.  Its epoch is arbitrary, so only differences between two
readings mean anything (PEP 418).
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class ClockPort(Protocol):
    """Anything with a ``now()`` returning seconds as a float.

    :class:`Registry <tendril.Registry>` reads it before and after each
    profiled call.  Tests pass :class:`~tendril.testing.FakeClock` to get
    exact durations.
    """

    def now(self) -> float: ...


class SystemClock:
    """``time.perf_counter()`` behind the :class:`ClockPort` interface."""

    def now(self) -> float:
        return time.perf_counter()
