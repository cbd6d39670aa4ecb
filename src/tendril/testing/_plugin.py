"""Pytest plugin providing tendril fixtures.

Auto-registers ``fake_clock``, ``registry`` and ``virtual_clock`` for any
test suite that installs tendril, via the ``pytest11`` entry point.

Every fixture cleans up after itself: the registry releases everything
it instrumented and the virtual clock returns to real time, even when
the test fails.

**Why lazy imports?** This module is loaded during plugin discovery,
before coverage measurement starts.  Importing tendril inside the
fixture bodies keeps the library's own modules measured.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from tendril._registry import Registry
    from tendril._virtual_clock import VirtualClock
    from tendril.testing._clock import FakeClock


@pytest.fixture
def fake_clock() -> FakeClock:
    """FakeClock starting at time 0."""
    from tendril.testing._clock import FakeClock

    return FakeClock()


@pytest.fixture
def registry(fake_clock: FakeClock) -> Iterator[Registry]:
    """Fresh Registry profiling against ``fake_clock``; released on teardown."""
    from tendril._registry import Registry

    with Registry(clock=fake_clock) as reg:
        yield reg


@pytest.fixture
def virtual_clock(registry: Registry) -> Iterator[VirtualClock]:
    """Active VirtualClock on :mod:`tendril.timers`; deactivated on teardown."""
    from tendril._virtual_clock import VirtualClock
    from tendril.testing._settings import make_settings

    clock = VirtualClock(registry, settings=make_settings())
    with clock.activated():
        yield clock
