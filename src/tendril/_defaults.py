"""Process-wide default registry and virtual clock.

Most test suites need exactly one registry and one virtual clock, so
the package exposes module-level functions bound to a shared pair of
instances.  Suites that want isolation construct their own
:class:`~tendril.Registry` / :class:`~tendril.VirtualClock` instead
(the pytest plugin fixtures do).

The default clock is created on first use so that importing tendril
never reads the environment.
"""

from __future__ import annotations

import contextlib
import functools
from collections.abc import Callable, Iterator
from typing import Any

from tendril._registry import Handle, Registry
from tendril._virtual_clock import VirtualClock

default_registry = Registry()


@functools.cache
def default_clock() -> VirtualClock:
    """The shared :class:`VirtualClock`, bound to :data:`default_registry`."""
    return VirtualClock(default_registry)


# -- registry ---------------------------------------------------------------


def instrument(
    target: Any,
    name: str,
    *,
    spy: bool | None = None,
    profile: bool | None = None,
    stub: bool | Callable[..., Any] | None = None,
) -> Handle:
    return default_registry.instrument(target, name, spy=spy, profile=profile, stub=stub)


def spy(target: Any, name: str) -> Handle:
    return default_registry.spy(target, name)


def stub(target: Any, name: str, replacement: Callable[..., Any] | None = None) -> Handle:
    return default_registry.stub(target, name, replacement)


def profile(target: Any, name: str) -> Handle:
    return default_registry.profile(target, name)


def size() -> int:
    return default_registry.size()


def release_all() -> None:
    default_registry.release_all()


def has_modified(fn: Any) -> bool:
    return default_registry.has_modified(fn)


def handle_for(fn: Any) -> Handle | None:
    return default_registry.handle_for(fn)


# -- virtual clock ------------------------------------------------------------


def activate_clock(fn: Callable[[], Any] | None = None) -> Any:
    return default_clock().activate(fn)


def deactivate_clock() -> None:
    default_clock().deactivate()


def advance_clock(ticks: int) -> None:
    default_clock().advance(ticks)


@contextlib.contextmanager
def clock_activated() -> Iterator[VirtualClock]:
    with default_clock().activated() as clock:
        yield clock
