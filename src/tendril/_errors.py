"""Exception taxonomy for tendril.

Every error the library raises on its own behalf derives from
:class:`TendrilError`, so callers can catch the whole family with a
single ``except`` clause.  Where a built-in exception already names the
failure category (``TypeError`` for "not callable", ``ValueError`` for a
bad duration) the tendril class also inherits from it, keeping
``except TypeError`` style handlers working.

Propagation policy:

- **Configuration / protocol errors** are raised at the call that broke
  the contract, before any state is mutated.
- **Errors raised by an instrumented function** (original body or stub
  replacement) are never wrapped.  They are recorded on the call history
  and re-raised unchanged.
- **Errors raised by virtual-clock callbacks** propagate out of
  :meth:`~tendril.VirtualClock.advance` unchanged.
"""

from __future__ import annotations


class TendrilError(Exception):
    """Base class for every error raised by tendril itself."""


# ---------------------------------------------------------------------------
# Interceptor registry
# ---------------------------------------------------------------------------


class NotCallableError(TendrilError, TypeError):
    """The member selected for instrumentation is missing or not callable."""

    def __init__(self, name: str, value: object) -> None:
        super().__init__(
            f"Member {name!r} is not callable (got {type(value).__name__})",
        )
        self.name = name
        self.value = value


class InvalidStubError(TendrilError, TypeError):
    """The ``stub`` option is neither a bool nor a callable."""


# ---------------------------------------------------------------------------
# Function builder
# ---------------------------------------------------------------------------


class BuilderProtocolError(TendrilError):
    """A builder chain method was called out of sequence.

    Raised for two ``when`` calls in a row, an action with nothing staged,
    or ``otherwise`` while a pattern is waiting for its action.
    """


# ---------------------------------------------------------------------------
# Virtual clock
# ---------------------------------------------------------------------------


class InvalidDurationError(TendrilError, ValueError):
    """``advance`` was called with something other than a positive int."""


class ClockStateError(TendrilError, RuntimeError):
    """The virtual clock is in the wrong state for the requested operation."""


class InactiveClockError(ClockStateError):
    """The virtual clock is not active (time is real)."""


class ClockAlreadyActiveError(ClockStateError):
    """The virtual clock is already active."""
