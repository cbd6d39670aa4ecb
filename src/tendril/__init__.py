"""tendril.

Spies, stubs and profilers for Python functions, a deterministic virtual
clock for timer-driven code, and pattern-matching fake functions.
"""

from importlib.metadata import PackageNotFoundError, version

from tendril import timers
from tendril._access import AttributeAccess, MappingAccess, MemberAccess
from tendril._builder import BuilderState, FunctionBuilder, build_function
from tendril._clock import ClockPort, SystemClock
from tendril._defaults import (
    activate_clock,
    advance_clock,
    clock_activated,
    deactivate_clock,
    default_clock,
    default_registry,
    handle_for,
    has_modified,
    instrument,
    profile,
    release_all,
    size,
    spy,
    stub,
)
from tendril._errors import (
    BuilderProtocolError,
    ClockAlreadyActiveError,
    ClockStateError,
    InactiveClockError,
    InvalidDurationError,
    InvalidStubError,
    NotCallableError,
    TendrilError,
)
from tendril._history import CallRecord
from tendril._logging import JsonFormatter, configure_logging
from tendril._registry import Handle, Registry, StubMode
from tendril._settings import ClockSettings, LoggingSettings, Settings
from tendril._virtual_clock import ClockMode, VirtualClock

try:
    __version__ = version("tendril")
except PackageNotFoundError:
    # Running from a source checkout without installed metadata
    __version__ = "0.0.0+unknown"

__all__ = [
    # Version
    "__version__",
    # Registry
    "CallRecord",
    "Handle",
    "Registry",
    "StubMode",
    "default_registry",
    "handle_for",
    "has_modified",
    "instrument",
    "profile",
    "release_all",
    "size",
    "spy",
    "stub",
    # Member access
    "AttributeAccess",
    "MappingAccess",
    "MemberAccess",
    # Clocks
    "ClockMode",
    "ClockPort",
    "SystemClock",
    "VirtualClock",
    "activate_clock",
    "advance_clock",
    "clock_activated",
    "deactivate_clock",
    "default_clock",
    "timers",
    # Builder
    "BuilderState",
    "FunctionBuilder",
    "build_function",
    # Errors
    "BuilderProtocolError",
    "ClockAlreadyActiveError",
    "ClockStateError",
    "InactiveClockError",
    "InvalidDurationError",
    "InvalidStubError",
    "NotCallableError",
    "TendrilError",
    # Logging
    "JsonFormatter",
    "configure_logging",
    # Settings
    "ClockSettings",
    "LoggingSettings",
    "Settings",
]
