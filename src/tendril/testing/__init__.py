"""Public test-support utilities for tendril.

Re-exports test doubles and factories so that consumer test suites can
import everything from a single ``tendril.testing`` namespace instead of
reaching into private modules.

Provided symbols:

- :class:`FakeClock` — controllable wall clock for deterministic profiling.
- :func:`make_settings` — factory for ``Settings`` without env or ``.env``.

The pytest fixtures (``registry``, ``fake_clock``, ``virtual_clock``) live
in :mod:`tendril.testing._plugin`, registered through the ``pytest11``
entry point.
"""

from tendril.testing._clock import FakeClock
from tendril.testing._settings import make_settings

__all__ = [
    "FakeClock",
    "make_settings",
]
