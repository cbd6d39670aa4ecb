"""Pattern-matching fake functions.

:func:`build_function` returns a :class:`FunctionBuilder`: a callable
configured through a fluent chain that maps exact argument lists to
results::

    area = (
        build_function()
        .when(2, 3).then(6)
        .when(4, 4).run(lambda a, b: a * b)
        .otherwise(0)
    )
    area(2, 3)   # 6
    area(9, 9)   # 0

Every ``when`` must be completed by ``then`` or ``run`` before the next
``when``.  The newest pattern is checked first, so re-declaring a
pattern overrides the old one.  Matching is strict: same arity, and each
value identical or of the same type and equal (``1`` does not match
``True`` or ``1.0``).  Keyword arguments must match exactly too.

When nothing matches, the fallback (``otherwise``) is used, then the
base function the builder was created from, and finally ``None``.
"""

from __future__ import annotations

import enum
import functools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Self

from tendril._errors import BuilderProtocolError

_UNSET: Any = object()


class BuilderState(enum.Enum):
    OPEN = "open"
    SEALED = "sealed"
    EXPORTED = "exported"


@dataclass(frozen=True, slots=True)
class Action:
    """A fixed return value or a callable to run with the call's arguments."""

    value: Any = None
    fn: Callable[..., Any] | None = None

    def __call__(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        if self.fn is not None:
            return self.fn(*args, **kwargs)
        return self.value


@dataclass(frozen=True, slots=True)
class Pattern:
    args: tuple[Any, ...]
    kwargs: dict[str, Any] = field(default_factory=dict)
    action: Action = field(default_factory=Action)

    def matches(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> bool:
        if len(args) != len(self.args) or kwargs.keys() != self.kwargs.keys():
            return False
        return all(map(strictly_equal, self.args, args)) and all(
            strictly_equal(value, kwargs[key]) for key, value in self.kwargs.items()
        )


def strictly_equal(expected: Any, actual: Any) -> bool:
    """Identity, or equality between values of exactly the same type."""
    return expected is actual or (type(expected) is type(actual) and expected == actual)


class _FallbackSlot:
    """Marker for ``otherwise()`` waiting for its ``run``."""

    def __repr__(self) -> str:
        return "<fallback>"


_FALLBACK = _FallbackSlot()


class FunctionBuilder:
    """Callable whose result is chosen by exact argument matching.

    Args:
        base: Optional function called (with the original arguments)
            when neither a pattern nor the fallback applies.
    """

    def __init__(self, base: Callable[..., Any] | None = None) -> None:
        self._base = base
        self._patterns: list[Pattern] = []
        self._fallback: Action | None = None
        self._pending: tuple[tuple[Any, ...], dict[str, Any]] | _FallbackSlot | None = None
        self._state = BuilderState.OPEN
        self._exported: Callable[..., Any] | None = None
        if base is not None:
            functools.update_wrapper(self, base, updated=())

    def __repr__(self) -> str:
        return (
            f"<FunctionBuilder patterns={len(self._patterns)} "
            f"state={self._state.value}>"
        )

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._dispatch(args, kwargs, self._base)

    @property
    def state(self) -> BuilderState:
        return self._state

    # -- chain ------------------------------------------------------------

    def when(self, *args: Any, **kwargs: Any) -> Self:
        """Stage an argument pattern for the next ``then`` / ``run``."""
        if self._state is not BuilderState.OPEN:
            return self
        if self._pending is not None:
            raise BuilderProtocolError(
                "when() called while an earlier declaration is waiting for then()/run()",
            )
        self._pending = (args, kwargs)
        return self

    def then(self, value: Any) -> Self:
        """Return *value* for the staged pattern."""
        if self._state is not BuilderState.OPEN:
            return self
        self._add_pattern(Action(value=value), "then")
        return self

    def run(self, fn: Callable[..., Any]) -> Self:
        """Call ``fn(*args, **kwargs)`` for the staged pattern or fallback."""
        if self._state is not BuilderState.OPEN:
            return self
        if not callable(fn):
            raise TypeError(f"run() needs a callable, not {type(fn).__name__}")
        if self._pending is _FALLBACK:
            self._fallback = Action(fn=fn)
            self._pending = None
        else:
            self._add_pattern(Action(fn=fn), "run")
        return self

    def otherwise(self, value: Any = _UNSET) -> Self:
        """Set the fallback result, or stage the fallback for ``run``."""
        if self._state is not BuilderState.OPEN:
            return self
        if isinstance(self._pending, tuple):
            raise BuilderProtocolError(
                "otherwise() called while a pattern is waiting for then()/run()",
            )
        if value is _UNSET:
            self._pending = _FALLBACK
        else:
            self._fallback = Action(value=value)
            self._pending = None
        return self

    def seal(self) -> Self:
        """Freeze the configuration; further chain calls are ignored."""
        if self._state is BuilderState.OPEN:
            self._state = BuilderState.SEALED
        return self

    def get(self) -> Callable[..., Any]:
        """Return a plain function with this builder's behaviour.

        The builder is frozen as a side effect.
        """
        if self._exported is None:
            builder = self

            def built(*args: Any, **kwargs: Any) -> Any:
                return builder._dispatch(args, kwargs, builder._base)

            if self._base is not None:
                functools.update_wrapper(built, self._base)
            self._exported = built
        self._state = BuilderState.EXPORTED
        return self._exported

    def as_stub(self) -> Callable[..., Any]:
        """Adapt this builder as a stub replacement for ``Registry.stub``.

        The registry passes the original function as the first argument.
        It is left out of matching and serves as the base when the
        builder has none of its own.
        """

        def replacement(original: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
            base = self._base if self._base is not None else original
            return self._dispatch(args, kwargs, base)

        return replacement

    # -- internals --------------------------------------------------------

    def _add_pattern(self, action: Action, method: str) -> None:
        if not isinstance(self._pending, tuple):
            raise BuilderProtocolError(f"{method}() called without a preceding when()")
        args, kwargs = self._pending
        self._patterns.insert(0, Pattern(args, kwargs, action))
        self._pending = None

    def _dispatch(
        self,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        base: Callable[..., Any] | None,
    ) -> Any:
        for pattern in self._patterns:
            if pattern.matches(args, kwargs):
                return pattern.action(args, kwargs)
        if self._fallback is not None:
            return self._fallback(args, kwargs)
        if base is not None:
            return base(*args, **kwargs)
        return None


def build_function(base: Callable[..., Any] | None = None) -> FunctionBuilder:
    """Create a :class:`FunctionBuilder`, optionally augmenting *base*."""
    return FunctionBuilder(base)
