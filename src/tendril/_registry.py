"""Interceptor registry: spy on, stub out and profile named functions.

The registry replaces ``target.name`` with an intercepting wrapper,
keeps one :class:`InterceptionRecord` per wrapped function, and hands
back a :class:`Handle` through which tests inspect the call history and
eventually restore the original.

**Single instrumentation.**  Records are looked up by the *identity* of
the member's current value.  Instrumenting a member that already holds
one of our wrappers returns the existing handle and merges the new
options into it; nothing is wrapped twice.

**Faithful restore.**  A member held directly by the target (instance
``__dict__``, module global, mapping key, class body) is written back
verbatim.  A member the target inherited is simply deleted again so the
inherited value shows through.

**Transparent errors.**  Exceptions raised by the original (or by a stub
replacement) are recorded on the history and re-raised unchanged.

Stub modes:

- ``stub=False`` — pass through to the original (the default).
- ``stub=True`` — no-op; the call returns ``None``.
- ``stub=callable`` — replacement called as
  ``replacement(original, *args, **kwargs)``.  A later stub overwrites an
  earlier one; replacements never stack.
"""

from __future__ import annotations

import enum
import functools
import inspect
import logging
import types
from collections.abc import Callable
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any, Self

from tendril._access import MemberAccess, access_for
from tendril._clock import ClockPort, SystemClock
from tendril._errors import InvalidStubError, NotCallableError
from tendril._history import CallHistory, CallRecord

logger = logging.getLogger(__name__)


class StubMode(enum.Enum):
    """Built-in stub behaviours (a replacement callable is the third kind)."""

    PASS_THROUGH = "pass_through"
    NO_OP = "no_op"


StubBehaviour = StubMode | Callable[..., Any]


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class InterceptionRecord:
    """Private bookkeeping for one instrumented member."""

    target: Any
    name: str
    original: Callable[..., Any]
    stored: Any
    defined_directly: bool
    access: MemberAccess
    spy: bool = False
    profile: bool = False
    stub: StubBehaviour = StubMode.PASS_THROUGH
    history: CallHistory = field(default_factory=CallHistory)
    wrapper: _Wrapper | None = field(default=None, repr=False)
    handle: Handle | None = field(default=None, repr=False)

    @property
    def recording(self) -> bool:
        return self.spy or self.profile

    def current(self) -> Any:
        """The value the target currently exposes under ``name``."""
        try:
            return self.access.get(self.target, self.name)
        except LookupError:
            return None

    def clear(self) -> None:
        self.history.clear()
        self.spy = False
        self.profile = False
        self.stub = StubMode.PASS_THROUGH
        self.wrapper = None
        self.handle = None


# ---------------------------------------------------------------------------
# Wrapper
# ---------------------------------------------------------------------------


class _Wrapper:
    """The callable installed in place of the original member.

    Installed on an instance, module or mapping it is called directly
    and the calling context is the target itself.  Installed on a class
    it follows the binding rules of the descriptor it replaced:

    - a plain function binds to the instance it is accessed through, and
      an explicit ``Cls.method(obj, ...)`` call treats ``obj`` as the
      receiving instance;
    - a ``classmethod`` binds to the class it is accessed through, so a
      subclass still receives itself as ``cls``;
    - a ``staticmethod`` never binds.

    The receiving instance or class is recorded as the calling context.
    """

    def __init__(self, record: InterceptionRecord, clock: ClockPort) -> None:
        self._record: InterceptionRecord | None = record
        self._clock = clock
        self._target = record.target
        self._original = record.original
        self._descriptor = _static_lookup(record.target, record.name, record.original)
        self._unbound_method = isinstance(record.target, type) and isinstance(
            self._descriptor, types.FunctionType
        )
        functools.update_wrapper(self, record.original, updated=())

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if self._unbound_method and args:
            return self._invoke(args[0], args[1:], kwargs)
        return self._invoke(self._target, args, kwargs)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is not None:
            return functools.partial(self._invoke, instance)
        if (
            owner is not None
            and owner is not self._target
            and isinstance(self._descriptor, classmethod)
        ):
            return functools.partial(self._invoke, owner)
        # Unbound access through the target itself must yield the wrapper,
        # which is how the registry recognises its own members.
        return self

    def __repr__(self) -> str:
        return f"<tendril wrapper of {self._original!r}>"

    def _call_original(self, context: Any, *args: Any, **kwargs: Any) -> Any:
        if context is self._target:
            return self._original(*args, **kwargs)
        bind = getattr(type(self._descriptor), "__get__", None)
        if bind is None:
            return self._descriptor(*args, **kwargs)
        if isinstance(context, type) and isinstance(self._descriptor, classmethod):
            return bind(self._descriptor, None, context)(*args, **kwargs)
        return bind(self._descriptor, context, type(context))(*args, **kwargs)

    def _invoke(self, context: Any, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        record = self._record
        if record is None:
            # Released, but someone kept a reference to the wrapper.
            return self._call_original(context, *args, **kwargs)

        spy, profile, stub = record.spy, record.profile, record.stub
        start = self._clock.now() if profile else None
        try:
            if stub is StubMode.PASS_THROUGH:
                result = self._call_original(context, *args, **kwargs)
            elif stub is StubMode.NO_OP:
                result = None
            else:
                delegate = functools.partial(self._call_original, context)
                result = stub(delegate, *args, **kwargs)
        except Exception as exc:
            self._append(record, spy, start, args, kwargs, context, None, exc)
            raise
        self._append(record, spy, start, args, kwargs, context, result, None)
        return result

    def _append(
        self,
        record: InterceptionRecord,
        spy: bool,
        start: float | None,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        context: Any,
        result: Any,
        error: Exception | None,
    ) -> None:
        elapsed = self._clock.now() - start if start is not None else None
        # The call may have released its own record.
        if self._record is None or not (spy or start is not None):
            return
        record.history.append(
            CallRecord(
                args=args if spy else None,
                kwargs=dict(kwargs) if spy else None,
                result=result if spy else None,
                context=context,
                error=error,
                elapsed=elapsed,
            )
        )


def _static_lookup(target: Any, name: str, fallback: Any) -> Any:
    """Raw class-level descriptor for *name*, used to bind to other instances."""
    if not isinstance(target, type):
        return fallback
    try:
        return inspect.getattr_static(target, name)
    except AttributeError:
        return fallback


# ---------------------------------------------------------------------------
# Handle
# ---------------------------------------------------------------------------


class Handle:
    """Inspection and control surface for one instrumented member.

    After :meth:`release` every method is inert: queries return ``None``
    (or ``0`` / an empty list) and control methods do nothing.
    """

    def __init__(self, record: InterceptionRecord, registry: Registry) -> None:
        self._record: InterceptionRecord | None = record
        self._registry = registry

    def __repr__(self) -> str:
        record = self._record
        if record is None:
            return "<Handle released>"
        return (
            f"<Handle {_describe(record.target)}.{record.name} "
            f"spy={record.spy} profile={record.profile} calls={len(record.history)}>"
        )

    @property
    def released(self) -> bool:
        return self._record is None

    # -- history queries --------------------------------------------------

    def call_count(self) -> int:
        return len(self._record.history) if self._record else 0

    def last(self) -> CallRecord | None:
        return self._record.history.last() if self._record else None

    def last_return(self) -> Any:
        last = self.last()
        return last.result if last else None

    def last_args(self) -> tuple[Any, ...] | None:
        last = self.last()
        return last.args if last else None

    def last_kwargs(self) -> dict[str, Any] | None:
        last = self.last()
        return last.kwargs if last else None

    def last_this(self) -> Any:
        last = self.last()
        return last.context if last else None

    def last_error(self) -> BaseException | None:
        last = self.last()
        return last.error if last else None

    def get_history(self) -> list[CallRecord]:
        return self._record.history.snapshot() if self._record else []

    def calls_with(self, *args: Any, **kwargs: Any) -> list[CallRecord]:
        """Spied calls made with exactly these arguments."""
        return self._record.history.matching(args, kwargs) if self._record else []

    # -- profiling --------------------------------------------------------

    def get_average_time(self) -> float:
        """Mean duration of profiled calls in seconds (``0`` when none)."""
        return self._record.history.average_time() if self._record else 0

    def get_quickest(self) -> CallRecord | None:
        return self._record.history.quickest() if self._record else None

    def get_slowest(self) -> CallRecord | None:
        return self._record.history.slowest() if self._record else None

    # -- control ----------------------------------------------------------

    def reset(self) -> None:
        """Forget the call history; modes and instrumentation stay."""
        if self._record:
            self._record.history.clear()

    def release(self) -> None:
        """Restore the original member and invalidate this handle."""
        if self._record:
            self._registry._release(self._record)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class Registry:
    """Tracks every currently instrumented member.

    Args:
        clock: Wall-clock source for profiling.  Defaults to
            :class:`~tendril.SystemClock`.
        access: Member-access adapter.  When ``None`` an adapter is
            chosen per target (mappings vs. attributes).

    Usage::

        registry = Registry()
        handle = registry.spy(obj, "save")
        obj.save(1)
        assert handle.call_count() == 1
        registry.release_all()

    Also usable as a context manager that releases everything on exit.
    """

    def __init__(
        self,
        *,
        clock: ClockPort | None = None,
        access: MemberAccess | None = None,
    ) -> None:
        self._clock = clock if clock is not None else SystemClock()
        self._access = access
        self._records: list[InterceptionRecord] = []

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release_all()

    # -- instrumentation --------------------------------------------------

    def instrument(
        self,
        target: Any,
        name: str,
        *,
        spy: bool | None = None,
        profile: bool | None = None,
        stub: bool | Callable[..., Any] | None = None,
    ) -> Handle:
        """Instrument ``target.name`` and return its handle.

        Options left as ``None`` keep their previous value (``False`` /
        pass-through for a fresh record).

        Raises:
            NotCallableError: The member is missing or not callable.
            InvalidStubError: ``stub`` is neither a bool nor a callable.
        """
        access = self._access if self._access is not None else access_for(target)
        try:
            fn = access.get(target, name)
        except LookupError:
            raise NotCallableError(name, None) from None
        if not callable(fn):
            raise NotCallableError(name, fn)
        behaviour = _resolve_stub(stub)

        record = self._find(fn)
        if record is None:
            record = self._track(target, name, fn, access)
        else:
            logger.debug("Reusing instrumentation of %s.%s", _describe(target), name)

        if spy is not None:
            record.spy = bool(spy)
        if profile is not None:
            record.profile = bool(profile)
        if behaviour is not None:
            record.stub = behaviour
        assert record.handle is not None
        return record.handle

    def spy(self, target: Any, name: str) -> Handle:
        """Record calls to ``target.name`` without changing its behaviour."""
        return self.instrument(target, name, spy=True)

    def stub(
        self,
        target: Any,
        name: str,
        replacement: Callable[..., Any] | None = None,
    ) -> Handle:
        """Replace ``target.name`` with *replacement*, or a no-op when ``None``."""
        return self.instrument(
            target, name, stub=True if replacement is None else replacement
        )

    def profile(self, target: Any, name: str) -> Handle:
        """Measure the wall-clock duration of every call to ``target.name``."""
        return self.instrument(target, name, profile=True)

    # -- queries ----------------------------------------------------------

    def size(self) -> int:
        return len(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def has_modified(self, fn: Any) -> bool:
        """``True`` if *fn* is the current value of a tracked member."""
        return self._find(fn) is not None

    def handle_for(self, fn: Any) -> Handle | None:
        record = self._find(fn)
        return record.handle if record else None

    # -- release ----------------------------------------------------------

    def release_all(self) -> None:
        """Release every record, most recently instrumented first."""
        while self._records:
            self._release(self._records[-1])

    def _release(self, record: InterceptionRecord) -> None:
        self._records = [r for r in self._records if r is not record]
        if record.defined_directly:
            record.access.set(record.target, record.name, record.stored)
        elif record.access.has_own(record.target, record.name):
            record.access.delete(record.target, record.name)

        if record.wrapper is not None:
            record.wrapper._record = None
        if record.handle is not None:
            record.handle._record = None
        logger.debug("Released %s.%s", _describe(record.target), record.name)
        record.clear()

    # -- internals --------------------------------------------------------

    def _find(self, fn: Any) -> InterceptionRecord | None:
        for record in self._records:
            if record.current() is fn:
                return record
        return None

    def _track(
        self,
        target: Any,
        name: str,
        fn: Callable[..., Any],
        access: MemberAccess,
    ) -> InterceptionRecord:
        defined_directly = access.has_own(target, name)
        record = InterceptionRecord(
            target=target,
            name=name,
            original=fn,
            stored=access.get_own(target, name) if defined_directly else None,
            defined_directly=defined_directly,
            access=access,
        )
        record.wrapper = _Wrapper(record, self._clock)
        record.handle = Handle(record, self)
        access.set(target, name, record.wrapper)
        self._records.append(record)
        logger.debug(
            "Instrumented %s.%s (%s)",
            _describe(target),
            name,
            "own" if defined_directly else "inherited",
        )
        return record


def _resolve_stub(stub: bool | Callable[..., Any] | None) -> StubBehaviour | None:
    if stub is None:
        return None
    if stub is True:
        return StubMode.NO_OP
    if stub is False:
        return StubMode.PASS_THROUGH
    if callable(stub):
        return stub
    raise InvalidStubError(
        f"stub must be a bool or a callable, not {type(stub).__name__}",
    )


def _describe(target: Any) -> str:
    name = getattr(target, "__name__", None)
    if isinstance(name, str):
        return name
    return type(target).__name__
