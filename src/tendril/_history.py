"""Call recording for instrumented functions.

Each interception owns one :class:`CallHistory`.  The wrapper appends a
frozen :class:`CallRecord` per invocation while spying or profiling is
enabled; the history answers the aggregate questions a test asks
(how many calls, what was the last one, how long did they take).

Which fields are populated depends on the modes active *at call time*:

- **spy** — ``args``, ``kwargs`` and ``result`` are captured.
- **profile** — ``elapsed`` holds the wall-clock duration in seconds.
- ``context`` and ``error`` are captured in either mode.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class CallRecord:
    """Immutable record of one call through an instrumented function."""

    args: tuple[Any, ...] | None = None
    kwargs: dict[str, Any] | None = None
    result: Any = None
    context: Any = None
    error: BaseException | None = None
    elapsed: float | None = None

    @property
    def profiled(self) -> bool:
        """``True`` when a duration was measured for this call."""
        return self.elapsed is not None

    @property
    def raised(self) -> bool:
        """``True`` when the call raised."""
        return self.error is not None


@dataclass
class CallHistory:
    """Ordered call records, insertion order equals call order."""

    _records: list[CallRecord] = field(default_factory=list)

    def append(self, record: CallRecord) -> None:
        self._records.append(record)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CallRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> CallRecord:
        return self._records[index]

    def snapshot(self) -> list[CallRecord]:
        """Return a copy so callers cannot rewrite history."""
        return list(self._records)

    def last(self) -> CallRecord | None:
        return self._records[-1] if self._records else None

    def profiled(self) -> list[CallRecord]:
        return [r for r in self._records if r.elapsed is not None]

    def average_time(self) -> float:
        """Mean elapsed time over profiled calls, ``0`` when there are none."""
        timed = self.profiled()
        if not timed:
            return 0
        return sum(r.elapsed for r in timed) / len(timed)  # type: ignore[misc]

    def quickest(self) -> CallRecord | None:
        """First profiled record with the smallest elapsed time."""
        timed = self.profiled()
        return min(timed, key=_elapsed) if timed else None

    def slowest(self) -> CallRecord | None:
        """First profiled record with the largest elapsed time."""
        timed = self.profiled()
        return max(timed, key=_elapsed) if timed else None

    def matching(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> list[CallRecord]:
        """Spied records whose arguments equal *args* and *kwargs*."""
        return [
            r
            for r in self._records
            if r.args is not None and r.args == args and (r.kwargs or {}) == kwargs
        ]


def _elapsed(record: CallRecord) -> float:
    return record.elapsed  # type: ignore[return-value]
