"""Unit tests for tendril.timers — real timer primitives.

Test Techniques Used:
    - Equivalence Partitioning: parse_delay input classes
    - Boundary Value Analysis: Minimum clamping
    - Concurrency Observation: threading.Event to await real timers
"""

from __future__ import annotations

import threading
from decimal import Decimal
from typing import Any

import pytest

from tendril import timers


class TestParseDelay:
    """Permissive delay coercion.

    Technique: Equivalence Partitioning.
    """

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (5, 5),
            (5.9, 5),
            (True, 1),
            ("42", 42),
            ("  42 apples", 42),
            ("+8", 8),
            ("-8", 1),
            ("apples", 1),
            ("", 1),
            ([3], 3),
            (("17",), 17),
            ([], 1),
            ([1, 2], 1),
            (Decimal("12.5"), 12),
            (float("inf"), 1),
            (None, 1),
            (object(), 1),
        ],
    )
    def test_values(self, value: Any, expected: int) -> None:
        """Each input class maps to the expected tick count."""
        assert timers.parse_delay(value) == expected

    def test_custom_minimum(self) -> None:
        """Values below the given minimum are raised to it."""
        assert timers.parse_delay(2, minimum=10) == 10
        assert timers.parse_delay(20, minimum=10) == 20


class TestRealTimers:
    """Timers backed by threading.Timer.

    Technique: Concurrency Observation — waiting on events with a
    generous timeout.
    """

    def test_set_timeout_fires(self) -> None:
        """A timeout runs its callback with the extra arguments."""
        done = threading.Event()
        received: list[Any] = []

        def callback(value: str) -> None:
            received.append(value)
            done.set()

        timers.set_timeout(callback, 1, "payload")

        assert done.wait(timeout=2.0)
        assert received == ["payload"]

    def test_clear_timeout_prevents_fire(self) -> None:
        """A cleared timeout never runs."""
        fired = threading.Event()

        timer_id = timers.set_timeout(fired.set, 100)
        timers.clear_timeout(timer_id)

        assert not fired.wait(timeout=0.3)

    def test_interval_repeats_until_cleared(self) -> None:
        """An interval fires repeatedly and stops when cleared."""
        count = 0
        third = threading.Event()

        def tick() -> None:
            nonlocal count
            count += 1
            if count == 3:
                third.set()

        interval = timers.set_interval(tick, 5)
        try:
            assert third.wait(timeout=2.0)
        finally:
            timers.clear_interval(interval)

    def test_clear_unknown_id(self) -> None:
        """Unknown and non-int ids are ignored."""
        timers.clear_timeout(987654321)
        timers.clear_interval(None)
        timers.clear_timeout("abc")

    def test_ids_increase(self) -> None:
        """Ids are fresh integers."""
        first = timers.set_timeout(lambda: None, 1000)
        second = timers.set_timeout(lambda: None, 1000)
        timers.clear_timeout(first)
        timers.clear_timeout(second)

        assert second > first
