"""Integration tests — registry, virtual clock and builder together.

Drives a small polling service that schedules its work through
:mod:`tendril.timers`: the virtual clock replaces the timers, a spy
records the polls, and a builder stands in for the network fetch.

Test Techniques Used:
    - Integration Testing: several components sharing one registry.
    - State-based Testing: histories and restored members after release.
"""

from __future__ import annotations

from typing import Any

import pytest

from tendril import Registry, VirtualClock, build_function, timers
from tendril.testing import FakeClock, make_settings

pytestmark = pytest.mark.integration


class Feed:
    """Remote data source; the real one is never reached in tests."""

    def fetch(self, topic: str) -> str:
        raise ConnectionError(f"no network for {topic!r}")


class Poller:
    """Polls a feed on an interval and gives up after a timeout."""

    def __init__(self, feed: Feed, topic: str, every: int, give_up_after: int) -> None:
        self.feed = feed
        self.topic = topic
        self.every = every
        self.give_up_after = give_up_after
        self.values: list[str] = []
        self.timed_out = False
        self._interval: int | None = None

    def start(self) -> None:
        self._interval = timers.set_interval(self.poll, self.every)
        timers.set_timeout(self.stop, self.give_up_after)

    def poll(self) -> None:
        self.values.append(self.feed.fetch(self.topic))

    def stop(self) -> None:
        self.timed_out = True
        timers.clear_interval(self._interval)


@pytest.fixture
def clocked() -> Any:
    with Registry(clock=FakeClock()) as registry:
        clock = VirtualClock(registry, settings=make_settings())
        with clock.activated():
            yield registry, clock


class TestPollingService:
    """End-to-end scenario across all components."""

    def test_polls_until_timeout(self, clocked: tuple[Registry, VirtualClock]) -> None:
        """The interval runs until the timeout clears it."""
        registry, clock = clocked
        fetch = build_function().when("weather").then("sunny").otherwise("?")
        registry.stub(Feed, "fetch", fetch.as_stub())
        polls = registry.spy(Poller, "poll")

        poller = Poller(Feed(), "weather", every=100, give_up_after=350)
        poller.start()
        clock.advance(1000)

        assert poller.values == ["sunny", "sunny", "sunny"]
        assert poller.timed_out
        assert polls.call_count() == 3
        assert polls.last_this() is poller
        assert clock.pending_count() == 0

    def test_unmatched_topic_reaches_original(
        self, clocked: tuple[Registry, VirtualClock]
    ) -> None:
        """A builder stub without a fallback delegates to the real method."""
        registry, clock = clocked
        fetch = build_function().when("weather").then("sunny")
        handle = registry.instrument(Feed, "fetch", spy=True, stub=fetch.as_stub())

        poller = Poller(Feed(), "traffic", every=10, give_up_after=100)
        poller.start()

        with pytest.raises(ConnectionError):
            clock.advance(10)
        assert isinstance(handle.last_error(), ConnectionError)
        assert handle.last_args() == ("traffic",)

    def test_release_restores_everything(self) -> None:
        """Leaving the scopes restores timers and the feed."""
        original_fetch = Feed.__dict__["fetch"]
        original_set_interval = timers.__dict__["set_interval"]

        with Registry() as registry:
            clock = VirtualClock(registry, settings=make_settings())
            with clock.activated():
                registry.stub(Feed, "fetch", lambda original, topic: topic.upper())
                assert Feed().fetch("x") == "X"
                assert registry.size() == 5
            assert registry.size() == 1

        assert registry.size() == 0
        assert Feed.__dict__["fetch"] is original_fetch
        assert timers.__dict__["set_interval"] is original_set_interval

    def test_plain_builder_function_as_callback(
        self, clocked: tuple[Registry, VirtualClock]
    ) -> None:
        """An exported builder function can be scheduled and spied on."""
        registry, clock = clocked
        seen: list[Any] = []
        callbacks = {
            "on_tick": build_function()
            .when("a")
            .run(seen.append)
            .otherwise()
            .run(lambda value: seen.append(f"other:{value}"))
            .get(),
        }
        handle = registry.spy(callbacks, "on_tick")

        timers.set_timeout(callbacks["on_tick"], 5, "a")
        timers.set_timeout(callbacks["on_tick"], 5, "b")
        clock.advance(5)

        assert seen == ["a", "other:b"]
        assert [record.args for record in handle.get_history()] == [("a",), ("b",)]
