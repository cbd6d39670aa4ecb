"""Unit tests for tendril._errors — exception taxonomy.

Test Techniques Used:
    - Specification-based Testing: Hierarchy and built-in base classes
    - Equivalence Partitioning: Registry, builder and clock families
"""

from __future__ import annotations

import pytest

from tendril import (
    BuilderProtocolError,
    ClockAlreadyActiveError,
    ClockStateError,
    InactiveClockError,
    InvalidDurationError,
    InvalidStubError,
    NotCallableError,
    TendrilError,
)


class TestHierarchy:
    """Every library error is a TendrilError.

    Technique: Specification-based Testing.
    """

    @pytest.mark.parametrize(
        "error_type",
        [
            BuilderProtocolError,
            ClockAlreadyActiveError,
            ClockStateError,
            InactiveClockError,
            InvalidDurationError,
            InvalidStubError,
            NotCallableError,
        ],
    )
    def test_subclasses_tendril_error(self, error_type: type[Exception]) -> None:
        """A single except clause catches the whole family."""
        assert issubclass(error_type, TendrilError)

    def test_type_errors(self) -> None:
        """Wrong-kind-of-value failures are TypeErrors too."""
        assert issubclass(NotCallableError, TypeError)
        assert issubclass(InvalidStubError, TypeError)

    def test_duration_is_value_error(self) -> None:
        """A bad advance duration is a ValueError."""
        assert issubclass(InvalidDurationError, ValueError)

    def test_clock_state_errors(self) -> None:
        """Both clock state errors share a RuntimeError base."""
        assert issubclass(InactiveClockError, ClockStateError)
        assert issubclass(ClockAlreadyActiveError, ClockStateError)
        assert issubclass(ClockStateError, RuntimeError)

    def test_builder_protocol_is_not_type_error(self) -> None:
        """Chain misuse is its own category."""
        assert not issubclass(BuilderProtocolError, TypeError)


class TestNotCallableError:
    """NotCallableError carries the offending member.

    Technique: Specification-based Testing.
    """

    def test_attributes(self) -> None:
        """name and value are kept on the exception."""
        err = NotCallableError("x", 42)

        assert err.name == "x"
        assert err.value == 42

    def test_message_names_member_and_type(self) -> None:
        """The message mentions the member and what was found."""
        err = NotCallableError("x", 42)

        assert "'x'" in str(err)
        assert "int" in str(err)
