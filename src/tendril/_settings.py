"""Library configuration via pydantic-settings.

Configuration is loaded from ``TENDRIL_``-prefixed environment variables
and/or a ``.env`` file.  Nested models use ``__`` as the delimiter, e.g.
``TENDRIL_LOGGING__LEVEL=DEBUG``.

The schema covers the two tunables a test suite may want to change
without touching code:

* **Logging** — level, format, optional file sink, rotation.
* **Clock** — the minimum delay (in ticks) the virtual clock applies to
  timers.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# -------------------------------------------------------------------
# Sub-models (plain BaseModel, nested into Settings)
# -------------------------------------------------------------------


class LoggingSettings(BaseModel):
    """Logging configuration used by :func:`tendril.configure_logging`.

    The ``format`` field selects the output format:

    - ``"text"`` (default) — human-readable timestamped lines, the
      natural choice next to a test runner's own output.
    - ``"json"`` — structured JSON lines for CI log collectors.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Level applied to the ``tendril`` logger.",
    )
    format: Literal["json", "text"] = Field(
        default="text",
        description="Log output format: 'json' lines or human-readable 'text'.",
    )
    file: str | None = Field(
        default=None,
        description="Optional log file path. ``None`` means stderr only.",
    )
    max_file_size_mb: Annotated[int, Field(ge=1)] = Field(
        default=10,
        description=(
            "Maximum log file size in megabytes before rotation. "
            "Only applies when ``file`` is set."
        ),
    )
    backup_count: Annotated[int, Field(ge=0)] = Field(
        default=3,
        description="Number of rotated log files to keep.",
    )


class ClockSettings(BaseModel):
    """Virtual clock configuration.

    Environment variables (with ``__`` nesting)::

        TENDRIL_CLOCK__MINIMUM_DELAY=1
    """

    minimum_delay: Annotated[int, Field(ge=1)] = Field(
        default=1,
        description=(
            "Smallest delay, in ticks, a virtual timer can be scheduled "
            "with.  Zero, negative and unparseable delays are raised to it."
        ),
    )


# -------------------------------------------------------------------
# Root settings
# -------------------------------------------------------------------


class Settings(BaseSettings):
    """Root settings for tendril.

    Example ``.env``::

        TENDRIL_LOGGING__LEVEL=DEBUG
        TENDRIL_LOGGING__FORMAT=json
        TENDRIL_CLOCK__MINIMUM_DELAY=4
    """

    model_config = SettingsConfigDict(
        env_prefix="TENDRIL_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
    """``extra="ignore"`` because a project's ``.env`` file usually holds
    far more than tendril's own keys."""

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration.",
    )
    clock: ClockSettings = Field(
        default_factory=ClockSettings,
        description="Virtual clock configuration.",
    )
