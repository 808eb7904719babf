# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""
Operational profiling configuration settings.

Configuration sources (priority order):
1. Explicit keyword arguments (highest priority)
2. Environment variable
3. `.env` file
4. Field default

Environment Variables:
    OPPROFILE_ENABLED: Feature flag for the reporting loop (default: true)
    OPPROFILE_ENDPOINT: Collection endpoint URL (no default; unset disables reporting)
    OPPROFILE_COLLECTION_SLOT_SIZE_MINUTES: Slot size in minutes (default: 30)
    OPPROFILE_TRIGGER_DELAY_MINUTES: Delay before a slot is evaluated (default: 5)
    OPPROFILE_COLLECTION_ID_LIFETIME_DAYS: Collection id lifetime (default: 1)
    OPPROFILE_PLATFORM: Override for the reported platform identifier
    OPPROFILE_STATE_FILE: Path of the JSON local state file
    OPPROFILE_REQUEST_TIMEOUT_SECONDS: HTTP timeout for reports (default: 30)
"""

from __future__ import annotations

import logging

from datetime import timedelta
from functools import cache
from pathlib import Path
from typing import Annotated, Self

from pydantic import Field, PositiveFloat, PositiveInt, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from opprofile.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


class ProfilingSettings(BaseSettings):
    """Operational profiling configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="OPPROFILE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: Annotated[
        bool,
        Field(
            default=True,
            description="Feature flag for operational profiling. Set to False to opt out.",
        ),
    ]

    endpoint: Annotated[
        str | None,
        Field(
            default=None,
            description="URL that receives operational profile reports. Required to report.",
        ),
    ]

    collection_slot_size_minutes: Annotated[
        PositiveInt,
        Field(
            default=30,
            description="Length of a collection slot in minutes. Should divide 1440 evenly.",
        ),
    ]

    trigger_delay_minutes: Annotated[
        PositiveInt,
        Field(
            default=5,
            description="Delay after a slot-boundary tick before the slot is evaluated.",
        ),
    ]

    collection_id_lifetime_days: Annotated[
        PositiveInt,
        Field(
            default=1,
            description="Days before the anonymous collection id is rotated.",
        ),
    ]

    platform: Annotated[
        str | None,
        Field(
            default=None,
            description="Override for the platform identifier sent with each report.",
        ),
    ]

    state_file: Annotated[
        Path | None,
        Field(
            default=None,
            description="Path of the JSON file holding persisted local state.",
        ),
    ]

    request_timeout_seconds: Annotated[
        PositiveFloat,
        Field(
            default=30.0,
            description="Timeout in seconds for a single report request.",
        ),
    ]

    @model_validator(mode="after")
    def _warn_on_misaligned_slots(self) -> Self:
        if MINUTES_PER_DAY % self.collection_slot_size_minutes:
            logger.warning(
                "Collection slot size of %d minutes does not divide a day evenly; "
                "the last slot of each day will be short.",
                self.collection_slot_size_minutes,
            )
        return self

    @model_validator(mode="after")
    def _check_trigger_fits_tick(self) -> Self:
        # Every slot tick resets the trigger, so it must fit inside one tick
        if self.trigger_delay >= self.slot_tick_interval:
            raise ValueError(
                f"trigger_delay_minutes ({self.trigger_delay_minutes}) must be shorter than "
                f"half of collection_slot_size_minutes ({self.collection_slot_size_minutes})"
            )
        return self

    @property
    def is_configured(self) -> bool:
        """Check if reporting is enabled and has somewhere to report to."""
        return self.enabled and self.endpoint is not None

    @property
    def slot_tick_interval(self) -> timedelta:
        """Period of the slot-boundary timer: half a slot."""
        return timedelta(minutes=self.collection_slot_size_minutes / 2)

    @property
    def trigger_delay(self) -> timedelta:
        """Delay of the one-shot trigger timer."""
        return timedelta(minutes=self.trigger_delay_minutes)

    @property
    def collection_id_lifetime(self) -> timedelta:
        """Lifetime of a collection id."""
        return timedelta(days=self.collection_id_lifetime_days)


@cache
def get_profiling_settings() -> ProfilingSettings:
    """Get cached profiling settings instance.

    Raises:
        ConfigurationError: The environment holds invalid settings.
    """
    try:
        return ProfilingSettings()
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid operational profiling settings",
            details={"errors": e.errors(include_url=False)},
            suggestions=["Check the OPPROFILE_* environment variables."],
        ) from e


def reset_profiling_settings() -> None:
    """Clear the cached settings so the next call re-reads the environment."""
    get_profiling_settings.cache_clear()


__all__ = (
    "MINUTES_PER_DAY",
    "ProfilingSettings",
    "get_profiling_settings",
    "reset_profiling_settings",
)
