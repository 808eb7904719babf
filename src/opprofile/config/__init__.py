# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Configuration for opprofile."""

from opprofile.config.settings import (
    MINUTES_PER_DAY,
    ProfilingSettings,
    get_profiling_settings,
    reset_profiling_settings,
)


__all__ = (
    "MINUTES_PER_DAY",
    "ProfilingSettings",
    "get_profiling_settings",
    "reset_profiling_settings",
)
