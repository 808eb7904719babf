# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Unified exception hierarchy for opprofile.

All opprofile exceptions inherit from OpProfileError. Transient reporting
failures are never raised; they are logged and retried at the next slot.
"""

from __future__ import annotations

from typing import Any


class OpProfileError(Exception):
    """Base exception for all opprofile errors.

    Provides structured error information including details and suggestions
    for resolution.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        suggestions: list[str] | None = None,
    ) -> None:
        """Initialize opprofile error.

        Args:
            message: Human-readable error message
            details: Additional context about the error
            suggestions: Actionable suggestions for resolving the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.suggestions = suggestions or []

    def __str__(self) -> str:
        """Return descriptive error message with context details."""
        parts = [self.message]
        if self.details:
            detail_parts = [
                f"{key.replace('_', ' ')}: {self.details[key]}"
                for key in ("key", "path", "state", "slot_size_minutes")
                if key in self.details
            ]
            if detail_parts:
                parts.append(f"({', '.join(detail_parts)})")
        return " ".join(parts)


class InitializationError(OpProfileError):
    """Initialization and startup errors.

    Raised when the reporting service cannot be wired together, such as a
    missing collection endpoint.
    """


class ConfigurationError(OpProfileError):
    """Configuration and settings errors.

    Raised when there are issues with environment variables or settings
    validation.
    """


class PersistenceError(OpProfileError):
    """Persistent state errors.

    Raised when the preference store cannot be read or written. Fatal to
    scheduler startup, since duplicate-report prevention depends on it.
    """


class PreferenceError(OpProfileError):
    """Preference access errors.

    Raised when reading or writing a key that was never registered, or when
    a key is accessed with the wrong type.
    """


class SchedulerStateError(OpProfileError):
    """Scheduler misuse.

    Raised when the scheduler is started while already running. This is a
    programming error, not a runtime condition.
    """


__all__ = (
    "ConfigurationError",
    "InitializationError",
    "OpProfileError",
    "PersistenceError",
    "PreferenceError",
    "SchedulerStateError",
)
