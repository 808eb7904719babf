# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0

"""Set up a logger with optional rich formatting."""

from __future__ import annotations

import logging

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from rich.logging import RichHandler


def get_rich_handler(**kwargs: Any) -> RichHandler:
    """Build a RichHandler writing to its own console."""
    from rich.console import Console
    from rich.logging import RichHandler

    return RichHandler(console=Console(markup=True, soft_wrap=True), markup=True, **kwargs)


def setup_logger(
    name: str | None = "opprofile",
    *,
    level: int = logging.WARNING,
    rich: bool = True,
    rich_options: dict[str, Any] | None = None,
) -> logging.Logger:
    """Set up a logger with optional rich formatting.

    Hosts embedding opprofile usually configure logging themselves; this is a
    convenience for standalone use.
    """
    if not rich:
        logging.basicConfig(level=level)
        return logging.getLogger(name)
    handler = get_rich_handler(**(rich_options or {}))
    logger = logging.getLogger(name)
    logger.setLevel(level)
    # Clear existing handlers to prevent duplication
    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


__all__ = ("get_rich_handler", "setup_logger")
