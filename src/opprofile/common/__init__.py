# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Shared helpers for opprofile."""

from opprofile.common.logging import get_rich_handler, setup_logger
from opprofile.common.utils import get_user_config_dir


__all__ = ("get_rich_handler", "get_user_config_dir", "setup_logger")
