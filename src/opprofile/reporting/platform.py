# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Coarse platform identifier included in reports."""

from __future__ import annotations

import platform

from functools import cache


_ARM64 = frozenset({"arm64", "aarch64", "armv8", "armv8l"})
_X86 = frozenset({"i386", "i686", "x86"})


def platform_identifier_for(system: str, machine: str) -> str:
    """Map an OS name and CPU architecture to a platform identifier."""
    system = system.lower()
    machine = machine.lower()
    match system:
        case "windows":
            if machine in _ARM64:
                return "winarm64"
            return "winia32" if machine in _X86 else "winx64"
        case "darwin":
            return "macos-arm64" if machine in _ARM64 else "macos"
        case "linux":
            return "linux-arm64" if machine in _ARM64 else "linux"
        case _:
            return "unknown"


@cache
def get_platform_identifier() -> str:
    """Platform identifier of the running host."""
    return platform_identifier_for(platform.system(), platform.machine())


__all__ = ("get_platform_identifier", "platform_identifier_for")
