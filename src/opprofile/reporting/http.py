# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""HTTP client configuration for report submission.

Reports are small and infrequent, so the client keeps a tiny connection pool
and short keep-alive. Redirects are not followed.
"""

from __future__ import annotations

import logging

from dataclasses import dataclass

import httpx


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientLimits:
    """HTTP connection pool limits for the report client.

    Attributes:
        max_connections: Maximum total connections.
        max_keepalive_connections: Maximum persistent connections to keep alive.
        keepalive_expiry: Seconds to keep idle connections alive.
    """

    max_connections: int = 2
    max_keepalive_connections: int = 1
    keepalive_expiry: float = 5.0


@dataclass(frozen=True)
class ClientTimeouts:
    """HTTP timeouts for the report client, in seconds."""

    connect: float = 10.0
    read: float = 30.0
    write: float = 10.0
    pool: float = 5.0

    @classmethod
    def uniform(cls, seconds: float) -> ClientTimeouts:
        """Use the same timeout for reads and never exceed it elsewhere."""
        return cls(
            connect=min(cls.connect, seconds),
            read=seconds,
            write=min(cls.write, seconds),
            pool=min(cls.pool, seconds),
        )


def create_report_client(
    *,
    limits: ClientLimits | None = None,
    timeouts: ClientTimeouts | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the async client used to submit reports.

    Args:
        limits: Connection pool limits.
        timeouts: Per-phase timeouts.
        transport: Optional transport override (tests use `httpx.MockTransport`).
    """
    limits = limits or ClientLimits()
    timeouts = timeouts or ClientTimeouts()
    logger.debug("Creating report client with read timeout %.1fs", timeouts.read)
    return httpx.AsyncClient(
        limits=httpx.Limits(
            max_connections=limits.max_connections,
            max_keepalive_connections=limits.max_keepalive_connections,
            keepalive_expiry=limits.keepalive_expiry,
        ),
        timeout=httpx.Timeout(
            connect=timeouts.connect,
            read=timeouts.read,
            write=timeouts.write,
            pool=timeouts.pool,
        ),
        follow_redirects=False,
        transport=transport,
    )


__all__ = ("ClientLimits", "ClientTimeouts", "create_report_client")
