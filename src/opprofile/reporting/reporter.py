# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""
Report submission.

A report counts as delivered only on an HTTP 200 response. Every other status
and every transport error is a failed attempt; the scheduler simply tries
again in a later slot. Submission never raises for network problems.
"""

from __future__ import annotations

import logging

from types import TracebackType
from typing import Final, Protocol, Self, runtime_checkable

import httpx

from opprofile.reporting.http import ClientLimits, ClientTimeouts, create_report_client


logger = logging.getLogger(__name__)

OPERATIONAL_PROFILE_HEADER: Final = "X-Operational-Profile"
OPERATIONAL_PROFILE_HEADER_VALUE: Final = "?1"


@runtime_checkable
class Reporter(Protocol):
    """Delivers a serialized report to the collection endpoint."""

    async def submit(self, payload: bytes, content_type: str) -> bool:
        """Send `payload`; True only when the endpoint accepted it."""
        ...


class HttpReporter:
    """
    POSTs reports to the collection endpoint with httpx.

    Requests carry no cookies or credentials, only the payload and a marker
    header identifying it as an operational profile report.

    Example:
        >>> reporter = HttpReporter("https://collector.example/")
        >>> accepted = await reporter.submit(b"{}", "application/json")
        >>> await reporter.aclose()
    """

    def __init__(
        self,
        endpoint: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeouts: ClientTimeouts | None = None,
        limits: ClientLimits | None = None,
    ) -> None:
        """
        Initialize the reporter.

        Args:
            endpoint: Collection endpoint URL
            client: Client to use instead of creating one; not closed by `aclose`
            timeouts: Timeouts for a created client
            limits: Pool limits for a created client
        """
        self.endpoint = endpoint
        self._client = client
        self._owns_client = client is None
        self._timeouts = timeouts
        self._limits = limits

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = create_report_client(limits=self._limits, timeouts=self._timeouts)
        return self._client

    async def submit(self, payload: bytes, content_type: str) -> bool:
        """
        POST `payload` to the endpoint.

        Returns:
            True on HTTP 200, False on any other status or transport failure.
        """
        client = self._get_client()
        # Nothing from earlier responses may identify this request
        client.cookies.clear()
        try:
            response = await client.post(
                self.endpoint,
                content=payload,
                headers={
                    "Content-Type": content_type,
                    OPERATIONAL_PROFILE_HEADER: OPERATIONAL_PROFILE_HEADER_VALUE,
                },
            )
        except httpx.HTTPError as e:
            logger.debug("Operational profile report failed: %s", e)
            return False
        finally:
            client.cookies.clear()
        if response.status_code != httpx.codes.OK:
            logger.debug("Operational profile report rejected with HTTP %d", response.status_code)
            return False
        logger.debug("Operational profile report accepted")
        return True

    async def aclose(self) -> None:
        """Close the HTTP client if this reporter created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit, closing the client."""
        await self.aclose()


__all__ = (
    "OPERATIONAL_PROFILE_HEADER",
    "OPERATIONAL_PROFILE_HEADER_VALUE",
    "HttpReporter",
    "Reporter",
)
