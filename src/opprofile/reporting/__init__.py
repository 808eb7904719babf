# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Report payloads and their delivery to the collection endpoint."""

from opprofile.reporting.http import ClientLimits, ClientTimeouts, create_report_client
from opprofile.reporting.payload import CONTENT_TYPE, ReportPayload
from opprofile.reporting.platform import get_platform_identifier, platform_identifier_for
from opprofile.reporting.reporter import (
    OPERATIONAL_PROFILE_HEADER,
    OPERATIONAL_PROFILE_HEADER_VALUE,
    HttpReporter,
    Reporter,
)


__all__ = (
    "CONTENT_TYPE",
    "OPERATIONAL_PROFILE_HEADER",
    "OPERATIONAL_PROFILE_HEADER_VALUE",
    "ClientLimits",
    "ClientTimeouts",
    "HttpReporter",
    "ReportPayload",
    "Reporter",
    "create_report_client",
    "get_platform_identifier",
    "platform_identifier_for",
)
