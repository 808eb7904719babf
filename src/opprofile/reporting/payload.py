# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""The operational profile report sent to the collection endpoint."""

from __future__ import annotations

from typing import Annotated, Final

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt


CONTENT_TYPE: Final = "application/json"


class ReportPayload(BaseModel):
    """One report. Built fresh for every attempt and never stored."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    collection_id: Annotated[str, Field(min_length=1, description="Current anonymous collection id")]
    platform: Annotated[str, Field(description="Platform identifier of the reporting host")]
    collection_slot: Annotated[NonNegativeInt, Field(description="Slot being reported")]

    def to_bytes(self) -> bytes:
        """Serialize for the wire."""
        return self.model_dump_json().encode("utf-8")


__all__ = ("CONTENT_TYPE", "ReportPayload")
