"""Pydantic models for the ingestion data flow."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActivityInput(BaseModel):
    """One tool activity as handed over by a per-tool transformer.

    Transformers must place every cross-tool identifier they know about
    into ``title``, ``description``, ``source_url`` or ``raw_data``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source: str
    source_id: str = Field(alias="sourceId")
    source_url: str | None = Field(default=None, alias="sourceUrl")
    title: str
    description: str | None = None
    timestamp: datetime
    raw_data: dict[str, Any] | None = Field(default=None, alias="rawData")

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are UTC; aware ones are normalized to UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)

    @property
    def activity_id(self) -> str:
        """Batch-unique id: ``{source}:{source_id}``."""
        return f"{self.source}:{self.source_id}"

    def raw_data_text(self) -> str | None:
        """rawData serialized as plain text for pattern matching."""
        if not self.raw_data:
            return None
        return json.dumps(self.raw_data, default=str)


class ActivityBatch(BaseModel):
    """A closed batch of activities, e.g. one user's lookback window."""

    activities: list[ActivityInput] = Field(
        default_factory=lambda: list[ActivityInput]()
    )
