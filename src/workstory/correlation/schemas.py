"""Pydantic models for correlation input and output."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from workstory.constants import (
    CorrelationSource,
    CorrelationType,
    Impact,
    InferenceTier,
)
from workstory.extraction.schemas import ActivityNode


class AnalyzedActivity(BaseModel):
    """An activity as the correlation agent sees it."""

    model_config = ConfigDict(frozen=True)

    id: str
    source: str
    title: str
    description: str | None = None
    timestamp: datetime
    url: str | None = None
    refs: list[str] = Field(default_factory=lambda: list[str]())
    # The identifier other tools use to point at this activity
    # (e.g. the Jira key of a ticket).
    canonical_key: str | None = None
    importance: Impact = Impact.MEDIUM

    @field_validator("timestamp")
    @classmethod
    def _to_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)

    @classmethod
    def from_node(
        cls, node: ActivityNode, importance: Impact = Impact.MEDIUM
    ) -> AnalyzedActivity:
        a = node.activity
        return cls(
            id=node.id,
            source=a.source,
            title=a.title,
            description=a.description,
            timestamp=a.timestamp,
            url=a.source_url,
            refs=sorted(node.ref_values),
            canonical_key=a.source_id,
            importance=importance,
        )


class CorrelationEndpoint(BaseModel):
    """One side of a correlation."""

    tool: str
    id: str
    title: str = ""
    url: str | None = None

    @classmethod
    def of(cls, activity: AnalyzedActivity) -> CorrelationEndpoint:
        return cls(
            tool=activity.source,
            id=activity.id,
            title=activity.title,
            url=activity.url,
        )


class Correlation(BaseModel):
    """A detected relationship between two activities."""

    id: str
    type: CorrelationType = CorrelationType.GENERAL
    endpoint_a: CorrelationEndpoint
    endpoint_b: CorrelationEndpoint
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""
    impact: Impact = Impact.MEDIUM

    @property
    def pair(self) -> frozenset[str]:
        return frozenset((self.endpoint_a.id, self.endpoint_b.id))


class CorrelationResult(BaseModel):
    """Retained correlations for one batch and how they were obtained."""

    correlations: list[Correlation] = Field(
        default_factory=lambda: list[Correlation]()
    )
    avg_confidence: float = 0.0
    source: CorrelationSource = CorrelationSource.QUICK
    escalated: bool = False
    inference_calls: int = 0
    strong_correlations: int = 0
    insights: list[str] = Field(default_factory=lambda: list[str]())


@dataclass(frozen=True)
class TierOutcome:
    """Result of one inference-tier call: correlations or an error."""

    tier: InferenceTier
    correlations: list[Correlation] = field(
        default_factory=lambda: list[Correlation]()
    )
    insights: list[str] = field(default_factory=lambda: list[str]())
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def avg_confidence(self) -> float:
        if not self.correlations:
            return 0.0
        return sum(c.confidence for c in self.correlations) / len(
            self.correlations
        )
