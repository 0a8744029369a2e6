"""Data types produced by reference extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from workstory.constants import ConfidenceTier, ToolType
from workstory.ingestion.schemas import ActivityInput


@dataclass(frozen=True)
class ExtractedRef:
    """A normalized cross-tool reference found in one activity.

    ``normalized_value`` is the clustering join key.
    """

    normalized_value: str
    tool_type: ToolType
    confidence_tier: ConfidenceTier
    source_activity_id: str
    pattern_id: str


@dataclass(frozen=True)
class PatternMatch:
    """One regex hit with its location, for diagnostics."""

    ref: str
    pattern_id: str
    confidence: ConfidenceTier
    start: int
    end: int
    context: str
    raw_match: str


@dataclass(frozen=True)
class PatternAnalysis:
    """Per-pattern outcome of one extraction run."""

    pattern_id: str
    match_count: int
    no_match_reason: str | None = None  # "regex-no-match" | "error"
    near_misses: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExtractionOptions:
    """Filters and switches for a single extraction call."""

    pattern_ids: frozenset[str] | None = None
    tool_types: frozenset[ToolType] | None = None
    min_confidence: ConfidenceTier | None = None
    include_source_url: bool = True
    debug: bool = False


@dataclass(frozen=True)
class RefExtractionOutput:
    """Deduplicated refs, their representative matches, and analysis."""

    refs: tuple[ExtractedRef, ...] = ()
    matches: tuple[PatternMatch, ...] = ()
    pattern_analysis: tuple[PatternAnalysis, ...] = ()

    @property
    def ref_values(self) -> list[str]:
        return [r.normalized_value for r in self.refs]


@dataclass(frozen=True)
class ActivityNode:
    """An activity plus its resolved refs, valid for one pipeline run."""

    activity: ActivityInput
    refs: tuple[ExtractedRef, ...] = field(default=())

    @property
    def id(self) -> str:
        return self.activity.activity_id

    @property
    def timestamp(self) -> datetime:
        return self.activity.timestamp

    @property
    def source(self) -> str:
        return self.activity.source

    @property
    def ref_values(self) -> frozenset[str]:
        return frozenset(r.normalized_value for r in self.refs)
