"""Story pipeline: extract refs, group activities, detect correlations.

One ``run`` covers one closed batch. Stages are typed and isolated: a
failing stage is reported in ``PipelineOutput.stages`` and the stages
that depend on it are skipped, while configuration problems (bad
registry, bad timezone) raise before any activity is processed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from workstory.clustering.reference import cluster_activities
from workstory.clustering.schemas import Cluster, ClusteringOutput
from workstory.clustering.temporal import build_temporal_clusters
from workstory.config import Settings, resolve_timezone
from workstory.constants import (
    ClusterMethod,
    StageOutcome,
    TemporalBucket,
    WarningCode,
)
from workstory.correlation.agent import CorrelationAgent
from workstory.correlation.schemas import AnalyzedActivity, CorrelationResult
from workstory.diagnostics import ProcessorWarning
from workstory.extraction.extractor import RefExtractor, extract_batch
from workstory.extraction.schemas import ActivityNode, ExtractionOptions
from workstory.ingestion.loader import filter_by_date_range
from workstory.ingestion.schemas import ActivityInput
from workstory.patterns.registry import PatternRegistry, build_default_registry

logger = logging.getLogger(__name__)

TInput = TypeVar("TInput")
TOutput = TypeVar("TOutput")


@dataclass(frozen=True)
class StageResult(Generic[TOutput]):
    """What one stage of a run did; rendered by the CLI and the export."""

    stage_name: str
    status: StageOutcome
    output: TOutput | None = None
    duration_ms: float = 0.0
    items: int | None = None  # activities, clusters or correlations out
    error: str | None = None
    reason: str | None = None  # set for skipped stages


@dataclass
class PipelineStage(Generic[TInput, TOutput]):
    """One step of a story run.

    ``run`` never raises: an exception inside ``execute`` becomes a
    FAILED result so the caller can decide which later stages to skip.
    """

    name: str
    execute: Callable[[TInput], Awaitable[TOutput]]
    count: Callable[[TOutput], int] | None = None

    async def run(self, input_data: TInput) -> StageResult[TOutput]:
        start = time.monotonic()
        try:
            output = await self.execute(input_data)
        except Exception as exc:
            logger.warning(
                "event=stage_failed stage=%s error=%s",
                self.name,
                exc,
                exc_info=True,
            )
            return StageResult(
                stage_name=self.name,
                status=StageOutcome.FAILED,
                duration_ms=_ms_since(start),
                error=str(exc),
            )
        items = self.count(output) if self.count is not None else None
        result = StageResult(
            stage_name=self.name,
            status=StageOutcome.COMPLETED,
            output=output,
            duration_ms=_ms_since(start),
            items=items,
        )
        logger.info(
            "event=stage_complete stage=%s duration_ms=%.1f items=%s",
            self.name,
            result.duration_ms,
            items,
        )
        return result

    def skip(self, reason: str) -> StageResult[TOutput]:
        logger.info(
            "event=stage_skipped stage=%s reason=%s", self.name, reason
        )
        return StageResult(
            stage_name=self.name, status=StageOutcome.SKIPPED, reason=reason
        )


def _ms_since(start: float) -> float:
    return (time.monotonic() - start) * 1000


@dataclass
class PipelineOutput:
    """Everything one pipeline run produced."""

    method: ClusterMethod
    activities: list[ActivityNode] = field(
        default_factory=lambda: list[ActivityNode]()
    )
    clusters: list[Cluster] = field(default_factory=lambda: list[Cluster]())
    clustering: ClusteringOutput | None = None
    correlations: CorrelationResult | None = None
    warnings: list[ProcessorWarning] = field(
        default_factory=lambda: list[ProcessorWarning]()
    )
    stages: list[StageResult[Any]] = field(
        default_factory=lambda: list[StageResult[Any]]()
    )

    @property
    def succeeded(self) -> bool:
        return all(s.status != StageOutcome.FAILED for s in self.stages)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class StoryPipeline:
    """Composes extraction, grouping and correlation over one batch."""

    def __init__(
        self,
        registry: PatternRegistry | None = None,
        settings: Settings | None = None,
        correlation_agent: CorrelationAgent | None = None,
        options: ExtractionOptions | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._extractor = RefExtractor(registry or build_default_registry())
        self._agent = correlation_agent
        self._options = options or ExtractionOptions(
            include_source_url=self._settings.include_source_url
        )

    async def run(
        self,
        activities: list[ActivityInput],
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        method: ClusterMethod | None = None,
        bucket: TemporalBucket | None = None,
        timezone: str | None = None,
    ) -> PipelineOutput:
        method = ClusterMethod(method or self._settings.grouping_method)
        bucket = TemporalBucket(bucket or self._settings.temporal_bucket)
        tz_name = timezone or self._settings.timezone
        if method == ClusterMethod.TEMPORAL:
            resolve_timezone(tz_name)

        out = PipelineOutput(method=method)

        batch = filter_by_date_range(activities, _as_utc(start), _as_utc(end))
        if len(batch) != len(activities):
            removed = len(activities) - len(batch)
            out.warnings.append(
                ProcessorWarning(
                    code=WarningCode.DATE_FILTERED,
                    message=f"{removed} activities outside the date range",
                    context={"removed": removed, "kept": len(batch)},
                )
            )

        async def _extract(items: list[ActivityInput]) -> list[ActivityNode]:
            return await extract_batch(
                self._extractor,
                items,
                max_concurrency=self._settings.extraction_max_concurrency,
                options=self._options,
            )

        async def _group(nodes: list[ActivityNode]) -> list[Cluster]:
            if method == ClusterMethod.TEMPORAL:
                return build_temporal_clusters(nodes, bucket, tz_name)
            out.clustering = cluster_activities(
                nodes, min_cluster_size=self._settings.min_cluster_size
            )
            out.warnings.extend(out.clustering.warnings)
            return list(out.clustering.clusters)

        async def _correlate(
            job: tuple[CorrelationAgent, list[ActivityNode]],
        ) -> CorrelationResult:
            agent, nodes = job
            analyzed = [AnalyzedActivity.from_node(n) for n in nodes]
            return await agent.detect_correlations(analyzed)

        extract = PipelineStage("extract_refs", _extract, count=len)
        group = PipelineStage("group_activities", _group, count=len)
        correlate = PipelineStage(
            "detect_correlations",
            _correlate,
            count=lambda r: len(r.correlations),
        )

        extracted = await extract.run(batch)
        out.stages.append(extracted)
        if extracted.output is None:
            out.stages.append(group.skip("extract_refs failed"))
            out.stages.append(correlate.skip("extract_refs failed"))
            return out
        out.activities = extracted.output

        grouped = await group.run(out.activities)
        out.stages.append(grouped)
        out.clusters = grouped.output or []

        if self._agent is None:
            out.stages.append(correlate.skip("no correlation agent"))
        else:
            correlated = await correlate.run((self._agent, out.activities))
            out.stages.append(correlated)
            out.correlations = correlated.output

        logger.info(
            "event=pipeline_complete activities=%d clusters=%d method=%s "
            "correlations=%d",
            len(out.activities),
            len(out.clusters),
            method,
            len(out.correlations.correlations) if out.correlations else 0,
        )
        return out
