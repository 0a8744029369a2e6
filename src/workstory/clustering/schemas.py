"""Cluster types and the helpers every grouping strategy shares."""

from __future__ import annotations

import hashlib
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime

from workstory.constants import ID_HEX_LENGTH, ClusterMethod, WarningCode
from workstory.diagnostics import ProcessorWarning
from workstory.extraction.schemas import ActivityNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClusterMetrics:
    activity_count: int
    tool_types: tuple[str, ...]  # distinct member sources, sorted
    earliest: datetime
    latest: datetime
    linking_refs: tuple[str, ...]  # refs held by 2+ members
    bucket_key: str | None = None


@dataclass(frozen=True)
class Cluster:
    """A group of activities believed to be about the same work."""

    cluster_id: str
    method: ClusterMethod
    member_activity_ids: tuple[str, ...]  # timestamp order, ties by id
    shared_refs: frozenset[str]
    confidence: float
    metrics: ClusterMetrics

    @property
    def size(self) -> int:
        return len(self.member_activity_ids)


@dataclass(frozen=True)
class ClusteringOutput:
    """Clusters for a batch plus the batch-level numbers behind them."""

    clusters: tuple[Cluster, ...]
    unclustered_activity_ids: tuple[str, ...]
    total_activities: int
    clustered_activities: int
    cluster_count: int  # clusters meeting the minimum size
    avg_cluster_size: float  # over clusters meeting the minimum size
    unique_refs: int
    warnings: tuple[ProcessorWarning, ...] = ()

    @property
    def unclustered_activities(self) -> int:
        return len(self.unclustered_activity_ids)


def make_cluster_id(method: ClusterMethod, member_ids: list[str]) -> str:
    """Stable id: hash of the method and the sorted member ids."""
    payload = f"{method}\n" + "\n".join(sorted(member_ids))
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return digest[:ID_HEX_LENGTH]


def build_cluster(
    method: ClusterMethod,
    members: list[ActivityNode],
    confidence: float,
    *,
    bucket_key: str | None = None,
) -> Cluster:
    ordered = sorted(members, key=lambda n: (n.timestamp, n.id))
    ids = [n.id for n in ordered]
    holders = Counter(v for n in ordered for v in n.ref_values)
    return Cluster(
        cluster_id=make_cluster_id(method, ids),
        method=method,
        member_activity_ids=tuple(ids),
        shared_refs=frozenset(holders),
        confidence=confidence,
        metrics=ClusterMetrics(
            activity_count=len(ordered),
            tool_types=tuple(sorted({n.source for n in ordered})),
            earliest=ordered[0].timestamp,
            latest=ordered[-1].timestamp,
            linking_refs=tuple(
                sorted(v for v, count in holders.items() if count >= 2)
            ),
            bucket_key=bucket_key,
        ),
    )


def order_clusters(clusters: list[Cluster]) -> list[Cluster]:
    """Earliest member first; ties by cluster id."""
    return sorted(clusters, key=lambda c: (c.metrics.earliest, c.cluster_id))


def dedupe_nodes(
    nodes: list[ActivityNode],
) -> tuple[list[ActivityNode], list[ProcessorWarning]]:
    """Drop repeated activity ids, keeping the first occurrence."""
    seen: set[str] = set()
    kept: list[ActivityNode] = []
    warnings: list[ProcessorWarning] = []
    for node in nodes:
        if node.id in seen:
            logger.warning("event=duplicate_activity id=%s", node.id)
            warnings.append(
                ProcessorWarning(
                    code=WarningCode.DUPLICATE_ACTIVITY,
                    message=f"Duplicate activity id {node.id!r} ignored",
                    context={"activity_id": node.id},
                )
            )
            continue
        seen.add(node.id)
        kept.append(node)
    return kept, warnings
