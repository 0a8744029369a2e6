"""Reference clustering: connected components over shared refs.

Two activities are connected when they share a normalized ref; a
cluster is a connected component, so linkage is transitive (A-B via
one ref and B-C via another puts A, B and C together). Activities
with no refs come out as singletons.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict

from workstory.clustering.schemas import (
    Cluster,
    ClusteringOutput,
    build_cluster,
    dedupe_nodes,
    order_clusters,
)
from workstory.clustering.union_find import DisjointSet
from workstory.constants import (
    MIN_CLUSTER_SIZE,
    ClusterMethod,
    Confidence,
    ConfidenceTier,
    WarningCode,
)
from workstory.diagnostics import ProcessorWarning
from workstory.extraction.schemas import ActivityNode

logger = logging.getLogger(__name__)


def _confidence(members: list[ActivityNode]) -> float:
    if len(members) == 1:
        return Confidence.SINGLETON_CLUSTER
    holders = Counter(v for n in members for v in n.ref_values)
    linking = {v for v, count in holders.items() if count >= 2}
    high_link = any(
        ref.normalized_value in linking
        and ref.confidence_tier == ConfidenceTier.HIGH
        for node in members
        for ref in node.refs
    )
    if high_link:
        return Confidence.HIGH_TIER_LINK
    return Confidence.MEDIUM_TIER_LINK


def cluster_activities(
    nodes: list[ActivityNode], *, min_cluster_size: int = MIN_CLUSTER_SIZE
) -> ClusteringOutput:
    """Partition ``nodes`` into reference clusters with batch metrics.

    Runs in O(N + R) for N activities and R ref occurrences. Every
    input activity (after dropping repeated ids) lands in exactly one
    cluster. ``min_cluster_size`` only decides which clusters count as
    clustered in the metrics; smaller ones are reported as unclustered
    but still returned.
    """
    if min_cluster_size < 2:
        raise ValueError(
            f"min_cluster_size must be at least 2, got {min_cluster_size}"
        )
    unique, warnings = dedupe_nodes(nodes)
    by_id = {n.id: n for n in unique}

    index: dict[str, list[str]] = defaultdict(list)
    for node in unique:
        for value in node.ref_values:
            index[value].append(node.id)

    forest = DisjointSet(by_id)
    for holders in index.values():
        first = holders[0]
        for other in holders[1:]:
            forest.union(first, other)

    clusters: list[Cluster] = []
    for group in forest.groups():
        members = [by_id[i] for i in group]
        clusters.append(
            build_cluster(
                ClusterMethod.REFERENCE, members, _confidence(members)
            )
        )
    clusters = order_clusters(clusters)
    for c in clusters:
        logger.debug(
            "event=component size=%d meets_min_size=%s",
            c.size,
            c.size >= min_cluster_size,
        )

    multi = [c for c in clusters if c.size >= min_cluster_size]
    unclustered = tuple(
        aid
        for c in clusters
        if c.size < min_cluster_size
        for aid in c.member_activity_ids
    )
    without_refs = [n.id for n in unique if not n.refs]
    if without_refs:
        warnings.append(
            ProcessorWarning(
                code=WarningCode.ACTIVITIES_WITHOUT_REFS,
                message=(
                    f"{len(without_refs)} activities have no references"
                ),
                context={"activity_ids": without_refs},
            )
        )

    logger.info(
        "event=reference_clustering_complete activities=%d clusters=%d "
        "multi_member=%d unclustered=%d refs=%d",
        len(unique),
        len(clusters),
        len(multi),
        len(unclustered),
        len(index),
    )

    return ClusteringOutput(
        clusters=tuple(clusters),
        unclustered_activity_ids=unclustered,
        total_activities=len(unique),
        clustered_activities=sum(c.size for c in multi),
        cluster_count=len(multi),
        avg_cluster_size=(
            sum(c.size for c in multi) / len(multi) if multi else 0.0
        ),
        unique_refs=len(index),
        warnings=tuple(warnings),
    )


def build_reference_clusters(nodes: list[ActivityNode]) -> list[Cluster]:
    """Connected components over shared refs, singletons included."""
    return list(cluster_activities(nodes).clusters)
