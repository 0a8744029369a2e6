"""Temporal grouping: one cluster per calendar bucket.

Timestamps are stored in UTC and converted into the target timezone
before the bucket key is computed, so an evening event west of UTC
lands on its local day rather than the next UTC day.
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo

from workstory.clustering.schemas import (
    Cluster,
    build_cluster,
    dedupe_nodes,
    order_clusters,
)
from workstory.config import resolve_timezone
from workstory.constants import ClusterMethod, Confidence, TemporalBucket
from workstory.extraction.schemas import ActivityNode

logger = logging.getLogger(__name__)


def bucket_key(ts: datetime, bucket: TemporalBucket, tz: tzinfo) -> str:
    """``YYYY-MM-DD`` for days, ISO ``YYYY-Www`` for weeks."""
    local = ts.astimezone(tz)
    if bucket == TemporalBucket.WEEK:
        year, week, _ = local.isocalendar()
        return f"{year}-W{week:02d}"
    return local.strftime("%Y-%m-%d")


def build_temporal_clusters(
    nodes: list[ActivityNode],
    bucket: TemporalBucket = TemporalBucket.DAY,
    timezone: str = "UTC",
) -> list[Cluster]:
    """Group every activity into exactly one bucket cluster.

    Raises ValueError for an unknown timezone before any bucketing.
    """
    tz = resolve_timezone(timezone)
    unique, _ = dedupe_nodes(nodes)

    buckets: dict[str, list[ActivityNode]] = {}
    for node in unique:
        key = bucket_key(node.timestamp, TemporalBucket(bucket), tz)
        buckets.setdefault(key, []).append(node)

    clusters = order_clusters(
        [
            build_cluster(
                ClusterMethod.TEMPORAL,
                members,
                Confidence.TEMPORAL_BUCKET,
                bucket_key=key,
            )
            for key, members in buckets.items()
        ]
    )
    logger.info(
        "event=temporal_clustering_complete activities=%d clusters=%d "
        "bucket=%s timezone=%s",
        len(unique),
        len(clusters),
        bucket,
        timezone,
    )
    return clusters
