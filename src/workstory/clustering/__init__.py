"""Activity clustering: reference components and temporal buckets."""

from workstory.clustering.reference import (
    build_reference_clusters,
    cluster_activities,
)
from workstory.clustering.schemas import (
    Cluster,
    ClusteringOutput,
    ClusterMetrics,
    make_cluster_id,
)
from workstory.clustering.temporal import bucket_key, build_temporal_clusters
from workstory.clustering.union_find import DisjointSet

__all__ = [
    "Cluster",
    "ClusterMetrics",
    "ClusteringOutput",
    "DisjointSet",
    "bucket_key",
    "build_reference_clusters",
    "build_temporal_clusters",
    "cluster_activities",
    "make_cluster_id",
]
