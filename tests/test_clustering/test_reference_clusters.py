"""Tests for reference clustering over shared refs."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import pytest

from workstory.clustering.reference import (
    build_reference_clusters,
    cluster_activities,
)
from workstory.clustering.schemas import make_cluster_id
from workstory.constants import ClusterMethod, Confidence, WarningCode

T0 = datetime(2024, 3, 4, 9, 0, tzinfo=UTC)


def _by_member(clusters):  # type: ignore[no-untyped-def]
    return {cid: c for c in clusters for cid in c.member_activity_ids}


class TestSharedRefs:
    def test_two_activities_sharing_a_ticket(self, make_node) -> None:
        nodes = [
            make_node("1", description="See AUTH-123 for details"),
            make_node(
                "AUTH-123",
                source="jira",
                description="Fixes AUTH-123",
                timestamp=T0 + timedelta(hours=1),
            ),
        ]
        clusters = build_reference_clusters(nodes)
        assert len(clusters) == 1
        cluster = clusters[0]
        assert cluster.size == 2
        assert cluster.shared_refs == frozenset({"AUTH-123"})
        assert cluster.method == ClusterMethod.REFERENCE
        assert cluster.confidence == Confidence.HIGH_TIER_LINK

    def test_linkage_is_transitive(self, make_node) -> None:
        nodes = [
            make_node("a", title="AUTH-1 spec"),
            make_node("b", title="AUTH-1 via acme/api#2"),
            make_node("c", title="Review acme/api#2"),
            make_node("d", title="Unrelated CORE-9"),
        ]
        clusters = build_reference_clusters(nodes)
        members = _by_member(clusters)
        assert members["github:a"] is members["github:c"]
        assert members["github:a"].size == 3
        assert members["github:d"].size == 1

    def test_medium_only_link_gets_lower_confidence(self, make_node) -> None:
        nodes = [
            make_node("a", title="Closes #4"),
            make_node("b", title="Follow-up for #4"),
        ]
        (cluster,) = build_reference_clusters(nodes)
        assert cluster.shared_refs == frozenset({"local#4"})
        assert cluster.confidence == Confidence.MEDIUM_TIER_LINK

    def test_shared_refs_is_union_and_linking_refs_are_common(
        self, make_node
    ) -> None:
        nodes = [
            make_node("a", title="AUTH-1 and CORE-2"),
            make_node("b", title="AUTH-1 only"),
        ]
        (cluster,) = build_reference_clusters(nodes)
        assert cluster.shared_refs == frozenset({"AUTH-1", "CORE-2"})
        assert cluster.metrics.linking_refs == ("AUTH-1",)


class TestPartition:
    def test_every_activity_in_exactly_one_cluster(self, make_node) -> None:
        nodes = [
            make_node("1", title="AUTH-1"),
            make_node("2", title="AUTH-1 and AUTH-2"),
            make_node("3", title="AUTH-2"),
            make_node("4", title="no refs here"),
            make_node("5", title="CORE-7"),
            make_node("6", title="meeting notes"),
        ]
        clusters = build_reference_clusters(nodes)
        seen = [i for c in clusters for i in c.member_activity_ids]
        assert sorted(seen) == sorted(n.id for n in nodes)
        assert len(seen) == len(set(seen))

    def test_zero_ref_activity_is_singleton(self, make_node) -> None:
        nodes = [
            make_node("1", title="AUTH-1"),
            make_node("2", title="AUTH-1 again"),
            make_node("3", title="Team lunch"),
        ]
        members = _by_member(build_reference_clusters(nodes))
        lonely = members["github:3"]
        assert lonely.size == 1
        assert lonely.shared_refs == frozenset()
        assert lonely.confidence == Confidence.SINGLETON_CLUSTER

    def test_empty_batch(self) -> None:
        output = cluster_activities([])
        assert output.clusters == ()
        assert output.total_activities == 0
        assert output.avg_cluster_size == 0.0


class TestOrderingAndIds:
    def test_members_ordered_by_timestamp_then_id(self, make_node) -> None:
        nodes = [
            make_node("z", title="AUTH-1", timestamp=T0),
            make_node("b", title="AUTH-1", timestamp=T0 + timedelta(hours=2)),
            make_node("a", title="AUTH-1", timestamp=T0),
        ]
        (cluster,) = build_reference_clusters(nodes)
        assert cluster.member_activity_ids == (
            "github:a",
            "github:z",
            "github:b",
        )
        assert cluster.metrics.earliest == T0
        assert cluster.metrics.latest == T0 + timedelta(hours=2)

    def test_clusters_ordered_by_earliest_member(self, make_node) -> None:
        nodes = [
            make_node("late", title="CORE-1", timestamp=T0 + timedelta(days=1)),
            make_node("early", title="AUTH-1", timestamp=T0),
        ]
        clusters = build_reference_clusters(nodes)
        assert [c.member_activity_ids[0] for c in clusters] == [
            "github:early",
            "github:late",
        ]

    def test_cluster_id_is_stable_across_input_order(self, make_node) -> None:
        a = make_node("a", title="AUTH-1")
        b = make_node("b", title="AUTH-1")
        (first,) = build_reference_clusters([a, b])
        (second,) = build_reference_clusters([b, a])
        assert first.cluster_id == second.cluster_id
        assert first.cluster_id == make_cluster_id(
            ClusterMethod.REFERENCE, ["github:b", "github:a"]
        )
        assert len(first.cluster_id) == 12

    def test_cluster_id_depends_on_method(self) -> None:
        ids = ["github:a"]
        assert make_cluster_id(
            ClusterMethod.REFERENCE, ids
        ) != make_cluster_id(ClusterMethod.TEMPORAL, ids)

    def test_idempotent(self, make_node) -> None:
        nodes = [
            make_node("1", title="AUTH-1"),
            make_node("2", title="AUTH-1 acme/api#3"),
            make_node("3", title="nothing"),
        ]
        assert build_reference_clusters(nodes) == build_reference_clusters(
            nodes
        )


class TestClusteringOutput:
    def test_batch_metrics(self, make_node) -> None:
        nodes = [
            make_node("1", title="AUTH-1"),
            make_node("2", title="AUTH-1"),
            make_node("3", title="CORE-2"),
            make_node("4", title="CORE-2 acme/api#9"),
            make_node("5", title="lunch"),
        ]
        output = cluster_activities(nodes)
        assert output.total_activities == 5
        assert output.cluster_count == 2
        assert output.clustered_activities == 4
        assert output.unclustered_activity_ids == ("github:5",)
        assert output.unclustered_activities == 1
        assert output.avg_cluster_size == 2.0
        assert output.unique_refs == 3

    def test_min_cluster_size_moves_small_groups_to_unclustered(
        self, make_node, caplog: pytest.LogCaptureFixture
    ) -> None:
        nodes = [
            make_node("1", title="AUTH-1"),
            make_node("2", title="AUTH-1"),
            make_node("3", title="AUTH-1 again"),
            make_node("4", title="CORE-2"),
            make_node("5", title="CORE-2"),
            make_node("6", title="lunch"),
        ]
        with caplog.at_level(logging.DEBUG, logger="workstory"):
            output = cluster_activities(nodes, min_cluster_size=3)
        # the partition itself is unchanged
        assert sorted(c.size for c in output.clusters) == [1, 2, 3]
        assert output.cluster_count == 1
        assert output.clustered_activities == 3
        assert output.avg_cluster_size == 3.0
        assert sorted(output.unclustered_activity_ids) == [
            "github:4",
            "github:5",
            "github:6",
        ]
        assert "event=component size=2 meets_min_size=False" in caplog.text
        assert "event=component size=3 meets_min_size=True" in caplog.text

    @pytest.mark.parametrize("size", [0, 1])
    def test_min_cluster_size_below_two_rejected(
        self, make_node, size: int
    ) -> None:
        with pytest.raises(ValueError, match="min_cluster_size"):
            cluster_activities([make_node("1")], min_cluster_size=size)

    def test_warns_about_activities_without_refs(self, make_node) -> None:
        output = cluster_activities(
            [make_node("1", title="AUTH-1"), make_node("2", title="lunch")]
        )
        (warning,) = output.warnings
        assert warning.code == WarningCode.ACTIVITIES_WITHOUT_REFS
        assert warning.context["activity_ids"] == ["github:2"]

    def test_duplicate_ids_keep_first(
        self, make_node, caplog: pytest.LogCaptureFixture
    ) -> None:
        first = make_node("1", title="AUTH-1")
        dupe = make_node("1", title="CORE-5")
        with caplog.at_level(logging.WARNING):
            output = cluster_activities([first, dupe])
        assert output.total_activities == 1
        (cluster,) = output.clusters
        assert cluster.shared_refs == frozenset({"AUTH-1"})
        assert WarningCode.DUPLICATE_ACTIVITY in [
            w.code for w in output.warnings
        ]
        assert "event=duplicate_activity" in caplog.text

    def test_tool_types_metric(self, make_node) -> None:
        nodes = [
            make_node("1", title="AUTH-1"),
            make_node("AUTH-1", source="jira", title="AUTH-1 login"),
        ]
        (cluster,) = cluster_activities(nodes).clusters
        assert cluster.metrics.tool_types == ("github", "jira")
        assert cluster.metrics.activity_count == 2
