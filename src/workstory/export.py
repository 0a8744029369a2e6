"""JSON export of a pipeline run."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from workstory.clustering.schemas import Cluster
from workstory.diagnostics import ProcessorWarning
from workstory.extraction.schemas import ActivityNode
from workstory.pipeline import PipelineOutput


def export_json(output: PipelineOutput) -> str:
    """Serialize a run as an indented JSON document."""
    return json.dumps(
        pipeline_to_dict(output), indent=2, ensure_ascii=False
    )


def pipeline_to_dict(output: PipelineOutput) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "generated_at": datetime.now(UTC).isoformat(),
        "method": str(output.method),
        "activity_count": len(output.activities),
        "cluster_count": len(output.clusters),
        "activities": [_node_to_dict(n) for n in output.activities],
        "clusters": [_cluster_to_dict(c) for c in output.clusters],
        "correlations": (
            output.correlations.model_dump(mode="json")
            if output.correlations is not None
            else None
        ),
        "warnings": [_warning_to_dict(w) for w in output.warnings],
        "stages": [
            {
                "name": s.stage_name,
                "status": str(s.status),
                "duration_ms": round(s.duration_ms, 2),
                "items": s.items,
                "error": s.error,
                "reason": s.reason,
            }
            for s in output.stages
        ],
    }
    if output.clustering is not None:
        c = output.clustering
        payload["metrics"] = {
            "total_activities": c.total_activities,
            "clustered_activities": c.clustered_activities,
            "unclustered_activities": c.unclustered_activities,
            "cluster_count": c.cluster_count,
            "avg_cluster_size": round(c.avg_cluster_size, 2),
            "unique_refs": c.unique_refs,
        }
    return payload


def _node_to_dict(node: ActivityNode) -> dict[str, Any]:
    return {
        "id": node.id,
        "source": node.source,
        "title": node.activity.title,
        "timestamp": node.timestamp.isoformat(),
        "refs": [
            {
                "value": r.normalized_value,
                "tool_type": str(r.tool_type),
                "confidence": str(r.confidence_tier),
                "pattern_id": r.pattern_id,
            }
            for r in node.refs
        ],
    }


def _cluster_to_dict(cluster: Cluster) -> dict[str, Any]:
    m = cluster.metrics
    return {
        "cluster_id": cluster.cluster_id,
        "method": str(cluster.method),
        "member_activity_ids": list(cluster.member_activity_ids),
        "shared_refs": sorted(cluster.shared_refs),
        "confidence": cluster.confidence,
        "metrics": {
            "activity_count": m.activity_count,
            "tool_types": list(m.tool_types),
            "earliest": m.earliest.isoformat(),
            "latest": m.latest.isoformat(),
            "linking_refs": list(m.linking_refs),
            "bucket_key": m.bucket_key,
        },
    }


def _warning_to_dict(warning: ProcessorWarning) -> dict[str, Any]:
    return {
        "code": str(warning.code),
        "message": warning.message,
        "context": warning.context,
    }
