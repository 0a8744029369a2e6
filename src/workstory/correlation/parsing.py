"""Parse model output into validated correlations."""

from __future__ import annotations

import json
import logging
from typing import Any, cast

from workstory.constants import CorrelationType, Impact
from workstory.correlation.schemas import (
    AnalyzedActivity,
    Correlation,
    CorrelationEndpoint,
)
from workstory.resilience.errors import MalformedOutputError

logger = logging.getLogger(__name__)

# Older prompt vocabulary still produced by some models.
_TYPE_ALIASES = {"pr_to_jira": CorrelationType.REF_BASED}


def _coerce_type(value: Any) -> CorrelationType:
    text = str(value or "").strip().lower()
    if text in _TYPE_ALIASES:
        return _TYPE_ALIASES[text]
    try:
        return CorrelationType(text)
    except ValueError:
        return CorrelationType.GENERAL


def _coerce_impact(value: Any) -> Impact:
    try:
        return Impact(str(value or "").strip().lower())
    except ValueError:
        return Impact.MEDIUM


def _endpoint_id(raw: Any) -> str | None:
    if isinstance(raw, dict):
        value = cast(dict[str, Any], raw).get("id")
        return str(value) if value is not None else None
    if isinstance(raw, str):
        return raw
    return None


def parse_correlation_output(
    raw_json: str, activities: dict[str, AnalyzedActivity]
) -> tuple[list[Correlation], list[str]]:
    """Return (correlations, insights) from a model response.

    Raises MalformedOutputError when the response is not a JSON object
    with a ``correlations`` list. Individual entries that name unknown
    activities, pair an activity with itself, or carry a confidence
    outside [0, 1] are dropped; the first entry per pair wins.
    """
    try:
        data: Any = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        raise MalformedOutputError(
            f"response is not JSON: {exc.msg}"
        ) from exc
    if not isinstance(data, dict):
        raise MalformedOutputError("response is not a JSON object")
    body = cast(dict[str, Any], data)
    items = body.get("correlations")
    if not isinstance(items, list):
        raise MalformedOutputError("response has no 'correlations' list")

    correlations: list[Correlation] = []
    seen_pairs: set[frozenset[str]] = set()
    dropped = 0
    for raw_item in cast(list[Any], items):
        if not isinstance(raw_item, dict):
            dropped += 1
            continue
        item = cast(dict[str, Any], raw_item)
        a_id = _endpoint_id(item.get("source1"))
        b_id = _endpoint_id(item.get("source2"))
        if (
            a_id not in activities
            or b_id not in activities
            or a_id == b_id
        ):
            dropped += 1
            continue
        try:
            confidence = float(item.get("confidence"))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            dropped += 1
            continue
        if not 0.0 <= confidence <= 1.0:
            dropped += 1
            continue
        pair = frozenset((a_id, b_id))
        if pair in seen_pairs:
            continue
        seen_pairs.add(pair)
        correlations.append(
            Correlation(
                id=str(item.get("id") or f"corr-{len(correlations) + 1}"),
                type=_coerce_type(item.get("type")),
                endpoint_a=CorrelationEndpoint.of(activities[a_id]),
                endpoint_b=CorrelationEndpoint.of(activities[b_id]),
                confidence=confidence,
                reasoning=str(item.get("reasoning", "")),
                impact=_coerce_impact(item.get("impact")),
            )
        )

    if dropped:
        logger.info("event=correlations_dropped count=%d", dropped)

    raw_insights = body.get("insights", [])
    insights = (
        [str(i) for i in cast(list[Any], raw_insights) if i]
        if isinstance(raw_insights, list)
        else []
    )
    return correlations, insights
