"""Load activity batches exported by tool transformers."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, cast

from workstory.ingestion.schemas import ActivityBatch, ActivityInput

logger = logging.getLogger(__name__)


def load_activities(path: Path) -> list[ActivityInput]:
    """Read a JSON file holding a list of activities.

    Accepts either a bare JSON array or ``{"activities": [...]}``.
    Malformed files raise (the caller decides how to report it).
    """
    data: Any = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = cast(dict[str, Any], data).get("activities", [])
    batch = ActivityBatch.model_validate({"activities": data})
    logger.info(
        "event=activities_loaded path=%s count=%d",
        path,
        len(batch.activities),
    )
    return batch.activities


def filter_by_date_range(
    activities: list[ActivityInput],
    start: datetime | None,
    end: datetime | None,
) -> list[ActivityInput]:
    """Keep activities inside [start, end]; either bound may be open."""
    kept = [
        a
        for a in activities
        if (start is None or a.timestamp >= start)
        and (end is None or a.timestamp <= end)
    ]
    return kept
