"""Activity ingestion: uniform records handed over by tool transformers."""

from workstory.ingestion.loader import filter_by_date_range, load_activities
from workstory.ingestion.schemas import ActivityBatch, ActivityInput

__all__ = [
    "ActivityBatch",
    "ActivityInput",
    "filter_by_date_range",
    "load_activities",
]
