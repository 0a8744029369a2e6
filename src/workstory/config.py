"""Environment-based configuration."""

from __future__ import annotations

import logging
import re
from datetime import timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings

from workstory.constants import (
    MIN_CLUSTER_SIZE,
    ClusterMethod,
    Confidence,
    TemporalBucket,
)

logger = logging.getLogger(__name__)

_OFFSET_RE = re.compile(
    r"^(?:UTC|GMT)(?:([+-])(\d{1,2})(?::?(\d{2}))?)?$", re.IGNORECASE
)


class Settings(BaseSettings):
    """Reads from .env file and environment variables."""

    # LLM Provider
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # Correlation model tiers (litellm provider/model names)
    quick_model: str = "openai/gpt-4o-mini"
    premium_model: str = "openai/gpt-4o"
    llm_timeout_seconds: int = 60
    correlation_confidence_threshold: float = (
        Confidence.CORRELATION_THRESHOLD
    )

    # Grouping
    grouping_method: ClusterMethod = ClusterMethod.REFERENCE
    temporal_bucket: TemporalBucket = TemporalBucket.DAY
    timezone: str = "UTC"
    min_cluster_size: int = MIN_CLUSTER_SIZE

    # Extraction
    extraction_max_concurrency: int = 8
    include_source_url: bool = True

    # Logging
    log_level: str = "INFO"

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, v: str) -> str:
        resolve_timezone(v)
        return v

    @field_validator("correlation_confidence_threshold")
    @classmethod
    def _validate_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(
                "correlation_confidence_threshold must be within [0, 1]"
            )
        return v

    @field_validator("min_cluster_size")
    @classmethod
    def _validate_min_cluster_size(cls, v: int) -> int:
        if v < 2:
            raise ValueError("min_cluster_size must be at least 2")
        return v

    @field_validator("extraction_max_concurrency")
    @classmethod
    def _validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError(
                "extraction_max_concurrency must be at least 1"
            )
        return v

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "",
        "extra": "ignore",
    }


def resolve_timezone(name: str) -> tzinfo:
    """Resolve an IANA zone name or a fixed ``UTC±HH[:MM]`` offset.

    Raises ValueError for anything else so a bad setting fails before
    any activity is bucketed.
    """
    m = _OFFSET_RE.match(name.strip())
    if m:
        sign, hours, minutes = m.groups()
        if sign is None:
            return timezone.utc
        offset = timedelta(hours=int(hours), minutes=int(minutes or 0))
        if offset >= timedelta(hours=24):
            raise ValueError(f"Timezone offset out of range: {name!r}")
        return timezone(-offset if sign == "-" else offset, name)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name!r}") from exc
