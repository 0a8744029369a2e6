"""Tests for Settings validators and timezone resolution."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from workstory.config import Settings, resolve_timezone
from workstory.constants import ClusterMethod, Confidence, TemporalBucket


class TestDefaults:
    def test_defaults(self) -> None:
        s = Settings()
        assert s.grouping_method == ClusterMethod.REFERENCE
        assert s.temporal_bucket == TemporalBucket.DAY
        assert s.timezone == "UTC"
        assert s.correlation_confidence_threshold == (
            Confidence.CORRELATION_THRESHOLD
        )

    def test_environment_overrides(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GROUPING_METHOD", "temporal")
        monkeypatch.setenv("TEMPORAL_BUCKET", "week")
        monkeypatch.setenv("QUICK_MODEL", "anthropic/claude-haiku")
        s = Settings()
        assert s.grouping_method == ClusterMethod.TEMPORAL
        assert s.temporal_bucket == TemporalBucket.WEEK
        assert s.quick_model == "anthropic/claude-haiku"


class TestValidators:
    def test_bad_timezone_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown timezone"):
            Settings(timezone="Middle/Earth")

    @pytest.mark.parametrize("value", [-0.1, 1.01])
    def test_threshold_out_of_range(self, value: float) -> None:
        with pytest.raises(ValidationError, match="within \\[0, 1\\]"):
            Settings(correlation_confidence_threshold=value)

    def test_threshold_bounds_accepted(self) -> None:
        assert Settings(
            correlation_confidence_threshold=1.0
        ).correlation_confidence_threshold == 1.0

    def test_concurrency_must_be_positive(self) -> None:
        with pytest.raises(ValidationError, match="at least 1"):
            Settings(extraction_max_concurrency=0)

    def test_min_cluster_size_at_least_two(self) -> None:
        assert Settings().min_cluster_size == 2
        with pytest.raises(ValidationError, match="at least 2"):
            Settings(min_cluster_size=1)


class TestResolveTimezone:
    @pytest.mark.parametrize("name", ["UTC", "utc", "GMT"])
    def test_plain_utc(self, name: str) -> None:
        assert resolve_timezone(name) is UTC

    @pytest.mark.parametrize(
        ("name", "hours", "minutes"),
        [
            ("UTC-5", -5, 0),
            ("UTC+05:30", 5, 30),
            ("GMT+0930", 9, 30),
        ],
    )
    def test_fixed_offsets(self, name: str, hours: int, minutes: int) -> None:
        tz = resolve_timezone(name)
        sign = -1 if hours < 0 else 1
        expected = timedelta(hours=hours, minutes=sign * minutes)
        assert tz.utcoffset(datetime(2024, 1, 1)) == expected

    def test_iana_zone(self) -> None:
        assert resolve_timezone("Europe/Berlin") == ZoneInfo("Europe/Berlin")

    @pytest.mark.parametrize("name", ["UTC+24", "Nowhere/Land", "+5"])
    def test_rejected(self, name: str) -> None:
        with pytest.raises(ValueError):
            resolve_timezone(name)
