"""Shared test fixtures: activity factories and a default registry."""

import os

# Force demo API keys for all tests: no real LLM calls.
os.environ["ANTHROPIC_API_KEY"] = "for-demo-purposes-only"
os.environ["OPENAI_API_KEY"] = "for-demo-purposes-only"

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from workstory.extraction.extractor import RefExtractor
from workstory.extraction.schemas import ActivityNode
from workstory.ingestion.schemas import ActivityInput
from workstory.patterns.registry import PatternRegistry, build_default_registry

ActivityFactory = Callable[..., ActivityInput]

BASE_TIME = datetime(2024, 3, 4, 9, 0, tzinfo=UTC)


def _make_activity(
    source_id: str,
    *,
    source: str = "github",
    title: str = "",
    description: str | None = None,
    source_url: str | None = None,
    timestamp: datetime = BASE_TIME,
    raw_data: dict[str, Any] | None = None,
) -> ActivityInput:
    return ActivityInput(
        source=source,
        source_id=source_id,
        title=title or f"Activity {source_id}",
        description=description,
        source_url=source_url,
        timestamp=timestamp,
        raw_data=raw_data,
    )


@pytest.fixture
def make_activity() -> ActivityFactory:
    return _make_activity


@pytest.fixture(scope="session")
def registry() -> PatternRegistry:
    return build_default_registry()


@pytest.fixture
def extractor(registry: PatternRegistry) -> RefExtractor:
    return RefExtractor(registry)


@pytest.fixture
def make_node(
    extractor: RefExtractor,
) -> Callable[..., ActivityNode]:
    """Build an ActivityNode with refs extracted by the default registry."""

    def _factory(source_id: str, **kwargs: Any) -> ActivityNode:
        return extractor.build_node(_make_activity(source_id, **kwargs))

    return _factory
