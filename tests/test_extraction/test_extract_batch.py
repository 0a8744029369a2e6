"""Tests for concurrent batch extraction."""

from __future__ import annotations

import threading
from unittest.mock import patch

from workstory.extraction.extractor import RefExtractor, extract_batch


async def test_preserves_input_order(extractor, make_activity) -> None:
    activities = [
        make_activity(str(i), title=f"AUTH-{i} work") for i in range(20)
    ]
    nodes = await extract_batch(extractor, activities, max_concurrency=3)
    assert [n.id for n in nodes] == [a.activity_id for a in activities]
    assert [sorted(n.ref_values) for n in nodes] == [
        [f"AUTH-{i}"] for i in range(20)
    ]


async def test_respects_concurrency_limit(extractor, make_activity) -> None:
    running = 0
    peak = 0
    lock = threading.Lock()
    original = RefExtractor.build_node

    def _slow_build(self, activity, options=None):  # type: ignore[no-untyped-def]
        nonlocal running, peak
        with lock:
            running += 1
            peak = max(peak, running)
        try:
            threading.Event().wait(0.01)
            return original(self, activity, options)
        finally:
            with lock:
                running -= 1

    activities = [make_activity(str(i)) for i in range(10)]
    with patch.object(RefExtractor, "build_node", _slow_build):
        await extract_batch(extractor, activities, max_concurrency=2)
    assert peak <= 2


async def test_empty_batch(extractor) -> None:
    assert await extract_batch(extractor, []) == []


async def test_runs_off_the_event_loop(extractor, make_activity) -> None:
    loop_thread = threading.get_ident()
    seen: list[int] = []
    original = RefExtractor.build_node

    def _record(self, activity, options=None):  # type: ignore[no-untyped-def]
        seen.append(threading.get_ident())
        return original(self, activity, options)

    with patch.object(RefExtractor, "build_node", _record):
        await extract_batch(extractor, [make_activity("1")])
    assert seen and seen[0] != loop_thread
