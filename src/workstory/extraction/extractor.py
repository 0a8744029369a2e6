"""Reference extraction: run the active patterns over activity text.

The searched text is the title, description, source URL and the
JSON-serialized raw data of one activity, joined by newlines. Every
selected pattern runs exhaustively over it; hits are deduplicated by
normalized value so that the higher tier wins and, on a tie, the
lexicographically smaller pattern id wins. The outcome never depends
on the order patterns were registered in.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from collections.abc import Iterable, Sequence
from typing import Any

from workstory.constants import (
    DEBUG_TEXT_PREVIEW_CHARS,
    ERROR_TRUNCATION_CHARS,
    MATCH_CONTEXT_RADIUS,
    NEAR_MISS_LIMIT,
    TIER_RANK,
    ErrorCode,
    ToolType,
    WarningCode,
)
from workstory.diagnostics import (
    ProcessorDiagnostics,
    ProcessorError,
    ProcessorResult,
    ProcessorWarning,
)
from workstory.extraction.schemas import (
    ActivityNode,
    ExtractedRef,
    ExtractionOptions,
    PatternAnalysis,
    PatternMatch,
    RefExtractionOutput,
)
from workstory.ingestion.schemas import ActivityInput
from workstory.patterns.base import RawMatch, RefPattern
from workstory.patterns.registry import PatternRegistry

logger = logging.getLogger(__name__)

# Loose shapes that hint at a reference a pattern narrowly missed
# (lowercase ticket keys, repo URLs without a number, bare domains).
_NEAR_MISS_HINTS: dict[ToolType, re.Pattern[str]] = {
    ToolType.JIRA: re.compile(r"\b[A-Za-z][A-Za-z0-9]{0,12}-\d+\b"),
    ToolType.GITHUB: re.compile(r"github\.com/[^\s\"']+|#\w+"),
    ToolType.CONFLUENCE: re.compile(r"[\w.-]*atlassian\.net/[^\s\"']*"),
    ToolType.GOOGLE: re.compile(
        r"(?:docs|drive|meet|calendar)\.google\.com/[^\s\"']*"
    ),
    ToolType.FIGMA: re.compile(r"figma\.com/[^\s\"']*"),
    ToolType.SLACK: re.compile(r"[\w.-]*slack\.com/[^\s\"']*"),
}

_DEFAULT_OPTIONS = ExtractionOptions()


def _context(text: str, start: int, end: int) -> str:
    lo = max(0, start - MATCH_CONTEXT_RADIUS)
    hi = min(len(text), end + MATCH_CONTEXT_RADIUS)
    return text[lo:hi]


def _near_misses(pattern: RefPattern, text: str) -> tuple[str, ...]:
    hint = _NEAR_MISS_HINTS.get(pattern.tool_type)
    if hint is None:
        return ()
    found = dict.fromkeys(m.group(0) for m in hint.finditer(text))
    return tuple(list(found)[:NEAR_MISS_LIMIT])


class RefExtractor:
    """Applies a pattern registry to activity text."""

    name = "RefExtractor"

    def __init__(self, registry: PatternRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> PatternRegistry:
        return self._registry

    def validate(self, texts: Sequence[str | None]) -> bool:
        """True if at least one non-empty text is present."""
        return any(t for t in texts)

    def process(
        self,
        texts: Sequence[str | None],
        *,
        source_activity_id: str = "",
        options: ExtractionOptions | None = None,
    ) -> ProcessorResult[RefExtractionOutput]:
        """Extract deduplicated refs from ``texts``.

        ``texts`` are joined with newlines; ``None`` and empty entries
        are skipped. Pattern failures are isolated: the failing pattern
        is logged, reported as a recoverable ``PATTERN_ERROR`` and
        skipped, and the remaining patterns still run.
        """
        opts = options or _DEFAULT_OPTIONS
        started = time.perf_counter()
        text = "\n".join(t for t in texts if t)

        patterns = self._registry.select(
            pattern_ids=opts.pattern_ids,
            tool_types=opts.tool_types,
            min_confidence=opts.min_confidence,
        )

        warnings: list[ProcessorWarning] = []
        errors: list[ProcessorError] = []
        if not patterns:
            warnings.append(
                ProcessorWarning(
                    code=WarningCode.NO_PATTERNS,
                    message="No patterns match the requested filters",
                    context={"activity_id": source_activity_id},
                )
            )

        by_id = {p.id: p for p in patterns}
        hits: list[RawMatch] = []
        analysis: list[PatternAnalysis] = []
        for pattern in patterns:
            try:
                found = pattern.find(text)
            except Exception as exc:
                logger.warning(
                    "event=pattern_failed pattern=%s activity=%s error=%s",
                    pattern.id,
                    source_activity_id,
                    str(exc)[:ERROR_TRUNCATION_CHARS],
                )
                errors.append(
                    ProcessorError(
                        code=ErrorCode.PATTERN_ERROR,
                        message=str(exc)[:ERROR_TRUNCATION_CHARS],
                        recoverable=True,
                        context={
                            "pattern_id": pattern.id,
                            "activity_id": source_activity_id,
                        },
                    )
                )
                if opts.debug:
                    analysis.append(
                        PatternAnalysis(
                            pattern_id=pattern.id,
                            match_count=0,
                            no_match_reason="error",
                        )
                    )
                continue

            hits.extend(found)
            if opts.debug:
                analysis.append(
                    PatternAnalysis(
                        pattern_id=pattern.id,
                        match_count=len(found),
                        no_match_reason=None if found else "regex-no-match",
                        near_misses=()
                        if found
                        else _near_misses(pattern, text),
                    )
                )

        best = _dedupe(hits, by_id)
        refs = tuple(
            ExtractedRef(
                normalized_value=value,
                tool_type=by_id[hit.pattern_id].tool_type,
                confidence_tier=by_id[hit.pattern_id].confidence,
                source_activity_id=source_activity_id,
                pattern_id=hit.pattern_id,
            )
            for value, hit in sorted(best.items())
        )
        matches = tuple(
            PatternMatch(
                ref=hit.ref,
                pattern_id=hit.pattern_id,
                confidence=by_id[hit.pattern_id].confidence,
                start=hit.start,
                end=hit.end,
                context=_context(text, hit.start, hit.end),
                raw_match=hit.text,
            )
            for hit in sorted(best.values(), key=lambda h: (h.start, h.ref))
        )

        elapsed_ms = (time.perf_counter() - started) * 1000
        debug: dict[str, Any] | None = None
        if opts.debug:
            debug = {
                "text_preview": text[:DEBUG_TEXT_PREVIEW_CHARS],
                "patterns_run": [p.id for p in patterns],
                "raw_hit_count": len(hits),
            }

        return ProcessorResult(
            data=RefExtractionOutput(
                refs=refs,
                matches=matches,
                pattern_analysis=tuple(analysis),
            ),
            diagnostics=ProcessorDiagnostics(
                processor=self.name,
                processing_time_ms=elapsed_ms,
                input_metrics={
                    "text_length": float(len(text)),
                    "pattern_count": float(len(patterns)),
                },
                output_metrics={
                    "ref_count": float(len(refs)),
                    "match_count": float(len(hits)),
                    "error_count": float(len(errors)),
                },
                debug=debug,
            ),
            warnings=warnings,
            errors=errors,
        )

    def extract_from_activity(
        self,
        activity: ActivityInput,
        options: ExtractionOptions | None = None,
    ) -> ProcessorResult[RefExtractionOutput]:
        """Full extraction result for one activity, diagnostics included."""
        opts = options or _DEFAULT_OPTIONS
        texts = [
            activity.title,
            activity.description,
            activity.source_url if opts.include_source_url else None,
            activity.raw_data_text(),
        ]
        return self.process(
            texts, source_activity_id=activity.activity_id, options=opts
        )

    def extract(
        self,
        activity: ActivityInput,
        options: ExtractionOptions | None = None,
    ) -> list[ExtractedRef]:
        """Refs for one activity, sorted by normalized value."""
        return list(self.extract_from_activity(activity, options).data.refs)

    def build_node(
        self,
        activity: ActivityInput,
        options: ExtractionOptions | None = None,
    ) -> ActivityNode:
        return ActivityNode(
            activity=activity,
            refs=tuple(self.extract(activity, options)),
        )

    # -- Convenience -------------------------------------------------------

    def extract_refs(self, text: str) -> list[str]:
        """Normalized ref values found in a single string."""
        return self.process([text]).data.ref_values

    def extract_refs_from_many(self, texts: Iterable[str | None]) -> list[str]:
        return self.process(list(texts)).data.ref_values

    def extract_refs_from_object(self, obj: Any) -> list[str]:
        """Refs in any JSON-serializable object, searched as its JSON text."""
        return self.extract_refs(json.dumps(obj, default=str))


def _dedupe(
    hits: list[RawMatch], by_id: dict[str, RefPattern]
) -> dict[str, RawMatch]:
    """One hit per normalized value: higher tier, then smaller pattern id.

    Among hits from the winning pattern, the earliest occurrence is kept.
    """
    best: dict[str, RawMatch] = {}
    for hit in hits:
        cur = best.get(hit.ref)
        if cur is None or _beats(hit, cur, by_id):
            best[hit.ref] = hit
    return best


def _beats(
    hit: RawMatch, cur: RawMatch, by_id: dict[str, RefPattern]
) -> bool:
    hit_tier = TIER_RANK[by_id[hit.pattern_id].confidence]
    cur_tier = TIER_RANK[by_id[cur.pattern_id].confidence]
    if hit_tier != cur_tier:
        return hit_tier > cur_tier
    if hit.pattern_id != cur.pattern_id:
        return hit.pattern_id < cur.pattern_id
    return hit.start < cur.start


async def extract_batch(
    extractor: RefExtractor,
    activities: Sequence[ActivityInput],
    *,
    max_concurrency: int = 8,
    options: ExtractionOptions | None = None,
) -> list[ActivityNode]:
    """Extract refs for every activity off the event loop.

    Each activity runs in a worker thread; at most ``max_concurrency``
    run at once. Results keep the input order.
    """
    semaphore = asyncio.Semaphore(max_concurrency)

    async def _one(activity: ActivityInput) -> ActivityNode:
        async with semaphore:
            return await asyncio.to_thread(
                extractor.build_node, activity, options
            )

    nodes = await asyncio.gather(*(_one(a) for a in activities))
    logger.info(
        "event=extraction_complete activities=%d refs=%d",
        len(nodes),
        sum(len(n.refs) for n in nodes),
    )
    return list(nodes)
