"""LLM prompts for cross-tool correlation."""

from __future__ import annotations

import json
from collections import defaultdict

from workstory.constants import PROMPT_DESCRIPTION_CHARS, PROMPT_SOURCE_SAMPLE
from workstory.correlation.schemas import AnalyzedActivity

CORRELATION_SYSTEM_PROMPT = """\
You detect meaningful connections between work activities recorded in \
different tools (code hosting, issue trackers, wikis, chat, calendars, \
design files).

Look for:
- Explicit references (ticket keys, PR links, document links, meeting titles)
- Temporal proximity (activities within 2 hours of each other)
- Semantic similarity (shared keywords, topics, project names)
- Cause-effect relationships and follow-ups

Only report correlations with confidence of at least 0.7. Refer to \
activities only by the ids you are given. Always return valid JSON."""

_RESPONSE_SHAPE = """\
{
  "correlations": [
    {
      "id": "corr-1",
      "type": "ref_based|meeting_to_code|design_to_code|discussion_to_doc|general",
      "source1": {"tool": "github", "id": "<activity id>", "title": "..."},
      "source2": {"tool": "jira", "id": "<activity id>", "title": "..."},
      "confidence": 0.95,
      "reasoning": "PR description mentions AUTH-123, the Jira ticket",
      "impact": "high|medium|low"
    }
  ],
  "insights": ["Most development work is tied to tickets"]
}"""

CORRELATION_RULES = """\
Correlation types:
1. ref_based: one activity explicitly references the other \
(ticket key in a PR, document link in a chat message).
2. meeting_to_code: a meeting subject matches code changes from the same day.
3. design_to_code: a design file update matches UI-related code changes.
4. discussion_to_doc: a chat discussion is written up in a document or wiki.
5. general: any other meaningful connection (same project, follow-up work).

Confidence:
- 0.9-1.0: explicit reference
- 0.8-0.9: strong match (same subject, clear relationship)
- 0.7-0.8: probable match (temporal and semantic similarity)
- below 0.7: do not include

Impact:
- high: critical feature, blocker resolution, major milestone
- medium: regular feature work, improvements
- low: minor fixes, routine updates"""


def _summarize_by_source(activities: list[AnalyzedActivity]) -> str:
    by_source: dict[str, list[AnalyzedActivity]] = defaultdict(list)
    for a in activities:
        by_source[a.source].append(a)

    lines: list[str] = []
    for source, items in by_source.items():
        lines.append(f"{source.upper()} ({len(items)} activities):")
        for a in items[:PROMPT_SOURCE_SAMPLE]:
            lines.append(f"  - {a.title} ({a.importance})")
        if len(items) > PROMPT_SOURCE_SAMPLE:
            lines.append(
                f"  ... and {len(items) - PROMPT_SOURCE_SAMPLE} more"
            )
    return "\n".join(lines)


def _activity_payload(a: AnalyzedActivity) -> dict[str, object]:
    description = a.description or ""
    if len(description) > PROMPT_DESCRIPTION_CHARS:
        description = description[:PROMPT_DESCRIPTION_CHARS] + "..."
    return {
        "id": a.id,
        "tool": a.source,
        "title": a.title,
        "description": description,
        "timestamp": a.timestamp.isoformat(),
        "url": a.url,
        "refs": a.refs,
        "importance": a.importance,
    }


def build_correlation_prompt(activities: list[AnalyzedActivity]) -> str:
    """User prompt listing the batch, the rules and the JSON shape."""
    payload = json.dumps(
        [_activity_payload(a) for a in activities], indent=2
    )
    return (
        "Analyze these work activities and identify meaningful "
        "correlations between different tools.\n\n"
        f"## Activities by source\n{_summarize_by_source(activities)}\n\n"
        f"## Activity data\n{payload}\n\n"
        f"## Rules\n{CORRELATION_RULES}\n\n"
        f"## Return JSON\n{_RESPONSE_SHAPE}\n"
    )


def build_messages(
    activities: list[AnalyzedActivity],
) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": CORRELATION_SYSTEM_PROMPT},
        {"role": "user", "content": build_correlation_prompt(activities)},
    ]
