"""Shared constants: single source of truth for cross-module values.

All magic strings and numbers that appear in 2+ files belong here.
StrEnum members are str-compatible, so downstream code (JSON export,
prompt payloads, log lines) works unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class ToolType(StrEnum):
    """External tool family a reference points into."""

    JIRA = "jira"
    GITHUB = "github"
    CONFLUENCE = "confluence"
    FIGMA = "figma"
    SLACK = "slack"
    GOOGLE = "google"
    GENERIC = "generic"


class ConfidenceTier(StrEnum):
    """How reliably an extraction method recovers a reference.

    HIGH: explicit URL with an API-stable ID shape.
    MEDIUM: JSON-looking text fragment or an ambiguous bare reference.
    """

    HIGH = "high"
    MEDIUM = "medium"


class ClusterMethod(StrEnum):
    """Grouping strategy used to produce a cluster."""

    REFERENCE = "reference"
    TEMPORAL = "temporal"


class TemporalBucket(StrEnum):
    """Calendar bucket size for temporal grouping."""

    DAY = "day"
    WEEK = "week"


class CorrelationType(StrEnum):
    """Relationship kinds the correlation agent reports."""

    REF_BASED = "ref_based"
    MEETING_TO_CODE = "meeting_to_code"
    DESIGN_TO_CODE = "design_to_code"
    DISCUSSION_TO_DOC = "discussion_to_doc"
    GENERAL = "general"


class Impact(StrEnum):
    """Qualitative impact / importance labels."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class InferenceTier(StrEnum):
    """Model tier used for a correlation call."""

    QUICK = "quick"
    PREMIUM = "premium"


class CorrelationSource(StrEnum):
    """Where a correlation result ultimately came from."""

    QUICK = "quick"
    PREMIUM = "premium"
    FALLBACK = "fallback"


class StageOutcome(StrEnum):
    """Outcome of an individual pipeline stage execution."""

    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class WarningCode(StrEnum):
    """Non-fatal conditions reported by processors."""

    NO_PATTERNS = "NO_PATTERNS"
    DATE_FILTERED = "DATE_FILTERED"
    ACTIVITIES_WITHOUT_REFS = "ACTIVITIES_WITHOUT_REFS"
    DUPLICATE_ACTIVITY = "DUPLICATE_ACTIVITY"


class ErrorCode(StrEnum):
    """Recoverable errors reported by processors."""

    PATTERN_ERROR = "PATTERN_ERROR"


# ── Confidence Thresholds ────────────────────────────────


class Confidence:
    """Named confidence values: single source of truth."""

    CORRELATION_THRESHOLD = 0.70  # Minimum kept in output, escalation gate
    STRONG_CORRELATION = 0.85  # "strong" cutoff for summaries
    FALLBACK_REF_MATCH = 0.90  # Literal canonical-key hit
    FALLBACK_TEMPORAL = 0.70  # Time window + shared keywords
    SINGLETON_CLUSTER = 1.0  # A lone activity is trivially one story
    HIGH_TIER_LINK = 0.90  # Cluster joined by a high-tier ref
    MEDIUM_TIER_LINK = 0.70  # Cluster joined only by medium-tier refs
    TEMPORAL_BUCKET = 0.50  # Time-only grouping


# Ordering used by min_confidence filters and ref dedup.
TIER_RANK: dict[str, int] = {
    ConfidenceTier.HIGH: 2,
    ConfidenceTier.MEDIUM: 1,
}


# ── Circuit Breaker Configuration ────────────────────────

CB_LLM_FAILURE_THRESHOLD = 5
CB_LLM_RECOVERY_TIMEOUT = 30

# ── Retry Strategy ───────────────────────────────────────

RETRY_MAX_ATTEMPTS = 3
RETRY_INITIAL_WAIT = 2
RETRY_MAX_WAIT = 30

# ── LLM Output ───────────────────────────────────────────

LLM_MAX_OUTPUT_TOKENS = 4096

# ── Fallback Correlator ──────────────────────────────────

FALLBACK_WINDOW_SECONDS = 2 * 60 * 60
FALLBACK_MIN_KEYWORD_LENGTH = 4  # keywords must be longer than 3 chars
FALLBACK_MIN_SHARED_KEYWORDS = 2

# ── Extraction ───────────────────────────────────────────

MATCH_CONTEXT_RADIUS = 40
DEBUG_TEXT_PREVIEW_CHARS = 500
NEAR_MISS_LIMIT = 3

# ── Prompt Budget ────────────────────────────────────────

PROMPT_SOURCE_SAMPLE = 3
PROMPT_DESCRIPTION_CHARS = 500

# ── Clustering ──────────────────────────────────────────

MIN_CLUSTER_SIZE = 2  # smaller components count as unclustered

# ── ID Generation ───────────────────────────────────────

ID_HEX_LENGTH = 12

# ── Misc ────────────────────────────────────────────────

ERROR_TRUNCATION_CHARS = 200
