"""Cross-tool correlation: two-tier inference with a rule-based fallback."""

from workstory.correlation.agent import CorrelationAgent
from workstory.correlation.client import (
    InferenceClient,
    LiteLLMInferenceClient,
)
from workstory.correlation.fallback import correlate_by_rules
from workstory.correlation.schemas import (
    AnalyzedActivity,
    Correlation,
    CorrelationEndpoint,
    CorrelationResult,
    TierOutcome,
)

__all__ = [
    "AnalyzedActivity",
    "Correlation",
    "CorrelationAgent",
    "CorrelationEndpoint",
    "CorrelationResult",
    "InferenceClient",
    "LiteLLMInferenceClient",
    "TierOutcome",
    "correlate_by_rules",
]
