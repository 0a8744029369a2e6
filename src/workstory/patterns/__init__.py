"""Reference patterns: versioned extractors for cross-tool refs."""

from workstory.patterns.base import (
    LocalReferencePattern,
    PatternExample,
    PrefixedIdPattern,
    RawMatch,
    RefPattern,
    RepoReferencePattern,
    TicketKeyPattern,
)
from workstory.patterns.registry import (
    DEFAULT_PATTERNS,
    PatternConfigurationError,
    PatternRegistry,
    build_default_registry,
)

__all__ = [
    "DEFAULT_PATTERNS",
    "LocalReferencePattern",
    "PatternConfigurationError",
    "PatternExample",
    "PatternRegistry",
    "PrefixedIdPattern",
    "RawMatch",
    "RefPattern",
    "RepoReferencePattern",
    "TicketKeyPattern",
    "build_default_registry",
]
