"""Reference extraction: normalized cross-tool refs per activity."""

from workstory.extraction.extractor import RefExtractor, extract_batch
from workstory.extraction.schemas import (
    ActivityNode,
    ExtractedRef,
    ExtractionOptions,
    PatternAnalysis,
    PatternMatch,
    RefExtractionOutput,
)

__all__ = [
    "ActivityNode",
    "ExtractedRef",
    "ExtractionOptions",
    "PatternAnalysis",
    "PatternMatch",
    "RefExtractionOutput",
    "RefExtractor",
    "extract_batch",
]
