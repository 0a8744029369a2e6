"""Processor result envelope shared by extraction and clustering.

Every processor returns its primary output together with timing,
input/output metrics, non-fatal warnings, and recoverable errors, so
callers can log or surface partial results without catching anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from workstory.constants import ErrorCode, WarningCode

T = TypeVar("T")


@dataclass(frozen=True)
class ProcessorWarning:
    code: WarningCode
    message: str
    context: dict[str, Any] = field(
        default_factory=lambda: dict[str, Any]()
    )


@dataclass(frozen=True)
class ProcessorError:
    code: ErrorCode
    message: str
    recoverable: bool = True
    context: dict[str, Any] = field(
        default_factory=lambda: dict[str, Any]()
    )


@dataclass(frozen=True)
class ProcessorDiagnostics:
    processor: str
    processing_time_ms: float
    input_metrics: dict[str, float] = field(
        default_factory=lambda: dict[str, float]()
    )
    output_metrics: dict[str, float] = field(
        default_factory=lambda: dict[str, float]()
    )
    debug: dict[str, Any] | None = None


@dataclass(frozen=True)
class ProcessorResult(Generic[T]):
    """Primary output plus diagnostics, warnings and errors."""

    data: T
    diagnostics: ProcessorDiagnostics
    warnings: list[ProcessorWarning] = field(
        default_factory=lambda: list[ProcessorWarning]()
    )
    errors: list[ProcessorError] = field(
        default_factory=lambda: list[ProcessorError]()
    )
