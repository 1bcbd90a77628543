"""
Core infrastructure module.

Provides errors, logging, tracing and metrics shared by all stages.
"""

from .errors import (
    AllSourcesEmpty,
    AmbiguousBranchEvidenceError,
    CorrelationViewUnavailable,
    DuplicateEventReference,
    DuplicateSource,
    EmptySourceList,
    GenerationCancelled,
    GenerationError,
    GenerationErrorKind,
    GenerationWarning,
    UnresolvedEngineReference,
    WarningKind,
)
from .observability import (
    LogLevel,
    ObservabilityConfig,
    ObservabilityManager,
    Timer,
    log_execution,
    record_metric,
    span,
)

__all__ = [
    # Errors
    "AllSourcesEmpty",
    "AmbiguousBranchEvidenceError",
    "CorrelationViewUnavailable",
    "DuplicateEventReference",
    "DuplicateSource",
    "EmptySourceList",
    "GenerationCancelled",
    "GenerationError",
    "GenerationErrorKind",
    "GenerationWarning",
    "UnresolvedEngineReference",
    "WarningKind",
    # Observability
    "LogLevel",
    "ObservabilityConfig",
    "ObservabilityManager",
    "Timer",
    "log_execution",
    "record_metric",
    "span",
]
