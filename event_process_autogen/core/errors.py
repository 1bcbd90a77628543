"""
Autogeneration Errors and Warnings

Fatal conditions abort generation and are raised as ``GenerationError``
subclasses; no partial graph is returned. Recoverable conditions are recorded
as ``GenerationWarning`` values on the result so the caller can decide whether
an incomplete graph is acceptable.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class GenerationErrorKind(str, Enum):
    """Fatal error kinds."""

    EMPTY_SOURCE_LIST = "EmptySourceList"
    ALL_SOURCES_EMPTY = "AllSourcesEmpty"
    UNRESOLVED_ENGINE_REFERENCE = "UnresolvedEngineReference"
    CORRELATION_VIEW_UNAVAILABLE = "CorrelationViewUnavailable"
    DUPLICATE_SOURCE = "DuplicateSource"
    DUPLICATE_EVENT_REFERENCE = "DuplicateEventReference"
    AMBIGUOUS_BRANCH_EVIDENCE = "AmbiguousBranchEvidence"
    CANCELLED = "Cancelled"


class WarningKind(str, Enum):
    """Non-fatal findings recorded during generation."""

    AMBIGUOUS_BRANCH_EVIDENCE = "AmbiguousBranchEvidence"
    CYCLE_BROKEN = "CycleBroken"
    EMPTY_SOURCE = "EmptySource"
    OPEN_FRAGMENT = "OpenFragment"
    UNORDERED_EVENTS = "UnorderedEvents"


@dataclass(frozen=True)
class GenerationWarning:
    """A recoverable condition, kept on the result instead of being raised."""

    kind: WarningKind
    message: str
    source_index: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "source_index": self.source_index,
            "details": self.details,
        }


class GenerationError(Exception):
    """Base class of all fatal autogeneration errors."""

    kind: GenerationErrorKind

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "details": self.details}


class EmptySourceList(GenerationError):
    kind = GenerationErrorKind.EMPTY_SOURCE_LIST


class AllSourcesEmpty(GenerationError):
    kind = GenerationErrorKind.ALL_SOURCES_EMPTY


class UnresolvedEngineReference(GenerationError):
    """A declared engine process or activity is unknown to the engine metadata."""

    kind = GenerationErrorKind.UNRESOLVED_ENGINE_REFERENCE


class CorrelationViewUnavailable(GenerationError):
    """The correlation view collaborator failed; not retried here."""

    kind = GenerationErrorKind.CORRELATION_VIEW_UNAVAILABLE


class DuplicateSource(GenerationError):
    kind = GenerationErrorKind.DUPLICATE_SOURCE


class DuplicateEventReference(GenerationError):
    """An event type would be mapped onto more than one node."""

    kind = GenerationErrorKind.DUPLICATE_EVENT_REFERENCE


class AmbiguousBranchEvidenceError(GenerationError):
    """Mixed branch evidence escalated under the strict error handling strategy."""

    kind = GenerationErrorKind.AMBIGUOUS_BRANCH_EVIDENCE


class GenerationCancelled(GenerationError):
    kind = GenerationErrorKind.CANCELLED


__all__ = [
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
]
