"""
Autogeneration Request Document

The self-contained JSON document accepted by the CLI: ordered sources, the
correlated events external sources are resolved against, and the engine
process definitions engine sources are checked against.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from event_process_autogen.correlation.engine_metadata import (
    EngineMetadataRegistry,
    ProcessDefinitionMetadata,
)
from event_process_autogen.correlation.view import CorrelatedEvent, InMemoryCorrelationViewProvider
from event_process_autogen.models.events import EventSource


class AutogenerationRequest(BaseModel):
    """Request document for one generation run."""

    sources: List[EventSource] = Field(..., description="Event sources in diagram order")
    events: List[CorrelatedEvent] = Field(
        default_factory=list, description="Correlated events for external sources"
    )
    definitions: List[ProcessDefinitionMetadata] = Field(
        default_factory=list, description="Engine process definitions"
    )

    def correlation_provider(self) -> InMemoryCorrelationViewProvider:
        return InMemoryCorrelationViewProvider(self.events)

    def engine_metadata(self) -> Optional[EngineMetadataRegistry]:
        """Registry of the supplied definitions; None when none are supplied."""
        if not self.definitions:
            return None
        return EngineMetadataRegistry(self.definitions)


__all__ = ["AutogenerationRequest"]
