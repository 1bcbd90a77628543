"""
Collaborators consumed by autogeneration: the event correlation view and
engine process metadata.
"""

from event_process_autogen.correlation.engine_metadata import (
    EngineMetadataRegistry,
    ProcessDefinitionMetadata,
)
from event_process_autogen.correlation.view import (
    CausalAdjacency,
    CorrelatedEvent,
    CorrelationView,
    CorrelationViewProvider,
    InMemoryCorrelationViewProvider,
    SequenceCount,
)

__all__ = [
    "CausalAdjacency",
    "CorrelatedEvent",
    "CorrelationView",
    "CorrelationViewProvider",
    "EngineMetadataRegistry",
    "InMemoryCorrelationViewProvider",
    "ProcessDefinitionMetadata",
    "SequenceCount",
]
