"""
Event Process Autogen: Generate Process Diagrams from Event Sources

Synthesizes one connected process graph (nodes, gateways, sequence edges) from
an ordered list of heterogeneous event sources: externally correlated events,
engine-hosted process boundaries and whole engine process instances, plus a
mapping from every diagram node back to the event types it represents.
"""

# Core components
from event_process_autogen.core.errors import (
    GenerationError,
    GenerationErrorKind,
    GenerationWarning,
    WarningKind,
)
from event_process_autogen.core.observability import ObservabilityConfig, ObservabilityManager

# Models
from event_process_autogen.models import (
    ActivityRef,
    DiagramRole,
    EngineBoundarySource,
    EngineInstanceSource,
    EventSource,
    EventTypeRef,
    ExternalSource,
    Fragment,
    GatewayDirection,
    GatewayKind,
    GeneratedGraph,
    GraphNode,
    NodeMapping,
    gateway_id_for,
    id_for,
    task_id_for,
)

# Collaborators
from event_process_autogen.correlation import (
    CorrelatedEvent,
    CorrelationView,
    EngineMetadataRegistry,
    InMemoryCorrelationViewProvider,
    ProcessDefinitionMetadata,
)

# Orchestration
from event_process_autogen.autogeneration import (
    AutogenerationConfig,
    AutogenerationOrchestrator,
    AutogenerationRequest,
    AutogenerationResult,
    ErrorHandlingStrategy,
    generate,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Core
    "GenerationError",
    "GenerationErrorKind",
    "GenerationWarning",
    "ObservabilityConfig",
    "ObservabilityManager",
    "WarningKind",
    # Models
    "ActivityRef",
    "DiagramRole",
    "EngineBoundarySource",
    "EngineInstanceSource",
    "EventSource",
    "EventTypeRef",
    "ExternalSource",
    "Fragment",
    "GatewayDirection",
    "GatewayKind",
    "GeneratedGraph",
    "GraphNode",
    "NodeMapping",
    "gateway_id_for",
    "id_for",
    "task_id_for",
    # Collaborators
    "CorrelatedEvent",
    "CorrelationView",
    "EngineMetadataRegistry",
    "InMemoryCorrelationViewProvider",
    "ProcessDefinitionMetadata",
    # Orchestration
    "AutogenerationConfig",
    "AutogenerationOrchestrator",
    "AutogenerationRequest",
    "AutogenerationResult",
    "ErrorHandlingStrategy",
    "generate",
]
