"""
Data models for event-based process autogeneration.
"""

from event_process_autogen.models.events import (
    ActivityRef,
    EngineBoundarySource,
    EngineInstanceSource,
    EventSource,
    EventTypeRef,
    ExternalSource,
)
from event_process_autogen.models.graph import (
    DiagramRole,
    Edge,
    Fragment,
    FragmentNode,
    GatewayKind,
    GeneratedGraph,
    GraphNode,
    NodeMapping,
)
from event_process_autogen.models.identifiers import (
    GatewayDirection,
    GatewayScope,
    gateway_id_for,
    id_for,
    task_id_for,
)

__all__ = [
    # Events
    "ActivityRef",
    "EventTypeRef",
    "EventSource",
    "ExternalSource",
    "EngineBoundarySource",
    "EngineInstanceSource",
    # Graph
    "DiagramRole",
    "Edge",
    "Fragment",
    "FragmentNode",
    "GatewayKind",
    "GeneratedGraph",
    "GraphNode",
    "NodeMapping",
    # Identifiers
    "GatewayDirection",
    "GatewayScope",
    "gateway_id_for",
    "id_for",
    "task_id_for",
]
