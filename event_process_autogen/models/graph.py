"""
Process Graph Intermediate Representation

Defines the fragment representation produced per event source and the final
generated graph handed to diagram serializers and mapping persistence.

Both are immutable values: the connector composes fragments into a new graph
instead of mutating them.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from event_process_autogen.models.events import EventTypeRef
from event_process_autogen.models.identifiers import GatewayDirection

Edge = Tuple[str, str]


class GatewayKind(str, Enum):
    """Semantics of a branching or merging point."""

    EXCLUSIVE = "exclusive"  # at most one branch per occurrence
    PARALLEL = "parallel"  # all branches, order immaterial


class DiagramRole(str, Enum):
    """Role of a node in the generated diagram."""

    START = "start"
    END = "end"
    INTERMEDIATE = "intermediate"
    GATEWAY = "gateway"
    COMPOSITE_TASK = "composite_task"


class FragmentNode(BaseModel):
    """Node of a source-local fragment: a gateway or a leaf mapped to event types."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Deterministic node id")
    refs: Tuple[EventTypeRef, ...] = Field(
        default_factory=tuple, description="Mapped event types (start, optional end)"
    )
    gateway_kind: Optional[GatewayKind] = Field(None, description="Set for gateways only")
    gateway_direction: Optional[GatewayDirection] = Field(None, description="Set for gateways only")
    composite: bool = Field(False, description="Whether the leaf stands for a whole instance")
    label: Optional[str] = Field(None, description="Display label")

    @property
    def is_gateway(self) -> bool:
        return self.gateway_kind is not None

    @property
    def is_leaf(self) -> bool:
        return not self.is_gateway

    @classmethod
    def leaf(cls, node_id: str, event_type: EventTypeRef) -> "FragmentNode":
        return cls(id=node_id, refs=(event_type,), label=event_type.display_name)

    @classmethod
    def composite_task(
        cls, node_id: str, start: EventTypeRef, end: EventTypeRef, label: Optional[str] = None
    ) -> "FragmentNode":
        return cls(id=node_id, refs=(start, end), composite=True, label=label)

    @classmethod
    def gateway(
        cls, node_id: str, kind: GatewayKind, direction: GatewayDirection
    ) -> "FragmentNode":
        return cls(id=node_id, gateway_kind=kind, gateway_direction=direction)


class Fragment(BaseModel):
    """
    Source-local graph with explicit entry and exit node sets.

    ``entry``/``exit`` hold the nodes without internal predecessor/successor.
    An open fragment (no terminal or no initial signal) exposes the node it
    last produced through ``open_tail``/``open_head`` so that neighbouring
    fragments can still be connected to it.
    """

    model_config = ConfigDict(frozen=True)

    owner_key: str = Field(..., description="Identity used for connecting gateway ids")
    source_index: int = Field(..., ge=0, description="Position of the source in the request")
    nodes: Tuple[FragmentNode, ...] = Field(default_factory=tuple)
    edges: Tuple[Edge, ...] = Field(default_factory=tuple)
    entry: Tuple[str, ...] = Field(default_factory=tuple)
    exit: Tuple[str, ...] = Field(default_factory=tuple)
    open_head: Tuple[str, ...] = Field(default_factory=tuple)
    open_tail: Tuple[str, ...] = Field(default_factory=tuple)

    @classmethod
    def empty(cls, owner_key: str, source_index: int) -> "Fragment":
        return cls(owner_key=owner_key, source_index=source_index)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    @property
    def inbound(self) -> Tuple[str, ...]:
        """Nodes that incoming connections target."""
        return self.entry or self.open_head

    @property
    def outbound(self) -> Tuple[str, ...]:
        """Nodes that outgoing connections leave from."""
        return self.exit or self.open_tail

    @property
    def leaf_nodes(self) -> List[FragmentNode]:
        return [node for node in self.nodes if node.is_leaf]

    @property
    def gateway_nodes(self) -> List[FragmentNode]:
        return [node for node in self.nodes if node.is_gateway]

    def get_node(self, node_id: str) -> Optional[FragmentNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def event_types(self) -> List[EventTypeRef]:
        """All event types mapped by the leaves of this fragment."""
        return [ref for node in self.leaf_nodes for ref in node.refs]


class GraphNode(BaseModel):
    """Node in the generated graph."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique node identifier")
    role: DiagramRole = Field(..., description="Diagram semantics of the node")
    gateway_kind: Optional[GatewayKind] = Field(None, description="Gateway kind for gateways")
    gateway_direction: Optional[GatewayDirection] = Field(
        None, description="Gateway direction for gateways"
    )
    label: Optional[str] = Field(None, description="Node label")

    @property
    def is_gateway(self) -> bool:
        return self.role == DiagramRole.GATEWAY


class NodeMapping(BaseModel):
    """Event types a diagram node represents."""

    model_config = ConfigDict(frozen=True)

    start: EventTypeRef = Field(..., description="Event marking the node's occurrence or start")
    end: Optional[EventTypeRef] = Field(None, description="Event marking the node's end")

    def event_types(self) -> List[EventTypeRef]:
        return [self.start] if self.end is None else [self.start, self.end]


class GeneratedGraph(BaseModel):
    """Complete generated process graph plus the node to event mapping."""

    model_config = ConfigDict(frozen=True)

    nodes: Tuple[GraphNode, ...] = Field(default_factory=tuple, description="All nodes")
    edges: Tuple[Edge, ...] = Field(default_factory=tuple, description="Directed sequence edges")
    mapping: Dict[str, NodeMapping] = Field(
        default_factory=dict, description="Leaf node id -> mapped event types"
    )

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_nodes_by_role(self, role: DiagramRole) -> List[GraphNode]:
        return [node for node in self.nodes if node.role == role]

    def get_gateways(self) -> List[GraphNode]:
        return self.get_nodes_by_role(DiagramRole.GATEWAY)

    def get_incoming(self, node_id: str) -> List[str]:
        """Ids of the direct predecessors of a node."""
        return [source for source, target in self.edges if target == node_id]

    def get_outgoing(self, node_id: str) -> List[str]:
        """Ids of the direct successors of a node."""
        return [target for source, target in self.edges if source == node_id]

    def node_for_event(self, event_type: EventTypeRef) -> Optional[str]:
        for node_id, node_mapping in self.mapping.items():
            if event_type in node_mapping.event_types():
                return node_id
        return None

    def to_document(self) -> Dict[str, Any]:
        """JSON-serializable representation used by the CLI."""
        return {
            "nodes": [node.model_dump(mode="json", exclude_none=True) for node in self.nodes],
            "edges": [{"source": source, "target": target} for source, target in self.edges],
            "mapping": {
                node_id: node_mapping.model_dump(mode="json", exclude_none=True)
                for node_id, node_mapping in self.mapping.items()
            },
        }


__all__ = [
    "DiagramRole",
    "Edge",
    "Fragment",
    "FragmentNode",
    "GatewayKind",
    "GeneratedGraph",
    "GraphNode",
    "NodeMapping",
]
