"""
Graph Analysis Tools for Generated Process Graphs

Structural validation of a GeneratedGraph:
- Dangling edges and disconnected parts
- Cycle detection
- Gateway arity and role consistency
- Node to event type mapping completeness
"""

import logging
from collections import Counter, defaultdict, deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from event_process_autogen.models.graph import DiagramRole, GeneratedGraph
from event_process_autogen.models.identifiers import GatewayDirection

logger = logging.getLogger(__name__)


class AnomalyType(str, Enum):
    """Types of graph anomalies detected."""

    DANGLING_EDGE = "dangling_edge"
    DISCONNECTED = "disconnected"
    CYCLE_DETECTED = "cycle_detected"
    GATEWAY_ARITY = "gateway_arity"
    START_WITH_INCOMING = "start_with_incoming"
    END_WITH_OUTGOING = "end_with_outgoing"
    UNMAPPED_LEAF = "unmapped_leaf"
    MAPPED_GATEWAY = "mapped_gateway"
    DUPLICATE_MAPPING = "duplicate_mapping"


@dataclass
class GraphAnomaly:
    """Detected graph anomaly."""

    anomaly_type: AnomalyType
    node_id: Optional[str] = None
    description: str = ""
    severity: str = "medium"  # low, medium, high, critical
    location: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.anomaly_type.value,
            "node_id": self.node_id,
            "description": self.description,
            "severity": self.severity,
            "location": self.location,
        }


@dataclass
class ValidationReport:
    """Complete structural validation result."""

    total_nodes: int
    total_edges: int
    anomalies: List[GraphAnomaly] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        """No high or critical anomalies."""
        return not any(a.severity in ("high", "critical") for a in self.anomalies)

    def of_type(self, anomaly_type: AnomalyType) -> List[GraphAnomaly]:
        return [a for a in self.anomalies if a.anomaly_type == anomaly_type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.is_valid,
            "total_nodes": self.total_nodes,
            "total_edges": self.total_edges,
            "metrics": self.metrics,
            "anomalies": [a.to_dict() for a in self.anomalies],
        }


class GraphAnalyzer:
    """Structural checks over generated graphs."""

    def __init__(self):
        """Initialize graph analyzer."""
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def validate(self, graph: GeneratedGraph) -> ValidationReport:
        """Run every structural check.

        Args:
            graph: Generated graph to validate

        Returns:
            ValidationReport with all anomalies found
        """
        report = ValidationReport(total_nodes=len(graph.nodes), total_edges=len(graph.edges))
        report.metrics = self._calculate_basic_metrics(graph)

        report.anomalies.extend(self._check_dangling_edges(graph))
        report.anomalies.extend(self._check_connectivity(graph))
        for cycle in self.detect_cycles(graph):
            report.anomalies.append(
                GraphAnomaly(
                    anomaly_type=AnomalyType.CYCLE_DETECTED,
                    description=f"Cycle detected: {' -> '.join(cycle)}",
                    severity="high",
                    location={"cycle": cycle},
                )
            )
        report.anomalies.extend(self._check_gateways(graph))
        report.anomalies.extend(self._check_roles(graph))
        report.anomalies.extend(self._check_mapping(graph))

        self.logger.info(
            f"Validated graph: {report.total_nodes} nodes, {report.total_edges} edges, "
            f"{len(report.anomalies)} anomalies"
        )
        return report

    def detect_cycles(self, graph: GeneratedGraph) -> List[List[str]]:
        """Detect cycles in the graph using DFS.

        Returns:
            List of detected cycles (each as list of node IDs)
        """
        adj = self._build_adjacency_list(graph)
        cycles: List[List[str]] = []
        visited: Set[str] = set()

        for root in (node.id for node in graph.nodes):
            if root in visited:
                continue
            path = [root]
            on_path = {root}
            visited.add(root)
            stack = [iter(adj.get(root, []))]
            while stack:
                for neighbor in stack[-1]:
                    if neighbor in on_path:
                        cycles.append(path[path.index(neighbor):] + [neighbor])
                    elif neighbor not in visited:
                        visited.add(neighbor)
                        on_path.add(neighbor)
                        path.append(neighbor)
                        stack.append(iter(adj.get(neighbor, [])))
                        break
                else:
                    stack.pop()
                    on_path.discard(path.pop())

        if cycles:
            self.logger.info(f"Detected {len(cycles)} cycles in graph")
        return cycles

    def find_components(self, graph: GeneratedGraph) -> List[List[str]]:
        """Weakly connected components, each in node order."""
        neighbours: Dict[str, Set[str]] = defaultdict(set)
        for source, target in graph.edges:
            neighbours[source].add(target)
            neighbours[target].add(source)

        component_of: Dict[str, int] = {}
        components: List[List[str]] = []
        for node in graph.nodes:
            if node.id in component_of:
                continue
            index = len(components)
            members: List[str] = []
            to_visit = deque([node.id])
            component_of[node.id] = index
            while to_visit:
                current = to_visit.popleft()
                members.append(current)
                for neighbour in neighbours.get(current, ()):
                    if neighbour not in component_of:
                        component_of[neighbour] = index
                        to_visit.append(neighbour)
            components.append(members)
        return components

    def _build_adjacency_list(self, graph: GeneratedGraph) -> Dict[str, List[str]]:
        adj: Dict[str, List[str]] = defaultdict(list)
        for source, target in graph.edges:
            adj[source].append(target)
        return adj

    def _calculate_basic_metrics(self, graph: GeneratedGraph) -> Dict[str, Any]:
        roles = Counter(node.role.value for node in graph.nodes)
        gateway_kinds = Counter(
            node.gateway_kind.value for node in graph.nodes if node.gateway_kind is not None
        )
        return {
            "node_count": len(graph.nodes),
            "edge_count": len(graph.edges),
            "roles": dict(roles),
            "gateway_kinds": dict(gateway_kinds),
            "mapped_event_types": sum(len(m.event_types()) for m in graph.mapping.values()),
        }

    def _check_dangling_edges(self, graph: GeneratedGraph) -> List[GraphAnomaly]:
        node_ids = {node.id for node in graph.nodes}
        anomalies = []
        for source, target in graph.edges:
            missing = [end for end in (source, target) if end not in node_ids]
            if missing:
                anomalies.append(
                    GraphAnomaly(
                        anomaly_type=AnomalyType.DANGLING_EDGE,
                        description=f"Edge {source} -> {target} references unknown nodes {missing}",
                        severity="critical",
                        location={"edge": [source, target]},
                    )
                )
        return anomalies

    def _check_connectivity(self, graph: GeneratedGraph) -> List[GraphAnomaly]:
        components = self.find_components(graph)
        if len(components) <= 1:
            return []
        return [
            GraphAnomaly(
                anomaly_type=AnomalyType.DISCONNECTED,
                description=f"Graph has {len(components)} disconnected parts",
                severity="high",
                location={"components": components},
            )
        ]

    def _check_gateways(self, graph: GeneratedGraph) -> List[GraphAnomaly]:
        anomalies = []
        for node in graph.get_gateways():
            incoming = len(graph.get_incoming(node.id))
            outgoing = len(graph.get_outgoing(node.id))
            if node.gateway_direction == GatewayDirection.DIVERGING:
                ok = incoming <= 1 and outgoing >= 2
            else:
                ok = incoming >= 2 and outgoing <= 1
            if not ok:
                anomalies.append(
                    GraphAnomaly(
                        anomaly_type=AnomalyType.GATEWAY_ARITY,
                        node_id=node.id,
                        description=(
                            f"{node.gateway_direction.value if node.gateway_direction else 'unknown'} "
                            f"gateway {node.id} has {incoming} incoming and {outgoing} outgoing edges"
                        ),
                        severity="medium",
                        location={"incoming": incoming, "outgoing": outgoing},
                    )
                )
        return anomalies

    def _check_roles(self, graph: GeneratedGraph) -> List[GraphAnomaly]:
        anomalies = []
        for node in graph.get_nodes_by_role(DiagramRole.START):
            if graph.get_incoming(node.id):
                anomalies.append(
                    GraphAnomaly(
                        anomaly_type=AnomalyType.START_WITH_INCOMING,
                        node_id=node.id,
                        description=f"Start node {node.id} has incoming edges",
                        severity="medium",
                    )
                )
        # An open fragment after the last exit keeps its End nodes connected onward
        for node in graph.get_nodes_by_role(DiagramRole.END):
            if graph.get_outgoing(node.id):
                anomalies.append(
                    GraphAnomaly(
                        anomaly_type=AnomalyType.END_WITH_OUTGOING,
                        node_id=node.id,
                        description=f"End node {node.id} has outgoing edges",
                        severity="low",
                    )
                )
        return anomalies

    def _check_mapping(self, graph: GeneratedGraph) -> List[GraphAnomaly]:
        anomalies = []
        for node in graph.nodes:
            if node.is_gateway and node.id in graph.mapping:
                anomalies.append(
                    GraphAnomaly(
                        anomaly_type=AnomalyType.MAPPED_GATEWAY,
                        node_id=node.id,
                        description=f"Gateway {node.id} carries an event mapping",
                        severity="high",
                    )
                )
            elif not node.is_gateway and node.id not in graph.mapping:
                anomalies.append(
                    GraphAnomaly(
                        anomaly_type=AnomalyType.UNMAPPED_LEAF,
                        node_id=node.id,
                        description=f"Node {node.id} has no event mapping",
                        severity="high",
                    )
                )

        owners: Dict[str, List[str]] = defaultdict(list)
        for node_id, node_mapping in graph.mapping.items():
            for event_type in node_mapping.event_types():
                owners[str(event_type)].append(node_id)
        for event_type, node_ids in owners.items():
            if len(node_ids) > 1:
                anomalies.append(
                    GraphAnomaly(
                        anomaly_type=AnomalyType.DUPLICATE_MAPPING,
                        description=f"Event type {event_type} is mapped by {len(node_ids)} nodes",
                        severity="critical",
                        location={"event_type": event_type, "nodes": node_ids},
                    )
                )
        return anomalies


# Convenience functions for quick analysis
def validate_graph(graph: GeneratedGraph) -> ValidationReport:
    """Convenience function to validate a generated graph."""
    analyzer = GraphAnalyzer()
    return analyzer.validate(graph)


def detect_cycles(graph: GeneratedGraph) -> List[List[str]]:
    """Convenience function to detect cycles."""
    analyzer = GraphAnalyzer()
    return analyzer.detect_cycles(graph)


__all__ = [
    "AnomalyType",
    "GraphAnalyzer",
    "GraphAnomaly",
    "ValidationReport",
    "detect_cycles",
    "validate_graph",
]
