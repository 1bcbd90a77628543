"""
Autogeneration Result State

Holds the outcome of one generation run: the graph, the non-fatal findings
and per-phase metrics.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from event_process_autogen.core.errors import GenerationWarning, WarningKind
from event_process_autogen.models.graph import DiagramRole, GeneratedGraph
from event_process_autogen.stages.fragment_connector import Junction


@dataclass
class SkippedSource:
    """A source that contributed no nodes to the graph."""

    source_index: int
    owner_key: str
    reason: str


@dataclass
class GenerationMetrics:
    """Counters and timings of one generation run."""

    source_count: int = 0
    fragment_count: int = 0
    junction_count: int = 0
    connecting_gateways: int = 0

    node_count: int = 0
    edge_count: int = 0
    gateway_count: int = 0

    build_duration_ms: float = 0.0
    connect_duration_ms: float = 0.0
    assign_duration_ms: float = 0.0
    total_duration_ms: float = 0.0


@dataclass
class AutogenerationResult:
    """Complete result of a successful generation."""

    graph: GeneratedGraph
    warnings: List[GenerationWarning] = field(default_factory=list)
    skipped_sources: List[SkippedSource] = field(default_factory=list)
    junctions: List[Junction] = field(default_factory=list)
    metrics: GenerationMetrics = field(default_factory=GenerationMetrics)
    validation_issues: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def warnings_of(self, kind: WarningKind) -> List[GenerationWarning]:
        """Get recorded warnings of one kind."""
        return [warning for warning in self.warnings if warning.kind == kind]

    def junction_between(self, upstream_owner: str, downstream_owner: str) -> Optional[Junction]:
        for junction in self.junctions:
            if junction.upstream_owner == upstream_owner and junction.downstream_owner == downstream_owner:
                return junction
        return None

    def summary(self) -> Dict[str, Any]:
        """Get summary of the generation run."""
        return {
            "sources": self.metrics.source_count,
            "fragments": self.metrics.fragment_count,
            "skipped_sources": [
                {"source_index": s.source_index, "owner_key": s.owner_key, "reason": s.reason}
                for s in self.skipped_sources
            ],
            "nodes": self.metrics.node_count,
            "edges": self.metrics.edge_count,
            "gateways": self.metrics.gateway_count,
            "connecting_gateways": self.metrics.connecting_gateways,
            "start_nodes": len(self.graph.get_nodes_by_role(DiagramRole.START)),
            "end_nodes": len(self.graph.get_nodes_by_role(DiagramRole.END)),
            "warnings": len(self.warnings),
            "validation_issues": len(self.validation_issues),
            "total_duration_ms": self.metrics.total_duration_ms,
        }


__all__ = ["AutogenerationResult", "GenerationMetrics", "SkippedSource"]
