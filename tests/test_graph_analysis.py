"""
Tests for structural validation of generated graphs.
"""

from event_process_autogen.models import (
    DiagramRole,
    EventTypeRef,
    GatewayDirection,
    GatewayKind,
    GeneratedGraph,
    GraphNode,
    NodeMapping,
)
from event_process_autogen.tools import AnomalyType, GraphAnalyzer, detect_cycles, validate_graph


def _leaf(node_id, role=DiagramRole.INTERMEDIATE):
    return GraphNode(id=node_id, role=role, label=node_id)


def _gateway(node_id, direction):
    return GraphNode(
        id=node_id,
        role=DiagramRole.GATEWAY,
        gateway_kind=GatewayKind.EXCLUSIVE,
        gateway_direction=direction,
    )


def _mapping(*node_ids):
    return {n: NodeMapping(start=EventTypeRef.external(n)) for n in node_ids}


def _xor_graph():
    nodes = (
        _leaf("a", DiagramRole.START),
        _gateway("g", GatewayDirection.DIVERGING),
        _leaf("b", DiagramRole.END),
        _leaf("c", DiagramRole.END),
    )
    return GeneratedGraph(
        nodes=nodes,
        edges=(("a", "g"), ("g", "b"), ("g", "c")),
        mapping=_mapping("a", "b", "c"),
    )


class TestValidation:
    """Test the individual structural checks."""

    def test_well_formed_graph(self):
        """Should report no anomalies for a well-formed graph."""
        report = GraphAnalyzer().validate(_xor_graph())
        assert report.is_valid
        assert report.anomalies == []
        assert report.metrics["roles"] == {"start": 1, "gateway": 1, "end": 2}
        assert report.metrics["mapped_event_types"] == 3

    def test_dangling_edge(self):
        """Should flag edges to unknown nodes as critical."""
        graph = GeneratedGraph(
            nodes=(_leaf("a", DiagramRole.START),),
            edges=(("a", "ghost"),),
            mapping=_mapping("a"),
        )
        report = validate_graph(graph)
        assert not report.is_valid
        assert report.of_type(AnomalyType.DANGLING_EDGE)[0].severity == "critical"

    def test_disconnected_parts(self):
        """Should flag a graph that falls apart into several components."""
        graph = GeneratedGraph(
            nodes=(_leaf("a", DiagramRole.START), _leaf("b", DiagramRole.END)),
            mapping=_mapping("a", "b"),
        )
        report = validate_graph(graph)
        anomalies = report.of_type(AnomalyType.DISCONNECTED)
        assert len(anomalies) == 1
        assert anomalies[0].location["components"] == [["a"], ["b"]]

    def test_gateway_arity(self):
        """Should flag a diverging gateway with a single outgoing edge."""
        graph = GeneratedGraph(
            nodes=(
                _leaf("a", DiagramRole.START),
                _gateway("g", GatewayDirection.DIVERGING),
                _leaf("b", DiagramRole.END),
            ),
            edges=(("a", "g"), ("g", "b")),
            mapping=_mapping("a", "b"),
        )
        anomalies = validate_graph(graph).of_type(AnomalyType.GATEWAY_ARITY)
        assert [a.node_id for a in anomalies] == ["g"]

    def test_role_conflicts(self):
        """Should flag Start nodes with incoming and End nodes with outgoing edges."""
        graph = GeneratedGraph(
            nodes=(_leaf("a", DiagramRole.END), _leaf("b", DiagramRole.START)),
            edges=(("a", "b"),),
            mapping=_mapping("a", "b"),
        )
        report = validate_graph(graph)
        assert [a.node_id for a in report.of_type(AnomalyType.START_WITH_INCOMING)] == ["b"]
        assert report.of_type(AnomalyType.END_WITH_OUTGOING)[0].severity == "low"

    def test_mapping_checks(self):
        """Should flag unmapped leaves, mapped gateways and shared event types."""
        shared = EventTypeRef.external("x")
        graph = GeneratedGraph(
            nodes=(
                _leaf("a", DiagramRole.START),
                _leaf("b"),
                _gateway("g", GatewayDirection.DIVERGING),
                _leaf("c", DiagramRole.END),
                _leaf("d", DiagramRole.END),
            ),
            edges=(("a", "b"), ("b", "g"), ("g", "c"), ("g", "d")),
            mapping={
                "a": NodeMapping(start=shared),
                "g": NodeMapping(start=EventTypeRef.external("g")),
                "c": NodeMapping(start=shared),
                "d": NodeMapping(start=EventTypeRef.external("d")),
            },
        )
        report = validate_graph(graph)
        assert [a.node_id for a in report.of_type(AnomalyType.UNMAPPED_LEAF)] == ["b"]
        assert [a.node_id for a in report.of_type(AnomalyType.MAPPED_GATEWAY)] == ["g"]
        assert report.of_type(AnomalyType.DUPLICATE_MAPPING)[0].location["nodes"] == ["a", "c"]

    def test_report_to_dict(self):
        """Should serialize the report with anomaly types as strings."""
        graph = GeneratedGraph(nodes=(_leaf("a", DiagramRole.START),), edges=(("a", "ghost"),))
        document = validate_graph(graph).to_dict()
        assert document["valid"] is False
        assert document["total_edges"] == 1
        assert "dangling_edge" in {a["type"] for a in document["anomalies"]}


class TestCycles:
    """Test cycle detection."""

    def test_acyclic(self):
        """Should find no cycles in a DAG."""
        assert detect_cycles(_xor_graph()) == []

    def test_cycle(self):
        """Should report the nodes of a cycle in order."""
        graph = GeneratedGraph(
            nodes=(_leaf("a"), _leaf("b"), _leaf("c")),
            edges=(("a", "b"), ("b", "c"), ("c", "a")),
            mapping=_mapping("a", "b", "c"),
        )
        assert detect_cycles(graph) == [["a", "b", "c", "a"]]
        report = validate_graph(graph)
        assert report.of_type(AnomalyType.CYCLE_DETECTED)
        assert not report.is_valid

    def test_self_loop(self):
        """Should report a self loop as a cycle."""
        graph = GeneratedGraph(nodes=(_leaf("a"),), edges=(("a", "a"),), mapping=_mapping("a"))
        assert detect_cycles(graph) == [["a", "a"]]
