"""
Tests for fragment construction.

Tests covering:
- External sources (XOR, AND, cycles, unordered parts, empty views, provider failures)
- Engine boundary sources (funnels, open fragments, overlaps)
- Engine instance sources (composite and decomposed)
"""

import pytest

from event_process_autogen.core.errors import (
    CorrelationViewUnavailable,
    DuplicateEventReference,
    WarningKind,
)
from event_process_autogen.models import (
    ActivityRef,
    EngineInstanceSource,
    EventTypeRef,
    ExternalSource,
    GatewayDirection,
    GatewayKind,
    GatewayScope,
    gateway_id_for,
    id_for,
    task_id_for,
)
from event_process_autogen.stages import FragmentBuilder


def _activity(activity_id):
    return ActivityRef(activity_id=activity_id)


class FailingProvider:
    """Correlation provider whose backend is down."""

    def adjacency(self, source):
        raise RuntimeError("index unavailable")


class TestExternalFragments:
    """Test fragments of external sources."""

    def test_xor_branch(self, provider_for, event_type):
        """Should insert one exclusive diverging gateway after the branching type."""
        builder = FragmentBuilder(provider_for({"t1": "ABC", "t2": "ABD"}))
        result = builder.build(ExternalSource(), 0)
        fragment = result.fragment

        a, b, c, d = (id_for(event_type(n)) for n in "ABCD")
        gateway = gateway_id_for("external", GatewayDirection.DIVERGING, event_type("B"))

        assert [node.id for node in fragment.leaf_nodes] == [a, b, c, d]
        assert len(fragment.gateway_nodes) == 1
        assert fragment.get_node(gateway).gateway_kind == GatewayKind.EXCLUSIVE
        assert set(fragment.edges) == {(a, b), (b, gateway), (gateway, c), (gateway, d)}
        assert fragment.entry == (a,)
        assert fragment.exit == (c, d)
        assert result.warnings == ()

    def test_and_branch(self, provider_for, event_type):
        """Should insert parallel split and join gateways around concurrent types."""
        builder = FragmentBuilder(provider_for({"t1": "ABCD", "t2": "ACBD"}))
        fragment = builder.build(ExternalSource(), 0).fragment

        a, b, c, d = (id_for(event_type(n)) for n in "ABCD")
        split = gateway_id_for("external", GatewayDirection.DIVERGING, event_type("A"))
        join = gateway_id_for("external", GatewayDirection.CONVERGING, event_type("D"))

        assert len(fragment.leaf_nodes) == 4
        assert {node.id for node in fragment.gateway_nodes} == {split, join}
        assert all(node.gateway_kind == GatewayKind.PARALLEL for node in fragment.gateway_nodes)
        assert set(fragment.edges) == {
            (a, split),
            (split, b),
            (split, c),
            (b, join),
            (c, join),
            (join, d),
        }
        assert len(fragment.edges) == 6

    def test_cycle_warning(self, provider_for):
        """Should record every dropped back edge as a warning."""
        builder = FragmentBuilder(provider_for({"t1": "ABCAD"}))
        result = builder.build(ExternalSource(), 3)
        warnings = [w for w in result.warnings if w.kind == WarningKind.CYCLE_BROKEN]
        assert len(warnings) == 1
        assert warnings[0].source_index == 3

    def test_ambiguous_evidence_warning(self, provider_for):
        """Should record mixed branch evidence as a warning."""
        builder = FragmentBuilder(provider_for({"t1": "BC", "t2": "BD", "t3": "BDC"}))
        result = builder.build(ExternalSource(), 0)
        kinds = {w.kind for w in result.warnings}
        assert WarningKind.AMBIGUOUS_BRANCH_EVIDENCE in kinds
        assert all(
            node.gateway_kind == GatewayKind.EXCLUSIVE for node in result.fragment.gateway_nodes
        )

    def test_interleaved_events_are_joined(self, provider_for, event_type):
        """Should wrap types seen in both orders in a parallel split and join."""
        result = FragmentBuilder(provider_for({"t1": "AB", "t2": "BA"})).build(ExternalSource(), 0)
        fragment = result.fragment

        a, b = (id_for(event_type(n)) for n in "AB")
        split = gateway_id_for("external", GatewayDirection.DIVERGING, GatewayScope.SOURCE)
        join = gateway_id_for("external", GatewayDirection.CONVERGING, GatewayScope.SOURCE)

        assert [node.id for node in fragment.leaf_nodes] == [a, b]
        assert {node.id for node in fragment.gateway_nodes} == {split, join}
        assert all(node.gateway_kind == GatewayKind.PARALLEL for node in fragment.gateway_nodes)
        assert set(fragment.edges) == {(split, a), (split, b), (a, join), (b, join)}
        assert fragment.entry == (split,)
        assert fragment.exit == (join,)
        assert [w.kind for w in result.warnings] == [WarningKind.UNORDERED_EVENTS]

    def test_unrelated_traces_are_exclusive(self, provider_for, event_type):
        """Should join parts that never share a trace with exclusive gateways."""
        result = FragmentBuilder(provider_for({"t1": "AB", "t2": "CD"})).build(ExternalSource(), 0)
        fragment = result.fragment

        a, b, c, d = (id_for(event_type(n)) for n in "ABCD")
        split = gateway_id_for("external", GatewayDirection.DIVERGING, GatewayScope.SOURCE)
        join = gateway_id_for("external", GatewayDirection.CONVERGING, GatewayScope.SOURCE)

        assert all(node.gateway_kind == GatewayKind.EXCLUSIVE for node in fragment.gateway_nodes)
        assert set(fragment.edges) == {(split, a), (a, b), (b, join), (split, c), (c, d), (d, join)}
        assert len(result.warnings[0].details["parts"]) == 2

    def test_unordered_parts_with_mixed_evidence(self, provider_for):
        """Should default unordered parts to exclusive and warn on mixed evidence."""
        result = FragmentBuilder(provider_for({"t1": "AB", "t2": "BA", "t3": "A"})).build(
            ExternalSource(), 0
        )
        assert all(
            node.gateway_kind == GatewayKind.EXCLUSIVE for node in result.fragment.gateway_nodes
        )
        assert [w.kind for w in result.warnings] == [
            WarningKind.UNORDERED_EVENTS,
            WarningKind.AMBIGUOUS_BRANCH_EVIDENCE,
        ]

    def test_empty_view(self, provider_for):
        """Should return an empty fragment and a warning for a source without traces."""
        builder = FragmentBuilder(provider_for({"t1": "AB"}))
        result = builder.build(ExternalSource(group="nothing"), 1)
        assert result.fragment.is_empty
        assert [w.kind for w in result.warnings] == [WarningKind.EMPTY_SOURCE]

    def test_missing_provider(self):
        """Should fail when no provider is configured."""
        with pytest.raises(CorrelationViewUnavailable):
            FragmentBuilder().build(ExternalSource(), 0)

    def test_provider_failure_is_wrapped(self):
        """Should wrap collaborator failures and keep the cause."""
        with pytest.raises(CorrelationViewUnavailable) as exc_info:
            FragmentBuilder(FailingProvider()).build(ExternalSource(), 0)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.details["source_index"] == 0


class TestEngineBoundaryFragments:
    """Test fragments of engine boundary sources."""

    def test_single_start_single_end(self, boundary):
        """Should connect one start directly to one end."""
        fragment = FragmentBuilder().build(boundary("invoice", ["start"], ["end"]), 0).fragment
        start = id_for(EventTypeRef.engine("invoice", _activity("start")))
        end = id_for(EventTypeRef.engine("invoice", _activity("end")))
        assert fragment.edges == ((start, end),)
        assert fragment.gateway_nodes == []
        assert fragment.entry == (start,)
        assert fragment.exit == (end,)

    def test_several_starts_and_ends(self, boundary):
        """Should funnel starts into a converging gateway feeding a diverging gateway."""
        fragment = FragmentBuilder().build(boundary("invoice", ["s1", "s2"], ["e1", "e2"]), 0).fragment
        funnel = gateway_id_for("invoice", GatewayDirection.CONVERGING, GatewayScope.SOURCE)
        fan = gateway_id_for("invoice", GatewayDirection.DIVERGING, GatewayScope.SOURCE)
        s1, s2, e1, e2 = (
            id_for(EventTypeRef.engine("invoice", _activity(a))) for a in ("s1", "s2", "e1", "e2")
        )

        assert set(fragment.edges) == {(s1, funnel), (s2, funnel), (funnel, fan), (fan, e1), (fan, e2)}
        assert all(node.gateway_kind == GatewayKind.EXCLUSIVE for node in fragment.gateway_nodes)
        assert fragment.entry == (s1, s2)
        assert fragment.exit == (e1, e2)

    def test_no_ends_is_open(self, boundary):
        """Should expose the funnel point of a fragment without ends."""
        result = FragmentBuilder().build(boundary("invoice", ["s1", "s2"]), 0)
        funnel = gateway_id_for("invoice", GatewayDirection.CONVERGING, GatewayScope.SOURCE)
        assert result.fragment.exit == ()
        assert result.fragment.open_tail == (funnel,)
        assert result.fragment.outbound == (funnel,)
        assert [w.kind for w in result.warnings] == [WarningKind.OPEN_FRAGMENT]

    def test_no_starts_is_open(self, boundary):
        """Should expose the single end as the inbound point of a fragment without starts."""
        result = FragmentBuilder().build(boundary("invoice", ends=["e1"]), 0)
        end = id_for(EventTypeRef.engine("invoice", _activity("e1")))
        assert result.fragment.entry == ()
        assert result.fragment.inbound == (end,)
        assert result.fragment.edges == ()

    def test_nothing_declared(self, boundary):
        """Should return an empty fragment when nothing is declared."""
        result = FragmentBuilder().build(boundary("invoice"), 0)
        assert result.fragment.is_empty
        assert [w.kind for w in result.warnings] == [WarningKind.EMPTY_SOURCE]

    def test_start_and_end_overlap(self, boundary):
        """Should reject an activity declared as both start and end."""
        with pytest.raises(DuplicateEventReference):
            FragmentBuilder().build(boundary("invoice", ["a"], ["a"]), 0)

    def test_declared_duplicates_are_collapsed(self, boundary):
        """Should keep one leaf per declared activity."""
        fragment = FragmentBuilder().build(boundary("invoice", ["s", "s"], ["e"]), 0).fragment
        assert len(fragment.leaf_nodes) == 2


class TestEngineInstanceFragments:
    """Test fragments of engine instance sources."""

    def test_composite(self):
        """Should represent an instance as one composite node."""
        source = EngineInstanceSource(engine_key="payment")
        fragment = FragmentBuilder().build(source, 2).fragment
        assert len(fragment.nodes) == 1
        node = fragment.nodes[0]
        assert node.id == task_id_for("payment")
        assert node.composite
        assert node.refs == (source.start_event, source.end_event)
        assert fragment.entry == fragment.exit == (node.id,)

    def test_decomposed(self):
        """Should split an instance into start and end leaves on request."""
        source = EngineInstanceSource(engine_key="payment")
        fragment = FragmentBuilder().build(source, 0, decompose_instance=True).fragment
        start, end = id_for(source.start_event), id_for(source.end_event)
        assert fragment.edges == ((start, end),)
        assert fragment.entry == (start,)
        assert fragment.exit == (end,)
        assert not any(node.composite for node in fragment.nodes)
