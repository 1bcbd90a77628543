"""
Fragment Construction

Converts one event source into a Fragment: a small graph with explicit entry
and exit node sets.

Handles:
- External sources: gateways inferred from the correlation view
- Engine boundary sources: declared starts and ends with exclusive funnels
- Engine instance sources: one composite task (or a start/end pair at the
  diagram boundary when decomposition is requested)
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from event_process_autogen.core.errors import (
    CorrelationViewUnavailable,
    DuplicateEventReference,
    GenerationError,
    GenerationWarning,
    WarningKind,
)
from event_process_autogen.correlation.view import CorrelationView, CorrelationViewProvider
from event_process_autogen.models.events import (
    EngineBoundarySource,
    EngineInstanceSource,
    EventSource,
    EventTypeRef,
    ExternalSource,
)
from event_process_autogen.models.graph import Edge, Fragment, FragmentNode, GatewayKind
from event_process_autogen.models.identifiers import (
    GatewayDirection,
    GatewayScope,
    gateway_id_for,
    id_for,
    task_id_for,
)
from event_process_autogen.stages.gateway_classifier import GatewayClassifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FragmentBuildResult:
    """A built fragment plus the non-fatal findings made while building it."""

    fragment: Fragment
    warnings: Tuple[GenerationWarning, ...] = field(default_factory=tuple)


def _components(nodes: List[FragmentNode], edges: List[Edge]) -> List[List[str]]:
    """Weakly connected parts of a node and edge set, each in node order."""
    neighbours: Dict[str, List[str]] = {node.id: [] for node in nodes}
    for source_id, target_id in edges:
        neighbours[source_id].append(target_id)
        neighbours[target_id].append(source_id)

    seen: Set[str] = set()
    components: List[List[str]] = []
    for node in nodes:
        if node.id in seen:
            continue
        seen.add(node.id)
        members: Set[str] = set()
        stack = [node.id]
        while stack:
            current = stack.pop()
            members.add(current)
            for neighbour in neighbours[current]:
                if neighbour not in seen:
                    seen.add(neighbour)
                    stack.append(neighbour)
        components.append([n.id for n in nodes if n.id in members])
    return components


class FragmentBuilder:
    """Builds one fragment per event source."""

    def __init__(
        self,
        correlation_provider: Optional[CorrelationViewProvider] = None,
        classifier: Optional[GatewayClassifier] = None,
    ):
        """
        Initialize fragment builder.

        Args:
            correlation_provider: Supplies correlation views for external sources
            classifier: Gateway classifier for external branching points
        """
        self.correlation_provider = correlation_provider
        self.classifier = classifier or GatewayClassifier()

    def build(
        self, source: EventSource, source_index: int, decompose_instance: bool = False
    ) -> FragmentBuildResult:
        """
        Build the fragment of a single source.

        Args:
            source: Event source to convert
            source_index: Position of the source in the request
            decompose_instance: Render an instance source as a start/end pair

        Returns:
            FragmentBuildResult with the fragment and any warnings
        """
        if isinstance(source, ExternalSource):
            return self.build_external(source, source_index)
        if isinstance(source, EngineBoundarySource):
            return self.build_engine_boundary(source, source_index)
        if isinstance(source, EngineInstanceSource):
            return self.build_engine_instance(source, source_index, decompose_instance)
        raise TypeError(f"Unsupported event source: {type(source).__name__}")

    # ===========================
    # External sources
    # ===========================

    def build_external(self, source: ExternalSource, source_index: int) -> FragmentBuildResult:
        view = self._fetch_view(source, source_index)
        return self.build_from_view(view, source.owner_key, source_index)

    def _fetch_view(self, source: ExternalSource, source_index: int) -> CorrelationView:
        if self.correlation_provider is None:
            raise CorrelationViewUnavailable(
                "No correlation view provider configured for external source",
                owner_key=source.owner_key,
                source_index=source_index,
            )
        try:
            return self.correlation_provider.adjacency(source)
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"Correlation view lookup failed for '{source.owner_key}': {e}")
            raise CorrelationViewUnavailable(
                f"Correlation view unavailable for source '{source.owner_key}': {e}",
                owner_key=source.owner_key,
                source_index=source_index,
            ) from e

    def build_from_view(
        self, view: CorrelationView, owner_key: str, source_index: int
    ) -> FragmentBuildResult:
        """
        Materialize the causal adjacency of a correlation view as a fragment.

        A type with several successors gets one diverging gateway anchored on
        it; a type with several predecessors gets one converging gateway
        anchored on it. Runs of single links stay direct leaf-to-leaf edges.
        """
        if view.is_empty:
            logger.warning(f"Source {source_index} ('{owner_key}') has no correlated traces")
            return FragmentBuildResult(
                fragment=Fragment.empty(owner_key, source_index),
                warnings=(
                    GenerationWarning(
                        kind=WarningKind.EMPTY_SOURCE,
                        message=f"External source '{owner_key}' has no correlated traces",
                        source_index=source_index,
                    ),
                ),
            )

        adjacency = view.causal_adjacency()
        warnings: List[GenerationWarning] = [
            GenerationWarning(
                kind=WarningKind.CYCLE_BROKEN,
                message=f"Dropped cyclic sequence '{source_event}' -> '{target_event}'",
                source_index=source_index,
                details={"source_event": str(source_event), "target_event": str(target_event)},
            )
            for source_event, target_event in adjacency.broken_edges
        ]

        nodes: List[FragmentNode] = []
        edges: List[Edge] = []
        diverging: Dict[EventTypeRef, str] = {}
        converging: Dict[EventTypeRef, str] = {}

        for event_type in adjacency.event_types:
            predecessors = adjacency.predecessors[event_type]
            successors = adjacency.successors[event_type]
            node_id = id_for(event_type)

            if len(predecessors) > 1:
                gateway = self._classified_gateway(
                    view, owner_key, source_index, event_type, predecessors,
                    GatewayDirection.CONVERGING, warnings,
                )
                converging[event_type] = gateway.id
                nodes.append(gateway)
                edges.append((gateway.id, node_id))

            nodes.append(FragmentNode.leaf(node_id, event_type))

            if len(successors) > 1:
                gateway = self._classified_gateway(
                    view, owner_key, source_index, event_type, successors,
                    GatewayDirection.DIVERGING, warnings,
                )
                diverging[event_type] = gateway.id
                nodes.append(gateway)
                edges.append((node_id, gateway.id))

        for source_event, target_event in adjacency.edges():
            edges.append(
                (
                    diverging.get(source_event, id_for(source_event)),
                    converging.get(target_event, id_for(target_event)),
                )
            )

        entry_ids = tuple(id_for(event_type) for event_type in adjacency.entry_types)
        exit_ids = tuple(id_for(event_type) for event_type in adjacency.exit_types)

        components = _components(nodes, edges)
        if len(components) > 1:
            nodes, edges, entry_ids, exit_ids = self._join_components(
                view, owner_key, source_index, components, nodes, edges, entry_ids, exit_ids, warnings
            )

        fragment = Fragment(
            owner_key=owner_key,
            source_index=source_index,
            nodes=tuple(nodes),
            edges=tuple(edges),
            entry=entry_ids,
            exit=exit_ids,
        )
        logger.debug(
            f"Built external fragment '{owner_key}': {len(fragment.leaf_nodes)} leaves, "
            f"{len(fragment.gateway_nodes)} gateways, {len(fragment.edges)} edges"
        )
        return FragmentBuildResult(fragment=fragment, warnings=tuple(warnings))

    def _classified_gateway(
        self,
        view: CorrelationView,
        owner_key: str,
        source_index: int,
        anchor: EventTypeRef,
        candidates: Tuple[EventTypeRef, ...],
        direction: GatewayDirection,
        warnings: List[GenerationWarning],
    ) -> FragmentNode:
        classification = self.classifier.classify(view.traces, anchor, candidates, direction)
        if classification.ambiguous:
            warnings.append(
                GenerationWarning(
                    kind=WarningKind.AMBIGUOUS_BRANCH_EVIDENCE,
                    message=(
                        f"Mixed evidence for {direction.value} branches at '{anchor}', "
                        "defaulting to exclusive"
                    ),
                    source_index=source_index,
                    details={
                        "anchor": str(anchor),
                        "candidates": [str(candidate) for candidate in classification.candidates],
                        "occurrences": classification.occurrences,
                        "all_visited": classification.all_visited,
                        "one_visited": classification.one_visited,
                    },
                )
            )
        return FragmentNode.gateway(
            gateway_id_for(owner_key, direction, anchor), classification.kind, direction
        )

    def _join_components(
        self,
        view: CorrelationView,
        owner_key: str,
        source_index: int,
        components: List[List[str]],
        nodes: List[FragmentNode],
        edges: List[Edge],
        entry_ids: Tuple[str, ...],
        exit_ids: Tuple[str, ...],
        warnings: List[GenerationWarning],
    ) -> Tuple[List[FragmentNode], List[Edge], Tuple[str, ...], Tuple[str, ...]]:
        """
        Wrap parts with no ordering evidence between them in a split and a join.

        The split feeds every entry leaf and the join collects every exit leaf,
        so the two source-scoped gateways become the fragment's entry and exit.
        Parts visited together in every trace are parallel, otherwise exclusive.
        """
        refs = {node.id: node.refs[0] for node in nodes if node.is_leaf}
        parts = [
            frozenset(refs[node_id] for node_id in part if node_id in refs) for part in components
        ]

        occurrences = all_visited = one_visited = 0
        for trace in view.traces:
            seen = set(trace)
            visited = sum(1 for part in parts if part & seen)
            if not visited:
                continue
            occurrences += 1
            if visited == len(parts):
                all_visited += 1
            elif visited == 1:
                one_visited += 1

        if occurrences and all_visited == occurrences:
            kind = GatewayKind.PARALLEL
        else:
            kind = GatewayKind.EXCLUSIVE
        ambiguous = occurrences == 0 or occurrences not in (all_visited, one_visited)
        labels = [sorted(str(ref) for ref in part) for part in parts]

        warnings.append(
            GenerationWarning(
                kind=WarningKind.UNORDERED_EVENTS,
                message=(
                    f"External source '{owner_key}' has {len(parts)} parts without ordering "
                    f"evidence between them, joined by {kind.value} gateways"
                ),
                source_index=source_index,
                details={"parts": labels, "gateway_kind": kind.value},
            )
        )
        if ambiguous:
            warnings.append(
                GenerationWarning(
                    kind=WarningKind.AMBIGUOUS_BRANCH_EVIDENCE,
                    message=(
                        f"Mixed evidence for the unordered parts of '{owner_key}', "
                        "defaulting to exclusive"
                    ),
                    source_index=source_index,
                    details={
                        "parts": labels,
                        "occurrences": occurrences,
                        "all_visited": all_visited,
                        "one_visited": one_visited,
                    },
                )
            )
        logger.debug(
            f"Joining {len(parts)} unordered parts of '{owner_key}' with {kind.value} gateways"
        )

        split = FragmentNode.gateway(
            gateway_id_for(owner_key, GatewayDirection.DIVERGING, GatewayScope.SOURCE),
            kind,
            GatewayDirection.DIVERGING,
        )
        join = FragmentNode.gateway(
            gateway_id_for(owner_key, GatewayDirection.CONVERGING, GatewayScope.SOURCE),
            kind,
            GatewayDirection.CONVERGING,
        )
        joined_nodes = [split, *nodes, join]
        joined_edges = [
            *((split.id, node_id) for node_id in entry_ids),
            *edges,
            *((node_id, join.id) for node_id in exit_ids),
        ]
        return joined_nodes, joined_edges, (split.id,), (join.id,)

    # ===========================
    # Engine boundary sources
    # ===========================

    def build_engine_boundary(
        self, source: EngineBoundarySource, source_index: int
    ) -> FragmentBuildResult:
        """
        Build the fragment of declared engine start and end points.

        Several starts funnel into one exclusive converging gateway, several ends
        fan out of one exclusive diverging gateway; entry and exit keep reporting
        the start and end leaves themselves.
        """
        owner_key = source.owner_key
        overlap = {a.activity_id for a in source.declared_starts} & {
            a.activity_id for a in source.declared_ends
        }
        if overlap:
            raise DuplicateEventReference(
                f"Activities {sorted(overlap)} of '{owner_key}' are declared as both start and end",
                engine_key=owner_key,
                activity_ids=sorted(overlap),
                source_index=source_index,
            )

        if not source.declared_starts and not source.declared_ends:
            logger.warning(f"Source {source_index} ('{owner_key}') declares no starts or ends")
            return FragmentBuildResult(
                fragment=Fragment.empty(owner_key, source_index),
                warnings=(
                    GenerationWarning(
                        kind=WarningKind.EMPTY_SOURCE,
                        message=f"Engine source '{owner_key}' declares no start or end events",
                        source_index=source_index,
                    ),
                ),
            )

        start_nodes = [
            FragmentNode.leaf(id_for(ref), ref)
            for ref in (EventTypeRef.engine(owner_key, a) for a in source.declared_starts)
        ]
        end_nodes = [
            FragmentNode.leaf(id_for(ref), ref)
            for ref in (EventTypeRef.engine(owner_key, a) for a in source.declared_ends)
        ]
        nodes: List[FragmentNode] = list(start_nodes)
        edges: List[Edge] = []

        funnel: Tuple[str, ...] = ()
        if len(start_nodes) > 1:
            gateway = FragmentNode.gateway(
                gateway_id_for(owner_key, GatewayDirection.CONVERGING, GatewayScope.SOURCE),
                GatewayKind.EXCLUSIVE,
                GatewayDirection.CONVERGING,
            )
            nodes.append(gateway)
            edges.extend((node.id, gateway.id) for node in start_nodes)
            funnel = (gateway.id,)
        elif start_nodes:
            funnel = (start_nodes[0].id,)

        fan: Tuple[str, ...] = ()
        if len(end_nodes) > 1:
            gateway = FragmentNode.gateway(
                gateway_id_for(owner_key, GatewayDirection.DIVERGING, GatewayScope.SOURCE),
                GatewayKind.EXCLUSIVE,
                GatewayDirection.DIVERGING,
            )
            nodes.append(gateway)
            fan = (gateway.id,)
        elif end_nodes:
            fan = (end_nodes[0].id,)

        if funnel and fan:
            edges.append((funnel[0], fan[0]))
        if len(end_nodes) > 1:
            edges.extend((fan[0], node.id) for node in end_nodes)
        nodes.extend(end_nodes)

        warnings: Tuple[GenerationWarning, ...] = ()
        if not end_nodes or not start_nodes:
            missing = "end" if not end_nodes else "start"
            warnings = (
                GenerationWarning(
                    kind=WarningKind.OPEN_FRAGMENT,
                    message=f"Engine source '{owner_key}' declares no {missing} events",
                    source_index=source_index,
                    details={"missing": missing},
                ),
            )

        fragment = Fragment(
            owner_key=owner_key,
            source_index=source_index,
            nodes=tuple(nodes),
            edges=tuple(edges),
            entry=tuple(node.id for node in start_nodes),
            exit=tuple(node.id for node in end_nodes),
            open_head=fan if not start_nodes else (),
            open_tail=funnel if not end_nodes else (),
        )
        logger.debug(
            f"Built boundary fragment '{owner_key}': {len(start_nodes)} starts, "
            f"{len(end_nodes)} ends, {len(fragment.gateway_nodes)} gateways"
        )
        return FragmentBuildResult(fragment=fragment, warnings=warnings)

    # ===========================
    # Engine instance sources
    # ===========================

    def build_engine_instance(
        self, source: EngineInstanceSource, source_index: int, decompose: bool = False
    ) -> FragmentBuildResult:
        owner_key = source.owner_key
        start_event = source.start_event
        end_event = source.end_event

        if decompose:
            start_node = FragmentNode.leaf(id_for(start_event), start_event)
            end_node = FragmentNode.leaf(id_for(end_event), end_event)
            fragment = Fragment(
                owner_key=owner_key,
                source_index=source_index,
                nodes=(start_node, end_node),
                edges=((start_node.id, end_node.id),),
                entry=(start_node.id,),
                exit=(end_node.id,),
            )
            logger.debug(f"Built decomposed instance fragment '{owner_key}'")
            return FragmentBuildResult(fragment=fragment)

        task = FragmentNode.composite_task(task_id_for(owner_key), start_event, end_event, owner_key)
        fragment = Fragment(
            owner_key=owner_key,
            source_index=source_index,
            nodes=(task,),
            entry=(task.id,),
            exit=(task.id,),
        )
        logger.debug(f"Built composite instance fragment '{owner_key}'")
        return FragmentBuildResult(fragment=fragment)


__all__ = ["FragmentBuildResult", "FragmentBuilder"]
