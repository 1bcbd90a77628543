"""
Role Assignment

Gives every node of the connected arena its diagram role and assembles the
node to event type mapping.
"""

import logging
from typing import Dict, FrozenSet, List, Sequence

from event_process_autogen.models.graph import (
    DiagramRole,
    Fragment,
    FragmentNode,
    GeneratedGraph,
    GraphNode,
    NodeMapping,
)
from event_process_autogen.stages.fragment_connector import ConnectionAccumulator

logger = logging.getLogger(__name__)


class RoleAssigner:
    """
    Labels nodes Start, End, Intermediate, Gateway or CompositeTask.

    Rules, in precedence order:
    1. Gateways are Gateway, composite instance nodes are CompositeTask
    2. Leaves in the entry set of the first fragment are Start
    3. Leaves in the exit set of the last fragment with a non-empty exit are End
    4. Every other leaf is Intermediate
    """

    def assign(self, connected: ConnectionAccumulator) -> GeneratedGraph:
        start_ids = self._start_ids(connected.fragments)
        end_ids = self._end_ids(connected.fragments)

        nodes: List[GraphNode] = []
        mapping: Dict[str, NodeMapping] = {}
        for node in connected.nodes:
            role = self._role_for(node, start_ids, end_ids)
            nodes.append(
                GraphNode(
                    id=node.id,
                    role=role,
                    gateway_kind=node.gateway_kind,
                    gateway_direction=node.gateway_direction,
                    label=node.label,
                )
            )
            if node.is_leaf:
                mapping[node.id] = NodeMapping(
                    start=node.refs[0], end=node.refs[1] if len(node.refs) > 1 else None
                )

        graph = GeneratedGraph(nodes=tuple(nodes), edges=connected.edges, mapping=mapping)
        logger.debug(
            f"Assigned roles: {len(graph.get_nodes_by_role(DiagramRole.START))} start, "
            f"{len(graph.get_nodes_by_role(DiagramRole.END))} end, "
            f"{len(graph.get_gateways())} gateways"
        )
        return graph

    @staticmethod
    def _role_for(node: FragmentNode, start_ids: FrozenSet[str], end_ids: FrozenSet[str]) -> DiagramRole:
        if node.is_gateway:
            return DiagramRole.GATEWAY
        if node.composite:
            return DiagramRole.COMPOSITE_TASK
        if node.id in start_ids:
            return DiagramRole.START
        if node.id in end_ids:
            return DiagramRole.END
        return DiagramRole.INTERMEDIATE

    @staticmethod
    def _start_ids(fragments: Sequence[Fragment]) -> FrozenSet[str]:
        if not fragments:
            return frozenset()
        return frozenset(fragments[0].entry)

    @staticmethod
    def _end_ids(fragments: Sequence[Fragment]) -> FrozenSet[str]:
        for fragment in reversed(fragments):
            if fragment.exit:
                return frozenset(fragment.exit)
        return frozenset()


__all__ = ["RoleAssigner"]
