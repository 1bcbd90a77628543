"""
Fragment Connection

Stitches the ordered fragments into one graph. Each adjacent pair is joined at
a junction whose shape depends only on the number of upstream exit nodes (U)
and downstream entry nodes (D):

    U=1, D=1   direct edge
    U=1, D>1   diverging gateway keyed by the downstream owner
    U>1, D=1   converging gateway keyed by the upstream owner
    U>1, D>1   converging then diverging gateway in series

Connecting gateways are always exclusive.
"""

import logging
from dataclasses import dataclass, field
from functools import reduce
from typing import Callable, List, Optional, Sequence, Tuple

from event_process_autogen.models.graph import Edge, Fragment, FragmentNode, GatewayKind
from event_process_autogen.models.identifiers import (
    GatewayDirection,
    GatewayScope,
    gateway_id_for,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Junction:
    """The connection realized between two adjacent fragments."""

    upstream_owner: str
    downstream_owner: str
    upstream_nodes: Tuple[str, ...]
    downstream_nodes: Tuple[str, ...]
    gateways: Tuple[FragmentNode, ...] = field(default_factory=tuple)
    edges: Tuple[Edge, ...] = field(default_factory=tuple)

    @property
    def gateway_count(self) -> int:
        return len(self.gateways)


@dataclass(frozen=True)
class ConnectionAccumulator:
    """
    State threaded through the left fold over the ordered fragments.

    ``previous`` is the last fragment folded in; its outbound nodes are where
    the next junction starts.
    """

    nodes: Tuple[FragmentNode, ...] = field(default_factory=tuple)
    edges: Tuple[Edge, ...] = field(default_factory=tuple)
    fragments: Tuple[Fragment, ...] = field(default_factory=tuple)
    junctions: Tuple[Junction, ...] = field(default_factory=tuple)
    previous: Optional[Fragment] = None


class FragmentConnector:
    """Connects fragments left to right into a single node and edge arena."""

    def __init__(self, checkpoint: Optional[Callable[[], None]] = None):
        """
        Initialize fragment connector.

        Args:
            checkpoint: Called before every junction; may raise to abort connection
        """
        self.checkpoint = checkpoint

    def connect(self, fragments: Sequence[Fragment]) -> ConnectionAccumulator:
        """
        Fold the non-empty fragments, in order, into one accumulator.

        Empty fragments contribute nothing and are skipped, so their neighbours
        are joined directly.
        """
        populated = [fragment for fragment in fragments if not fragment.is_empty]
        result = reduce(self.step, populated, ConnectionAccumulator())
        logger.debug(
            f"Connected {len(result.fragments)} fragments through "
            f"{len(result.junctions)} junctions"
        )
        return result

    def step(self, accumulator: ConnectionAccumulator, fragment: Fragment) -> ConnectionAccumulator:
        if accumulator.previous is None:
            return ConnectionAccumulator(
                nodes=fragment.nodes,
                edges=fragment.edges,
                fragments=(fragment,),
                previous=fragment,
            )

        if self.checkpoint is not None:
            self.checkpoint()

        junction = self.junction(accumulator.previous, fragment)
        return ConnectionAccumulator(
            nodes=accumulator.nodes + junction.gateways + fragment.nodes,
            edges=accumulator.edges + junction.edges + fragment.edges,
            fragments=accumulator.fragments + (fragment,),
            junctions=accumulator.junctions + (junction,),
            previous=fragment,
        )

    @staticmethod
    def junction(upstream: Fragment, downstream: Fragment) -> Junction:
        """Build the gateways and edges joining ``upstream`` to ``downstream``."""
        sources = upstream.outbound
        targets = downstream.inbound
        gateways: List[FragmentNode] = []
        edges: List[Edge] = []

        if len(sources) > 1:
            converging = FragmentNode.gateway(
                gateway_id_for(upstream.owner_key, GatewayDirection.CONVERGING, GatewayScope.CONNECTION),
                GatewayKind.EXCLUSIVE,
                GatewayDirection.CONVERGING,
            )
            gateways.append(converging)
            edges.extend((source, converging.id) for source in sources)
            tail = converging.id
        else:
            tail = sources[0]

        if len(targets) > 1:
            diverging = FragmentNode.gateway(
                gateway_id_for(downstream.owner_key, GatewayDirection.DIVERGING, GatewayScope.CONNECTION),
                GatewayKind.EXCLUSIVE,
                GatewayDirection.DIVERGING,
            )
            gateways.append(diverging)
            edges.append((tail, diverging.id))
            edges.extend((diverging.id, target) for target in targets)
        else:
            edges.append((tail, targets[0]))

        logger.debug(
            f"Junction '{upstream.owner_key}' -> '{downstream.owner_key}': "
            f"U={len(sources)}, D={len(targets)}, {len(gateways)} gateways"
        )
        return Junction(
            upstream_owner=upstream.owner_key,
            downstream_owner=downstream.owner_key,
            upstream_nodes=sources,
            downstream_nodes=targets,
            gateways=tuple(gateways),
            edges=tuple(edges),
        )


__all__ = ["ConnectionAccumulator", "FragmentConnector", "Junction"]
