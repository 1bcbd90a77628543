"""
Event Correlation View

Supplies, for an external event source, the directly-follows structure over the
distinct event types observed within same-trace sequences, together with the
trace-level occurrence evidence the gateway classifier needs.

Handles:
- Grouping correlated events into traces ordered by timestamp
- Directly-follows sequence counts (source event -> target event)
- Reduction to a causal, acyclic adjacency with entry and exit types
"""

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field

from event_process_autogen.models.events import EventTypeRef, ExternalSource

logger = logging.getLogger(__name__)

Trace = Tuple[EventTypeRef, ...]
Pair = Tuple[EventTypeRef, EventTypeRef]


class CorrelatedEvent(BaseModel):
    """A single ingested event carrying the id of the trace it belongs to."""

    model_config = ConfigDict(frozen=True)

    trace_id: str = Field(..., min_length=1, description="Correlation key shared by a trace")
    timestamp: datetime = Field(..., description="Occurrence time")
    event: EventTypeRef = Field(..., description="Event type of the occurrence")


class SequenceCount(BaseModel):
    """How often ``target_event`` directly followed ``source_event`` within a trace."""

    model_config = ConfigDict(frozen=True)

    source_event: EventTypeRef
    target_event: EventTypeRef
    count: int = Field(..., ge=1)


@dataclass(frozen=True)
class CausalAdjacency:
    """Acyclic precedes-relation derived from the observed sequences."""

    event_types: Tuple[EventTypeRef, ...]
    successors: Dict[EventTypeRef, Tuple[EventTypeRef, ...]]
    predecessors: Dict[EventTypeRef, Tuple[EventTypeRef, ...]]
    entry_types: Tuple[EventTypeRef, ...]
    exit_types: Tuple[EventTypeRef, ...]
    concurrent_pairs: Tuple[Pair, ...] = field(default_factory=tuple)
    broken_edges: Tuple[Pair, ...] = field(default_factory=tuple)

    def edges(self) -> List[Pair]:
        return [(source, target) for source in self.event_types for target in self.successors[source]]


class CorrelationView(BaseModel):
    """Correlated traces of one external source and their directly-follows counts."""

    model_config = ConfigDict(frozen=True)

    event_types: Tuple[EventTypeRef, ...] = Field(
        default_factory=tuple, description="Distinct event types in first-seen order"
    )
    traces: Tuple[Trace, ...] = Field(default_factory=tuple, description="Ordered traces")
    sequence_counts: Tuple[SequenceCount, ...] = Field(default_factory=tuple)

    @classmethod
    def from_traces(cls, traces: Iterable[Sequence[EventTypeRef]]) -> "CorrelationView":
        """Build a view from already ordered traces."""
        ordered_traces = tuple(tuple(trace) for trace in traces if trace)

        event_types: List[EventTypeRef] = []
        seen: Set[EventTypeRef] = set()
        counts: Counter = Counter()
        for trace in ordered_traces:
            for event_type in trace:
                if event_type not in seen:
                    seen.add(event_type)
                    event_types.append(event_type)
            for source_event, target_event in zip(trace, trace[1:]):
                counts[(source_event, target_event)] += 1

        position = {event_type: index for index, event_type in enumerate(event_types)}
        sequence_counts = tuple(
            SequenceCount(source_event=source_event, target_event=target_event, count=count)
            for (source_event, target_event), count in sorted(
                counts.items(), key=lambda item: (position[item[0][0]], position[item[0][1]])
            )
        )
        return cls(
            event_types=tuple(event_types),
            traces=ordered_traces,
            sequence_counts=sequence_counts,
        )

    @property
    def is_empty(self) -> bool:
        return not self.traces

    def count(self, source_event: EventTypeRef, target_event: EventTypeRef) -> int:
        for sequence in self.sequence_counts:
            if sequence.source_event == source_event and sequence.target_event == target_event:
                return sequence.count
        return 0

    def causal_adjacency(self) -> CausalAdjacency:
        """
        Reduce the directly-follows relation to an acyclic precedes-relation.

        Pairs observed in both orders are interleavings of concurrent events and
        are dropped; self loops are dropped; remaining cycles are broken by
        removing the back edges of a depth-first walk that starts at the types
        without predecessor, in first-seen order.
        """
        observed: Set[Pair] = {(s.source_event, s.target_event) for s in self.sequence_counts}

        self_loops = [(a, b) for a, b in observed if a == b]
        concurrent = [(a, b) for a, b in observed if a != b and (b, a) in observed]
        kept = observed - set(self_loops) - set(concurrent)

        successors = {
            event_type: [target for target in self.event_types if (event_type, target) in kept]
            for event_type in self.event_types
        }
        has_predecessor = {target for _, target in kept}
        roots = [t for t in self.event_types if t not in has_predecessor]
        roots += [t for t in self.event_types if t in has_predecessor]

        back_edges = self._find_back_edges(roots, successors)
        kept -= set(back_edges)

        position = {event_type: index for index, event_type in enumerate(self.event_types)}

        def ordered(pairs: Iterable[Pair]) -> Tuple[Pair, ...]:
            return tuple(sorted(pairs, key=lambda pair: (position[pair[0]], position[pair[1]])))

        final_successors = {
            event_type: tuple(t for t in self.event_types if (event_type, t) in kept)
            for event_type in self.event_types
        }
        final_predecessors = {
            event_type: tuple(s for s in self.event_types if (s, event_type) in kept)
            for event_type in self.event_types
        }

        adjacency = CausalAdjacency(
            event_types=self.event_types,
            successors=final_successors,
            predecessors=final_predecessors,
            entry_types=tuple(t for t in self.event_types if not final_predecessors[t]),
            exit_types=tuple(t for t in self.event_types if not final_successors[t]),
            concurrent_pairs=ordered(p for p in concurrent if position[p[0]] < position[p[1]]),
            broken_edges=ordered(self_loops + back_edges),
        )
        logger.debug(
            f"Causal adjacency: {len(self.event_types)} types, {len(adjacency.edges())} edges, "
            f"{len(adjacency.concurrent_pairs)} concurrent pairs, "
            f"{len(adjacency.broken_edges)} broken edges"
        )
        return adjacency

    @staticmethod
    def _find_back_edges(
        roots: List[EventTypeRef], successors: Dict[EventTypeRef, List[EventTypeRef]]
    ) -> List[Pair]:
        on_stack = 1
        done = 2
        state: Dict[EventTypeRef, int] = {}
        back_edges: List[Pair] = []

        for root in roots:
            if root in state:
                continue
            state[root] = on_stack
            stack = [(root, iter(successors[root]))]
            while stack:
                node, remaining = stack[-1]
                for target in remaining:
                    target_state = state.get(target)
                    if target_state == on_stack:
                        back_edges.append((node, target))
                    elif target_state is None:
                        state[target] = on_stack
                        stack.append((target, iter(successors[target])))
                        break
                else:
                    state[node] = done
                    stack.pop()

        return back_edges


class CorrelationViewProvider(Protocol):
    """Collaborator supplying correlation views for external sources."""

    def adjacency(self, source: ExternalSource) -> CorrelationView:
        ...


class InMemoryCorrelationViewProvider:
    """
    Correlates ingested events into traces held in memory.

    Events of one trace are ordered by timestamp, ties broken by ingestion
    order. An external source with a group only sees events of that group.
    """

    def __init__(self, events: Iterable[CorrelatedEvent] = ()):
        self._events: List[Tuple[int, CorrelatedEvent]] = []
        self.ingest(events)

    def ingest(self, events: Iterable[CorrelatedEvent]) -> int:
        """Add events; returns the number of events ingested."""
        added = 0
        for event in events:
            self._events.append((len(self._events), event))
            added += 1
        if added:
            logger.debug(f"Ingested {added} correlated events")
        return added

    @property
    def event_count(self) -> int:
        return len(self._events)

    def traces_for(self, group: Optional[str] = None) -> List[Trace]:
        by_trace: Dict[str, List[Tuple[datetime, int, EventTypeRef]]] = defaultdict(list)
        for sequence_number, correlated in self._events:
            if group is not None and correlated.event.group != group:
                continue
            by_trace[correlated.trace_id].append(
                (correlated.timestamp, sequence_number, correlated.event)
            )

        def first_occurrence(trace_id: str) -> Tuple[datetime, int]:
            return min(item[:2] for item in by_trace[trace_id])

        ordered_trace_ids = sorted(by_trace, key=lambda trace_id: (first_occurrence(trace_id), trace_id))
        return [
            tuple(event for _, _, event in sorted(by_trace[trace_id], key=lambda item: item[:2]))
            for trace_id in ordered_trace_ids
        ]

    def adjacency(self, source: ExternalSource) -> CorrelationView:
        traces = self.traces_for(source.group)
        logger.debug(f"Resolved {len(traces)} traces for source '{source.owner_key}'")
        return CorrelationView.from_traces(traces)


__all__ = [
    "CausalAdjacency",
    "CorrelatedEvent",
    "CorrelationView",
    "CorrelationViewProvider",
    "InMemoryCorrelationViewProvider",
    "SequenceCount",
]
