"""
Gateway Classification

Decides whether a branching or merging point inside an external fragment is an
exclusive alternation or a concurrency, based on same-trace occurrence evidence.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, Tuple

from event_process_autogen.models.events import EventTypeRef
from event_process_autogen.models.graph import GatewayKind
from event_process_autogen.models.identifiers import GatewayDirection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BranchClassification:
    """Outcome of classifying one anchor and its candidate branches."""

    kind: GatewayKind
    anchor: EventTypeRef
    direction: GatewayDirection
    candidates: Tuple[EventTypeRef, ...]
    occurrences: int
    """Number of anchor occurrences inspected"""

    all_visited: int
    """Occurrences visiting every candidate"""

    one_visited: int
    """Occurrences visiting exactly one candidate"""

    @property
    def ambiguous(self) -> bool:
        """Whether the evidence was mixed and the exclusive default was applied."""
        return self.occurrences not in (self.all_visited, self.one_visited) or self.occurrences == 0


class GatewayClassifier:
    """
    Classifies fan-out and fan-in points from trace evidence.

    For a diverging anchor every occurrence is inspected from the anchor up to
    its next occurrence (or the end of the trace); for a converging anchor from
    its previous occurrence (or the start of the trace) up to the anchor.
    If all occurrences visit every candidate the point is parallel, if all
    visit exactly one it is exclusive. Anything else is mixed evidence and
    defaults to exclusive.
    """

    def classify(
        self,
        traces: Iterable[Sequence[EventTypeRef]],
        anchor: EventTypeRef,
        candidates: Iterable[EventTypeRef],
        direction: GatewayDirection,
    ) -> BranchClassification:
        candidate_set = frozenset(candidates)
        occurrences = 0
        all_visited = 0
        one_visited = 0

        for trace in traces:
            for window in self._windows(trace, anchor, direction):
                occurrences += 1
                visited = candidate_set.intersection(window)
                if len(visited) == len(candidate_set):
                    all_visited += 1
                elif len(visited) == 1:
                    one_visited += 1

        if occurrences and all_visited == occurrences:
            kind = GatewayKind.PARALLEL
        else:
            kind = GatewayKind.EXCLUSIVE

        classification = BranchClassification(
            kind=kind,
            anchor=anchor,
            direction=direction,
            candidates=tuple(sorted(candidate_set, key=lambda ref: ref.key)),
            occurrences=occurrences,
            all_visited=all_visited,
            one_visited=one_visited,
        )
        if classification.ambiguous:
            logger.debug(
                f"Mixed branch evidence at '{anchor}' ({direction.value}): "
                f"{occurrences} occurrences, {all_visited} visiting all, "
                f"{one_visited} visiting one; defaulting to exclusive"
            )
        return classification

    @staticmethod
    def _windows(
        trace: Sequence[EventTypeRef], anchor: EventTypeRef, direction: GatewayDirection
    ) -> Iterator[Sequence[EventTypeRef]]:
        positions = [index for index, event_type in enumerate(trace) if event_type == anchor]
        for number, position in enumerate(positions):
            if direction == GatewayDirection.DIVERGING:
                stop = positions[number + 1] if number + 1 < len(positions) else len(trace)
                yield trace[position + 1 : stop]
            else:
                start = positions[number - 1] + 1 if number > 0 else 0
                yield trace[start:position]


__all__ = ["BranchClassification", "GatewayClassifier"]
