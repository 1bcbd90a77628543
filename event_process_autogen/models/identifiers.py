"""
Deterministic Identifier Generation

Node and gateway ids are pure functions of input identity so that downstream
serializers and tests can predict them without re-running generation. All ids
are valid XML NCNames.
"""

import hashlib
import re
from enum import Enum
from typing import Union

from event_process_autogen.models.events import EventTypeRef

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")
_DIGEST_LENGTH = 8


class GatewayDirection(str, Enum):
    """Direction of a gateway relative to the flow."""

    CONVERGING = "converging"  # fan-in
    DIVERGING = "diverging"  # fan-out


class GatewayScope(str, Enum):
    """Anchors for gateways that are not derived from a single event node."""

    SOURCE = "source"  # funnel or split owned by a single source
    CONNECTION = "connection"  # junction between two adjacent fragments


GatewayAnchor = Union[EventTypeRef, GatewayScope]


def _slug(value: str) -> str:
    return _UNSAFE_CHARS.sub("_", value).strip("_") or "x"


def _digest(*parts: str) -> str:
    joined = "\x1f".join(parts)
    return hashlib.sha1(joined.encode("utf-8")).hexdigest()[:_DIGEST_LENGTH]


def id_for(event_type: EventTypeRef) -> str:
    """Return the diagram node id of a leaf mapped to ``event_type``."""
    return f"event_{_slug(event_type.event_name)}_{_digest(*event_type.key)}"


def gateway_id_for(owner_key: str, direction: GatewayDirection, anchor: GatewayAnchor) -> str:
    """
    Return the id of a gateway.

    Gateways inside an external fragment are anchored on the event type they
    fan out of (diverging) or into (converging). Engine boundary funnels and
    fragment junctions are anchored on a ``GatewayScope`` and owned by a source.

    Args:
        owner_key: Identity of the source the gateway is attributed to
        direction: Converging or diverging
        anchor: Event type or scope the gateway is derived from

    Returns:
        Deterministic gateway id
    """
    direction = GatewayDirection(direction)
    if isinstance(anchor, EventTypeRef):
        digest = _digest(owner_key, direction.value, *anchor.key)
        return f"gateway_{direction.value}_{_slug(anchor.event_name)}_{digest}"

    scope = GatewayScope(anchor)
    digest = _digest(owner_key, scope.value, direction.value)
    return f"gateway_{scope.value}_{direction.value}_{_slug(owner_key)}_{digest}"


def task_id_for(owner_key: str) -> str:
    """Return the id of the composite task representing a whole process instance."""
    return f"task_{_slug(owner_key)}_{_digest(owner_key)}"


__all__ = [
    "GatewayAnchor",
    "GatewayDirection",
    "GatewayScope",
    "gateway_id_for",
    "id_for",
    "task_id_for",
]
