"""
Event Source Models

Defines the inputs of an autogeneration request: the event types that can be
mapped onto diagram nodes and the three kinds of event sources a caller can
order into a single process model.
"""

from typing import Annotated, Any, Iterable, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENGINE_EVENT_SOURCE = "camunda"
EXTERNAL_OWNER_KEY = "external"
PROCESS_INSTANCE_START_SUFFIX = "_processInstanceStart"
PROCESS_INSTANCE_END_SUFFIX = "_processInstanceEnd"


class ActivityRef(BaseModel):
    """Reference to a flow node of an engine-hosted process definition."""

    model_config = ConfigDict(frozen=True)

    activity_id: str = Field(..., min_length=1, description="Flow node id in the definition")
    label: Optional[str] = Field(None, description="Display name of the flow node")


class EventTypeRef(BaseModel):
    """
    Identifies a concrete, mappable event type.

    External events are identified by (group, source, event_name). Engine events
    use the engine event source, the engine key as group and the activity id as
    event name. The label is descriptive only and takes no part in identity.
    """

    model_config = ConfigDict(frozen=True)

    group: Optional[str] = Field(None, description="Event group (engine key for engine events)")
    source: str = Field(..., min_length=1, description="Producer of the event")
    event_name: str = Field(..., min_length=1, description="Event type name")
    label: Optional[str] = Field(None, description="Display label")

    @property
    def key(self) -> Tuple[str, str, str]:
        """Identity tuple used for equality, hashing and id derivation."""
        return (self.group or "", self.source, self.event_name)

    @property
    def display_name(self) -> str:
        return self.label or self.event_name

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, EventTypeRef):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return ":".join(part for part in self.key if part)

    @classmethod
    def external(
        cls, event_name: str, source: str = EXTERNAL_OWNER_KEY, group: Optional[str] = None
    ) -> "EventTypeRef":
        return cls(group=group, source=source, event_name=event_name)

    @classmethod
    def engine(cls, engine_key: str, activity: ActivityRef) -> "EventTypeRef":
        return cls(
            group=engine_key,
            source=ENGINE_EVENT_SOURCE,
            event_name=activity.activity_id,
            label=activity.label,
        )

    @classmethod
    def instance_start(cls, engine_key: str) -> "EventTypeRef":
        return cls(
            group=engine_key,
            source=ENGINE_EVENT_SOURCE,
            event_name=f"{engine_key}{PROCESS_INSTANCE_START_SUFFIX}",
            label=f"{engine_key} started",
        )

    @classmethod
    def instance_end(cls, engine_key: str) -> "EventTypeRef":
        return cls(
            group=engine_key,
            source=ENGINE_EVENT_SOURCE,
            event_name=f"{engine_key}{PROCESS_INSTANCE_END_SUFFIX}",
            label=f"{engine_key} ended",
        )


def _dedupe_activities(activities: Iterable[ActivityRef]) -> Tuple[ActivityRef, ...]:
    seen = set()
    unique = []
    for activity in activities:
        if activity.activity_id not in seen:
            seen.add(activity.activity_id)
            unique.append(activity)
    return tuple(unique)


class ExternalSource(BaseModel):
    """Free-form externally correlated events, resolved against a correlation view."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["external"] = "external"
    group: Optional[str] = Field(None, description="Restrict to events of this group")

    @property
    def owner_key(self) -> str:
        if self.group:
            return f"{EXTERNAL_OWNER_KEY}_{self.group}"
        return EXTERNAL_OWNER_KEY


class EngineBoundarySource(BaseModel):
    """Declared start and end points of an engine-hosted process."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["engine_boundary"] = "engine_boundary"
    engine_key: str = Field(..., min_length=1, description="Process definition key")
    declared_starts: Tuple[ActivityRef, ...] = Field(default_factory=tuple)
    declared_ends: Tuple[ActivityRef, ...] = Field(default_factory=tuple)

    @field_validator("declared_starts", "declared_ends")
    @classmethod
    def _unique_activities(cls, value: Tuple[ActivityRef, ...]) -> Tuple[ActivityRef, ...]:
        return _dedupe_activities(value)

    @property
    def owner_key(self) -> str:
        return self.engine_key

    @classmethod
    def from_metadata(cls, definition: Any) -> "EngineBoundarySource":
        """Declare a definition's own start and end events as its boundary."""
        return cls(
            engine_key=definition.key,
            declared_starts=definition.start_events,
            declared_ends=definition.end_events,
        )


class EngineInstanceSource(BaseModel):
    """A whole engine process instance treated as one opaque occurrence."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["engine_instance"] = "engine_instance"
    engine_key: str = Field(..., min_length=1, description="Process definition key")

    @property
    def owner_key(self) -> str:
        return self.engine_key

    @property
    def start_event(self) -> EventTypeRef:
        return EventTypeRef.instance_start(self.engine_key)

    @property
    def end_event(self) -> EventTypeRef:
        return EventTypeRef.instance_end(self.engine_key)


EventSource = Annotated[
    Union[ExternalSource, EngineBoundarySource, EngineInstanceSource],
    Field(discriminator="kind"),
]


__all__ = [
    "ActivityRef",
    "EventTypeRef",
    "ExternalSource",
    "EngineBoundarySource",
    "EngineInstanceSource",
    "EventSource",
    "ENGINE_EVENT_SOURCE",
    "EXTERNAL_OWNER_KEY",
]
