"""
Engine Metadata

Process definition metadata used to check that engine-scoped sources refer to
processes and flow nodes the engine actually knows.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from event_process_autogen.core.errors import UnresolvedEngineReference
from event_process_autogen.models.events import (
    ActivityRef,
    EngineBoundarySource,
    EngineInstanceSource,
)

logger = logging.getLogger(__name__)


class ProcessDefinitionMetadata(BaseModel):
    """Flow node inventory of one engine process definition."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1, description="Process definition key")
    name: Optional[str] = Field(None, description="Process definition name")
    start_events: Tuple[ActivityRef, ...] = Field(default_factory=tuple)
    end_events: Tuple[ActivityRef, ...] = Field(default_factory=tuple)
    flow_nodes: Tuple[ActivityRef, ...] = Field(
        default_factory=tuple, description="Other flow nodes of the definition"
    )

    @property
    def activity_ids(self) -> set:
        return {
            activity.activity_id
            for activity in (*self.start_events, *self.end_events, *self.flow_nodes)
        }


class EngineMetadataRegistry:
    """In-memory lookup of process definitions by key."""

    def __init__(self, definitions: Iterable[ProcessDefinitionMetadata] = ()):
        self._definitions: Dict[str, ProcessDefinitionMetadata] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: ProcessDefinitionMetadata) -> None:
        self._definitions[definition.key] = definition

    def get(self, key: str) -> Optional[ProcessDefinitionMetadata]:
        return self._definitions.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def _require(self, engine_key: str, source_index: Optional[int]) -> ProcessDefinitionMetadata:
        definition = self.get(engine_key)
        if definition is None:
            raise UnresolvedEngineReference(
                f"Unknown process definition '{engine_key}'",
                engine_key=engine_key,
                source_index=source_index,
            )
        return definition

    def resolve_boundary(
        self, source: EngineBoundarySource, source_index: Optional[int] = None
    ) -> ProcessDefinitionMetadata:
        """
        Check every declared start and end against the definition's flow nodes.

        Raises:
            UnresolvedEngineReference: If the definition or an activity is unknown
        """
        definition = self._require(source.engine_key, source_index)
        known = definition.activity_ids
        missing: List[str] = [
            activity.activity_id
            for activity in (*source.declared_starts, *source.declared_ends)
            if activity.activity_id not in known
        ]
        if missing:
            raise UnresolvedEngineReference(
                f"Activities {missing} not found in process definition '{source.engine_key}'",
                engine_key=source.engine_key,
                activity_ids=missing,
                source_index=source_index,
            )
        logger.debug(f"Resolved boundary source '{source.engine_key}'")
        return definition

    def resolve_instance(
        self, source: EngineInstanceSource, source_index: Optional[int] = None
    ) -> ProcessDefinitionMetadata:
        return self._require(source.engine_key, source_index)


__all__ = ["EngineMetadataRegistry", "ProcessDefinitionMetadata"]
