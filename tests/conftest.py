"""Pytest configuration for event-process-autogen tests."""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

import pytest

from event_process_autogen.autogeneration import AutogenerationConfig, AutogenerationOrchestrator
from event_process_autogen.core.observability import ObservabilityManager
from event_process_autogen.correlation import (
    CorrelatedEvent,
    EngineMetadataRegistry,
    InMemoryCorrelationViewProvider,
)
from event_process_autogen.models import (
    ActivityRef,
    EngineBoundarySource,
    EventTypeRef,
)

BASE_TIME = datetime(2024, 1, 1, 8, 0, 0)


@pytest.fixture(autouse=True)
def reset_observability():
    """Drop loguru sinks and the observability singleton after every test."""
    yield
    ObservabilityManager.reset()


# ===========================
# Event factories
# ===========================


@pytest.fixture
def event_type():
    """Create external event types by name."""

    def _create(name: str, group: Optional[str] = None, source: str = "shop") -> EventTypeRef:
        return EventTypeRef.external(name, source=source, group=group)

    return _create


@pytest.fixture
def correlated_events(event_type):
    """Turn ``{trace_id: [event names]}`` into correlated events one second apart."""

    def _create(
        traces: Dict[str, Sequence[str]], group: Optional[str] = None
    ) -> List[CorrelatedEvent]:
        events = []
        for trace_number, (trace_id, names) in enumerate(traces.items()):
            start = BASE_TIME + timedelta(minutes=trace_number)
            for position, name in enumerate(names):
                events.append(
                    CorrelatedEvent(
                        trace_id=trace_id,
                        timestamp=start + timedelta(seconds=position),
                        event=event_type(name, group=group),
                    )
                )
        return events

    return _create


@pytest.fixture
def provider_for(correlated_events):
    """Build an in-memory correlation view provider from trace dictionaries."""

    def _create(
        traces: Optional[Dict[str, Sequence[str]]] = None, group: Optional[str] = None
    ) -> InMemoryCorrelationViewProvider:
        return InMemoryCorrelationViewProvider(correlated_events(traces or {}, group=group))

    return _create


@pytest.fixture
def boundary():
    """Create engine boundary sources from activity id lists."""

    def _create(engine_key: str, starts: Sequence[str] = (), ends: Sequence[str] = ()) -> EngineBoundarySource:
        return EngineBoundarySource(
            engine_key=engine_key,
            declared_starts=tuple(ActivityRef(activity_id=a) for a in starts),
            declared_ends=tuple(ActivityRef(activity_id=a) for a in ends),
        )

    return _create


# ===========================
# Orchestrator fixtures
# ===========================


@pytest.fixture
def quiet_config():
    """Configuration without process-wide logging setup."""
    return AutogenerationConfig(enable_logging=False)


@pytest.fixture
def orchestrator_for(quiet_config):
    """Create orchestrators with the quiet configuration plus overrides."""

    def _create(
        provider: Optional[InMemoryCorrelationViewProvider] = None,
        engine_metadata: Optional[EngineMetadataRegistry] = None,
        **overrides,
    ) -> AutogenerationOrchestrator:
        config = AutogenerationConfig(**{**quiet_config.__dict__, **overrides})
        return AutogenerationOrchestrator(
            correlation_provider=provider,
            engine_metadata=engine_metadata,
            config=config,
        )

    return _create
