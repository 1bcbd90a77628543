"""
Autogeneration orchestration, configuration and result state.
"""

from event_process_autogen.autogeneration.config import AutogenerationConfig, ErrorHandlingStrategy
from event_process_autogen.autogeneration.orchestrator import AutogenerationOrchestrator, generate
from event_process_autogen.autogeneration.request import AutogenerationRequest
from event_process_autogen.autogeneration.state import (
    AutogenerationResult,
    GenerationMetrics,
    SkippedSource,
)

__all__ = [
    # Orchestration
    "AutogenerationOrchestrator",
    "generate",
    # Configuration
    "AutogenerationConfig",
    "ErrorHandlingStrategy",
    # Request and result
    "AutogenerationRequest",
    "AutogenerationResult",
    "GenerationMetrics",
    "SkippedSource",
]
