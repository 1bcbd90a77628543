"""
Event Process Autogen Tools

Graph analysis utilities. The command-line interface lives in
``event_process_autogen.tools.cli``.
"""

from event_process_autogen.tools.graph_analysis import (
    AnomalyType,
    GraphAnalyzer,
    GraphAnomaly,
    ValidationReport,
    detect_cycles,
    validate_graph,
)

__all__ = [
    "AnomalyType",
    "GraphAnalyzer",
    "GraphAnomaly",
    "ValidationReport",
    "detect_cycles",
    "validate_graph",
]
