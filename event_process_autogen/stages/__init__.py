"""
Autogeneration stages: gateway classification, fragment building, fragment
connection and role assignment.
"""

from event_process_autogen.stages.fragment_builder import FragmentBuilder, FragmentBuildResult
from event_process_autogen.stages.fragment_connector import (
    ConnectionAccumulator,
    FragmentConnector,
    Junction,
)
from event_process_autogen.stages.gateway_classifier import BranchClassification, GatewayClassifier
from event_process_autogen.stages.role_assigner import RoleAssigner

__all__ = [
    # Classification
    "BranchClassification",
    "GatewayClassifier",
    # Fragments
    "FragmentBuilder",
    "FragmentBuildResult",
    # Connection
    "ConnectionAccumulator",
    "FragmentConnector",
    "Junction",
    # Roles
    "RoleAssigner",
]
