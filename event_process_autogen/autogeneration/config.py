"""
Autogeneration Configuration

Defines configuration for the AutogenerationOrchestrator including fragment
building options, error handling and feature flags.
"""

import os
from dataclasses import dataclass
from enum import Enum


class ErrorHandlingStrategy(str, Enum):
    """How recoverable data-quality findings are treated."""

    STRICT = "strict"  # Escalate ambiguous branch evidence to an error
    LENIENT = "lenient"  # Record a warning and apply the exclusive default


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AutogenerationConfig:
    """Complete autogeneration configuration."""

    # Fragment building
    parallel_fragment_building: bool = False
    max_workers: int = 4
    decompose_boundary_instances: bool = False

    # Error handling
    error_handling: ErrorHandlingStrategy = ErrorHandlingStrategy.LENIENT

    # Output validation
    validate_output: bool = True

    # Observability
    enable_logging: bool = True
    enable_tracing: bool = False
    enable_metrics: bool = True

    @property
    def strict(self) -> bool:
        return self.error_handling == ErrorHandlingStrategy.STRICT

    @classmethod
    def from_env(cls) -> "AutogenerationConfig":
        """Load configuration from environment variables.

        Returns:
            AutogenerationConfig instance
        """
        try:
            error_handling = ErrorHandlingStrategy(
                os.getenv("AUTOGEN_ERROR_HANDLING", "lenient").lower()
            )
        except ValueError:
            error_handling = ErrorHandlingStrategy.LENIENT

        return cls(
            parallel_fragment_building=_env_flag("AUTOGEN_PARALLEL_BUILD", False),
            max_workers=max(1, int(os.getenv("AUTOGEN_MAX_WORKERS", "4"))),
            decompose_boundary_instances=_env_flag("AUTOGEN_DECOMPOSE_BOUNDARY_INSTANCES", False),
            error_handling=error_handling,
            validate_output=_env_flag("AUTOGEN_VALIDATE_OUTPUT", True),
            enable_logging=_env_flag("AUTOGEN_ENABLE_LOGGING", True),
            enable_tracing=_env_flag("AUTOGEN_ENABLE_TRACING", False),
            enable_metrics=_env_flag("AUTOGEN_ENABLE_METRICS", True),
        )


__all__ = ["AutogenerationConfig", "ErrorHandlingStrategy"]
