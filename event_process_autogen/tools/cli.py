"""
Event Process Autogen CLI Interface

Command-line tool that runs autogeneration over a JSON request document.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional

import click
from pydantic import ValidationError

from event_process_autogen.autogeneration import (
    AutogenerationConfig,
    AutogenerationOrchestrator,
    AutogenerationRequest,
    AutogenerationResult,
    ErrorHandlingStrategy,
)
from event_process_autogen.core.errors import GenerationError
from event_process_autogen.core.observability import (
    LogLevel,
    ObservabilityConfig,
    ObservabilityManager,
)
from event_process_autogen.tools.graph_analysis import GraphAnalyzer

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """Event Process Autogen CLI - Generate process diagrams from event sources."""
    pass


@cli.command()
@click.argument("request_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    help="Output file path for the generated graph document",
)
@click.option(
    "--decompose-boundary-instances",
    is_flag=True,
    help="Render first/last instance sources as start and end events",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Fail on ambiguous branch evidence instead of warning",
)
@click.option(
    "--verbose/--quiet",
    default=False,
    help="Verbose logging output",
)
@click.option(
    "--json-logs",
    is_flag=True,
    help="Emit log records as JSON lines",
)
def generate(
    request_file: str,
    output: Optional[str],
    decompose_boundary_instances: bool,
    strict: bool,
    verbose: bool,
    json_logs: bool,
) -> None:
    """
    Generate a process graph from a request document.

    \b
    Examples:
        event-autogen generate request.json
        event-autogen generate request.json -o graph.json --strict
    """
    _setup_observability(verbose, json_logs)
    request = _load_request(request_file)

    config = AutogenerationConfig.from_env()
    if decompose_boundary_instances:
        config.decompose_boundary_instances = True
    if strict:
        config.error_handling = ErrorHandlingStrategy.STRICT

    result = _run(request, config)
    _output_json(_result_document(result), output)


@cli.command()
@click.argument("request_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
def validate(request_file: str, format: str) -> None:
    """
    Generate a graph and report its structural validation.

    \b
    Examples:
        event-autogen validate request.json
        event-autogen validate request.json --format json
    """
    _setup_observability(False, False)
    request = _load_request(request_file)

    config = AutogenerationConfig.from_env()
    config.validate_output = False
    result = _run(request, config)
    report = GraphAnalyzer().validate(result.graph)

    if format == "json":
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        click.echo(f"File: {request_file}")
        click.echo(f"Valid: {report.is_valid}")
        click.echo(f"Nodes: {report.total_nodes}")
        click.echo(f"Edges: {report.total_edges}")
        for anomaly in report.anomalies:
            click.echo(f"[{anomaly.severity}] {anomaly.anomaly_type.value}: {anomaly.description}")


@cli.command()
def info() -> None:
    """Show version and capability information."""
    from event_process_autogen import __version__

    info_dict = {
        "name": "Event Process Autogen",
        "version": __version__,
        "description": "Generate connected process diagrams from ordered event sources",
        "source_kinds": ["external", "engine_boundary", "engine_instance"],
        "gateway_kinds": ["exclusive", "parallel"],
        "features": {
            "trace_correlation": True,
            "parallel_fragment_building": True,
            "boundary_instance_decomposition": True,
            "structural_validation": True,
        },
    }

    click.echo(json.dumps(info_dict, indent=2))


# ==================
# Helper Functions
# ==================


def _setup_observability(verbose: bool, json_logs: bool) -> None:
    obs_config = ObservabilityConfig(
        service_name="event-autogen-cli",
        log_level=LogLevel.DEBUG if verbose else LogLevel.WARNING,
        json_logs=json_logs,
    )
    ObservabilityManager.initialize(obs_config)


def _load_request(request_file: str) -> AutogenerationRequest:
    try:
        with open(request_file, "r") as f:
            return AutogenerationRequest.model_validate(json.load(f))
    except (OSError, ValueError, ValidationError) as e:
        click.echo(f"Error reading request file: {e}", err=True)
        sys.exit(1)


def _run(request: AutogenerationRequest, config: AutogenerationConfig) -> AutogenerationResult:
    orchestrator = AutogenerationOrchestrator(
        correlation_provider=request.correlation_provider(),
        engine_metadata=request.engine_metadata(),
        config=config,
    )
    try:
        return orchestrator.generate(request.sources)
    except GenerationError as e:
        logger.error(f"Generation failed: {e}")
        click.echo(json.dumps({"error": e.to_dict()}, indent=2, default=str), err=True)
        sys.exit(1)


def _result_document(result: AutogenerationResult) -> Dict[str, Any]:
    return {
        "graph": result.graph.to_document(),
        "warnings": [warning.to_dict() for warning in result.warnings],
        "skipped_sources": result.summary()["skipped_sources"],
        "summary": result.summary(),
    }


def _output_json(document: Dict[str, Any], output_file: Optional[str]) -> None:
    """Output results as JSON."""
    output_json = json.dumps(document, indent=2, default=str)

    if output_file:
        with open(output_file, "w") as f:
            f.write(output_json)
        click.echo(f"Graph document written to: {output_file}")
    else:
        click.echo(output_json)


if __name__ == "__main__":
    cli()
