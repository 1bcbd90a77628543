"""
Autogeneration Orchestrator

Coordinates the autogeneration stages into a single entry point:
1. Request checks (empty list, duplicate sources, engine references)
2. Fragment building, one fragment per source, optionally in parallel
3. Fragment connection, strictly in source order
4. Role assignment and mapping assembly
5. Optional structural validation of the result
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple

from event_process_autogen.autogeneration.config import AutogenerationConfig
from event_process_autogen.autogeneration.state import (
    AutogenerationResult,
    GenerationMetrics,
    SkippedSource,
)
from event_process_autogen.core.errors import (
    AllSourcesEmpty,
    AmbiguousBranchEvidenceError,
    DuplicateEventReference,
    DuplicateSource,
    EmptySourceList,
    GenerationCancelled,
    GenerationWarning,
    WarningKind,
)
from event_process_autogen.core.observability import (
    ObservabilityConfig,
    ObservabilityManager,
    Timer,
    log_execution,
    record_metric,
    span,
)
from event_process_autogen.correlation.engine_metadata import EngineMetadataRegistry
from event_process_autogen.correlation.view import CorrelationViewProvider
from event_process_autogen.models.events import (
    EngineBoundarySource,
    EngineInstanceSource,
    EventSource,
    EventTypeRef,
)
from event_process_autogen.models.graph import Fragment
from event_process_autogen.stages.fragment_builder import FragmentBuilder, FragmentBuildResult
from event_process_autogen.stages.fragment_connector import FragmentConnector
from event_process_autogen.stages.role_assigner import RoleAssigner
from event_process_autogen.tools.graph_analysis import GraphAnalyzer

logger = logging.getLogger(__name__)


class AutogenerationOrchestrator:
    """
    Main autogeneration orchestrator.

    Turns an ordered list of event sources into one connected GeneratedGraph.
    Fatal conditions raise a GenerationError and no partial graph is returned;
    recoverable ones are recorded on the AutogenerationResult.
    """

    def __init__(
        self,
        correlation_provider: Optional[CorrelationViewProvider] = None,
        engine_metadata: Optional[EngineMetadataRegistry] = None,
        config: Optional[AutogenerationConfig] = None,
    ):
        """Initialize the orchestrator.

        Args:
            correlation_provider: Correlation views for external sources
            engine_metadata: Registry engine sources are resolved against; not
                checked when omitted
            config: Autogeneration configuration
        """
        self.config = config or AutogenerationConfig()
        self.correlation_provider = correlation_provider
        self.engine_metadata = engine_metadata

        self.fragment_builder = FragmentBuilder(correlation_provider)
        self.role_assigner = RoleAssigner()
        self.graph_analyzer = GraphAnalyzer() if self.config.validate_output else None

        if self.config.enable_logging:
            ObservabilityManager.initialize(
                ObservabilityConfig(
                    enable_tracing=self.config.enable_tracing,
                    enable_metrics=self.config.enable_metrics,
                )
            )

        logger.debug(
            "AutogenerationOrchestrator initialized",
            extra={
                "parallel": self.config.parallel_fragment_building,
                "error_handling": self.config.error_handling.value,
                "engine_metadata": engine_metadata is not None,
            },
        )

    @log_execution(include_duration=True)
    def generate(
        self,
        ordered_sources: Sequence[EventSource],
        cancel_event: Optional[threading.Event] = None,
    ) -> AutogenerationResult:
        """
        Generate one process graph from the ordered sources.

        Args:
            ordered_sources: Event sources in diagram order
            cancel_event: Set by the caller to abort generation

        Returns:
            AutogenerationResult with the graph and any warnings

        Raises:
            GenerationError: On any fatal condition
        """
        sources = list(ordered_sources)
        self._check_sources(sources)

        metrics = GenerationMetrics(source_count=len(sources))
        with Timer("autogeneration", log=False) as total_timer:
            with span("autogeneration.build_fragments", {"sources": len(sources)}), Timer(
                "autogeneration_build"
            ) as build_timer:
                builds = self._build_fragments(sources, cancel_event)
                builds = self._apply_boundary_decomposition(sources, builds)
            metrics.build_duration_ms = build_timer.elapsed_ms

            warnings = [warning for build in builds for warning in build.warnings]
            self._escalate_ambiguity(warnings)
            fragments = tuple(build.fragment for build in builds)
            skipped = self._skipped_sources(builds)
            if len(skipped) == len(fragments):
                logger.error("Every event source produced an empty fragment")
                raise AllSourcesEmpty(
                    "Every event source produced an empty fragment",
                    source_indices=[s.source_index for s in skipped],
                )
            self._check_event_references(fragments)
            self._checkpoint(cancel_event)

            with span("autogeneration.connect", {"fragments": len(fragments)}), Timer(
                "autogeneration_connect"
            ) as connect_timer:
                connector = FragmentConnector(checkpoint=lambda: self._checkpoint(cancel_event))
                connected = connector.connect(fragments)
            metrics.connect_duration_ms = connect_timer.elapsed_ms
            self._checkpoint(cancel_event)

            with span("autogeneration.assign_roles"), Timer("autogeneration_assign") as assign_timer:
                graph = self.role_assigner.assign(connected)
            metrics.assign_duration_ms = assign_timer.elapsed_ms

        metrics.total_duration_ms = total_timer.elapsed_ms
        metrics.fragment_count = len(connected.fragments)
        metrics.junction_count = len(connected.junctions)
        metrics.connecting_gateways = sum(j.gateway_count for j in connected.junctions)
        metrics.node_count = len(graph.nodes)
        metrics.edge_count = len(graph.edges)
        metrics.gateway_count = len(graph.get_gateways())

        result = AutogenerationResult(
            graph=graph,
            warnings=warnings,
            skipped_sources=skipped,
            junctions=list(connected.junctions),
            metrics=metrics,
        )
        if self.graph_analyzer is not None:
            report = self.graph_analyzer.validate(graph)
            result.validation_issues = [anomaly.to_dict() for anomaly in report.anomalies]
            for anomaly in report.anomalies:
                logger.info(f"Validation finding ({anomaly.severity}): {anomaly.description}")

        for warning in warnings:
            logger.warning(f"{warning.kind.value}: {warning.message}")
        self._record_metrics(result)
        logger.info(
            f"Generated graph from {len(sources)} sources: {metrics.node_count} nodes, "
            f"{metrics.edge_count} edges, {len(warnings)} warnings",
            extra=result.summary(),
        )
        return result

    # ===========================
    # Request checks
    # ===========================

    def _check_sources(self, sources: List[EventSource]) -> None:
        if not sources:
            logger.error("Autogeneration requested without event sources")
            raise EmptySourceList("At least one event source is required")

        seen: Dict[str, int] = {}
        for index, source in enumerate(sources):
            owner_key = source.owner_key
            if owner_key in seen:
                logger.error(f"Sources {seen[owner_key]} and {index} share owner key '{owner_key}'")
                raise DuplicateSource(
                    f"Event source '{owner_key}' appears more than once",
                    owner_key=owner_key,
                    source_indices=[seen[owner_key], index],
                )
            seen[owner_key] = index

        if self.engine_metadata is None:
            return
        for index, source in enumerate(sources):
            if isinstance(source, EngineBoundarySource):
                self.engine_metadata.resolve_boundary(source, index)
            elif isinstance(source, EngineInstanceSource):
                self.engine_metadata.resolve_instance(source, index)

    def _check_event_references(self, fragments: Sequence[Fragment]) -> None:
        owners: Dict[EventTypeRef, int] = {}
        for fragment in fragments:
            for event_type in fragment.event_types():
                owner = owners.setdefault(event_type, fragment.source_index)
                if owner != fragment.source_index:
                    logger.error(
                        f"Event type '{event_type}' is contributed by sources "
                        f"{owner} and {fragment.source_index}"
                    )
                    raise DuplicateEventReference(
                        f"Event type '{event_type}' is contributed by more than one source",
                        event_type=str(event_type),
                        source_indices=[owner, fragment.source_index],
                    )

    def _escalate_ambiguity(self, warnings: Sequence[GenerationWarning]) -> None:
        if not self.config.strict:
            return
        for warning in warnings:
            if warning.kind == WarningKind.AMBIGUOUS_BRANCH_EVIDENCE:
                logger.error(f"Strict mode: {warning.message}")
                raise AmbiguousBranchEvidenceError(
                    warning.message, source_index=warning.source_index, **warning.details
                )

    @staticmethod
    def _checkpoint(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Autogeneration cancelled by caller")
            raise GenerationCancelled("Generation cancelled by caller")

    # ===========================
    # Fragment building
    # ===========================

    def _build_fragments(
        self, sources: List[EventSource], cancel_event: Optional[threading.Event]
    ) -> Tuple[FragmentBuildResult, ...]:
        def build(index: int) -> FragmentBuildResult:
            self._checkpoint(cancel_event)
            return self.fragment_builder.build(sources[index], index)

        if not self.config.parallel_fragment_building or len(sources) == 1:
            return tuple(build(index) for index in range(len(sources)))

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = [executor.submit(build, index) for index in range(len(sources))]
            # Collected by source position; the first failure by position is re-raised
            return tuple(future.result() for future in futures)

    def _apply_boundary_decomposition(
        self, sources: List[EventSource], builds: Tuple[FragmentBuildResult, ...]
    ) -> Tuple[FragmentBuildResult, ...]:
        if not self.config.decompose_boundary_instances:
            return builds

        populated = [index for index, build in enumerate(builds) if not build.fragment.is_empty]
        if not populated:
            return builds

        rebuilt = list(builds)
        for index in {populated[0], populated[-1]}:
            source = sources[index]
            if isinstance(source, EngineInstanceSource):
                logger.debug(f"Decomposing boundary instance source {index} ('{source.owner_key}')")
                rebuilt[index] = self.fragment_builder.build_engine_instance(source, index, decompose=True)
        return tuple(rebuilt)

    @staticmethod
    def _skipped_sources(builds: Sequence[FragmentBuildResult]) -> List[SkippedSource]:
        skipped = []
        for build in builds:
            if not build.fragment.is_empty:
                continue
            reasons = [w.message for w in build.warnings if w.kind == WarningKind.EMPTY_SOURCE]
            skipped.append(
                SkippedSource(
                    source_index=build.fragment.source_index,
                    owner_key=build.fragment.owner_key,
                    reason=reasons[0] if reasons else "Source produced no nodes",
                )
            )
            logger.warning(
                f"Excluding empty source {build.fragment.source_index} "
                f"('{build.fragment.owner_key}')"
            )
        return skipped

    @staticmethod
    def _record_metrics(result: AutogenerationResult) -> None:
        record_metric("autogeneration_nodes_total", result.metrics.node_count)
        record_metric("autogeneration_gateways_total", result.metrics.gateway_count)
        record_metric("autogeneration_warnings_total", len(result.warnings))


def generate(
    ordered_sources: Sequence[EventSource],
    correlation_provider: Optional[CorrelationViewProvider] = None,
    engine_metadata: Optional[EngineMetadataRegistry] = None,
    config: Optional[AutogenerationConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> AutogenerationResult:
    """Convenience function to run one generation with a fresh orchestrator."""
    orchestrator = AutogenerationOrchestrator(
        correlation_provider=correlation_provider,
        engine_metadata=engine_metadata,
        config=config,
    )
    return orchestrator.generate(ordered_sources, cancel_event=cancel_event)


__all__ = ["AutogenerationOrchestrator", "generate"]
