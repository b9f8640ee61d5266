"""Dual-path Proximity Execution

Runs a proximity search either natively inside a pushdown-capable data source
or by evaluating the proximity predicate against every streamed feature.

The two paths treat the data source's existing restriction differently. The
optimized path merges it into the native query. The manual path evaluates
the proximity predicate alone: it assumes whatever produced the feature
stream already applied the restriction, and never evaluates it again.
"""

import logging
import threading
from typing import Optional

from src.exceptions import (
    InvalidArgumentError, MissingAttributeError, ProximityProcessingError,
    ProximitySearchCancelledError
)
from ..models import Feature
from ..predicates import PredicateBuilder, FilterMerger, PropertyRef, UnitMode, Predicate
from ..sources import FeatureCollection
from .execution_models import (
    Capability, CapabilityKind, ExecutionState, MissingGeometryPolicy,
    ProximitySearchConfig, ProximitySearchMetrics, ProximitySearchResult
)
from .performance_monitor import PerformanceMonitor
from .result_accumulator import ResultAccumulator

logger = logging.getLogger(__name__)


class ProximityVisitor:
    """State machine for a single proximity invocation.

    Starts in ``INIT``; :meth:`run` probes the data source once and moves to
    ``OPTIMIZED`` or ``MANUAL``. Both are terminal: a visitor cannot be run
    again.
    """

    def __init__(self, reference_features: FeatureCollection, data_features: FeatureCollection,
                 buffer_meters: float, config: Optional[ProximitySearchConfig] = None,
                 cancel_event: Optional[threading.Event] = None,
                 predicate_builder: Optional[PredicateBuilder] = None):
        self.reference_features = reference_features
        self.data_features = data_features
        self.buffer_meters = buffer_meters
        self.config = config or ProximitySearchConfig()
        self.cancel_event = cancel_event
        self.predicate_builder = predicate_builder or PredicateBuilder()

        self.state = ExecutionState.INIT
        self.metrics = ProximitySearchMetrics()
        self._accumulator: Optional[ResultAccumulator] = None
        self._manual_predicate: Optional[Predicate] = None

    def run(self) -> ResultAccumulator:
        """Execute the search along the path the data source supports.

        Raises:
            InvalidArgumentError: Negative buffer or data schema without geometry
            ProximityProcessingError: If the visitor already ran
        """
        if self.state != ExecutionState.INIT:
            raise ProximityProcessingError(
                f"Proximity visitor already executed ({self.state.value})", {"stage": "execution"}
            )
        self._validate_arguments()

        capability = Capability.probe(self.data_features)
        logger.debug(f"Running proximity search on {type(self.data_features).__name__} "
                     f"with capability {capability.kind.value}")
        self.metrics.execution_path = capability.execution_path

        if capability.kind == CapabilityKind.PUSHDOWN:
            return self.execute(capability.handle)
        return self.execute_manual(capability.handle)

    def _validate_arguments(self) -> None:
        PredicateBuilder.validate_distance(self.buffer_meters)
        if not self.data_features.schema.has_geometry():
            raise InvalidArgumentError(
                f"Data collection '{self.data_features.schema.name}' has no geometry property",
                {"stage": "construction"}
            )

    def _target_property(self) -> PropertyRef:
        return PropertyRef(self.data_features.schema.geometry_property)

    def execute(self, source) -> ResultAccumulator:
        """Optimized path: meter predicate merged with the source's restriction."""
        self.state = ExecutionState.OPTIMIZED
        proximity = self.predicate_builder.build(
            self.reference_features, self._target_property(), self.buffer_meters, UnitMode.LINEAR
        )
        self.metrics.reference_count = len(proximity)

        merged = FilterMerger.merge(source.restriction, proximity)
        logger.debug(f"Delegating proximity query to {type(source).__name__}")
        self._accumulator = ResultAccumulator.from_collection(
            source.query(merged, cancel_event=self.cancel_event)
        )
        return self._accumulator

    def execute_manual(self, collection: FeatureCollection) -> ResultAccumulator:
        """Manual path: degree predicate evaluated against each streamed feature."""
        self.state = ExecutionState.MANUAL
        self._manual_predicate = self.predicate_builder.build(
            self.reference_features, self._target_property(), self.buffer_meters, UnitMode.ANGULAR
        )
        self.metrics.reference_count = len(self._manual_predicate)
        self._accumulator = ResultAccumulator.for_schema(collection.schema)

        if self.metrics.reference_count == 0:
            logger.info("No reference geometries, proximity result is empty")
            return self._accumulator

        interval = self.config.progress_log_interval
        with collection.features() as iterator:
            for feature in iterator:
                self._check_cancelled()
                self.visit(feature)
                if self.metrics.features_visited % interval == 0:
                    logger.info(f"Visited {self.metrics.features_visited} features, "
                                f"{self.metrics.features_matched} within buffer")

        if self.metrics.features_skipped:
            logger.warning(f"Skipped {self.metrics.features_skipped} features without geometry")
        return self._accumulator

    def visit(self, feature: Feature) -> None:
        """Evaluate one streamed feature and keep it if it is within the buffer."""
        self.metrics.features_visited += 1
        try:
            matched = self._manual_predicate.evaluate(feature)
        except MissingAttributeError as e:
            if self.config.missing_geometry_policy == MissingGeometryPolicy.ABORT:
                raise
            self.metrics.features_skipped += 1
            logger.debug(f"Skipping feature: {e}")
            return
        if matched and self._accumulator.add(feature):
            self.metrics.features_matched += 1

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise ProximitySearchCancelledError(
                "Proximity search cancelled",
                {"stage": "execution", "features_visited": self.metrics.features_visited}
            )

    def get_result(self) -> Optional[ResultAccumulator]:
        return self._accumulator


class ProximityExecutor:
    """Runs proximity searches, one fresh visitor per invocation.

    Holds only immutable settings, so a single executor can serve concurrent
    invocations.
    """

    def __init__(self, config: Optional[ProximitySearchConfig] = None):
        self.config = config or ProximitySearchConfig()
        self.monitor = PerformanceMonitor()

    def execute(self, reference_features: FeatureCollection, data_features: FeatureCollection,
                buffer_meters: float, cancel_event: Optional[threading.Event] = None) -> ProximitySearchResult:
        """Run one proximity search.

        Args:
            reference_features: Features whose geometries define the search areas
            data_features: Features to search
            buffer_meters: Buffer distance in meters
            cancel_event: Optional cancellation signal

        Returns:
            ProximitySearchResult with the matching features and run metrics
        """
        visitor = ProximityVisitor(
            reference_features, data_features, buffer_meters,
            config=self.config, cancel_event=cancel_event
        )
        with self.monitor.monitor_operation("proximity_search") as measurement:
            accumulator = visitor.run()
            results = accumulator.results()
            matched = accumulator.count()
            visitor.metrics.features_matched = matched if matched is not None else results.size()
            measurement.records_processed = visitor.metrics.features_visited

        metrics = visitor.metrics
        metrics.duration_seconds = measurement.execution_time
        metrics.memory_delta_mb = measurement.memory_delta_mb

        result = ProximitySearchResult(features=results, metrics=metrics)
        logger.info(f"Proximity search completed: {result.get_processing_summary()}")
        return result

