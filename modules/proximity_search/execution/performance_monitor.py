"""Performance measurement for proximity invocations.

Measures wall-clock time and resident memory growth around one operation.
Each invocation measures into its own object so concurrent searches never
share state.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator

import psutil

logger = logging.getLogger(__name__)

SLOW_OPERATION_SECONDS = 5.0


@dataclass
class OperationMeasurement:
    """Timing and memory figures for one monitored operation."""
    operation_name: str
    execution_time: float = 0.0
    memory_delta_mb: float = 0.0
    records_processed: int = 0

    @property
    def processing_rate(self) -> float:
        if self.execution_time <= 0:
            return 0.0
        return self.records_processed / self.execution_time

    def get_summary(self) -> Dict[str, Any]:
        return {
            "operation": self.operation_name,
            "execution_time_seconds": round(self.execution_time, 3),
            "memory_delta_mb": round(self.memory_delta_mb, 2),
            "records_processed": self.records_processed,
            "processing_rate_per_second": round(self.processing_rate, 2)
        }


class PerformanceMonitor:
    """Measures duration and RSS growth of operations of this process."""

    def __init__(self):
        self.process = psutil.Process()

    def _rss_mb(self) -> float:
        return self.process.memory_info().rss / 1024 / 1024

    @contextmanager
    def monitor_operation(self, operation_name: str) -> Iterator[OperationMeasurement]:
        """Measure the enclosed block.

        The yielded measurement is filled in when the block exits, including
        on error; callers set ``records_processed`` inside the block.
        """
        measurement = OperationMeasurement(operation_name=operation_name)
        start_time = time.perf_counter()
        start_memory = self._rss_mb()
        try:
            yield measurement
        finally:
            measurement.execution_time = time.perf_counter() - start_time
            measurement.memory_delta_mb = max(self._rss_mb() - start_memory, 0.0)

            if measurement.execution_time > SLOW_OPERATION_SECONDS:
                logger.warning(f"Slow operation detected: {operation_name} took "
                               f"{measurement.execution_time:.2f}s for "
                               f"{measurement.records_processed} records")
            else:
                logger.debug(f"Operation {operation_name}: {measurement.get_summary()}")
