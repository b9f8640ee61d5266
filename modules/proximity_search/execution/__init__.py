"""Proximity Search Execution

Capability probing, dual-path execution, result accumulation and run
metrics for proximity searches.
"""

from .execution_models import (
    ExecutionPath,
    ExecutionState,
    CapabilityKind,
    Capability,
    MissingGeometryPolicy,
    ProximitySearchConfig,
    ProximitySearchMetrics,
    ProximitySearchResult,
)
from .result_accumulator import ResultAccumulator
from .performance_monitor import PerformanceMonitor, OperationMeasurement
from .proximity_executor import ProximityVisitor, ProximityExecutor

__all__ = [
    # Models
    'ExecutionPath',
    'ExecutionState',
    'CapabilityKind',
    'Capability',
    'MissingGeometryPolicy',
    'ProximitySearchConfig',
    'ProximitySearchMetrics',
    'ProximitySearchResult',
    # Execution
    'ResultAccumulator',
    'PerformanceMonitor',
    'OperationMeasurement',
    'ProximityVisitor',
    'ProximityExecutor',
]
