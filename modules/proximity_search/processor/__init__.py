"""Proximity search process entry points."""

from .proximity_search_process import (
    ProximitySearchProcess,
    ProcessDescription,
    ParameterDescription,
    PROCESS_DESCRIPTION,
    proximity_search,
)

__all__ = [
    'ProximitySearchProcess',
    'ProcessDescription',
    'ParameterDescription',
    'PROCESS_DESCRIPTION',
    'proximity_search',
]
