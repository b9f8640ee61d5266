"""Predicate expressions and proximity predicate construction."""

from .predicate_models import (
    Predicate,
    Include,
    Exclude,
    INCLUDE,
    EXCLUDE,
    PropertyRef,
    GeometryLiteral,
    PropertyEquals,
    DWithin,
    And,
    Or,
    UNIT_FACTORS,
)
from .predicate_builder import UnitMode, PredicateBuilder, FilterMerger

__all__ = [
    'Predicate',
    'Include',
    'Exclude',
    'INCLUDE',
    'EXCLUDE',
    'PropertyRef',
    'GeometryLiteral',
    'PropertyEquals',
    'DWithin',
    'And',
    'Or',
    'UNIT_FACTORS',
    'UnitMode',
    'PredicateBuilder',
    'FilterMerger',
]
