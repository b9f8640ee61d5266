"""Feature sources for proximity search.

Plain collections can only be iterated; collections implementing
``SupportsPushdown`` can evaluate predicates natively.
"""

from .feature_collection import (
    FeatureIterator,
    FeatureCollection,
    SupportsPushdown,
    MemoryFeatureCollection,
)
from .geodataframe_source import GeoDataFrameFeatureCollection
from .arcgis_layer_source import ArcGISLayerFeatureCollection, matches_nothing, split_predicate

__all__ = [
    'FeatureIterator',
    'FeatureCollection',
    'SupportsPushdown',
    'MemoryFeatureCollection',
    'GeoDataFrameFeatureCollection',
    'ArcGISLayerFeatureCollection',
    'matches_nothing',
    'split_predicate',
]
