"""Result accumulation for proximity searches.

Holds the final feature collection of one invocation, whether it was returned
whole by a native query or built feature by feature during manual evaluation.
"""

import logging
from typing import Optional, Set

from ..models import Feature, FeatureSchema
from ..sources import FeatureCollection, MemoryFeatureCollection

logger = logging.getLogger(__name__)


class ResultAccumulator:
    """Uniform result handle for both execution paths.

    Created with :meth:`from_collection` for a native query response or with
    :meth:`for_schema` for manual accumulation. Manual accumulation appends a
    feature id at most once per invocation.
    """

    def __init__(self, collection: FeatureCollection, accumulating: bool):
        self._collection = collection
        self._accumulating = accumulating
        self._seen_ids: Set[str] = set()

    @classmethod
    def from_collection(cls, collection: FeatureCollection) -> "ResultAccumulator":
        return cls(collection, accumulating=False)

    @classmethod
    def for_schema(cls, schema: FeatureSchema) -> "ResultAccumulator":
        return cls(MemoryFeatureCollection(schema), accumulating=True)

    @property
    def is_accumulating(self) -> bool:
        return self._accumulating

    def add(self, feature: Feature) -> bool:
        """Append a matching feature.

        Returns:
            False if a feature with the same id was already appended
        """
        if not self._accumulating:
            raise TypeError("Cannot add features to a native query result")
        if feature.feature_id in self._seen_ids:
            logger.debug(f"Feature {feature.feature_id} already accumulated, ignoring repeat")
            return False
        self._seen_ids.add(feature.feature_id)
        self._collection.add(feature)
        return True

    def count(self) -> Optional[int]:
        """Number of accumulated features, or None for a native query result."""
        if self._accumulating:
            return len(self._seen_ids)
        return None

    def results(self) -> FeatureCollection:
        return self._collection
