"""Feature Collection Interfaces

Defines the closeable feature iterator, the feature collection contract every
data source implements, the optional native-query (pushdown) capability, and
the list-backed in-memory collection.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Iterable, Iterator, List, Optional

from ..models import Feature, FeatureSchema

logger = logging.getLogger(__name__)


class FeatureIterator:
    """Single-pass, closeable iterator over features.

    Usable as a context manager; leaving the ``with`` block closes the
    underlying resource. Closing more than once is a no-op.
    """

    def __init__(self, features: Iterable[Feature], on_close: Optional[Callable[[], None]] = None):
        self._features = iter(features)
        self._on_close = on_close
        self._closed = False

    def __iter__(self) -> "FeatureIterator":
        return self

    def __next__(self) -> Feature:
        if self._closed:
            raise StopIteration
        return next(self._features)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close_source = getattr(self._features, "close", None)
        if close_source is not None:
            close_source()
        if self._on_close is not None:
            self._on_close()

    def __enter__(self) -> "FeatureIterator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class FeatureCollection(ABC):
    """A set of features sharing one schema."""

    @property
    @abstractmethod
    def schema(self) -> FeatureSchema:
        """Schema of every feature in the collection."""

    @abstractmethod
    def features(self) -> FeatureIterator:
        """Open a new iterator over the collection."""

    def size(self) -> int:
        """Number of features; iterates unless a subclass knows better."""
        with self.features() as iterator:
            return sum(1 for _ in iterator)

    def __len__(self) -> int:
        return self.size()

    def ids(self) -> List[str]:
        with self.features() as iterator:
            return [feature.feature_id for feature in iterator]

    def to_list(self) -> List[Feature]:
        with self.features() as iterator:
            return list(iterator)


class SupportsPushdown(ABC):
    """Capability of evaluating predicates natively inside the data source.

    ``restriction`` is the filter the source already applies (the query the
    collection was obtained with); ``query`` returns the features matching
    a predicate, evaluated by the source with correct distance units.
    """

    @property
    @abstractmethod
    def restriction(self):
        """Existing restriction predicate of this collection."""

    @abstractmethod
    def query(self, predicate, cancel_event: Optional[threading.Event] = None) -> FeatureCollection:
        """Return the features matching ``predicate``."""


class MemoryFeatureCollection(FeatureCollection):
    """List-backed feature collection without native query support."""

    def __init__(self, schema: FeatureSchema, features: Optional[Iterable[Feature]] = None):
        self._schema = schema
        self._features: List[Feature] = list(features) if features is not None else []

    @property
    def schema(self) -> FeatureSchema:
        return self._schema

    def features(self) -> FeatureIterator:
        # iterate over a snapshot so appends during iteration are not observed
        return FeatureIterator(list(self._features))

    def add(self, feature: Feature) -> None:
        self._features.append(feature)

    def size(self) -> int:
        return len(self._features)

    def __repr__(self) -> str:
        return f"MemoryFeatureCollection(schema={self._schema.name!r}, size={len(self._features)})"
