"""Vector similarity search with an in-memory brute-force backend."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Sequence


class DistanceMetric(IntEnum):
    """Distance function used to compare vectors."""

    COSINE = 0
    EUCLIDEAN = 1
    DOT_PRODUCT = 2
    MANHATTAN = 3

    def __str__(self) -> str:
        return _METRIC_NAMES.get(self, "unknown")


_METRIC_NAMES = {
    DistanceMetric.COSINE: "cosine",
    DistanceMetric.EUCLIDEAN: "euclidean",
    DistanceMetric.DOT_PRODUCT: "dot_product",
    DistanceMetric.MANHATTAN: "manhattan",
}


@dataclass(frozen=True)
class VectorSearchResult:
    """One search hit: lower distance and higher score mean more similar."""

    id: int
    distance: float
    score: float


class VectorDB(abc.ABC):
    """Storage and k-nearest-neighbour search over vectors."""

    @abc.abstractmethod
    def create_vector_index(self, name: str, dimensions: int, metric: DistanceMetric) -> None:
        """Create an index that stores vectors compared with ``metric``."""

    @abc.abstractmethod
    def insert_vector(self, index: str, vector_id: int, vector: Sequence[float]) -> None:
        """Store a vector under an id."""

    @abc.abstractmethod
    def insert_vectors(
        self, index: str, ids: Sequence[int], vectors: Sequence[Sequence[float]]
    ) -> None:
        """Store several vectors."""

    @abc.abstractmethod
    def search_knn(
        self, index: str, query: Sequence[float], k: int
    ) -> list[VectorSearchResult]:
        """Return the ``k`` closest vectors, closest first."""

    @abc.abstractmethod
    def delete_vector(self, index: str, vector_id: int) -> None:
        """Remove a vector by id."""

    @abc.abstractmethod
    def delete_vectors(self, index: str, ids: Sequence[int]) -> None:
        """Remove several vectors by id."""

    @abc.abstractmethod
    def supports_native_search(self) -> bool:
        """Whether the backend searches natively rather than by brute force."""


def sqrt32(x: float) -> float:
    """Square root by ten Newton-Raphson steps; zero for non-positive input."""
    if x <= 0:
        return 0.0
    z = x / 2
    for _ in range(10):
        z -= (z * z - x) / (2 * z)
    return z


def cosine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Return 1 minus the cosine similarity; 1 when either vector is zero."""
    dot = norm_a = norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 1.0
    return 1.0 - dot / (sqrt32(norm_a) * sqrt32(norm_b))


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the L2 distance."""
    return sqrt32(sum((x - y) ** 2 for x, y in zip(a, b)))


def negative_dot_product(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the negated dot product."""
    return -sum(x * y for x, y in zip(a, b))


def manhattan_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the L1 distance."""
    return sum(abs(x - y) for x, y in zip(a, b))


_DISTANCE_FUNCS: dict[DistanceMetric, Callable[[Sequence[float], Sequence[float]], float]] = {
    DistanceMetric.COSINE: cosine_distance,
    DistanceMetric.EUCLIDEAN: euclidean_distance,
    DistanceMetric.DOT_PRODUCT: negative_dot_product,
    DistanceMetric.MANHATTAN: manhattan_distance,
}


class BruteForceVectorDB(VectorDB):
    """In-memory vectors searched by comparing the query with every one."""

    def __init__(self) -> None:
        self._vectors: dict[str, dict[int, list[float]]] = {}
        self._metrics: dict[str, DistanceMetric] = {}

    def create_vector_index(self, name: str, dimensions: int, metric: DistanceMetric) -> None:
        self._vectors.setdefault(name, {})
        self._metrics[name] = metric

    def insert_vector(self, index: str, vector_id: int, vector: Sequence[float]) -> None:
        self._vectors.setdefault(index, {})[vector_id] = list(vector)

    def insert_vectors(
        self, index: str, ids: Sequence[int], vectors: Sequence[Sequence[float]]
    ) -> None:
        if len(vectors) < len(ids):
            raise ValueError(f"got {len(ids)} ids but only {len(vectors)} vectors")
        for vector_id, vector in zip(ids, vectors):
            self.insert_vector(index, vector_id, vector)

    def search_knn(
        self, index: str, query: Sequence[float], k: int
    ) -> list[VectorSearchResult]:
        stored = self._vectors.get(index)
        if stored is None:
            return []
        if k < 0:
            raise ValueError(f"k must not be negative, got {k}")
        distance = _DISTANCE_FUNCS.get(
            self._metrics.get(index, DistanceMetric.COSINE), cosine_distance
        )
        ranked = sorted(
            ((vector_id, distance(query, vector)) for vector_id, vector in stored.items()),
            key=lambda pair: pair[1],
        )
        return [
            VectorSearchResult(id=vector_id, distance=dist, score=1.0 / (1.0 + dist))
            for vector_id, dist in ranked[:k]
        ]

    def delete_vector(self, index: str, vector_id: int) -> None:
        stored = self._vectors.get(index)
        if stored is not None:
            stored.pop(vector_id, None)

    def delete_vectors(self, index: str, ids: Sequence[int]) -> None:
        for vector_id in ids:
            self.delete_vector(index, vector_id)

    def supports_native_search(self) -> bool:
        return False