"""Vector search on PostgreSQL through the pgvector extension."""

from __future__ import annotations

import json
from contextlib import suppress
from typing import Any, Sequence

from codetect.adapter import DatabaseError
from codetect.dialect import DatabaseType, get_dialect
from codetect.vector import DistanceMetric, VectorDB, VectorSearchResult

_OP_CLASSES = {
    DistanceMetric.COSINE: "vector_cosine_ops",
    DistanceMetric.EUCLIDEAN: "vector_l2_ops",
    DistanceMetric.DOT_PRODUCT: "vector_ip_ops",
}

_OPERATORS = {
    DistanceMetric.COSINE: "<=>",
    DistanceMetric.EUCLIDEAN: "<->",
    DistanceMetric.DOT_PRODUCT: "<#>",
}

_EXTENSION_CHECK = (
    "SELECT EXISTS(SELECT 1 FROM pg_extension WHERE extname = 'vector')"
)


def _vector_literal(vector: Sequence[float]) -> str:
    return json.dumps([float(v) for v in vector], separators=(",", ":"))


class PgVectorDB(VectorDB):
    """Vectors kept in an ``embedding`` column and searched with pgvector."""

    def __init__(self, database: Any, dimensions: int, metric: DistanceMetric) -> None:
        try:
            row = database.query_row(_EXTENSION_CHECK)
        except Exception as exc:
            raise DatabaseError(f"checking pgvector extension: {exc}") from exc
        if row is None:
            raise DatabaseError("checking pgvector extension: no rows in result set")
        if not row[0]:
            raise DatabaseError(
                "pgvector extension not installed - run: CREATE EXTENSION vector"
            )
        self.db = database
        self.dialect = get_dialect(DatabaseType.POSTGRES)
        self.dimensions = dimensions
        self.metric = metric

    def create_vector_index(self, name: str, dimensions: int, metric: DistanceMetric) -> None:
        """Create an HNSW index on ``name.embedding``, falling back to IVFFlat."""
        op_class = _OP_CLASSES.get(metric)
        if op_class is None:
            raise ValueError(f"unsupported distance metric for pgvector: {metric}")
        index_name = f"{name}_embedding_idx"
        hnsw = (
            f"CREATE INDEX IF NOT EXISTS {index_name} "
            f"ON {name} USING hnsw (embedding {op_class})"
        )
        try:
            self.db.execute(hnsw)
        except Exception:
            ivfflat = (
                f"CREATE INDEX IF NOT EXISTS {index_name} "
                f"ON {name} USING ivfflat (embedding {op_class}) WITH (lists = 100)"
            )
            try:
                self.db.execute(ivfflat)
            except Exception as exc:
                raise DatabaseError(
                    f"creating vector index (tried HNSW and IVFFlat): {exc}"
                ) from exc

    @staticmethod
    def _update_sql(index: str) -> str:
        return f"UPDATE {index} SET embedding = $1::vector WHERE id = $2"

    def insert_vector(self, index: str, vector_id: int, vector: Sequence[float]) -> None:
        """Set the embedding of an existing row."""
        try:
            self.db.execute(self._update_sql(index), _vector_literal(vector), vector_id)
        except Exception as exc:
            raise DatabaseError(f"inserting vector: {exc}") from exc

    def insert_vectors(
        self, index: str, ids: Sequence[int], vectors: Sequence[Sequence[float]]
    ) -> None:
        """Set the embeddings of several rows in one transaction."""
        if len(ids) != len(vectors):
            raise ValueError(
                f"ids and vectors length mismatch: {len(ids)} != {len(vectors)}"
            )
        try:
            tx = self.db.begin()
        except Exception as exc:
            raise DatabaseError(f"starting transaction: {exc}") from exc
        try:
            try:
                stmt = tx.prepare(self._update_sql(index))
            except Exception as exc:
                raise DatabaseError(f"preparing statement: {exc}") from exc
            try:
                for i, (vector_id, vector) in enumerate(zip(ids, vectors)):
                    try:
                        stmt.execute(_vector_literal(vector), vector_id)
                    except Exception as exc:
                        raise DatabaseError(f"inserting vector {i}: {exc}") from exc
            finally:
                stmt.close()
        except BaseException:
            with suppress(Exception):
                tx.rollback()
            raise
        try:
            tx.commit()
        except Exception as exc:
            raise DatabaseError(f"committing batch insert: {exc}") from exc

    def search_knn(
        self, index: str, query: Sequence[float], k: int
    ) -> list[VectorSearchResult]:
        """Return the ``k`` rows whose embeddings are closest to ``query``."""
        operator = _OPERATORS.get(self.metric)
        if operator is None:
            raise ValueError(f"unsupported distance metric: {self.metric}")
        sql = (
            f"SELECT id, embedding {operator} $1::vector AS distance "
            f"FROM {index} ORDER BY embedding {operator} $1::vector LIMIT $2"
        )
        try:
            rows = self.db.query(sql, _vector_literal(query), k)
        except Exception as exc:
            raise DatabaseError(f"executing KNN query: {exc}") from exc
        results = []
        try:
            for row in rows:
                try:
                    vector_id, distance = int(row[0]), float(row[1])
                except (TypeError, ValueError, IndexError) as exc:
                    raise DatabaseError(f"scanning result: {exc}") from exc
                results.append(
                    VectorSearchResult(
                        id=vector_id, distance=distance, score=1.0 / (1.0 + distance)
                    )
                )
        except DatabaseError:
            raise
        except Exception as exc:
            raise DatabaseError(f"iterating results: {exc}") from exc
        finally:
            rows.close()
        return results

    def delete_vector(self, index: str, vector_id: int) -> None:
        """Clear a row's embedding; the row itself is kept."""
        try:
            self.db.execute(f"UPDATE {index} SET embedding = NULL WHERE id = $1", vector_id)
        except Exception as exc:
            raise DatabaseError(f"deleting vector: {exc}") from exc

    def delete_vectors(self, index: str, ids: Sequence[int]) -> None:
        """Clear the embeddings of several rows."""
        if not ids:
            return
        placeholders = ", ".join(self.dialect.placeholder(i) for i in range(1, len(ids) + 1))
        try:
            self.db.execute(
                f"UPDATE {index} SET embedding = NULL WHERE id IN ({placeholders})", *ids
            )
        except Exception as exc:
            raise DatabaseError(f"deleting vectors: {exc}") from exc

    def supports_native_search(self) -> bool:
        return True