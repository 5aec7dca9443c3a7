"""
SearchEngine facade: validates requests, talks to the injected record store
and dispatches to the ranking strategies.

Every search re-reads the collection from the store; the engine keeps no
state between calls besides its configuration.
"""

import time
from typing import Iterable, List, Optional

import numpy as np

from .errors import NotFoundError, StorageError, ValidationError, VectorTableError
from ..vector.candidate_filter import CandidateFilter, load_records
from ..vector.index import IRecordStore
from ..vector.staged_search import StagedSearch
from ..vector.types import VectorRecord, ScoredRecord
from ..vector.vector_math import as_vector, cosine_similarity, magnitude, normalize, quantize
from ..util.logging import logger


class SearchEngine:
    """Cosine similarity search over a record store."""

    def __init__(self, store: IRecordStore, dimension: int, use_code_index: bool = True):
        """
        Args:
            store: Record store holding the collection
            dimension: Fixed vector dimension of the collection
            use_code_index: Use the store's Hamming lookup when it has one
        """
        if dimension < 1:
            raise ValidationError(f"dimension must be >= 1, got {dimension}")
        self.store = store
        self._dimension = dimension
        self.candidate_filter = CandidateFilter(store, use_code_index=use_code_index)

    @property
    def dimension(self) -> int:
        return self._dimension

    @staticmethod
    def _finite_vector(vector) -> np.ndarray:
        try:
            v = as_vector(vector)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Vector must be a sequence of numbers: {e}") from e

        if not np.all(np.isfinite(v)):
            raise ValidationError("Vector contains non-finite components")
        if not np.isfinite(magnitude(v)):
            raise ValidationError("Vector magnitude is not finite")
        return v

    def validate_vector(self, vector) -> np.ndarray:
        """Check dimension and finiteness; return the vector as an array."""
        v = self._finite_vector(vector)
        if len(v) != self._dimension:
            raise ValidationError(
                f"Vector dimension {len(v)} does not match expected dimension {self._dimension}"
            )
        return v

    def _validate_n(self, n: int) -> None:
        if n < 1:
            raise ValidationError(f"n must be >= 1, got {n}")

    def _store_call(self, operation: str, func, *args):
        # Store failures reach the caller as StorageError; our own errors pass through
        try:
            return func(*args)
        except VectorTableError:
            raise
        except Exception as e:
            logger.log_operation(f"store.{operation}", "failed", {"error": str(e)})
            raise StorageError(f"Record store {operation} failed: {e}") from e

    # Writes

    def upsert(self, raw_vector, record_id: Optional[int] = None) -> int:
        """Insert a vector, or replace the vector of an existing record."""
        v = self.validate_vector(raw_vector)
        new_id = self._store_call("upsert", self.store.upsert, v, record_id)
        logger.log_store_operation("upsert", new_id, {
            "provider": self.store.__class__.__name__,
            "dimension": len(v),
            "operation": "update" if record_id is not None else "create"
        })
        return new_id

    def batch_insert(self, raw_vectors: Iterable) -> List[int]:
        """Insert many vectors in one atomic write."""
        vectors = [self.validate_vector(v) for v in raw_vectors]
        if not vectors:
            return []
        ids = self._store_call("batch_insert", self.store.batch_insert, vectors)
        logger.log_store_operation("batch_insert", f"{ids[0]}..{ids[-1]}", {"count": len(ids)})
        return ids

    def delete(self, record_id: int) -> None:
        """Delete a record. Unknown ids are a no-op."""
        self._store_call("delete", self.store.delete, record_id)
        logger.log_store_operation("delete", record_id)

    # Reads

    def count(self) -> int:
        return self._store_call("count", self.store.count)

    def fetch_by_ids(self, record_ids: Iterable[int]) -> List[VectorRecord]:
        return self._store_call("fetch_by_ids", self.store.fetch_by_ids, list(record_ids))

    def get(self, record_id: int) -> VectorRecord:
        """Fetch a single record or raise NotFoundError."""
        records = self.fetch_by_ids([record_id])
        if not records:
            raise NotFoundError(record_id)
        return records[0]

    def cosim(self, vector_a, vector_b) -> float:
        """Cosine similarity of two vectors after normalization."""
        a = self._finite_vector(vector_a)
        b = self._finite_vector(vector_b)
        return cosine_similarity(normalize(a), normalize(b))

    # Searches

    def search(self, query, n: int = 10) -> List[ScoredRecord]:
        """Exact cosine search: score every stored record, return the top n."""
        v = self.validate_vector(query)
        self._validate_n(n)

        start = time.time()
        results = self.candidate_filter.exact(normalize(v), n)
        logger.log_search("exact", start, time.time(), {"top_n": n, "returned": len(results)})
        return results

    def search_with_hamming(self, query, n: int = 10) -> List[ScoredRecord]:
        """Hamming prefilter to n candidates, then rerank them by exact cosine."""
        v = self.validate_vector(query)
        self._validate_n(n)

        start = time.time()
        normalized = normalize(v)
        results = self.candidate_filter.hamming(normalized, quantize(normalized), n)
        logger.log_search("hamming", start, time.time(), {"top_n": n, "returned": len(results)})
        return results

    def staged_search(self, query, stages: int = 4, n: int = 50) -> List[ScoredRecord]:
        """Staged multi-resolution search over the whole collection."""
        v = self.validate_vector(query)
        self._validate_n(n)
        searcher = StagedSearch(stages)

        start = time.time()
        records = load_records(self.store)
        results = searcher.run(v, records, n)
        logger.log_search("staged", start, time.time(), {
            "stages": stages,
            "candidates": len(records),
            "top_n": n,
            "returned": len(results),
        })
        return results
