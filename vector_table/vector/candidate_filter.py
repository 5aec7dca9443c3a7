"""
Candidate ranking strategies: exact cosine ranking over the full corpus,
and a Hamming-distance prefilter followed by an exact cosine rerank.

Both strategies read the whole collection per query (O(N*D) for exact,
O(N) code comparisons for the in-process prefilter). Swapping in a real
index only requires a store that implements nearest_by_code.
"""

from typing import Iterable, List

import numpy as np

from .index import IRecordStore
from .types import VectorRecord, ScoredRecord
from .vector_math import cosine_similarity, hamming_distance
from ..core.errors import StorageError, VectorTableError
from ..util.logging import logger


def load_records(store: IRecordStore) -> List[VectorRecord]:
    """Read the full collection, surfacing any store failure as StorageError."""
    try:
        return list(store.fetch_all())
    except VectorTableError:
        raise
    except Exception as e:
        raise StorageError(f"Record store fetch failed: {e}") from e


def rank_by_similarity(query_normalized: np.ndarray, records: Iterable[VectorRecord], n: int) -> List[ScoredRecord]:
    """Score records against a normalized query and keep the top n.

    The sort is stable, so equal scores keep their input order.
    """
    scored = [
        ScoredRecord(record=record, similarity=cosine_similarity(query_normalized, record.normalized_vector))
        for record in records
    ]
    scored.sort(key=lambda item: item.similarity, reverse=True)
    return scored[:n]


class CandidateFilter:
    """Produces ranked candidate lists from a record store."""

    def __init__(self, store: IRecordStore, use_code_index: bool = True):
        self.store = store
        self.use_code_index = use_code_index

    def exact(self, query_normalized: np.ndarray, n: int) -> List[ScoredRecord]:
        """Single-pass exact cosine ranking over every stored record."""
        records = load_records(self.store)
        logger.debug(f"Exact search scoring {len(records)} records")
        return rank_by_similarity(query_normalized, records, n)

    def nearest_codes(self, query_code: str, n: int) -> List[int]:
        """Ids of the n records closest to query_code, ties broken by ascending id."""
        if self.use_code_index:
            try:
                return list(self.store.nearest_by_code(query_code, n))
            except NotImplementedError:
                pass  # No index on this store; compare every code in-process
            except VectorTableError:
                raise
            except Exception as e:
                raise StorageError(f"Hamming lookup failed: {e}") from e

        distances = [
            (hamming_distance(query_code, record.binary_code), record.id)
            for record in load_records(self.store)
        ]
        distances.sort()
        return [record_id for _, record_id in distances[:n]]

    def hamming(self, query_normalized: np.ndarray, query_code: str, n: int) -> List[ScoredRecord]:
        """Hamming prefilter to n candidates, then exact cosine rerank."""
        candidate_ids = self.nearest_codes(query_code, n)
        if not candidate_ids:
            return []

        try:
            fetched = {record.id: record for record in self.store.fetch_by_ids(candidate_ids)}
        except VectorTableError:
            raise
        except Exception as e:
            raise StorageError(f"Record store fetch failed: {e}") from e

        # Rerank in prefilter order so ties resolve the same way on every run
        candidates = [fetched[i] for i in candidate_ids if i in fetched]
        return rank_by_similarity(query_normalized, candidates, n)
