"""
Tests for exact ranking and Hamming prefilter + rerank.
"""

from unittest.mock import MagicMock

import numpy as np
import pytest

from vector_table.core.errors import StorageError
from vector_table.vector.candidate_filter import CandidateFilter, rank_by_similarity
from vector_table.vector.index import IRecordStore, SimpleInMemoryRecordStore, build_record
from vector_table.vector.sqlite_store import SqliteRecordStore
from vector_table.vector.vector_math import normalize, quantize


def _query(vector):
    normalized = normalize(vector)
    return normalized, quantize(normalized)


@pytest.fixture
def populated_store():
    store = SimpleInMemoryRecordStore()
    store.batch_insert([
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 1.0, 0.0, 0.0],
        [0.7, 0.7, 0.0, 0.0],
    ])
    return store


def test_exact_ranking_order(populated_store):
    """Test exact search orders by descending cosine similarity."""
    candidate_filter = CandidateFilter(populated_store)
    query, _ = _query([1.0, 0.0, 0.0, 0.0])

    results = candidate_filter.exact(query, 3)

    assert [r.id for r in results] == [1, 3, 2]
    assert results[0].similarity == pytest.approx(1.0)
    assert results[1].similarity == pytest.approx(np.sqrt(0.5))
    assert results[2].similarity == pytest.approx(0.0)


def test_exact_truncates_to_n(populated_store):
    query, _ = _query([1.0, 0.0, 0.0, 0.0])
    assert len(CandidateFilter(populated_store).exact(query, 2)) == 2
    assert len(CandidateFilter(populated_store).exact(query, 10)) == 3


def test_exact_ties_keep_fetch_order():
    """Test that equal similarities keep the store's fetch order."""
    store = SimpleInMemoryRecordStore()
    ids = store.batch_insert([[0.0, 1.0]] * 4 + [[1.0, 0.0]])
    query, _ = _query([0.0, 1.0])

    results = CandidateFilter(store).exact(query, 5)

    assert [r.id for r in results] == ids[:4] + [ids[4]]
    # Repeated runs over unchanged data agree
    assert [r.id for r in CandidateFilter(store).exact(query, 5)] == [r.id for r in results]


def test_rank_by_similarity_dimension_mismatch_scores_zero():
    records = [build_record(1, [1.0, 0.0, 0.0]), build_record(2, [1.0, 0.0])]
    results = rank_by_similarity(normalize([1.0, 0.0]), records, 2)

    assert [r.id for r in results] == [2, 1]
    assert results[1].similarity == 0.0


def test_hamming_falls_back_to_in_process(populated_store):
    """Test that a store without a code index is scanned in-process."""
    query, code = _query([1.0, 0.0, 0.0, 0.0])
    results = CandidateFilter(populated_store).hamming(query, code, 3)

    assert [r.id for r in results] == [1, 3, 2]


def test_nearest_codes_ties_by_ascending_id():
    store = SimpleInMemoryRecordStore()
    store.batch_insert([
        [-1.0, -1.0, 1.0, 1.0],
        [1.0, 1.0, -1.0, -1.0],
        [1.0, 1.0, -1.0, -1.0],
        [1.0, 1.0, -1.0, -1.0],
    ])
    _, code = _query([1.0, 1.0, -1.0, -1.0])

    assert CandidateFilter(store).nearest_codes(code, 2) == [2, 3]


def test_hamming_reranks_prefiltered_candidates():
    """Test that candidates from the code lookup are reranked by exact similarity."""
    records = {
        1: build_record(1, [1.0, 0.1, 0.0, 0.0]),
        2: build_record(2, [1.0, 0.9, 0.0, 0.0]),
        3: build_record(3, [1.0, 0.5, 0.0, 0.0]),
    }
    store = MagicMock(spec=IRecordStore)
    store.nearest_by_code.return_value = [1, 2, 3]
    store.fetch_by_ids.return_value = [records[3], records[1], records[2]]

    query, code = _query([1.0, 1.0, 0.0, 0.0])
    results = CandidateFilter(store).hamming(query, code, 3)

    store.nearest_by_code.assert_called_once_with(code, 3)
    assert [r.id for r in results] == [2, 3, 1]
    store.fetch_all.assert_not_called()


def test_hamming_excludes_records_outside_prefilter():
    """Test that the prefilter trades recall for speed."""
    store = SimpleInMemoryRecordStore()
    # Nearly identical to the query, but a tiny negative component flips a sign bit
    near = store.upsert([1.0, 1.0, -0.01, 1.0])
    same_signs = store.upsert([1.0, 0.2, 0.2, 0.2])
    query, code = _query([1.0, 1.0, 0.01, 1.0])

    exact = CandidateFilter(store).exact(query, 1)
    prefiltered = CandidateFilter(store).hamming(query, code, 1)

    assert exact[0].id == near
    assert prefiltered[0].id == same_signs


def test_hamming_index_disabled_skips_store_lookup(tmp_path):
    store = SqliteRecordStore(str(tmp_path / "vectors.db"), "test")
    store.initialize()
    store.batch_insert([[1.0, 0.0], [0.0, 1.0]])
    store.nearest_by_code = MagicMock()

    _, code = _query([1.0, 0.0])
    assert CandidateFilter(store, use_code_index=False).nearest_codes(code, 1) == [1]
    store.nearest_by_code.assert_not_called()


def test_index_and_scan_give_identical_rankings(tmp_path):
    """Test the SQL code lookup and the in-process scan agree on the same data."""
    store = SqliteRecordStore(str(tmp_path / "vectors.db"), "test", dimension=16)
    store.initialize()
    rng = np.random.default_rng(11)
    store.batch_insert(rng.normal(size=(40, 16)))

    for _ in range(5):
        query, code = _query(rng.normal(size=16))
        indexed = CandidateFilter(store, use_code_index=True).hamming(query, code, 10)
        scanned = CandidateFilter(store, use_code_index=False).hamming(query, code, 10)
        assert [r.id for r in indexed] == [r.id for r in scanned]


def test_empty_store():
    store = SimpleInMemoryRecordStore()
    query, code = _query([1.0, 0.0])
    assert CandidateFilter(store).exact(query, 5) == []
    assert CandidateFilter(store).hamming(query, code, 5) == []


def test_store_failure_becomes_storage_error():
    """Test that arbitrary store failures surface as StorageError."""
    store = MagicMock(spec=IRecordStore)
    store.fetch_all.side_effect = RuntimeError("connection lost")
    query, code = _query([1.0, 0.0])

    with pytest.raises(StorageError):
        CandidateFilter(store).exact(query, 5)

    store.nearest_by_code.side_effect = RuntimeError("connection lost")
    with pytest.raises(StorageError):
        CandidateFilter(store).hamming(query, code, 5)


def test_storage_error_propagates_unchanged():
    error = StorageError("disk full")
    store = MagicMock(spec=IRecordStore)
    store.fetch_all.side_effect = error

    with pytest.raises(StorageError) as exc_info:
        CandidateFilter(store).exact(normalize([1.0, 0.0]), 5)
    assert exc_info.value is error


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
