"""
Tests for staged multi-resolution search.
"""

import numpy as np
import pytest

from vector_table.core.errors import ValidationError
from vector_table.vector.candidate_filter import rank_by_similarity
from vector_table.vector.index import build_record
from vector_table.vector.staged_search import StagedSearch, score_prefix, stage_dimensions
from vector_table.vector.vector_math import cosine_similarity, normalize


def _records(vectors):
    return [build_record(i + 1, v) for i, v in enumerate(vectors)]


def test_stage_dimensions():
    """Test prefix widths grow by D // stages and never exceed D."""
    assert stage_dimensions(8, 4) == [2, 4, 6, 8]
    assert stage_dimensions(8, 1) == [8]
    assert stage_dimensions(10, 4) == [2, 4, 6, 8, 10]
    # Last round stops short of the full dimension
    assert stage_dimensions(10, 3) == [3, 6, 9]


def test_stage_dimensions_more_stages_than_dimensions():
    """Test that the width floor of 1 applies when stages > D."""
    assert stage_dimensions(3, 5) == [1, 2, 3]


def test_stages_must_be_positive():
    with pytest.raises(ValidationError):
        stage_dimensions(8, 0)
    with pytest.raises(ValidationError):
        StagedSearch(stages=0)


def test_score_prefix_renormalizes_raw_prefix():
    """Test partial similarity is computed on re-normalized raw prefixes."""
    record = build_record(1, [3.0, 4.0, 100.0])
    query_prefix = normalize([4.0, 3.0])

    scored = score_prefix(query_prefix, record, 2)

    assert scored.dimension == 2
    assert scored.similarity == pytest.approx(24.0 / 25.0)
    assert scored.similarity == pytest.approx(cosine_similarity([4.0, 3.0], [3.0, 4.0]))


def test_single_stage_matches_full_ranking():
    """Test that one stage is a single full-dimension ranking pass."""
    rng = np.random.default_rng(5)
    records = _records(rng.normal(size=(25, 8)))
    query = rng.normal(size=8)

    staged = StagedSearch(stages=1).run(query, records, 25)
    exact = rank_by_similarity(normalize(query), records, 25)

    assert [r.id for r in staged] == [r.id for r in exact]
    assert all(r.dimension == 8 for r in staged)
    for s, e in zip(staged, exact):
        assert s.similarity == pytest.approx(e.similarity)


def test_eliminated_buckets_follow_elimination_order():
    """Test final order: survivors, then castoffs with the earliest round first.

    Round 1 (width 1) drops ids 3 and 4; round 2 (width 2) drops id 1.
    Id 1 scores higher than ids 3 and 4 but is listed after them.
    """
    records = _records([
        [1.0, 0.0],
        [1.0, 1.0],
        [-1.0, 1.0],
        [-1.0, 0.0],
    ])

    results = StagedSearch(stages=2).run([1.0, 1.0], records, 10)

    assert [r.id for r in results] == [2, 3, 4, 1]
    assert [r.dimension for r in results] == [2, 1, 1, 2]
    assert results[0].similarity == pytest.approx(1.0)
    assert results[1].similarity == pytest.approx(-1.0)
    assert results[3].similarity == pytest.approx(np.sqrt(0.5))


def test_returns_n_distinct_records():
    """Test 100 records, 4 stages, n=50 yields 50 distinct original ids."""
    rng = np.random.default_rng(42)
    records = _records(rng.normal(size=(100, 32)))

    results = StagedSearch(stages=4).run(rng.normal(size=32), records, 50)
    ids = [r.id for r in results]

    assert len(ids) == 50
    assert len(set(ids)) == 50
    assert set(ids) <= {r.id for r in records}


def test_nothing_dropped_when_n_exceeds_collection():
    rng = np.random.default_rng(1)
    records = _records(rng.normal(size=(37, 12)))

    results = StagedSearch(stages=4).run(rng.normal(size=12), records, 100)

    assert sorted(r.id for r in results) == [r.id for r in records]


def test_survivors_are_best_at_full_resolution():
    """Test the head of the result is ordered by full-dimension similarity."""
    rng = np.random.default_rng(9)
    records = _records(rng.normal(size=(64, 16)))
    query = rng.normal(size=16)

    results = StagedSearch(stages=4).run(query, records, 64)
    survivor = results[0]

    assert survivor.dimension == 16
    assert survivor.similarity == pytest.approx(cosine_similarity(query, survivor.record.raw_vector))


def test_single_record_survives_every_round():
    records = _records([[3.0, 4.0, 100.0]])
    results = StagedSearch(stages=3).run([3.0, 4.0, -100.0], records, 5)

    assert len(results) == 1
    assert results[0].dimension == 3
    assert results[0].similarity == pytest.approx(-9975.0 / 10025.0)


def test_empty_collection():
    assert StagedSearch(stages=4).run([1.0, 0.0, 0.0, 0.0], [], 10) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
