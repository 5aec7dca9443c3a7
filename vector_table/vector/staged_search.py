"""
Staged multi-resolution search.

Each round compares only a leading prefix of the dimensions, re-normalizing
both the query prefix and every candidate's raw-vector prefix, then keeps
the better half for the next, wider round. Candidates that fall out are
kept in per-round buckets and appended after the final survivors, so the
result always holds min(n, N) records: the head is ranked at full
resolution, the tail only approximately.
"""

from typing import List, Sequence

import numpy as np

from .types import VectorRecord, ScoredRecord
from .vector_math import as_vector, cosine_similarity, normalize, prefix
from ..core.errors import ValidationError
from ..util.logging import logger


def stage_dimensions(dimension: int, stages: int) -> List[int]:
    """Prefix widths compared in each round.

    Widths grow by dimension // stages (at least 1) while they do not exceed
    the full dimension. When the dimension is not a multiple of the stage
    count the last width can stop short of the full dimension.
    """
    if stages < 1:
        raise ValidationError(f"stages must be >= 1, got {stages}")

    increment = max(1, dimension // stages)
    return list(range(increment, dimension + 1, increment))


def score_prefix(query_prefix: np.ndarray, record: VectorRecord, width: int) -> ScoredRecord:
    """Similarity of one candidate over its first `width` raw components."""
    candidate_prefix = normalize(prefix(record.raw_vector, width))
    return ScoredRecord(
        record=record,
        similarity=cosine_similarity(query_prefix, candidate_prefix),
        dimension=width,
    )


class StagedSearch:
    """Progressive refinement ranking that halves the working set each round."""

    def __init__(self, stages: int = 4):
        if stages < 1:
            raise ValidationError(f"stages must be >= 1, got {stages}")
        self.stages = stages

    def run(self, query, records: Sequence[VectorRecord], n: int) -> List[ScoredRecord]:
        query = as_vector(query)
        working = list(records)
        eliminated: List[List[ScoredRecord]] = []
        survivors: List[ScoredRecord] = []

        for stage, width in enumerate(stage_dimensions(len(query), self.stages), start=1):
            if not working:
                break

            query_prefix = normalize(prefix(query, width))
            scored = [score_prefix(query_prefix, record, width) for record in working]
            scored.sort(key=lambda item: item.similarity, reverse=True)

            retain = max(1, len(scored) // 2)
            survivors = scored[:retain]
            eliminated.append(scored[retain:])
            working = [item.record for item in survivors]

            logger.log_stage(stage, width, len(scored), retain)

        # Survivors first, then each round's castoffs, earliest round first
        results = list(survivors)
        for bucket in eliminated:
            results.extend(bucket)

        return results[:n]
