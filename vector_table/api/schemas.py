"""
Request and response models for the vector table HTTP API.
"""

import math
from pydantic import BaseModel, field_validator
from typing import Optional, List
from datetime import datetime

from ..core.config import DEFAULT_STAGES, DEFAULT_TOP_N, DEFAULT_STAGED_TOP_N


def _check_finite(v: List[float]) -> List[float]:
    if not v:
        raise ValueError('vector cannot be empty')
    if not all(math.isfinite(x) for x in v):
        raise ValueError('vector components must be finite')
    return v


class VectorUpsertRequest(BaseModel):
    vector: List[float]
    id: Optional[int] = None

    @field_validator('vector')
    @classmethod
    def vector_must_be_finite(cls, v):
        return _check_finite(v)


class VectorUpsertResponse(BaseModel):
    success: bool
    id: int


class VectorBatchRequest(BaseModel):
    vectors: List[List[float]]

    @field_validator('vectors')
    @classmethod
    def vectors_must_be_finite(cls, v):
        return [_check_finite(vector) for vector in v]


class VectorBatchResponse(BaseModel):
    success: bool
    ids: List[int]


class VectorResponse(BaseModel):
    id: int
    vector: List[float]
    normalized_vector: List[float]
    magnitude: float
    binary_code: str
    created: Optional[datetime] = None


class DeleteResponse(BaseModel):
    success: bool
    id: int


class CountResponse(BaseModel):
    count: int


class SearchRequest(BaseModel):
    vector: List[float]
    n: int = DEFAULT_TOP_N

    @field_validator('vector')
    @classmethod
    def vector_must_be_finite(cls, v):
        return _check_finite(v)

    @field_validator('n')
    @classmethod
    def n_must_be_positive(cls, v):
        if v < 1:
            raise ValueError('n must be >= 1')
        return v


class StagedSearchRequest(SearchRequest):
    n: int = DEFAULT_STAGED_TOP_N
    stages: int = DEFAULT_STAGES

    @field_validator('stages')
    @classmethod
    def stages_must_be_positive(cls, v):
        if v < 1:
            raise ValueError('stages must be >= 1')
        return v


class SearchResult(VectorResponse):
    similarity: float
    dimension: Optional[int] = None


class SearchResponse(BaseModel):
    strategy: str
    results: List[SearchResult]


class CosimRequest(BaseModel):
    vector_a: List[float]
    vector_b: List[float]

    @field_validator('vector_a', 'vector_b')
    @classmethod
    def vectors_must_be_finite(cls, v):
        return _check_finite(v)


class CosimResponse(BaseModel):
    similarity: float


class HealthResponse(BaseModel):
    status: str
    version: str
    db_health: bool
    record_count: int
    dimension: int
