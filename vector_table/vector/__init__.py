"""
Vector layer: record types, vector math, record stores and ranking strategies.
"""

# Package initialization for vector module
from .types import VectorRecord, ScoredRecord
from .index import IRecordStore, SimpleInMemoryRecordStore
from .sqlite_store import SqliteRecordStore
from .candidate_filter import CandidateFilter
from .staged_search import StagedSearch

__all__ = [
    'VectorRecord',
    'ScoredRecord',
    'IRecordStore',
    'SimpleInMemoryRecordStore',
    'SqliteRecordStore',
    'CandidateFilter',
    'StagedSearch',
]
