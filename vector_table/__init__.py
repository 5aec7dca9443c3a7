"""
Vector table - cosine similarity search over stored embedding vectors.
Exact ranking, Hamming-prefiltered reranking and staged multi-resolution search.
"""

from .core.errors import VectorTableError, ValidationError, StorageError, NotFoundError
from .core.search_service import SearchEngine
from .vector.types import VectorRecord, ScoredRecord

__version__ = "1.0.0"

__all__ = [
    'SearchEngine',
    'VectorRecord',
    'ScoredRecord',
    'VectorTableError',
    'ValidationError',
    'StorageError',
    'NotFoundError',
]
