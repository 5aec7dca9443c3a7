"""
Value types carried through every stage of the search pipeline.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Any
import numpy as np


@dataclass
class VectorRecord:
    """Represents a stored vector with its derived fields."""

    id: int
    """Store-assigned identifier, stable across updates"""

    raw_vector: np.ndarray
    """The vector as written by the caller"""

    normalized_vector: np.ndarray
    """raw_vector scaled to unit L2 norm"""

    magnitude: float
    """L2 norm of raw_vector (epsilon floor for zero vectors)"""

    binary_code: str
    """Sign bits of normalized_vector, uppercase hex"""

    created: Optional[datetime] = None
    """Write timestamp, informational only"""

    @property
    def dimension(self) -> int:
        return len(self.raw_vector)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "vector": [float(x) for x in self.raw_vector],
            "normalized_vector": [float(x) for x in self.normalized_vector],
            "magnitude": float(self.magnitude),
            "binary_code": self.binary_code,
            "created": self.created,
        }


@dataclass
class ScoredRecord:
    """Represents a ranked search result."""

    record: VectorRecord
    """The matched record"""

    similarity: float
    """Cosine similarity against the query (partial for staged search)"""

    dimension: Optional[int] = None
    """Number of leading components the similarity was computed over"""

    @property
    def id(self) -> int:
        return self.record.id

    def to_dict(self) -> Dict[str, Any]:
        result = self.record.to_dict()
        result["similarity"] = float(self.similarity)
        if self.dimension is not None:
            result["dimension"] = self.dimension
        return result
