"""
Record store interface and an in-memory implementation.

The search core only needs insert-or-update, delete, fetch by ids,
fetch all and count. A Hamming-ordered lookup is optional.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Optional

from .types import VectorRecord
from .vector_math import as_vector, magnitude, normalize, quantize, DEFAULT_EPSILON
from ..core.errors import NotFoundError


def build_record(record_id: int, raw_vector, created: Optional[datetime] = None) -> VectorRecord:
    """Derive normalized vector, magnitude and binary code from a raw vector."""
    raw = as_vector(raw_vector)
    vector_magnitude = magnitude(raw)
    if vector_magnitude == 0:
        vector_magnitude = DEFAULT_EPSILON
    normalized = normalize(raw, vector_magnitude)
    return VectorRecord(
        id=record_id,
        raw_vector=raw,
        normalized_vector=normalized,
        magnitude=vector_magnitude,
        binary_code=quantize(normalized),
        created=created,
    )


class IRecordStore(ABC):
    """Abstract interface for vector record persistence."""

    @abstractmethod
    def upsert(self, raw_vector, record_id: Optional[int] = None) -> int:
        """Insert a vector, or fully replace the record with the given id."""
        pass

    @abstractmethod
    def batch_insert(self, raw_vectors: Iterable) -> List[int]:
        """Insert many vectors atomically; returns ids in input order."""
        pass

    @abstractmethod
    def fetch_by_ids(self, record_ids: Iterable[int]) -> List[VectorRecord]:
        """Fetch records by id. Unknown ids are skipped; order is not guaranteed."""
        pass

    @abstractmethod
    def fetch_all(self) -> Iterator[VectorRecord]:
        """Iterate every stored record."""
        pass

    @abstractmethod
    def delete(self, record_id: int) -> None:
        """Delete a record by id. Deleting an unknown id is a no-op."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of stored records."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove all records from the store."""
        pass

    def nearest_by_code(self, binary_code: str, limit: int) -> List[int]:
        """Ids of the `limit` records closest in Hamming distance, ties by ascending id.

        Optional capability; stores without a code index leave this unimplemented.
        """
        raise NotImplementedError(f"{self.__class__.__name__} has no Hamming index")


class SimpleInMemoryRecordStore(IRecordStore):
    """Simple in-memory implementation of IRecordStore."""

    def __init__(self):
        self._records: Dict[int, VectorRecord] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def upsert(self, raw_vector, record_id: Optional[int] = None) -> int:
        with self._lock:
            if record_id is None:
                record_id = self._next_id
                self._next_id += 1
                created = datetime.now()
            elif record_id in self._records:
                created = self._records[record_id].created
            else:
                raise NotFoundError(record_id)

            self._records[record_id] = build_record(record_id, raw_vector, created)
            return record_id

    def batch_insert(self, raw_vectors: Iterable) -> List[int]:
        # Derive everything before touching the dict so a bad vector adds nothing
        raw_vectors = list(raw_vectors)
        with self._lock:
            created = datetime.now()
            records = [
                build_record(self._next_id + i, raw, created)
                for i, raw in enumerate(raw_vectors)
            ]
            for record in records:
                self._records[record.id] = record
            self._next_id += len(records)
            return [record.id for record in records]

    def fetch_by_ids(self, record_ids: Iterable[int]) -> List[VectorRecord]:
        with self._lock:
            return [self._records[i] for i in record_ids if i in self._records]

    def fetch_all(self) -> Iterator[VectorRecord]:
        # Snapshot under the lock; iteration happens outside it
        with self._lock:
            records = list(self._records.values())
        return iter(records)

    def delete(self, record_id: int) -> None:
        with self._lock:
            self._records.pop(record_id, None)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
