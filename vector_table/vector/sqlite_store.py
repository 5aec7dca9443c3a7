"""
SQLite-backed implementation of IRecordStore.

Vectors are stored as JSON text alongside their magnitude and hex binary
code. A registered hamming_distance() SQL function lets the database order
records by code distance.
"""

import json
import sqlite3
from datetime import datetime
from typing import Iterable, Iterator, List, Optional

from .types import VectorRecord
from .index import IRecordStore, build_record
from .vector_math import as_vector
from ..core.db import get_db, init_db, vector_table_name
from ..core.errors import NotFoundError, StorageError


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


class SqliteRecordStore(IRecordStore):
    """SQLite implementation of IRecordStore with a database-side Hamming lookup."""

    def __init__(self, db_path: str, name: str = "default", dimension: Optional[int] = None):
        """
        Initialize SQLite record store.

        Args:
            db_path: Path of the SQLite database file
            name: Logical collection name; rows live in "<name>_vectors"
            dimension: Expected vector dimension, checked on write when set
        """
        self.db_path = db_path
        self.name = name
        self.dimension = dimension
        self.table = vector_table_name(name)

    def initialize(self, if_not_exists: bool = True) -> None:
        """Create the vectors table and binary code index."""
        try:
            init_db(self.db_path, self.name, if_not_exists)
        except sqlite3.Error as e:
            raise StorageError(f"Failed to create table {self.table}: {e}") from e

    def _row_to_record(self, row) -> VectorRecord:
        record_id, vector, normalized_vector, vector_magnitude, binary_code, created = row
        return VectorRecord(
            id=record_id,
            raw_vector=as_vector(json.loads(vector)),
            normalized_vector=as_vector(json.loads(normalized_vector)),
            magnitude=vector_magnitude,
            binary_code=binary_code,
            created=_parse_timestamp(created),
        )

    def _row_values(self, record: VectorRecord):
        return (
            json.dumps([float(x) for x in record.raw_vector]),
            json.dumps([float(x) for x in record.normalized_vector]),
            float(record.magnitude),
            record.binary_code,
        )

    def _check_dimension(self, record: VectorRecord) -> None:
        if self.dimension is not None and record.dimension != self.dimension:
            raise StorageError(
                f"Vector dimension {record.dimension} does not match table dimension {self.dimension}"
            )

    def upsert(self, raw_vector, record_id: Optional[int] = None) -> int:
        record = build_record(record_id, raw_vector)
        self._check_dimension(record)

        try:
            with get_db(self.db_path) as conn:
                cursor = conn.cursor()
                if record_id is None:
                    cursor.execute(
                        f"INSERT INTO {self.table} (vector, normalized_vector, magnitude, binary_code) VALUES (?, ?, ?, ?)",
                        self._row_values(record)
                    )
                    record_id = cursor.lastrowid
                else:
                    cursor.execute(
                        f"UPDATE {self.table} SET vector = ?, normalized_vector = ?, magnitude = ?, binary_code = ? WHERE id = ?",
                        self._row_values(record) + (record_id,)
                    )
                    if cursor.rowcount == 0:
                        conn.rollback()
                        raise NotFoundError(record_id)
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to upsert vector into {self.table}: {e}") from e

        return record_id

    def batch_insert(self, raw_vectors: Iterable) -> List[int]:
        records = [build_record(None, raw) for raw in raw_vectors]
        for record in records:
            self._check_dimension(record)

        ids = []
        try:
            with get_db(self.db_path) as conn:
                cursor = conn.cursor()
                try:
                    for record in records:
                        cursor.execute(
                            f"INSERT INTO {self.table} (vector, normalized_vector, magnitude, binary_code) VALUES (?, ?, ?, ?)",
                            self._row_values(record)
                        )
                        ids.append(cursor.lastrowid)
                    conn.commit()
                except sqlite3.Error:
                    conn.rollback()
                    raise
        except sqlite3.Error as e:
            raise StorageError(f"Batch insert into {self.table} failed: {e}") from e

        return ids

    def fetch_by_ids(self, record_ids: Iterable[int]) -> List[VectorRecord]:
        record_ids = list(record_ids)
        if not record_ids:
            return []

        placeholders = ", ".join("?" for _ in record_ids)
        try:
            with get_db(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"SELECT id, vector, normalized_vector, magnitude, binary_code, created FROM {self.table} WHERE id IN ({placeholders})",
                    record_ids
                )
                return [self._row_to_record(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise StorageError(f"Failed to fetch vectors from {self.table}: {e}") from e

    def fetch_all(self) -> Iterator[VectorRecord]:
        """Iterate every record in id order, one row at a time."""
        try:
            with get_db(self.db_path) as conn:
                cursor = conn.execute(
                    f"SELECT id, vector, normalized_vector, magnitude, binary_code, created FROM {self.table} ORDER BY id"
                )
                for row in cursor:
                    yield self._row_to_record(row)
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read vectors from {self.table}: {e}") from e

    def delete(self, record_id: int) -> None:
        try:
            with get_db(self.db_path) as conn:
                conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (record_id,))
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete vector {record_id}: {e}") from e

    def count(self) -> int:
        try:
            with get_db(self.db_path) as conn:
                row = conn.execute(f"SELECT COUNT(id) FROM {self.table}").fetchone()
                return row[0] if row else 0
        except sqlite3.Error as e:
            raise StorageError(f"Failed to count vectors in {self.table}: {e}") from e

    def clear(self) -> None:
        try:
            with get_db(self.db_path) as conn:
                conn.execute(f"DELETE FROM {self.table}")
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to clear {self.table}: {e}") from e

    def nearest_by_code(self, binary_code: str, limit: int) -> List[int]:
        try:
            with get_db(self.db_path) as conn:
                rows = conn.execute(
                    f"SELECT id FROM {self.table} ORDER BY hamming_distance(binary_code, ?), id LIMIT ?",
                    (binary_code, limit)
                ).fetchall()
                return [row[0] for row in rows]
        except sqlite3.Error as e:
            raise StorageError(f"Hamming lookup on {self.table} failed: {e}") from e

    def cosim(self, vector_a, vector_b) -> Optional[float]:
        """Dot product computed by the database's cosim() function."""
        try:
            with get_db(self.db_path) as conn:
                row = conn.execute(
                    "SELECT cosim(?, ?)",
                    (json.dumps([float(x) for x in vector_a]), json.dumps([float(x) for x in vector_b]))
                ).fetchone()
                return row[0] if row else None
        except sqlite3.Error as e:
            raise StorageError(f"cosim() failed: {e}") from e
