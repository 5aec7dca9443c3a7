"""
SQLite connection helpers and schema for the vector table.
"""

import json
import sqlite3
from contextlib import contextmanager
from typing import Generator, List
from .config import DB_PATH, ensure_db_directory
from ..vector.vector_math import hamming_distance


def vector_table_name(name: str) -> str:
    """Physical table name for a logical collection."""
    if not name or not name.replace("_", "").isalnum():
        raise ValueError(f"Invalid table name: {name!r}")
    return f"{name}_vectors"


def _sql_hamming_distance(code_a, code_b):
    if code_a is None or code_b is None:
        return None
    return hamming_distance(code_a, code_b)


def _sql_cosim(vector_a, vector_b):
    # Dot product of two JSON vectors; NULL when lengths differ
    if vector_a is None or vector_b is None:
        return None
    a = json.loads(vector_a)
    b = json.loads(vector_b)
    if len(a) != len(b):
        return None
    return float(sum(x * y for x, y in zip(a, b)))


def register_functions(conn: sqlite3.Connection) -> None:
    """Expose the Hamming and dot-product primitives to SQL."""
    conn.create_function("hamming_distance", 2, _sql_hamming_distance, deterministic=True)
    conn.create_function("cosim", 2, _sql_cosim, deterministic=True)


@contextmanager
def get_db(db_path: str = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection with the vector functions registered."""
    db_path = db_path or DB_PATH
    if db_path != ":memory:":
        ensure_db_directory(db_path)
    conn = sqlite3.connect(db_path)
    try:
        register_functions(conn)
        yield conn
    finally:
        conn.close()


def get_create_statements(table_name: str, if_not_exists: bool = True) -> List[str]:
    """CREATE statements for the vectors table and its binary code index."""
    table = vector_table_name(table_name)
    guard = "IF NOT EXISTS " if if_not_exists else ""
    return [
        f'''
            CREATE TABLE {guard}{table} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                vector TEXT NOT NULL,
                normalized_vector TEXT NOT NULL,
                magnitude REAL NOT NULL,
                binary_code TEXT NOT NULL,
                created TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''',
        f'CREATE INDEX {guard}idx_{table}_binary_code ON {table}(binary_code)',
    ]


def init_db(db_path: str = None, table_name: str = "default", if_not_exists: bool = True):
    """Initialize the database with the vectors table."""
    with get_db(db_path) as conn:
        cursor = conn.cursor()
        try:
            for statement in get_create_statements(table_name, if_not_exists):
                cursor.execute(statement)
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise


def health_check(db_path: str = None, table_name: str = "default"):
    """Check database health."""
    try:
        with get_db(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            table_names = [row[0] for row in cursor.fetchall()]
            return vector_table_name(table_name) in table_names
    except (sqlite3.Error, ValueError):
        return False
