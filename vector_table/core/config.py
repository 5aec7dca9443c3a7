"""
Environment-driven configuration for the vector table.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/vectors.db")

# Logical collection name; the physical table is "<TABLE_NAME>_vectors"
TABLE_NAME = os.getenv("TABLE_NAME", "default")

# Fixed dimension of every vector in the collection
VECTOR_DIMENSION = int(os.getenv("VECTOR_DIMENSION", "384"))

STORE_PROVIDER = os.getenv("STORE_PROVIDER", "sqlite")  # sqlite|memory

# Consult the store's Hamming-ordered lookup when it offers one
HAMMING_INDEX_ENABLED = os.getenv("HAMMING_INDEX_ENABLED", "true").lower() == "true"

# Search defaults
DEFAULT_STAGES = int(os.getenv("DEFAULT_STAGES", "4"))
DEFAULT_TOP_N = int(os.getenv("DEFAULT_TOP_N", "10"))
DEFAULT_STAGED_TOP_N = int(os.getenv("DEFAULT_STAGED_TOP_N", "50"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Version string
VERSION = "1.0.0"

VALID_PROVIDERS = ["sqlite", "memory"]


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def ensure_db_directory(db_path: str = None):
    """Ensure the database directory exists."""
    Path(db_path or DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def get_record_store():
    """Get configured record store implementation."""
    if STORE_PROVIDER == "memory":
        from ..vector.index import SimpleInMemoryRecordStore
        return SimpleInMemoryRecordStore()

    # sqlite, and the fallback for unknown providers
    from ..vector.sqlite_store import SqliteRecordStore
    store = SqliteRecordStore(DB_PATH, TABLE_NAME, VECTOR_DIMENSION)
    store.initialize()
    return store


def get_search_engine():
    """Build a SearchEngine over the configured record store."""
    from .search_service import SearchEngine
    return SearchEngine(
        get_record_store(),
        dimension=VECTOR_DIMENSION,
        use_code_index=HAMMING_INDEX_ENABLED,
    )


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if VECTOR_DIMENSION < 1:
        issues.append("VECTOR_DIMENSION must be >= 1")

    if STORE_PROVIDER not in VALID_PROVIDERS:
        issues.append(f"Invalid STORE_PROVIDER: {STORE_PROVIDER}")

    if DEFAULT_STAGES < 1:
        issues.append("DEFAULT_STAGES must be >= 1")

    if DEFAULT_TOP_N < 1 or DEFAULT_STAGED_TOP_N < 1:
        issues.append("DEFAULT_TOP_N and DEFAULT_STAGED_TOP_N must be >= 1")

    if not TABLE_NAME.replace("_", "").isalnum():
        issues.append(f"Invalid TABLE_NAME: {TABLE_NAME}")

    return issues
