"""
Tests for the derived field rebuild utility.
"""

import pytest
from unittest.mock import patch

from scripts.rebuild_codes import main
from vector_table.core.search_service import SearchEngine
from vector_table.vector.index import SimpleInMemoryRecordStore
from vector_table.vector.vector_math import quantize


@pytest.fixture
def engine():
    engine = SearchEngine(SimpleInMemoryRecordStore(), dimension=4)
    engine.batch_insert([
        [1.0, 0.0, 0.0, 0.0],
        [0.0, -1.0, 1.0, 0.0],
    ])
    return engine


@pytest.fixture
def mock_deps(engine):
    """Patch configuration so the script runs against an in-memory engine."""
    with patch('scripts.rebuild_codes.validate_config') as mock_validate, \
         patch('scripts.rebuild_codes.get_search_engine') as mock_get_engine:
        mock_validate.return_value = []
        mock_get_engine.return_value = engine
        yield {'validate': mock_validate, 'engine': engine}


def test_rebuild_restores_derived_fields(capfd, mock_deps):
    """Test that stale binary codes are re-derived from the raw vectors."""
    store = mock_deps['engine'].store
    stale = store.fetch_by_ids([2])[0]
    stale.binary_code = "FF"

    main([])

    captured = capfd.readouterr()
    assert "Starting derived field rebuild..." in captured.out
    assert "Found 2 records in SimpleInMemoryRecordStore" in captured.out
    assert "✓ Rebuilt 2 records (0 failed)" in captured.out
    assert "Rebuild complete!" in captured.out

    record = store.fetch_by_ids([2])[0]
    assert record.binary_code == quantize(record.normalized_vector) == "02"
    assert store.count() == 2


def test_rebuild_dry_run(capfd, mock_deps):
    store = mock_deps['engine'].store
    store.fetch_by_ids([1])[0].binary_code = "FF"

    main(["--dry-run"])

    captured = capfd.readouterr()
    assert "Dry run - no records rewritten." in captured.out
    assert store.fetch_by_ids([1])[0].binary_code == "FF"


def test_rebuild_config_issues(capfd, mock_deps):
    mock_deps['validate'].return_value = ["VECTOR_DIMENSION must be >= 1"]

    with pytest.raises(SystemExit) as exc_info:
        main([])

    assert exc_info.value.code == 1
    assert "ERROR: VECTOR_DIMENSION must be >= 1" in capfd.readouterr().out


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
