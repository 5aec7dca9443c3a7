"""
HTTP API over the SearchEngine facade.
"""

from functools import lru_cache

from fastapi import FastAPI, HTTPException, Depends
from typing import List

from .schemas import (
    VectorUpsertRequest,
    VectorUpsertResponse,
    VectorBatchRequest,
    VectorBatchResponse,
    VectorResponse,
    DeleteResponse,
    CountResponse,
    SearchRequest,
    StagedSearchRequest,
    SearchResult,
    SearchResponse,
    CosimRequest,
    CosimResponse,
    HealthResponse,
)
from ..core.config import VERSION, debug_enabled, get_search_engine
from ..core.db import health_check
from ..core.errors import NotFoundError, StorageError, ValidationError
from ..core.search_service import SearchEngine
from ..vector.sqlite_store import SqliteRecordStore
from ..vector.types import ScoredRecord
from ..util.logging import logger

# Initialize the FastAPI application
app = FastAPI(
    title="Vector Table API",
    version=VERSION,
    description="Cosine similarity search with Hamming prefiltering and staged refinement",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)


@lru_cache(maxsize=1)
def _shared_engine() -> SearchEngine:
    # Failed builds raise and are not cached, so the next request retries
    return get_search_engine()


def get_engine() -> SearchEngine:
    """Dependency providing the configured search engine.

    The engine (and its record store) is built on first use and shared by
    every request afterwards.
    """
    try:
        return _shared_engine()
    except StorageError as e:
        logger.error(f"Search engine unavailable: {e}")
        raise HTTPException(status_code=503, detail=str(e))


def _raise_http(e: Exception):
    if isinstance(e, ValidationError):
        raise HTTPException(status_code=422, detail=str(e))
    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    logger.error(f"Store failure: {e}")
    raise HTTPException(status_code=503, detail=str(e))


def _to_response(strategy: str, results: List[ScoredRecord]) -> SearchResponse:
    return SearchResponse(
        strategy=strategy,
        results=[SearchResult(**item.to_dict()) for item in results]
    )


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint(engine: SearchEngine = Depends(get_engine)):
    """Check system health."""
    store = engine.store
    if isinstance(store, SqliteRecordStore):
        db_health = health_check(store.db_path, store.name)
    else:
        db_health = True

    try:
        record_count = engine.count() if db_health else 0
    except StorageError:
        db_health = False
        record_count = 0

    return HealthResponse(
        status="healthy" if db_health else "unhealthy",
        version=VERSION,
        db_health=db_health,
        record_count=record_count,
        dimension=engine.dimension
    )


# Define /vectors/count before /vectors/{record_id} to avoid path parameter conflict
@app.get("/vectors/count", response_model=CountResponse)
def count_endpoint(engine: SearchEngine = Depends(get_engine)):
    try:
        return CountResponse(count=engine.count())
    except StorageError as e:
        _raise_http(e)


@app.post("/vectors", response_model=VectorUpsertResponse)
def upsert_endpoint(req: VectorUpsertRequest, engine: SearchEngine = Depends(get_engine)):
    """Insert a vector, or replace an existing one when id is given."""
    try:
        record_id = engine.upsert(req.vector, req.id)
    except (ValidationError, NotFoundError, StorageError) as e:
        _raise_http(e)
    return VectorUpsertResponse(success=True, id=record_id)


@app.post("/vectors/batch", response_model=VectorBatchResponse)
def batch_insert_endpoint(req: VectorBatchRequest, engine: SearchEngine = Depends(get_engine)):
    """Insert many vectors in one transaction."""
    try:
        ids = engine.batch_insert(req.vectors)
    except (ValidationError, StorageError) as e:
        _raise_http(e)
    return VectorBatchResponse(success=True, ids=ids)


@app.get("/vectors/{record_id}", response_model=VectorResponse)
def get_vector_endpoint(record_id: int, engine: SearchEngine = Depends(get_engine)):
    """Get a single stored vector."""
    try:
        record = engine.get(record_id)
    except (NotFoundError, StorageError) as e:
        _raise_http(e)
    return VectorResponse(**record.to_dict())


@app.delete("/vectors/{record_id}", response_model=DeleteResponse)
def delete_vector_endpoint(record_id: int, engine: SearchEngine = Depends(get_engine)):
    """Delete a vector. Deleting an unknown id succeeds."""
    try:
        engine.delete(record_id)
    except StorageError as e:
        _raise_http(e)
    return DeleteResponse(success=True, id=record_id)


@app.post("/search", response_model=SearchResponse)
def search_endpoint(req: SearchRequest, engine: SearchEngine = Depends(get_engine)):
    """Exact cosine search."""
    try:
        results = engine.search(req.vector, req.n)
    except (ValidationError, StorageError) as e:
        _raise_http(e)
    return _to_response("exact", results)


@app.post("/search/hamming", response_model=SearchResponse)
def search_hamming_endpoint(req: SearchRequest, engine: SearchEngine = Depends(get_engine)):
    """Hamming-prefiltered search with exact rerank."""
    try:
        results = engine.search_with_hamming(req.vector, req.n)
    except (ValidationError, StorageError) as e:
        _raise_http(e)
    return _to_response("hamming", results)


@app.post("/search/staged", response_model=SearchResponse)
def search_staged_endpoint(req: StagedSearchRequest, engine: SearchEngine = Depends(get_engine)):
    """Staged multi-resolution search."""
    try:
        results = engine.staged_search(req.vector, req.stages, req.n)
    except (ValidationError, StorageError) as e:
        _raise_http(e)
    return _to_response("staged", results)


@app.post("/cosim", response_model=CosimResponse)
def cosim_endpoint(req: CosimRequest, engine: SearchEngine = Depends(get_engine)):
    """Cosine similarity of two vectors."""
    try:
        similarity = engine.cosim(req.vector_a, req.vector_b)
    except ValidationError as e:
        _raise_http(e)
    return CosimResponse(similarity=similarity)
