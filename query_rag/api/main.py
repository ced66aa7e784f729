"""
HTTP API for natural-language search over the SQL query catalog.
"""

import threading
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .schemas import (
    SearchRequest,
    SearchResponse,
    QueryCreateRequest,
    QueryCreateResponse,
    QueryUpdateRequest,
    QueryResponse,
    QueryDeleteResponse,
    HealthResponse,
    StatsResponse,
    ErrorResponse
)
from ..core.config import VERSION, SERVICE_NAME, debug_enabled
from ..core.errors import (
    QueryRAGError,
    NotFoundError,
    NotInitializedError,
    EmbeddingError,
    DimensionMismatchError,
    ArgumentMismatchError
)
from ..core.search_service import QuerySearchService, build_search_service
from ..util.logging import logger

# The vector index has no internal locking; every call into the service
# from request handlers goes through this lock.
_service_lock = threading.Lock()
_service: Optional[QuerySearchService] = None

_ERROR_STATUS = (
    (NotFoundError, 404),
    (NotInitializedError, 503),
    (EmbeddingError, 502),
    (DimensionMismatchError, 400),
    (ArgumentMismatchError, 400),
)


def get_search_service() -> QuerySearchService:
    """Process-wide search service, built and initialized on first use."""
    global _service
    with _service_lock:
        if _service is None:
            service = build_search_service()
            service.initialize_all()
            _service = service
        return _service


def close_search_service() -> None:
    global _service
    with _service_lock:
        if _service is not None:
            _service.close()
            _service = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_search_service()
    yield
    logger.info("Shutting down HTTP server...")
    close_search_service()


# Initialize the FastAPI application
app = FastAPI(
    title="Query RAG API",
    version=VERSION,
    description="Natural-language search over stored SQL queries with E5 embeddings",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, error_type: str, message: str,
                    details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    body = ErrorResponse(error_type=error_type, message=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(QueryRAGError)
async def query_rag_error_handler(request: Request, exc: QueryRAGError):
    status_code = 500
    for error_class, code in _ERROR_STATUS:
        if isinstance(exc, error_class):
            status_code = code
            break
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return _error_response(status_code, type(exc).__name__, str(exc), exc.details)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return _error_response(400, "ValueError", str(exc))


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint(service: QuerySearchService = Depends(get_search_service)):
    """Check system health."""
    db_health = service.query_store.health_check()
    return HealthResponse(
        status="healthy" if db_health and service.is_initialized else "unhealthy",
        timestamp=datetime.now(),
        service=SERVICE_NAME,
        version=VERSION,
        db_health=db_health
    )


@app.post("/api/search", response_model=SearchResponse)
def search_endpoint(request: SearchRequest, service: QuerySearchService = Depends(get_search_service)):
    """Find stored SQL queries similar to a natural-language request."""
    with _service_lock:
        results = service.search_similar_queries(request.query, request.top_k)
    return SearchResponse(results=results)


@app.get("/api/stats", response_model=StatsResponse)
def stats_endpoint(service: QuerySearchService = Depends(get_search_service)):
    with _service_lock:
        return StatsResponse(**service.get_stats())


@app.post("/api/queries", response_model=QueryCreateResponse, status_code=201)
def add_query_endpoint(request: QueryCreateRequest, service: QuerySearchService = Depends(get_search_service)):
    with _service_lock:
        query_id = service.add_query(request.description, request.sql_script, request.metadata)
    return QueryCreateResponse(success=True, id=query_id)


@app.get("/api/queries/{query_id}", response_model=QueryResponse)
def get_query_endpoint(query_id: str, service: QuerySearchService = Depends(get_search_service)):
    with _service_lock:
        record = service.get_query(query_id)
    if record is None:
        raise NotFoundError(query_id)
    return QueryResponse(**record.to_dict())


@app.patch("/api/queries/{query_id}", response_model=QueryResponse)
def update_query_endpoint(query_id: str, request: QueryUpdateRequest,
                          service: QuerySearchService = Depends(get_search_service)):
    with _service_lock:
        record = service.update_query(query_id, request.model_dump(exclude_none=True))
    return QueryResponse(**record.to_dict())


@app.delete("/api/queries/{query_id}", response_model=QueryDeleteResponse)
def remove_query_endpoint(query_id: str, service: QuerySearchService = Depends(get_search_service)):
    with _service_lock:
        service.remove_query(query_id)
    return QueryDeleteResponse(success=True, id=query_id)
