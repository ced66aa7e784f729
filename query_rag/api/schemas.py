"""
Request/response models for the HTTP API.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime

from ..core.config import DEFAULT_TOP_K, MAX_TOP_K


class SearchRequest(BaseModel):
    query: str
    top_k: int = Field(default=DEFAULT_TOP_K, ge=1, le=MAX_TOP_K)

    @field_validator('query')
    @classmethod
    def query_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('query cannot be empty')
        return v


class SearchResult(BaseModel):
    id: str
    similarity: float
    distance: float
    description: str
    sql_script: str
    metadata: Dict[str, Any]


class SearchResponse(BaseModel):
    results: List[SearchResult]


class QueryCreateRequest(BaseModel):
    description: str
    sql_script: str
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('description', 'sql_script')
    @classmethod
    def must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('field cannot be empty')
        return v


class QueryUpdateRequest(BaseModel):
    description: Optional[str] = None
    sql_script: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator('description', 'sql_script')
    @classmethod
    def must_not_be_empty(cls, v):
        if v is not None and not v.strip():
            raise ValueError('field cannot be empty')
        return v


class QueryResponse(BaseModel):
    id: str
    description: str
    sql_script: str
    metadata: Dict[str, Any]
    created_at: str
    updated_at: str


class QueryCreateResponse(BaseModel):
    success: bool
    id: str


class QueryDeleteResponse(BaseModel):
    success: bool
    id: str


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    service: str
    version: str
    db_health: bool


class StatsResponse(BaseModel):
    total_queries: int
    embedding_model: Dict[str, Any]
    vector_store_info: Dict[str, Any]
    is_initialized: bool


class ErrorResponse(BaseModel):
    error_type: str
    message: str
    timestamp: datetime = None
    details: Optional[Dict[str, Any]] = None

    def __init__(self, **data):
        super().__init__(timestamp=datetime.now(), **data)
