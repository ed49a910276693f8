"""
Common API Response Schemas

Standardized error responses and pagination models shared by the endpoints.
"""
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field


# ============================================================================
# Error Response Models
# ============================================================================

class ErrorResponse(BaseModel):
    """
    Standardized error response for all API errors.

    Error Codes:
        - VALIDATION_ERROR: Request validation failed (400)
        - INVALID_STATE: Operation not allowed in the record's current state (400)
        - NOT_FOUND: Resource not found (404)
        - CONFLICT: Resource conflict, e.g. an MRP run already in progress (409)
        - BUSINESS_RULE_ERROR: Business rule violation (422)
        - CYCLIC_BOM: A bill of materials contains itself (422)
        - DATABASE_ERROR: Database operation failed (500)
        - INTERNAL_ERROR: Unexpected internal error (500)

    Example:
        {
            "error": "NOT_FOUND",
            "message": "MRP run with ID 123 not found",
            "details": {
                "resource": "MRP run",
                "resource_id": "123"
            },
            "timestamp": "2025-12-23T10:30:00Z"
        }
    """
    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional error context for debugging"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the error occurred (UTC)"
    )


# ============================================================================
# Pagination Models
# ============================================================================

class PaginationParams(BaseModel):
    """
    Page-based pagination parameters for list endpoints.
    """
    page: int = Field(default=1, ge=1, description="Page number (1-based)")
    page_size: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Maximum number of records per page (1-200)"
    )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class PaginationMeta(BaseModel):
    """Pagination metadata included in list responses."""
    total: int = Field(..., description="Total number of records matching the query")
    page: int = Field(..., description="Current page (1-based)")
    page_size: int = Field(..., description="Maximum records per page")
    returned: int = Field(..., description="Number of records in this response")


T = TypeVar('T')


class ListResponse(BaseModel, Generic[T]):
    """
    Standardized list response wrapper with pagination.

    Example:
        {
            "items": [...],
            "pagination": {
                "total": 42,
                "page": 1,
                "page_size": 20,
                "returned": 20
            }
        }
    """
    items: List[T] = Field(..., description="List of items")
    pagination: PaginationMeta = Field(..., description="Pagination metadata")

