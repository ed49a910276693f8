"""
API Dependencies

Caller identity, service construction and common query parameter
dependencies shared by the v1 endpoints.
"""
from typing import Optional

from fastapi import Depends, Header, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.common import PaginationParams
from app.services.mrp import MRPService
from app.services.mrp_data import SqlMRPDataAccess


def get_current_user_id(
    x_user_id: Optional[int] = Header(
        default=None,
        description="ID of the user making the request (set by the authenticating gateway)"
    )
) -> Optional[int]:
    """
    Identity of the caller, as forwarded by the upstream gateway.

    Authentication happens before requests reach this service; the header is
    only used to attribute runs and audit entries.
    """
    return x_user_id


def get_mrp_service(db: Session = Depends(get_db)) -> MRPService:
    """MRPService bound to the request's database session"""
    return MRPService(SqlMRPDataAccess(db))


def get_pagination_params(
    page: int = Query(default=1, ge=1, description="Page number (1-based)"),
    page_size: int = Query(
        default=20,
        ge=1,
        le=200,
        description="Maximum number of records per page (1-200)"
    )
) -> PaginationParams:
    """
    Dependency for standardized pagination parameters.

    Example:
        @router.get("/runs")
        async def list_runs(
            pagination: PaginationParams = Depends(get_pagination_params),
            service: MRPService = Depends(get_mrp_service),
        ):
            runs, total = service.list_runs(page=pagination.page, page_size=pagination.page_size)
    """
    return PaginationParams(page=page, page_size=page_size)
