"""
Organization browse and search endpoints.

Browse and search are public read paths: failures degrade to a smaller or
empty list and never surface as a 500.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import organizations as organization_service
from volunteersync_shared.schemas.organizations import (
    OrganizationFilters,
    OrganizationPage,
    OrganizationSize,
    OrganizationSort,
    OrganizationSummary,
)
from volunteersync_shared.schemas.profiles import OrganizationType

router = APIRouter()


@router.get("/", response_model=List[OrganizationSummary])
async def browse(
    limit: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(get_session),
):
    return await organization_service.browse_organizations(session, limit)


@router.get("/search", response_model=List[OrganizationSummary])
async def search(
    name: Optional[str] = None,
    category: Optional[str] = None,
    organization_type: Optional[OrganizationType] = None,
    size: Optional[OrganizationSize] = None,
    location: Optional[str] = None,
    country: Optional[str] = None,
    verified: Optional[bool] = None,
    founded_after: Optional[int] = None,
    founded_before: Optional[int] = None,
    created_within_days: Optional[int] = Query(None, ge=1),
    updated_within_days: Optional[int] = Query(None, ge=1),
    sort: Optional[OrganizationSort] = None,
    limit: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(get_session),
):
    filters = OrganizationFilters(
        name=name,
        category=category,
        organization_type=organization_type,
        size=size,
        location=location,
        country=country,
        verified=verified,
        founded_after=founded_after,
        founded_before=founded_before,
        created_within_days=created_within_days,
        updated_within_days=updated_within_days,
    )
    return await organization_service.search_organizations(session, filters, sort, limit)


@router.get("/search/name", response_model=List[OrganizationSummary])
async def search_by_name(
    name: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_session),
):
    """Exact name matches if there are any, otherwise partial matches."""
    return await organization_service.search_by_name(session, name)


@router.get("/paginated", response_model=OrganizationPage)
async def paginated(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    sort: Optional[OrganizationSort] = OrganizationSort.NAME,
    session: AsyncSession = Depends(get_session),
):
    return await organization_service.paginated_organizations(session, page, per_page, sort)


@router.get("/category/{category}", response_model=List[OrganizationSummary])
async def by_category(
    category: str,
    session: AsyncSession = Depends(get_session),
):
    return await organization_service.organizations_in_category(session, category)


@router.get("/{organization_id}", response_model=OrganizationSummary)
async def get_organization(
    organization_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    return await organization_service.get_organization_or_404(session, organization_id)
