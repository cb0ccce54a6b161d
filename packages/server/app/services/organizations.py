"""
Organization browse and search.

Organizations are loaded once per request and filtered in memory. Each filter
is an independent predicate; predicates combine with AND and a filter left
unset places no constraint. Sorting is a separate step applied after
filtering.

Public read paths never fail the request: each one walks an
explicit fallback chain and ends at an empty list.
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFound
from app.models.base import utcnow
from app.models.profile import OrganizationDetails, Profile
from volunteersync_shared.schemas.common import Pagination, UserType
from volunteersync_shared.schemas.organizations import (
    OrganizationFilters,
    OrganizationPage,
    OrganizationSize,
    OrganizationSort,
    OrganizationSummary,
)
from volunteersync_shared.schemas.profiles import OrganizationType, VerificationLevel

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------------


def organization_size(employee_count: Optional[int]) -> Optional[OrganizationSize]:
    """Size bucket for an employee count. None when the count is unknown."""
    if employee_count is None:
        return None
    if employee_count <= 50:
        return OrganizationSize.SMALL
    if employee_count <= 200:
        return OrganizationSize.MEDIUM
    if employee_count <= 1000:
        return OrganizationSize.LARGE
    return OrganizationSize.ENTERPRISE


def _contains(haystack: Optional[str], needle: str) -> bool:
    return haystack is not None and needle.lower() in haystack.lower()


def match_by_name(orgs: Sequence[OrganizationSummary], name: str) -> list[OrganizationSummary]:
    """Exact (case-insensitive) matches if any exist, otherwise substring matches."""
    wanted = name.strip().lower()
    if not wanted:
        return list(orgs)
    exact = [o for o in orgs if o.organization_name.lower() == wanted]
    if exact:
        return exact
    return [o for o in orgs if wanted in o.organization_name.lower()]


def _predicates(
    filters: OrganizationFilters, now: datetime
) -> list[Callable[[OrganizationSummary], bool]]:
    checks: list[Callable[[OrganizationSummary], bool]] = []

    if filters.category:
        category = filters.category.strip().lower()
        checks.append(
            lambda o: category in {c.lower() for c in o.categories}
            or (o.primary_category or "").lower() == category
        )
    if filters.organization_type is not None:
        checks.append(lambda o: o.organization_type == filters.organization_type)
    if filters.size is not None:
        checks.append(lambda o: organization_size(o.employee_count) == filters.size)
    if filters.location:
        checks.append(
            lambda o: any(
                _contains(field, filters.location)
                for field in (o.location, o.city, o.state, o.country)
            )
        )
    if filters.country:
        checks.append(lambda o: _contains(o.country, filters.country))
    if filters.verified is not None:
        checks.append(lambda o: o.is_verified == filters.verified)
    if filters.founded_after is not None:
        checks.append(lambda o: o.founded_year is not None and o.founded_year >= filters.founded_after)
    if filters.founded_before is not None:
        checks.append(lambda o: o.founded_year is not None and o.founded_year <= filters.founded_before)
    if filters.created_within_days is not None:
        created_since = now - timedelta(days=filters.created_within_days)
        checks.append(lambda o: o.created_at >= created_since)
    if filters.updated_within_days is not None:
        updated_since = now - timedelta(days=filters.updated_within_days)
        checks.append(lambda o: o.updated_at >= updated_since)

    return checks


def filter_organizations(
    orgs: Sequence[OrganizationSummary],
    filters: OrganizationFilters,
    now: Optional[datetime] = None,
) -> list[OrganizationSummary]:
    checks = _predicates(filters, now or utcnow())
    matched = [o for o in orgs if all(check(o) for check in checks)]
    if filters.name:
        matched = match_by_name(matched, filters.name)
    return matched


def sort_organizations(
    orgs: Sequence[OrganizationSummary], sort: Optional[OrganizationSort]
) -> list[OrganizationSummary]:
    if sort is None:
        return list(orgs)
    if sort == OrganizationSort.NAME:
        return sorted(orgs, key=lambda o: o.organization_name.lower())
    if sort == OrganizationSort.NEWEST:
        return sorted(orgs, key=lambda o: o.created_at, reverse=True)
    if sort == OrganizationSort.EVENTS_HOSTED:
        return sorted(orgs, key=lambda o: o.total_events_hosted, reverse=True)
    return sorted(orgs, key=lambda o: o.total_volunteers_served, reverse=True)


def paginate(orgs: Sequence[OrganizationSummary], page: int, per_page: int) -> OrganizationPage:
    total = len(orgs)
    start = (page - 1) * per_page
    return OrganizationPage(
        data=list(orgs[start:start + per_page]),
        pagination=Pagination(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=math.ceil(total / per_page) if total else 0,
        ),
    )


def to_summary(profile: Profile, details: OrganizationDetails) -> OrganizationSummary:
    return OrganizationSummary(
        id=profile.id,
        organization_name=details.organization_name,
        organization_type=OrganizationType(details.organization_type) if details.organization_type else None,
        categories=list(details.categories or []),
        primary_category=details.primary_category,
        mission_statement=details.mission_statement,
        bio=profile.bio,
        location=profile.location if profile.show_location else None,
        city=details.city,
        state=details.state,
        country=details.country,
        website=profile.website,
        employee_count=details.employee_count,
        organization_size=organization_size(details.employee_count),
        founded_year=details.founded_year,
        is_verified=profile.is_verified,
        verification_level=VerificationLevel(details.verification_level),
        total_events_hosted=details.total_events_hosted,
        total_volunteers_served=details.total_volunteers_served,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


async def _query_organizations(session: AsyncSession, *conditions) -> list[OrganizationSummary]:
    result = await session.execute(
        select(Profile, OrganizationDetails)
        .join(OrganizationDetails, OrganizationDetails.profile_id == Profile.id)
        .where(
            Profile.profile_type == UserType.ORGANIZATION.value,
            Profile.is_deleted == False,  # noqa: E712
            Profile.is_active == True,  # noqa: E712
            Profile.searchable == True,  # noqa: E712
            *conditions,
        )
        .order_by(Profile.created_at.desc())
    )
    return [to_summary(profile, details) for profile, details in result.all()]


async def load_organizations(session: AsyncSession) -> list[OrganizationSummary]:
    return await _query_organizations(session)


async def verified_organizations(session: AsyncSession) -> list[OrganizationSummary]:
    return await _query_organizations(session, Profile.is_verified == True)  # noqa: E712


async def nonprofit_organizations(session: AsyncSession) -> list[OrganizationSummary]:
    return await _query_organizations(
        session, OrganizationDetails.organization_type == OrganizationType.NON_PROFIT.value
    )


async def get_organization_or_404(session: AsyncSession, organization_id: uuid.UUID) -> OrganizationSummary:
    result = await session.execute(
        select(Profile, OrganizationDetails)
        .join(OrganizationDetails, OrganizationDetails.profile_id == Profile.id)
        .where(Profile.id == organization_id, Profile.is_deleted == False)  # noqa: E712
    )
    row = result.first()
    if row is None:
        raise NotFound("Organization not found")
    return to_summary(*row)


# ---------------------------------------------------------------------------
# Fallback chain
# ---------------------------------------------------------------------------

BrowseStep = Callable[[AsyncSession], Awaitable[list[OrganizationSummary]]]


def browse_chain() -> list[tuple[str, BrowseStep]]:
    return [
        ("verified", verified_organizations),
        ("non_profit", nonprofit_organizations),
    ]


def search_chain() -> list[tuple[str, BrowseStep]]:
    return [
        ("searchable", load_organizations),
        ("verified", verified_organizations),
    ]


async def first_successful(
    session: AsyncSession, steps: Sequence[tuple[str, BrowseStep]], chain: str = "browse"
) -> list[OrganizationSummary]:
    """
    Return the result of the first step that does not raise, or an empty list.

    Each step runs in its own savepoint so a failed statement leaves the
    request transaction usable for the next step.
    """
    for name, step in steps:
        try:
            async with session.begin_nested():
                return await step(session)
        except Exception:
            log.exception("organizations.step_failed", chain=chain, step=name)
    log.warning("organizations.chain_exhausted", chain=chain, steps=[name for name, _ in steps])
    return []


async def browse_organizations(session: AsyncSession, limit: int = 50) -> list[OrganizationSummary]:
    orgs = await first_successful(session, browse_chain())
    return orgs[:limit]


async def search_organizations(
    session: AsyncSession,
    filters: OrganizationFilters,
    sort: Optional[OrganizationSort] = None,
    limit: int = 50,
) -> list[OrganizationSummary]:
    orgs = await first_successful(session, search_chain(), chain="search")
    return sort_organizations(filter_organizations(orgs, filters), sort)[:limit]


async def search_by_name(session: AsyncSession, name: str) -> list[OrganizationSummary]:
    orgs = await first_successful(session, search_chain(), chain="name_search")
    return match_by_name(orgs, name)


async def organizations_in_category(session: AsyncSession, category: str) -> list[OrganizationSummary]:
    return await search_organizations(
        session, OrganizationFilters(category=category), OrganizationSort.NAME
    )


async def paginated_organizations(
    session: AsyncSession, page: int, per_page: int, sort: Optional[OrganizationSort]
) -> OrganizationPage:
    orgs = await first_successful(session, search_chain(), chain="paginated")
    return paginate(sort_organizations(orgs, sort), page, per_page)
