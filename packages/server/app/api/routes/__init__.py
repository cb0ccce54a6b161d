"""
API Router

All endpoints are mounted under /api.
"""

from fastapi import APIRouter
from . import (
    applications,
    auth,
    badges,
    connections,
    events,
    memberships,
    organizations,
    profiles,
    tracking,
    users,
    volunteer_management,
)

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])
router.include_router(events.router, prefix="/events", tags=["Events"])
# Tracking is mounted before applications so its fixed paths win over /{application_id}.
router.include_router(tracking.router, prefix="/applications/tracking", tags=["Application Tracking"])
router.include_router(applications.router, prefix="/applications", tags=["Applications"])
router.include_router(badges.router, prefix="/badges", tags=["Badges"])
router.include_router(organizations.router, prefix="/organizations", tags=["Organizations"])
router.include_router(memberships.router, prefix="/memberships", tags=["Memberships"])
router.include_router(connections.router, prefix="/connections", tags=["Connections"])
router.include_router(
    volunteer_management.router, prefix="/volunteer-management", tags=["Volunteer Management"]
)


@router.get("/", tags=["API"])
async def api_root():
    """API root: version and available endpoints."""
    return {
        "api": "volunteersync",
        "version": "0.1.0",
        "endpoints": [
            "/api/auth",
            "/api/users",
            "/api/profiles",
            "/api/events",
            "/api/applications",
            "/api/applications/tracking",
            "/api/badges",
            "/api/organizations",
            "/api/memberships",
            "/api/connections",
            "/api/volunteer-management",
        ],
    }
