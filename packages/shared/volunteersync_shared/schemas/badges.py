"""Badge catalog and schemas.

Every badge type is defined once in ``BADGE_CATALOG``: display name,
description, the statistic threshold that completes it, its category and the
profile type that can earn it. Completion and percentage are always derived
from the stored progress and the catalog threshold.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, UUID4

from .common import UserType


class BadgeType(str, Enum):
    FIRST_VOLUNTEER = "FIRST_VOLUNTEER"
    HELPING_HAND = "HELPING_HAND"
    DEDICATED_HELPER = "DEDICATED_HELPER"
    COMMUNITY_CHAMPION = "COMMUNITY_CHAMPION"
    VOLUNTEER_HERO = "VOLUNTEER_HERO"
    EVENT_STARTER = "EVENT_STARTER"
    REGULAR_VOLUNTEER = "REGULAR_VOLUNTEER"
    EVENT_ENTHUSIAST = "EVENT_ENTHUSIAST"
    FIRST_EVENT = "FIRST_EVENT"
    EVENT_ORGANIZER = "EVENT_ORGANIZER"
    COMMUNITY_BUILDER = "COMMUNITY_BUILDER"
    EARLY_ADOPTER = "EARLY_ADOPTER"
    SOCIAL_BUTTERFLY = "SOCIAL_BUTTERFLY"
    SKILL_SHARER = "SKILL_SHARER"


class BadgeCategory(str, Enum):
    HOURS = "Hours"
    EVENTS = "Events"
    HOSTING = "Hosting"
    SPECIAL = "Special"


class BadgeStatistic(str, Enum):
    """The profile statistic a badge threshold is measured against."""
    VOLUNTEER_HOURS = "volunteer_hours"
    EVENTS_ATTENDED = "events_attended"
    EVENTS_HOSTED = "events_hosted"
    ACCOUNT_ELIGIBLE = "account_eligible"
    ORGANIZATIONS_FOLLOWED = "organizations_followed"
    SKILLS_LISTED = "skills_listed"


class BadgeTrigger(str, Enum):
    USER_REGISTERED = "USER_REGISTERED"
    HOURS_LOGGED = "HOURS_LOGGED"
    EVENT_ATTENDED = "EVENT_ATTENDED"
    SKILL_ADDED = "SKILL_ADDED"
    PROFILE_COMPLETED = "PROFILE_COMPLETED"
    EVENT_CREATED = "EVENT_CREATED"
    ORGANIZATION_FOLLOWED = "ORGANIZATION_FOLLOWED"


class BadgeRarity(str, Enum):
    COMMON = "COMMON"
    UNCOMMON = "UNCOMMON"
    RARE = "RARE"
    EPIC = "EPIC"
    LEGENDARY = "LEGENDARY"


RARITY_LEVELS: dict[BadgeRarity, int] = {
    BadgeRarity.COMMON: 1,
    BadgeRarity.UNCOMMON: 2,
    BadgeRarity.RARE: 3,
    BadgeRarity.EPIC: 4,
    BadgeRarity.LEGENDARY: 5,
}


class BadgeDefinition(BaseModel):
    badge_type: BadgeType
    display_name: str
    description: str
    required_count: int
    category: BadgeCategory
    statistic: BadgeStatistic
    audience: tuple[UserType, ...]

    model_config = {"frozen": True}


def _define(badge_type, display_name, description, required_count, category, statistic, *audience):
    return BadgeDefinition(
        badge_type=badge_type,
        display_name=display_name,
        description=description,
        required_count=required_count,
        category=category,
        statistic=statistic,
        audience=audience,
    )


_V = UserType.VOLUNTEER
_O = UserType.ORGANIZATION

BADGE_CATALOG: dict[BadgeType, BadgeDefinition] = {
    d.badge_type: d
    for d in (
        # Hours
        _define(BadgeType.FIRST_VOLUNTEER, "First Volunteer", "Complete your first volunteer activity",
                1, BadgeCategory.HOURS, BadgeStatistic.VOLUNTEER_HOURS, _V),
        _define(BadgeType.HELPING_HAND, "Helping Hand", "Complete 10 volunteer hours",
                10, BadgeCategory.HOURS, BadgeStatistic.VOLUNTEER_HOURS, _V),
        _define(BadgeType.DEDICATED_HELPER, "Dedicated Helper", "Complete 50 volunteer hours",
                50, BadgeCategory.HOURS, BadgeStatistic.VOLUNTEER_HOURS, _V),
        _define(BadgeType.COMMUNITY_CHAMPION, "Community Champion", "Complete 100 volunteer hours",
                100, BadgeCategory.HOURS, BadgeStatistic.VOLUNTEER_HOURS, _V),
        _define(BadgeType.VOLUNTEER_HERO, "Volunteer Hero", "Complete 500 volunteer hours",
                500, BadgeCategory.HOURS, BadgeStatistic.VOLUNTEER_HOURS, _V),
        # Events attended
        _define(BadgeType.EVENT_STARTER, "Event Starter", "Attend your first event",
                1, BadgeCategory.EVENTS, BadgeStatistic.EVENTS_ATTENDED, _V),
        _define(BadgeType.REGULAR_VOLUNTEER, "Regular Volunteer", "Attend 5 events",
                5, BadgeCategory.EVENTS, BadgeStatistic.EVENTS_ATTENDED, _V),
        _define(BadgeType.EVENT_ENTHUSIAST, "Event Enthusiast", "Attend 25 events",
                25, BadgeCategory.EVENTS, BadgeStatistic.EVENTS_ATTENDED, _V),
        # Events hosted
        _define(BadgeType.FIRST_EVENT, "First Event", "Host your first event",
                1, BadgeCategory.HOSTING, BadgeStatistic.EVENTS_HOSTED, _O),
        _define(BadgeType.EVENT_ORGANIZER, "Event Organizer", "Host 10 events",
                10, BadgeCategory.HOSTING, BadgeStatistic.EVENTS_HOSTED, _O),
        _define(BadgeType.COMMUNITY_BUILDER, "Community Builder", "Host 50 events",
                50, BadgeCategory.HOSTING, BadgeStatistic.EVENTS_HOSTED, _O),
        # Special
        _define(BadgeType.EARLY_ADOPTER, "Early Adopter", "Join VolunteerSync in its first year",
                1, BadgeCategory.SPECIAL, BadgeStatistic.ACCOUNT_ELIGIBLE, _V, _O),
        _define(BadgeType.SOCIAL_BUTTERFLY, "Social Butterfly", "Connect with 10 organizations",
                10, BadgeCategory.SPECIAL, BadgeStatistic.ORGANIZATIONS_FOLLOWED, _V),
        _define(BadgeType.SKILL_SHARER, "Skill Sharer", "Complete profile with skills",
                1, BadgeCategory.SPECIAL, BadgeStatistic.SKILLS_LISTED, _V),
    )
}

# Which statistics each trigger can move.
TRIGGER_STATISTICS: dict[BadgeTrigger, tuple[BadgeStatistic, ...]] = {
    BadgeTrigger.USER_REGISTERED: (BadgeStatistic.ACCOUNT_ELIGIBLE,),
    BadgeTrigger.HOURS_LOGGED: (BadgeStatistic.VOLUNTEER_HOURS,),
    BadgeTrigger.EVENT_ATTENDED: (BadgeStatistic.EVENTS_ATTENDED,),
    BadgeTrigger.SKILL_ADDED: (BadgeStatistic.SKILLS_LISTED,),
    BadgeTrigger.PROFILE_COMPLETED: (BadgeStatistic.SKILLS_LISTED,),
    BadgeTrigger.EVENT_CREATED: (BadgeStatistic.EVENTS_HOSTED,),
    BadgeTrigger.ORGANIZATION_FOLLOWED: (BadgeStatistic.ORGANIZATIONS_FOLLOWED,),
}


def difficulty_for(required_count: int) -> str:
    if required_count <= 1:
        return "Starter"
    if required_count <= 10:
        return "Easy"
    if required_count <= 50:
        return "Medium"
    if required_count <= 100:
        return "Hard"
    if required_count <= 500:
        return "Expert"
    return "Legendary"


def rarity_for(required_count: int) -> BadgeRarity:
    if required_count <= 1:
        return BadgeRarity.COMMON
    if required_count <= 10:
        return BadgeRarity.UNCOMMON
    if required_count <= 50:
        return BadgeRarity.RARE
    if required_count <= 100:
        return BadgeRarity.EPIC
    return BadgeRarity.LEGENDARY


def points_for(required_count: int) -> int:
    return RARITY_LEVELS[rarity_for(required_count)] * 10


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class BadgeCheckRequest(BaseModel):
    trigger: BadgeTrigger


class BadgeAwardRequest(BaseModel):
    """Manually award a Special badge to a volunteer."""
    profile_id: UUID4
    badge_type: BadgeType
    notes: Optional[str] = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class BadgeTypeInfo(BaseModel):
    badge_type: BadgeType
    display_name: str
    description: str
    required_count: int
    category: BadgeCategory
    difficulty: str
    rarity: BadgeRarity
    point_value: int
    for_volunteers: bool
    for_organizations: bool


class BadgeRead(BaseModel):
    id: UUID4
    profile_id: UUID4
    badge_type: BadgeType
    display_name: str
    description: str
    category: BadgeCategory
    rarity: BadgeRarity
    point_value: int
    progress_value: int
    required_count: int
    progress_percentage: int
    is_completed: bool
    is_featured: bool
    earned_at: Optional[datetime] = None
    notes: Optional[str] = None


class BadgeProgress(BaseModel):
    badge_type: BadgeType
    display_name: str
    current_value: int
    required_count: int
    progress_percentage: int
    is_completed: bool


class LeaderboardEntry(BaseModel):
    profile_id: UUID4
    display_name: str
    badge_count: int
    total_points: int


class BadgeStats(BaseModel):
    total_awarded: int
    profiles_with_badges: int
    by_type: dict[str, int]
    by_category: dict[str, int]
    most_common: Optional[BadgeType] = None