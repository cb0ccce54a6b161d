# SQLModel definitions; imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user import User  # noqa: F401
from .profile import Profile, VolunteerDetails, OrganizationDetails  # noqa: F401
from .event import Event  # noqa: F401
from .application import Application  # noqa: F401
from .badge import ProfileBadge  # noqa: F401
from .membership import OrganizationMembership  # noqa: F401
from .skill import ProfileSkill, ProfileInterest  # noqa: F401
from .follow import OrganizationFollow  # noqa: F401
from .connection import UserConnection  # noqa: F401
from .activity import VolunteerActivity  # noqa: F401
