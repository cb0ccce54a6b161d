from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel


class UserType(str, Enum):
    VOLUNTEER = "VOLUNTEER"
    ORGANIZATION = "ORGANIZATION"


class SkillLevel(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    EXPERT = "EXPERT"


class Pagination(BaseModel):
    page: int
    per_page: int
    total: int
    total_pages: int


class ErrorResponse(BaseModel):
    error: str
    message: str
    timestamp: datetime
    details: Optional[List[Any]] = None


class MessageResponse(BaseModel):
    message: str
