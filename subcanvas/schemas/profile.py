import uuid
from datetime import datetime
from typing import Literal
from pydantic import Field

from subcanvas.models.profile import ContentType
from subcanvas.schemas.base import CamelModel

PAGE_PATH_PATTERN = r"^[a-z0-9_-]+$"

VisitPeriod = Literal["day", "week", "month"]


class ProfileCreate(CamelModel):
    page_path: str = Field(..., min_length=1, max_length=100, pattern=PAGE_PATH_PATTERN)
    design_concept: str | None = None

class ProfileUpdate(CamelModel):
    page_path: str | None = Field(None, min_length=1, max_length=100, pattern=PAGE_PATH_PATTERN)
    design_concept: str | None = None

class ContentCreate(CamelModel):
    content_type: ContentType
    content_value: str = Field(..., min_length=1)

class ContentUpdate(CamelModel):
    content_type: ContentType | None = None
    content_value: str | None = Field(None, min_length=1)
    display_order: int | None = Field(None, ge=0)

class ProfileContentPublic(CamelModel):
    id: int
    profile_id: int
    content_type: ContentType
    content_value: str
    display_order: int
    created_at: datetime | None = None

class OwnerSummary(CamelModel):
    id: uuid.UUID
    nickname: str

class ProfilePagePublic(CamelModel):
    id: int
    user_id: uuid.UUID
    page_path: str
    design_concept: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

class ProfilePageSummary(ProfilePagePublic):
    """내 페이지 목록용 (콘텐츠/방문 수 포함)"""
    content_count: int = 0
    visit_count: int = 0

class ProfilePageDetail(ProfilePagePublic):
    user: OwnerSummary
    contents: list[ProfileContentPublic] = []
    visit_count: int = 0

class UploadResponse(CamelModel):
    url: str

class VisitStats(CamelModel):
    total_visits: int
    unique_visitors: int
    period: VisitPeriod
    start_date: datetime
    end_date: datetime
