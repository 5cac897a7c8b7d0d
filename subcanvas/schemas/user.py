import uuid
from datetime import datetime
from pydantic import Field, HttpUrl

from subcanvas.models.user import AuthProvider, UserRole, UserStatus
from subcanvas.schemas.base import CamelModel


class SnsAccountCreate(CamelModel):
    sns_type: str = Field(..., min_length=1, max_length=50)
    sns_url: HttpUrl

class SnsAccountPublic(CamelModel):
    id: int
    user_id: uuid.UUID
    sns_type: str
    sns_url: str
    created_at: datetime | None = None

class CurrentUser(CamelModel):
    """토큰으로 인증된 현재 사용자 요약"""
    id: uuid.UUID
    email: str
    nickname: str
    role: UserRole
    status: UserStatus

class UserPublic(CamelModel):
    id: uuid.UUID
    email: str
    nickname: str
    role: UserRole
    status: UserStatus
    auth_provider: AuthProvider
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login_at: datetime | None = None

class UserDetail(UserPublic):
    sns_accounts: list[SnsAccountPublic] = []

class UserUpdate(CamelModel):
    """
    사용자 정보 수정 시 받을 데이터
    비밀번호 변경 시 currentPassword 필수
    """
    nickname: str | None = Field(None, min_length=2, max_length=50)
    password: str | None = Field(None, min_length=8, max_length=100)
    current_password: str | None = None

class UserDeleteRequest(CamelModel):
    current_password: str | None = None

class UserStatusUpdate(CamelModel):
    status: UserStatus

class UserListResponse(CamelModel):
    users: list[UserPublic]
    total: int
