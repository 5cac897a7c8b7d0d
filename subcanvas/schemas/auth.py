import uuid
from typing import Literal
from pydantic import EmailStr, Field

from subcanvas.models.user import UserRole
from subcanvas.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    nickname: str = Field(..., min_length=2, max_length=50)

class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

class SocialLoginRequest(CamelModel):
    """
    소셜 로그인 요청 (프론트에서 제공자 인증 후 전달)
    LOCAL 은 소셜 제공자가 아니므로 허용하지 않는다.
    """
    email: EmailStr
    nickname: str = Field(..., min_length=1, max_length=50)
    provider: Literal["GOOGLE", "KAKAO"]
    provider_id: str = Field(..., min_length=1, max_length=255)

class AuthUser(CamelModel):
    id: uuid.UUID
    email: str
    nickname: str
    role: UserRole

class AuthResponse(CamelModel):
    """
    로그인/회원가입 성공 시 반환
    """
    access_token: str
    user: AuthUser
