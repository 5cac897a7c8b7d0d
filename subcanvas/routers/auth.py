import logging
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from subcanvas.core.exceptions import UnauthorizedError
from subcanvas.core.security.dependencies import get_current_user
from subcanvas.database import get_db
from subcanvas.models.user import AuthProvider, User
from subcanvas.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, SocialLoginRequest
from subcanvas.schemas.user import CurrentUser
from subcanvas.services.auth_service import auth_service
from subcanvas.services.oauth_service import oauth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
async def register(
    user_in: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    일반 회원가입 (가입 즉시 Access Token 발급)
    """
    return await auth_service.register(
        db,
        email=user_in.email,
        password=user_in.password,
        nickname=user_in.nickname,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    login_in: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    일반 로그인 (이메일 + 비밀번호)
    """
    user = await auth_service.validate_credentials(db, login_in.email, login_in.password)
    if user is None:
        raise UnauthorizedError("이메일 또는 비밀번호가 올바르지 않습니다.")
    return auth_service.login(user)


@router.post("/social-login", response_model=AuthResponse)
async def social_login(
    social_in: SocialLoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    소셜 로그인 (프론트에서 제공자 인증을 마친 뒤 사용자 정보를 전달)
    """
    return await auth_service.social_login(
        db,
        email=social_in.email,
        nickname=social_in.nickname,
        provider=AuthProvider(social_in.provider),
        provider_id=social_in.provider_id,
    )


@router.get("/profile", response_model=CurrentUser)
async def read_profile(current_user: User = Depends(get_current_user)):
    """토큰으로 인증된 현재 사용자 반환"""
    return current_user


@router.get("/kakao/login")
async def kakao_login():
    """카카오 로그인"""
    return RedirectResponse(url=oauth_service.kakao_login_url())


@router.get("/kakao/callback", response_model=AuthResponse)
async def kakao_callback(
    code: str = Query(...),
    db: AsyncSession = Depends(get_db)
):
    """
    카카오 로그인 콜백 처리
    1. 카카오 토큰 요청
    2. 카카오 사용자 정보 요청
    3. 사용자 조회/생성 후 Access Token 발급
    """
    identity = await oauth_service.fetch_kakao_identity(code)
    return await auth_service.social_login(
        db,
        email=identity.email,
        nickname=identity.nickname,
        provider=AuthProvider.KAKAO,
        provider_id=identity.provider_id,
    )


@router.get("/google/login")
async def google_login():
    """구글 로그인"""
    return RedirectResponse(url=oauth_service.google_login_url())


@router.get("/google/callback", response_model=AuthResponse)
async def google_callback(
    code: str = Query(...),
    db: AsyncSession = Depends(get_db)
):
    """
    구글 로그인 콜백 처리
    1. 구글 토큰 요청
    2. 구글 사용자 정보 요청
    3. 사용자 조회/생성 후 Access Token 발급
    """
    identity = await oauth_service.fetch_google_identity(code)
    return await auth_service.social_login(
        db,
        email=identity.email,
        nickname=identity.nickname,
        provider=AuthProvider.GOOGLE,
        provider_id=identity.provider_id,
    )
