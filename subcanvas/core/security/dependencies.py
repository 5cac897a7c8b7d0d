from typing import Iterable
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from subcanvas.core.exceptions import ForbiddenError, UnauthorizedError
from subcanvas.core.security.token import token_issuer
from subcanvas.database import get_db
from subcanvas.models.user import User, UserRole

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def _resolve_user(token: str | None, db: AsyncSession) -> User | None:
    """
    토큰 검증 후 DB에서 (id, email)로 사용자를 다시 조회.
    삭제되었거나 ACTIVE 가 아닌 사용자는 토큰이 유효해도 None
    """
    if not token:
        return None

    token_data = token_issuer.verify_access_token(token)
    if token_data is None:
        return None

    result = await db.execute(
        select(User).where(User.id == token_data.user_id, User.email == token_data.email)
    )
    user = result.scalars().first()
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Access Token을 검증하고 현재 사용자를 반환하는 의존성
    """
    if not token:
        raise UnauthorizedError("인증이 필요한 요청입니다.")

    user = await _resolve_user(token, db)
    if user is None:
        raise UnauthorizedError("유효하지 않은 인증 정보이거나 비활성화된 계정입니다.")
    return user


async def get_optional_user(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User | None:
    """인증이 선택인 엔드포인트용. 토큰이 없거나 유효하지 않으면 None"""
    return await _resolve_user(token, db)


def has_required_role(user: User | None, required_roles: Iterable[UserRole] | None) -> bool:
    """
    - 요구 역할이 없으면 허용
    - 사용자 정보가 없으면 거부
    - 사용자 역할이 요구 역할 중 하나와 일치하면 허용
    """
    if not required_roles:
        return True
    if user is None:
        return False
    return user.role in set(required_roles)


def require_roles(*roles: UserRole):
    """엔드포인트 단위 역할 제한 의존성 생성"""

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_required_role(current_user, roles):
            raise ForbiddenError("접근 권한이 없습니다.")
        return current_user

    return role_checker
