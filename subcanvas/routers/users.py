import logging
import uuid
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from subcanvas.core.security.dependencies import get_current_user, require_roles
from subcanvas.database import get_db
from subcanvas.models.user import User, UserRole
from subcanvas.schemas.base import MessageResponse
from subcanvas.schemas.user import (
    SnsAccountCreate,
    SnsAccountPublic,
    UserDeleteRequest,
    UserDetail,
    UserListResponse,
    UserPublic,
    UserStatusUpdate,
    UserUpdate,
)
from subcanvas.services.user_services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

admin_only = require_roles(UserRole.ADMIN)


@router.get("/me", response_model=UserDetail)
async def read_users_me(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """현재 로그인된 사용자 정보 (SNS 계정 포함)"""
    return await user_service.find_by_id(db, current_user.id)


@router.put("/me", response_model=UserPublic)
async def update_users_me(
    user_in: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """현재 로그인된 사용자 정보 수정 (닉네임, 비밀번호)"""
    return await user_service.update_user(db, current_user.id, user_in)


@router.delete("/me", response_model=MessageResponse)
async def delete_users_me(
    delete_in: UserDeleteRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """회원 탈퇴 (LOCAL 사용자는 currentPassword 필요)"""
    current_password = delete_in.current_password if delete_in else None
    return await user_service.delete_user(db, current_user.id, current_password=current_password)


@router.post("/me/sns", status_code=status.HTTP_201_CREATED, response_model=SnsAccountPublic)
async def add_sns_account(
    sns_in: SnsAccountCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """SNS 계정 링크 추가"""
    return await user_service.add_sns_account(db, current_user.id, sns_in.sns_type, str(sns_in.sns_url))


@router.delete("/me/sns/{sns_account_id}", response_model=MessageResponse)
async def delete_sns_account(
    sns_account_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """SNS 계정 링크 삭제 (본인 것만)"""
    return await user_service.delete_sns_account(db, current_user.id, sns_account_id)


# ---------------------------------------------------------
# 관리자 API
# ---------------------------------------------------------
@router.get("", response_model=UserListResponse)
async def list_users(
    skip: int = Query(0, ge=0),
    take: int = Query(10, ge=1, le=100),
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db)
):
    return await user_service.list_users(db, skip=skip, take=take)


@router.get("/{user_id}", response_model=UserDetail)
async def read_user(
    user_id: uuid.UUID,
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db)
):
    return await user_service.find_by_id(db, user_id)


@router.put("/{user_id}/status", response_model=UserPublic)
async def update_user_status(
    user_id: uuid.UUID,
    status_in: UserStatusUpdate,
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db)
):
    return await user_service.update_user_status(db, user_id, status_in.status)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: uuid.UUID,
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db)
):
    """(관리자) 회원 삭제. 비밀번호 확인 없음"""
    logger.info(f"✅ 관리자 회원 삭제 요청: admin_id={admin.id}, user_id={user_id}")
    return await user_service.delete_user(db, user_id, require_password=False)
