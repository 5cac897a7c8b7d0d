import logging
import uuid
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from subcanvas.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from subcanvas.core.security.hashing import PasswordHasher, password_hasher
from subcanvas.models.sns_account import SnsAccount
from subcanvas.models.user import User, AuthProvider, UserStatus
from subcanvas.schemas.user import UserUpdate

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "사용자를 찾을 수 없습니다."


class UserService:
    def __init__(self, hasher: PasswordHasher = password_hasher):
        self.hasher = hasher

    async def get_user_by_id(self, db: AsyncSession, user_id: uuid.UUID) -> User | None:
        """ID로 사용자 조회"""
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()

    async def find_by_id(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        """ID로 사용자 조회 (SNS 계정 포함). 없으면 NotFoundError"""
        result = await db.execute(
            select(User)
            .where(User.id == user_id)
            .options(selectinload(User.sns_accounts))
        )
        user = result.scalars().first()
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)
        return user

    async def update_user(self, db: AsyncSession, user_id: uuid.UUID, user_in: UserUpdate) -> User:
        """
        사용자 정보 수정
        - 닉네임은 누구나 변경 가능
        - 비밀번호는 LOCAL 사용자만, 현재 비밀번호 확인 후 변경
        """
        user = await self.get_user_by_id(db, user_id)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)

        if user_in.nickname:
            user.nickname = user_in.nickname

        if user_in.password:
            if user.auth_provider != AuthProvider.LOCAL:
                raise BadRequestError("소셜 로그인 사용자는 비밀번호를 변경할 수 없습니다.")
            if not user_in.current_password:
                raise BadRequestError("현재 비밀번호를 입력해주세요.")
            if not user.password_hash:
                raise BadRequestError("비밀번호가 설정되어 있지 않습니다.")
            if not self.hasher.verify(user_in.current_password, user.password_hash):
                raise BadRequestError("현재 비밀번호가 올바르지 않습니다.")

            user.password_hash = self.hasher.hash(user_in.password)

        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    async def delete_user(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        current_password: str | None = None,
        require_password: bool = True
    ) -> dict:
        """
        회원 탈퇴 (Hard Delete)
        본인 탈퇴인 LOCAL 사용자는 현재 비밀번호 확인이 필요하고, 관리자 삭제는 확인을 건너뛴다.
        프로필 페이지, SNS 계정은 함께 삭제되고 신고 내역의 신고자는 NULL 처리된다.
        """
        user = await self.get_user_by_id(db, user_id)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)

        if require_password and user.auth_provider == AuthProvider.LOCAL and user.password_hash:
            if not current_password:
                raise BadRequestError("계정 삭제를 위해 현재 비밀번호를 입력해주세요.")
            if not self.hasher.verify(current_password, user.password_hash):
                raise ForbiddenError("비밀번호가 올바르지 않습니다.")

        await db.delete(user)
        await db.commit()
        logger.info(f"🗑️ 회원 삭제: user_id={user_id}")
        return {"message": "계정이 성공적으로 삭제되었습니다."}

    # ---------------------------------------------------------
    # SNS 계정
    # ---------------------------------------------------------
    async def add_sns_account(self, db: AsyncSession, user_id: uuid.UUID, sns_type: str, sns_url: str) -> SnsAccount:
        if await self.get_user_by_id(db, user_id) is None:
            raise NotFoundError(USER_NOT_FOUND)

        sns_account = SnsAccount(user_id=user_id, sns_type=sns_type, sns_url=str(sns_url))
        db.add(sns_account)
        await db.commit()
        await db.refresh(sns_account)
        return sns_account

    async def delete_sns_account(self, db: AsyncSession, user_id: uuid.UUID, sns_account_id: int) -> dict:
        sns_account = await db.get(SnsAccount, sns_account_id)
        if sns_account is None:
            raise NotFoundError("SNS 계정을 찾을 수 없습니다.")
        if sns_account.user_id != user_id:
            raise ForbiddenError("다른 사용자의 SNS 계정을 삭제할 수 없습니다.")

        await db.delete(sns_account)
        await db.commit()
        return {"message": "SNS 계정이 삭제되었습니다."}

    # ---------------------------------------------------------
    # 관리자
    # ---------------------------------------------------------
    async def list_users(self, db: AsyncSession, skip: int = 0, take: int = 10) -> dict:
        """(관리자) 사용자 목록 (최신 가입순) + 전체 수"""
        result = await db.execute(
            select(User)
            .order_by(User.created_at.desc(), User.id)
            .offset(skip)
            .limit(take)
        )
        users = result.scalars().all()

        total_result = await db.execute(select(func.count(User.id)))
        return {"users": users, "total": total_result.scalar_one()}

    async def update_user_status(self, db: AsyncSession, user_id: uuid.UUID, status: UserStatus) -> User:
        """(관리자) 계정 상태 변경"""
        user = await self.get_user_by_id(db, user_id)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)

        user.status = UserStatus(status)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info(f"✅ 계정 상태 변경: user_id={user_id}, status={user.status.value}")
        return user


user_service = UserService()
