import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from subcanvas.core.exceptions import ConflictError, UnauthorizedError
from subcanvas.core.security.hashing import PasswordHasher, password_hasher
from subcanvas.core.security.token import TokenIssuer, token_issuer
from subcanvas.models.user import User, AuthProvider, UserRole, UserStatus
from subcanvas.schemas.auth import AuthResponse, AuthUser

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, hasher: PasswordHasher = password_hasher, tokens: TokenIssuer = token_issuer):
        self.hasher = hasher
        self.tokens = tokens

    async def get_user_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def register(self, db: AsyncSession, email: str, password: str, nickname: str) -> AuthResponse:
        """일반 회원가입 후 바로 로그인 처리"""
        if await self.get_user_by_email(db, email):
            raise ConflictError("이미 사용 중인 이메일입니다.")

        new_user = User(
            email=email,
            password_hash=self.hasher.hash(password),
            nickname=nickname,
            auth_provider=AuthProvider.LOCAL,
            role=UserRole.USER,
            status=UserStatus.ACTIVE,
        )
        db.add(new_user)
        try:
            await db.commit()
        except IntegrityError:
            # 동시 가입으로 유니크 제약에 걸린 경우
            await db.rollback()
            raise ConflictError("이미 사용 중인 이메일입니다.")
        await db.refresh(new_user)

        logger.info(f"✅ 신규 회원가입: user_id={new_user.id}")
        return self.login(new_user)

    async def validate_credentials(self, db: AsyncSession, email: str, password: str) -> User | None:
        """
        이메일/비밀번호 검증
        - 사용자가 없거나 비밀번호가 틀리면 None
        - 소셜 가입 계정, 비활성 계정은 UnauthorizedError
        """
        user = await self.get_user_by_email(db, email)
        if user is None:
            return None

        # 소셜 로그인 사용자가 이메일/비밀번호로 로그인 시도하는 경우 거부
        if user.is_social:
            raise UnauthorizedError(
                f"{user.auth_provider.value} 계정으로 가입된 이메일입니다. 소셜 로그인을 이용해주세요."
            )

        if not user.is_active:
            raise UnauthorizedError("계정이 활성화 상태가 아닙니다. 관리자에게 문의하세요.")

        if not self.hasher.verify(password, user.password_hash):
            return None

        await self._touch_last_login(db, user)
        return user

    def login(self, user: User) -> AuthResponse:
        """Access Token 발급 + 사용자 요약 반환"""
        access_token = self.tokens.create_access_token(user_id=user.id, email=user.email)
        return AuthResponse(
            access_token=access_token,
            user=AuthUser(id=user.id, email=user.email, nickname=user.nickname, role=user.role),
        )

    async def social_login(
        self,
        db: AsyncSession,
        email: str,
        nickname: str,
        provider: AuthProvider,
        provider_id: str,
    ) -> AuthResponse:
        """
        소셜 로그인 (Google, Kakao)
        - 같은 이메일이 있으면 provider/providerId 가 모두 일치해야 로그인
        - 없으면 신규 생성 후 로그인
        """
        provider = AuthProvider(provider)
        user = await self.get_user_by_email(db, email)

        if user:
            if user.auth_provider != provider or user.provider_id != provider_id:
                raise ConflictError(f"이미 {user.auth_provider.value} 계정으로 가입된 이메일입니다.")
            if not user.is_active:
                raise UnauthorizedError("계정이 활성화 상태가 아닙니다. 관리자에게 문의하세요.")
            await self._touch_last_login(db, user)
        else:
            user = User(
                email=email,
                nickname=nickname,
                auth_provider=provider,
                provider_id=provider_id,
                role=UserRole.USER,
                status=UserStatus.ACTIVE,
            )
            db.add(user)
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise ConflictError("이미 가입된 이메일입니다.")
            await db.refresh(user)
            logger.info(f"✅ 소셜 신규 가입({provider.value}): user_id={user.id}")

        return self.login(user)

    async def _touch_last_login(self, db: AsyncSession, user: User) -> None:
        user.last_login_at = datetime.now(timezone.utc)
        db.add(user)
        await db.commit()
        await db.refresh(user)


auth_service = AuthService()
