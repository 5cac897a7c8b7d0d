import enum
from uuid import uuid4
from sqlalchemy import Column, String, DateTime, func, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship

from subcanvas.database import Base

class AuthProvider(str, enum.Enum):
    LOCAL = "LOCAL"
    GOOGLE = "GOOGLE"
    KAKAO = "KAKAO"

class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"

class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    DORMANT = "DORMANT"
    BANNED = "BANNED"

class User(Base):
    """회원 전체(users)"""
    __tablename__ = "users"

    # 기본 정보
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    nickname = Column(String(50), nullable=False)

    # 일반 로그인(LOCAL) 사용자만 비밀번호 해시를 가진다
    password_hash = Column(String(255), nullable=True)

    auth_provider = Column(SAEnum(AuthProvider, name="auth_provider_enum"), default=AuthProvider.LOCAL, nullable=False)
    provider_id = Column(String(255), nullable=True, index=True)

    role = Column(SAEnum(UserRole, name="user_role_enum"), default=UserRole.USER, nullable=False)
    status = Column(SAEnum(UserStatus, name="user_status_enum"), default=UserStatus.ACTIVE, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    sns_accounts = relationship(
        "SnsAccount", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    profile_pages = relationship(
        "ProfilePage", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def is_social(self) -> bool:
        return self.auth_provider != AuthProvider.LOCAL

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, nickname={self.nickname})>"
