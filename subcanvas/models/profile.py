import enum
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime, func, ForeignKey, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship

from subcanvas.database import Base

class ContentType(str, enum.Enum):
    IMAGE = "IMAGE"
    BIO_TEXT = "BIO_TEXT"
    LINK = "LINK"

class ProfilePage(Base):
    """사용자 프로필 페이지 (profile_pages)"""
    __tablename__ = "profile_pages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # 공개 URL 경로 (소문자, 숫자, -, _ 만 허용)
    page_path = Column(String(100), unique=True, index=True, nullable=False)
    design_concept = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="profile_pages")
    contents = relationship(
        "ProfileContent",
        back_populates="profile_page",
        order_by="[ProfileContent.display_order, ProfileContent.id]",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    visits = relationship("PageVisit", back_populates="profile_page", cascade="all, delete-orphan", passive_deletes=True)

class ProfileContent(Base):
    """프로필 페이지 콘텐츠 블록 (profile_contents)"""
    __tablename__ = "profile_contents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(Integer, ForeignKey("profile_pages.id", ondelete="CASCADE"), nullable=False, index=True)

    content_type = Column(SAEnum(ContentType, name="content_type_enum"), nullable=False)
    # 타입에 따라 텍스트, URL, 이미지 경로
    content_value = Column(Text, nullable=False)
    display_order = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    profile_page = relationship("ProfilePage", back_populates="contents")

class PageVisit(Base):
    """
    페이지 방문 기록 (page_visits)
    원본 IP는 저장하지 않고 SHA-256 해시만 보관한다.
    """
    __tablename__ = "page_visits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(Integer, ForeignKey("profile_pages.id", ondelete="CASCADE"), nullable=False, index=True)
    visitor_ip_hash = Column(String(64), nullable=True)
    # 기간 집계 비교를 위해 애플리케이션에서 UTC로 기록
    visited_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False, index=True)

    profile_page = relationship("ProfilePage", back_populates="visits")
