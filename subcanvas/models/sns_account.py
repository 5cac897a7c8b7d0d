from sqlalchemy import Column, Integer, String, DateTime, func, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from subcanvas.database import Base

class SnsAccount(Base):
    """
    프로필에 노출할 사용자 SNS 링크 (sns_accounts)
    """
    __tablename__ = "sns_accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    sns_type = Column(String(50), nullable=False)
    sns_url = Column(String(500), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="sns_accounts")
