import enum
from sqlalchemy import Column, Integer, Text, DateTime, func, ForeignKey, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship

from subcanvas.database import Base

class ReportCategory(str, enum.Enum):
    SPAM = "SPAM"
    HATE_SPEECH = "HATE_SPEECH"
    PORNOGRAPHY = "PORNOGRAPHY"
    OTHER = "OTHER"

class ReportStatus(str, enum.Enum):
    PENDING = "PENDING"
    REVIEWING = "REVIEWING"
    RESOLVED = "RESOLVED"

class AbuseReport(Base):
    """
    불량 페이지 신고 (abuse_reports)
    비회원 신고는 reporter_user_id 가 NULL
    """
    __tablename__ = "abuse_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reported_profile_id = Column(Integer, ForeignKey("profile_pages.id", ondelete="CASCADE"), nullable=False, index=True)
    reporter_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    report_category = Column(SAEnum(ReportCategory, name="report_category_enum"), nullable=False)
    report_details = Column(Text, nullable=True)
    status = Column(SAEnum(ReportStatus, name="report_status_enum"), default=ReportStatus.PENDING, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    reported_profile = relationship("ProfilePage")
    reporter_user = relationship("User")
