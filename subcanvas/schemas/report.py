import uuid
from datetime import datetime
from pydantic import Field

from subcanvas.models.abuse_report import ReportCategory, ReportStatus
from subcanvas.schemas.base import CamelModel


class ReportCreate(CamelModel):
    report_category: ReportCategory
    report_details: str | None = Field(None, max_length=2000)

class ReportStatusUpdate(CamelModel):
    status: ReportStatus

class ReportUserSummary(CamelModel):
    id: uuid.UUID
    nickname: str
    email: str

class ReportedProfileSummary(CamelModel):
    id: int
    page_path: str
    user: ReportUserSummary

class AbuseReportPublic(CamelModel):
    id: int
    reported_profile_id: int
    reporter_user_id: uuid.UUID | None = None
    report_category: ReportCategory
    report_details: str | None = None
    status: ReportStatus
    created_at: datetime | None = None

class AbuseReportDetail(AbuseReportPublic):
    reported_profile: ReportedProfileSummary
    reporter_user: ReportUserSummary | None = None

class AbuseReportListResponse(CamelModel):
    reports: list[AbuseReportDetail]
    total: int
