from subcanvas.models.user import User, AuthProvider, UserRole, UserStatus
from subcanvas.models.sns_account import SnsAccount
from subcanvas.models.profile import ProfilePage, ProfileContent, PageVisit, ContentType
from subcanvas.models.abuse_report import AbuseReport, ReportCategory, ReportStatus

__all__ = [
    "User",
    "AuthProvider",
    "UserRole",
    "UserStatus",
    "SnsAccount",
    "ProfilePage",
    "ProfileContent",
    "PageVisit",
    "ContentType",
    "AbuseReport",
    "ReportCategory",
    "ReportStatus",
]
