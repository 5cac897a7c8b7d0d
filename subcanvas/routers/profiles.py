import logging
import re
from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from subcanvas.core.config import settings
from subcanvas.core.exceptions import BadRequestError, PayloadTooLargeError
from subcanvas.core.security.dependencies import get_current_user, get_optional_user, require_roles
from subcanvas.database import get_db
from subcanvas.models.abuse_report import ReportStatus
from subcanvas.models.user import User, UserRole
from subcanvas.schemas.base import MessageResponse
from subcanvas.schemas.profile import (
    ContentCreate,
    ContentUpdate,
    ProfileContentPublic,
    ProfileCreate,
    ProfilePageDetail,
    ProfilePagePublic,
    ProfilePageSummary,
    ProfileUpdate,
    UploadResponse,
    VisitPeriod,
    VisitStats,
)
from subcanvas.schemas.report import (
    AbuseReportListResponse,
    AbuseReportPublic,
    ReportCreate,
    ReportStatusUpdate,
)
from subcanvas.services.profile_service import profile_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["profiles"])

admin_only = require_roles(UserRole.ADMIN)

ALLOWED_IMAGE_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif)$", re.IGNORECASE)


def get_client_ip(request: Request) -> str | None:
    """
    방문자 IP
    TRUST_PROXY_HEADERS 가 켜져 있을 때만 X-Forwarded-For 첫 번째 값을 사용
    """
    if settings.TRUST_PROXY_HEADERS:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None


# ---------------------------------------------------------
# 고정 경로 (/{profile_id} 보다 먼저 등록)
# ---------------------------------------------------------
@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProfilePagePublic)
async def create_profile_page(
    page_in: ProfileCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await profile_service.create_page(db, current_user.id, page_in.page_path, page_in.design_concept)


@router.get("/my", response_model=list[ProfilePageSummary])
async def read_my_profile_pages(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """내 프로필 페이지 목록"""
    return await profile_service.list_pages_for_user(db, current_user.id)


@router.get("/by-path/{page_path}", response_model=ProfilePageDetail)
async def read_profile_page_by_path(
    page_path: str,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """공개 프로필 페이지 조회 (방문 기록 저장)"""
    return await profile_service.get_page_by_path(db, page_path, get_client_ip(request))


@router.post("/upload", status_code=status.HTTP_201_CREATED, response_model=UploadResponse)
async def upload_image(
    image: UploadFile = File(...),
    current_user: User = Depends(get_current_user)
):
    """
    이미지 업로드 (jpg, jpeg, png, gif / 최대 5MB)
    """
    if not image.filename or not ALLOWED_IMAGE_PATTERN.search(image.filename):
        raise BadRequestError("이미지 파일만 업로드 가능합니다. (jpg, jpeg, png, gif)")

    data = await image.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError("파일 크기는 5MB 이하여야 합니다.")

    return await profile_service.upload_image(
        current_user.id,
        image.filename,
        data,
        image.content_type or "image/jpeg",
    )


@router.get("/reports", response_model=AbuseReportListResponse)
async def read_abuse_reports(
    report_status: ReportStatus | None = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    take: int = Query(10, ge=1, le=100),
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db)
):
    """(관리자) 신고 목록"""
    return await profile_service.list_abuse_reports(db, status=report_status, skip=skip, take=take)


@router.put("/reports/{report_id}", response_model=AbuseReportPublic)
async def update_abuse_report_status(
    report_id: int,
    status_in: ReportStatusUpdate,
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db)
):
    """(관리자) 신고 상태 변경"""
    return await profile_service.update_report_status(db, report_id, status_in.status)


@router.put("/contents/{content_id}", response_model=ProfileContentPublic)
async def update_profile_content(
    content_id: int,
    content_in: ContentUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await profile_service.update_content(db, current_user.id, content_id, content_in)


@router.delete("/contents/{content_id}", response_model=MessageResponse)
async def delete_profile_content(
    content_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await profile_service.delete_content(db, current_user.id, content_id)


# ---------------------------------------------------------
# /{profile_id}
# ---------------------------------------------------------
@router.get("/{profile_id}", response_model=ProfilePageDetail)
async def read_profile_page(
    profile_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await profile_service.get_page_by_id(db, profile_id)


@router.put("/{profile_id}", response_model=ProfilePagePublic)
async def update_profile_page(
    profile_id: int,
    page_in: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await profile_service.update_page(db, current_user.id, profile_id, page_in)


@router.delete("/{profile_id}", response_model=MessageResponse)
async def delete_profile_page(
    profile_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await profile_service.delete_page(db, current_user.id, profile_id)


@router.post("/{profile_id}/contents", status_code=status.HTTP_201_CREATED, response_model=ProfileContentPublic)
async def create_profile_content(
    profile_id: int,
    content_in: ContentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await profile_service.create_content(
        db, current_user.id, profile_id, content_in.content_type, content_in.content_value
    )


@router.get("/{profile_id}/stats", response_model=VisitStats)
async def read_visit_stats(
    profile_id: int,
    period: VisitPeriod = Query("day"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """방문 통계 (day, week, month)"""
    return await profile_service.get_visit_stats(db, current_user.id, profile_id, period)


@router.post("/{profile_id}/report", status_code=status.HTTP_201_CREATED, response_model=AbuseReportPublic)
async def report_profile_page(
    profile_id: int,
    report_in: ReportCreate,
    current_user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """불량 페이지 신고 (로그인 선택, 비회원은 신고자 없음)"""
    reporter_id = current_user.id if current_user else None
    return await profile_service.report_abusive_page(
        db, reporter_id, profile_id, report_in.report_category, report_in.report_details
    )
