import calendar
import hashlib
import logging
import secrets
import time
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

from sqlalchemy import func, distinct
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from subcanvas.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from subcanvas.models.abuse_report import AbuseReport, ReportCategory, ReportStatus
from subcanvas.models.profile import ContentType, PageVisit, ProfileContent, ProfilePage
from subcanvas.schemas.profile import (
    ContentUpdate,
    ProfilePageDetail,
    ProfilePageSummary,
    ProfileUpdate,
    UploadResponse,
    VisitStats,
)
from subcanvas.services.storage_service import LOCAL_URL_PREFIX, StorageService, storage_service

logger = logging.getLogger(__name__)

PAGE_NOT_FOUND = "프로필 페이지를 찾을 수 없습니다."
CONTENT_NOT_FOUND = "콘텐츠를 찾을 수 없습니다."
PATH_TAKEN = "이미 사용 중인 URL 경로입니다."


def hash_visitor_ip(ip: str) -> str:
    """IP 주소를 SHA-256 해시로 변환 (원본 IP는 저장하지 않음)"""
    return hashlib.sha256(ip.encode("utf-8")).hexdigest()


def _subtract_one_month(moment: datetime) -> datetime:
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    # 3/31 -> 2/28 처럼 말일 보정
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def period_start(period: str, now: datetime) -> datetime:
    """
    통계 기간 시작 시각
    - day: 오늘 0시
    - week: 7일 전
    - month: 한 달 전
    """
    if period == "day":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return _subtract_one_month(now)
    raise BadRequestError("period 는 day, week, month 중 하나여야 합니다.")


class ProfileService:
    def __init__(self, storage: StorageService = storage_service):
        self.storage = storage

    # ---------------------------------------------------------
    # 내부 조회 헬퍼
    # ---------------------------------------------------------
    async def _get_page(self, db: AsyncSession, profile_id: int) -> ProfilePage:
        page = await db.get(ProfilePage, profile_id)
        if page is None:
            raise NotFoundError(PAGE_NOT_FOUND)
        return page

    async def _get_owned_page(self, db: AsyncSession, owner_id: uuid.UUID, profile_id: int, action: str) -> ProfilePage:
        page = await self._get_page(db, profile_id)
        if page.user_id != owner_id:
            raise ForbiddenError(f"이 프로필 페이지{action} 권한이 없습니다.")
        return page

    async def _get_owned_content(self, db: AsyncSession, owner_id: uuid.UUID, content_id: int, action: str) -> ProfileContent:
        result = await db.execute(
            select(ProfileContent)
            .where(ProfileContent.id == content_id)
            .options(selectinload(ProfileContent.profile_page))
        )
        content = result.scalars().first()
        if content is None:
            raise NotFoundError(CONTENT_NOT_FOUND)
        if content.profile_page.user_id != owner_id:
            raise ForbiddenError(f"이 콘텐츠를 {action} 권한이 없습니다.")
        return content

    async def _path_taken(self, db: AsyncSession, page_path: str) -> bool:
        result = await db.execute(select(ProfilePage.id).where(ProfilePage.page_path == page_path))
        return result.first() is not None

    async def _count_visits(self, db: AsyncSession, profile_id: int) -> int:
        result = await db.execute(
            select(func.count(PageVisit.id)).where(PageVisit.profile_id == profile_id)
        )
        return result.scalar_one()

    async def _load_detail(self, db: AsyncSession, *criteria) -> ProfilePageDetail:
        result = await db.execute(
            select(ProfilePage)
            .where(*criteria)
            .options(selectinload(ProfilePage.user), selectinload(ProfilePage.contents))
        )
        page = result.scalars().first()
        if page is None:
            raise NotFoundError(PAGE_NOT_FOUND)

        detail = ProfilePageDetail.model_validate(page)
        detail.visit_count = await self._count_visits(db, page.id)
        return detail

    # ---------------------------------------------------------
    # 프로필 페이지 CRUD
    # ---------------------------------------------------------
    async def create_page(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        page_path: str,
        design_concept: str | None = None
    ) -> ProfilePage:
        """URL 경로 중복 확인 후 프로필 페이지 생성"""
        if await self._path_taken(db, page_path):
            raise ConflictError(PATH_TAKEN)

        page = ProfilePage(user_id=owner_id, page_path=page_path, design_concept=design_concept)
        db.add(page)
        try:
            await db.commit()
        except IntegrityError:
            # 동시 생성 경쟁에서 유니크 제약에 걸린 경우
            await db.rollback()
            raise ConflictError(PATH_TAKEN)
        await db.refresh(page)
        return page

    async def list_pages_for_user(self, db: AsyncSession, owner_id: uuid.UUID) -> list[ProfilePageSummary]:
        """내 프로필 페이지 목록 (최신순, 콘텐츠/방문 수 포함)"""
        content_count = (
            select(func.count(ProfileContent.id))
            .where(ProfileContent.profile_id == ProfilePage.id)
            .correlate(ProfilePage)
            .scalar_subquery()
        )
        visit_count = (
            select(func.count(PageVisit.id))
            .where(PageVisit.profile_id == ProfilePage.id)
            .correlate(ProfilePage)
            .scalar_subquery()
        )
        result = await db.execute(
            select(ProfilePage, content_count, visit_count)
            .where(ProfilePage.user_id == owner_id)
            .order_by(ProfilePage.created_at.desc(), ProfilePage.id.desc())
        )

        pages = []
        for page, contents, visits in result.all():
            summary = ProfilePageSummary.model_validate(page)
            summary.content_count = contents
            summary.visit_count = visits
            pages.append(summary)
        return pages

    async def get_page_by_id(self, db: AsyncSession, profile_id: int) -> ProfilePageDetail:
        return await self._load_detail(db, ProfilePage.id == profile_id)

    async def get_page_by_path(
        self,
        db: AsyncSession,
        page_path: str,
        visitor_ip: str | None = None
    ) -> ProfilePageDetail:
        """
        공개 페이지 조회
        방문자 IP가 있으면 해시 처리한 방문 기록을 함께 저장한다. (조회 시점 이후 반영)
        """
        detail = await self._load_detail(db, ProfilePage.page_path == page_path)

        if visitor_ip:
            db.add(PageVisit(profile_id=detail.id, visitor_ip_hash=hash_visitor_ip(visitor_ip)))
            await db.commit()

        return detail

    async def update_page(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        profile_id: int,
        page_in: ProfileUpdate
    ) -> ProfilePage:
        page = await self._get_owned_page(db, owner_id, profile_id, "를 수정할")

        # URL 경로 중복 확인 (변경하는 경우에만)
        if page_in.page_path and page_in.page_path != page.page_path:
            if await self._path_taken(db, page_in.page_path):
                raise ConflictError(PATH_TAKEN)
            page.page_path = page_in.page_path

        if "design_concept" in page_in.model_fields_set:
            page.design_concept = page_in.design_concept

        db.add(page)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(PATH_TAKEN)
        await db.refresh(page)
        return page

    async def delete_page(self, db: AsyncSession, owner_id: uuid.UUID, profile_id: int) -> dict:
        page = await self._get_owned_page(db, owner_id, profile_id, "를 삭제할")

        # 관련 콘텐츠, 방문 기록, 신고는 ON DELETE CASCADE 로 함께 삭제
        await db.delete(page)
        await db.commit()
        logger.info(f"🗑️ 프로필 페이지 삭제: profile_id={profile_id}")
        return {"message": "프로필 페이지가 삭제되었습니다."}

    # ---------------------------------------------------------
    # 프로필 콘텐츠 CRUD
    # ---------------------------------------------------------
    async def create_content(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        profile_id: int,
        content_type: ContentType,
        content_value: str
    ) -> ProfileContent:
        await self._get_owned_page(db, owner_id, profile_id, "에 콘텐츠를 추가할")

        # 현재 가장 높은 표시 순서 다음으로 추가
        result = await db.execute(
            select(func.max(ProfileContent.display_order)).where(ProfileContent.profile_id == profile_id)
        )
        max_order = result.scalar()
        display_order = max_order + 1 if max_order else 1

        content = ProfileContent(
            profile_id=profile_id,
            content_type=ContentType(content_type),
            content_value=content_value,
            display_order=display_order,
        )
        db.add(content)
        await db.commit()
        await db.refresh(content)
        return content

    async def update_content(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        content_id: int,
        content_in: ContentUpdate
    ) -> ProfileContent:
        content = await self._get_owned_content(db, owner_id, content_id, "수정할")

        if content_in.content_type is not None:
            content.content_type = content_in.content_type
        if content_in.content_value is not None:
            content.content_value = content_in.content_value
        if content_in.display_order is not None:
            content.display_order = content_in.display_order

        db.add(content)
        await db.commit()
        await db.refresh(content)
        return content

    async def delete_content(self, db: AsyncSession, owner_id: uuid.UUID, content_id: int) -> dict:
        content = await self._get_owned_content(db, owner_id, content_id, "삭제할")

        await db.delete(content)
        await db.commit()
        return {"message": "콘텐츠가 삭제되었습니다."}

    # ---------------------------------------------------------
    # 이미지 업로드
    # ---------------------------------------------------------
    @staticmethod
    def build_upload_key(owner_id: uuid.UUID, filename: str) -> str:
        ext = Path(filename or "").suffix.lower()
        unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        return f"profiles/{owner_id}/{unique_suffix}{ext}"

    async def upload_image(
        self,
        owner_id: uuid.UUID,
        filename: str,
        data: bytes,
        content_type: str = "image/jpeg"
    ) -> UploadResponse:
        """
        이미지 업로드 (best effort)
        저장소가 모두 실패해도 예외 대신 로컬 서빙 URL을 돌려준다.
        로컬 디스크까지 실패한 경우 이 URL에는 파일이 없으므로 요청 시 404가 된다.
        로컬 디스크는 체인의 마지막 단계라 같은 자리에 재시도하지 않는다.
        """
        key = self.build_upload_key(owner_id, filename)
        try:
            url = await self.storage.upload(data, key, content_type)
        except Exception as e:
            logger.error(f"⛔ 이미지 업로드 실패, 로컬 URL로 대체: {e}", exc_info=True)
            url = f"{LOCAL_URL_PREFIX}/{key}"
        return UploadResponse(url=url)

    # ---------------------------------------------------------
    # 방문 통계
    # ---------------------------------------------------------
    async def get_visit_stats(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        profile_id: int,
        period: str = "day"
    ) -> VisitStats:
        await self._get_owned_page(db, owner_id, profile_id, "의 통계를 조회할")

        end_date = datetime.now(timezone.utc)
        start_date = period_start(period, end_date)

        result = await db.execute(
            select(
                func.count(PageVisit.id),
                func.count(distinct(PageVisit.visitor_ip_hash)),
            ).where(
                PageVisit.profile_id == profile_id,
                PageVisit.visited_at >= start_date,
                PageVisit.visited_at <= end_date,
            )
        )
        total_visits, unique_visitors = result.one()

        return VisitStats(
            total_visits=total_visits,
            unique_visitors=unique_visitors,
            period=period,
            start_date=start_date,
            end_date=end_date,
        )

    # ---------------------------------------------------------
    # 불량 페이지 신고
    # ---------------------------------------------------------
    async def report_abusive_page(
        self,
        db: AsyncSession,
        reporter_user_id: uuid.UUID | None,
        profile_id: int,
        report_category: ReportCategory,
        report_details: str | None = None
    ) -> AbuseReport:
        page = await db.get(ProfilePage, profile_id)
        if page is None:
            raise NotFoundError("신고하려는 프로필 페이지를 찾을 수 없습니다.")

        report = AbuseReport(
            reported_profile_id=profile_id,
            reporter_user_id=reporter_user_id,
            report_category=ReportCategory(report_category),
            report_details=report_details,
            status=ReportStatus.PENDING,
        )
        db.add(report)
        await db.commit()
        await db.refresh(report)
        logger.info(f"🚨 신고 접수: report_id={report.id}, profile_id={profile_id}")
        return report

    async def list_abuse_reports(
        self,
        db: AsyncSession,
        status: ReportStatus | None = None,
        skip: int = 0,
        take: int = 10
    ) -> dict:
        """(관리자) 신고 목록 조회 + 전체 개수"""
        conditions = [AbuseReport.status == status] if status else []

        result = await db.execute(
            select(AbuseReport)
            .where(*conditions)
            .options(
                selectinload(AbuseReport.reported_profile).selectinload(ProfilePage.user),
                selectinload(AbuseReport.reporter_user),
            )
            .order_by(AbuseReport.created_at.desc(), AbuseReport.id.desc())
            .offset(skip)
            .limit(take)
        )
        reports = result.scalars().all()

        total_result = await db.execute(select(func.count(AbuseReport.id)).where(*conditions))
        return {"reports": reports, "total": total_result.scalar_one()}

    async def update_report_status(self, db: AsyncSession, report_id: int, status: ReportStatus) -> AbuseReport:
        """(관리자) 신고 상태 변경. 상태 전이 제한 없음"""
        report = await db.get(AbuseReport, report_id)
        if report is None:
            raise NotFoundError("신고 내역을 찾을 수 없습니다.")

        report.status = ReportStatus(status)
        db.add(report)
        await db.commit()
        await db.refresh(report)
        return report


profile_service = ProfileService()
