import re
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from subcanvas.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from subcanvas.models import (
    AbuseReport,
    ContentType,
    PageVisit,
    ProfileContent,
    ProfilePage,
    ReportCategory,
    ReportStatus,
)
from subcanvas.schemas.profile import ContentUpdate, ProfileUpdate
from subcanvas.services.auth_service import auth_service
from subcanvas.services.profile_service import hash_visitor_ip, period_start, profile_service
from tests.factories import (
    AbuseReportFactory,
    PageVisitFactory,
    ProfileContentFactory,
    ProfilePageFactory,
    UserFactory,
)


async def count(db, column, *criteria) -> int:
    result = await db.execute(select(func.count(column)).where(*criteria))
    return result.scalar_one()


# ---------------------------------------------------------
# 프로필 페이지
# ---------------------------------------------------------
async def test_create_page_with_taken_path_conflicts(db, save):
    owner, other = await save(UserFactory.build(), UserFactory.build())
    await profile_service.create_page(db, owner.id, "alice")

    with pytest.raises(ConflictError):
        await profile_service.create_page(db, other.id, "alice")


async def test_path_is_reusable_after_page_is_deleted(db, save):
    owner, other = await save(UserFactory.build(), UserFactory.build())
    page = await profile_service.create_page(db, owner.id, "alice")

    await profile_service.delete_page(db, owner.id, page.id)
    recreated = await profile_service.create_page(db, other.id, "alice")

    assert recreated.user_id == other.id


async def test_list_pages_for_user_counts_contents_and_visits(db, save):
    owner = await save(UserFactory.build())
    page = await save(ProfilePageFactory.build(user=owner))
    await save(
        ProfileContentFactory.build(profile_page=page, display_order=1),
        ProfileContentFactory.build(profile_page=page, display_order=2),
        PageVisitFactory.build(profile_page=page),
    )
    newer = await profile_service.create_page(db, owner.id, "newer")
    await save(ProfilePageFactory.build())

    pages = await profile_service.list_pages_for_user(db, owner.id)

    assert [p.id for p in pages] == [newer.id, page.id]
    assert pages[1].content_count == 2
    assert pages[1].visit_count == 1
    assert pages[0].content_count == 0


async def test_get_page_by_id_orders_contents_and_summarises_owner(db, save):
    owner = await save(UserFactory.build(nickname="alice"))
    page = await save(ProfilePageFactory.build(user=owner))
    await save(
        ProfileContentFactory.build(profile_page=page, display_order=3, content_value="third"),
        ProfileContentFactory.build(profile_page=page, display_order=1, content_value="first"),
        ProfileContentFactory.build(profile_page=page, display_order=2, content_value="second"),
    )
    db.expunge_all()

    detail = await profile_service.get_page_by_id(db, page.id)

    assert [c.content_value for c in detail.contents] == ["first", "second", "third"]
    assert detail.user.nickname == "alice"
    assert detail.user.id == owner.id
    assert detail.visit_count == 0


async def test_get_missing_page(db):
    with pytest.raises(NotFoundError):
        await profile_service.get_page_by_id(db, 404)
    with pytest.raises(NotFoundError):
        await profile_service.get_page_by_path(db, "nobody", "1.2.3.4")


async def test_get_page_by_path_records_one_hashed_visit_per_call(db, save):
    page = await save(ProfilePageFactory.build(page_path="alice"))

    for ip in ["1.1.1.1", "2.2.2.2", "3.3.3.3"]:
        await profile_service.get_page_by_path(db, "alice", ip)

    assert await count(db, PageVisit.id, PageVisit.profile_id == page.id) == 3
    result = await db.execute(select(PageVisit.visitor_ip_hash))
    hashes = set(result.scalars().all())
    assert hash_visitor_ip("1.1.1.1") in hashes
    assert "1.1.1.1" not in hashes

    stats = await profile_service.get_visit_stats(db, page.user_id, page.id, "day")
    assert stats.total_visits == 3
    assert stats.unique_visitors == 3


async def test_get_page_by_path_without_ip_records_nothing(db, save):
    page = await save(ProfilePageFactory.build(page_path="alice"))

    await profile_service.get_page_by_path(db, "alice")

    assert await count(db, PageVisit.id, PageVisit.profile_id == page.id) == 0


async def test_update_page_changes_path_and_design(db, save):
    page = await save(ProfilePageFactory.build(page_path="old-path"))

    updated = await profile_service.update_page(
        db, page.user_id, page.id, ProfileUpdate(page_path="new-path", design_concept="retro")
    )

    assert updated.page_path == "new-path"
    assert updated.design_concept == "retro"


async def test_update_page_keeping_own_path_is_allowed(db, save):
    page = await save(ProfilePageFactory.build(page_path="alice"))

    updated = await profile_service.update_page(db, page.user_id, page.id, ProfileUpdate(page_path="alice"))

    assert updated.page_path == "alice"


async def test_update_page_to_taken_path_conflicts(db, save):
    page = await save(ProfilePageFactory.build(page_path="alice"))
    await save(ProfilePageFactory.build(page_path="bob"))

    with pytest.raises(ConflictError):
        await profile_service.update_page(db, page.user_id, page.id, ProfileUpdate(page_path="bob"))


async def test_create_page_race_on_same_path_maps_to_conflict(db, save, monkeypatch):
    owner, other = await save(UserFactory.build(), UserFactory.build())
    owner_id, other_id = owner.id, other.id
    await profile_service.create_page(db, owner_id, "alice")

    # 경로 중복 조회를 통과한 동시 요청 재현
    async def path_free(db, page_path):
        return False

    monkeypatch.setattr(profile_service, "_path_taken", path_free)

    with pytest.raises(ConflictError):
        await profile_service.create_page(db, other_id, "alice")
    result = await db.execute(select(ProfilePage.user_id).where(ProfilePage.page_path == "alice"))
    assert result.scalars().all() == [owner_id]


async def test_update_page_race_on_same_path_maps_to_conflict(db, save, monkeypatch):
    page = await save(ProfilePageFactory.build(page_path="alice"))
    await save(ProfilePageFactory.build(page_path="bob"))
    page_id, owner_id = page.id, page.user_id

    async def path_free(db, page_path):
        return False

    monkeypatch.setattr(profile_service, "_path_taken", path_free)

    with pytest.raises(ConflictError):
        await profile_service.update_page(db, owner_id, page_id, ProfileUpdate(page_path="bob"))
    result = await db.execute(select(ProfilePage.page_path).where(ProfilePage.id == page_id))
    assert result.scalar_one() == "alice"


async def test_non_owner_cannot_update_or_delete_page(db, save):
    page = await save(ProfilePageFactory.build())
    stranger = await save(UserFactory.build())

    with pytest.raises(ForbiddenError):
        await profile_service.update_page(db, stranger.id, page.id, ProfileUpdate(design_concept="x"))
    with pytest.raises(ForbiddenError):
        await profile_service.delete_page(db, stranger.id, page.id)
    with pytest.raises(NotFoundError):
        await profile_service.delete_page(db, stranger.id, 9999)


async def test_delete_page_cascades_contents_visits_and_reports(db, save):
    page = await save(ProfilePageFactory.build())
    await save(
        ProfileContentFactory.build(profile_page=page),
        PageVisitFactory.build(profile_page=page),
        AbuseReportFactory.build(reported_profile=page),
    )
    page_id, owner_id = page.id, page.user_id
    db.expunge_all()

    await profile_service.delete_page(db, owner_id, page_id)

    assert await count(db, ProfilePage.id, ProfilePage.id == page_id) == 0
    assert await count(db, ProfileContent.id, ProfileContent.profile_id == page_id) == 0
    assert await count(db, PageVisit.id, PageVisit.profile_id == page_id) == 0
    assert await count(db, AbuseReport.id, AbuseReport.reported_profile_id == page_id) == 0


# ---------------------------------------------------------
# 콘텐츠
# ---------------------------------------------------------
async def test_create_content_assigns_sequential_display_order(db, save):
    page = await save(ProfilePageFactory.build())

    orders = []
    for content_type in [ContentType.IMAGE, ContentType.BIO_TEXT, ContentType.LINK]:
        content = await profile_service.create_content(db, page.user_id, page.id, content_type, "value")
        orders.append(content.display_order)

    assert orders == [1, 2, 3]


async def test_non_owner_cannot_add_content(db, save):
    page = await save(ProfilePageFactory.build())
    stranger = await save(UserFactory.build())

    with pytest.raises(ForbiddenError):
        await profile_service.create_content(db, stranger.id, page.id, ContentType.LINK, "https://x.com")


async def test_update_content_by_owner(db, save):
    owner = await save(UserFactory.build())
    page = await save(ProfilePageFactory.build(user=owner))
    content = await save(ProfileContentFactory.build(profile_page=page))
    owner_id = owner.id

    updated = await profile_service.update_content(
        db, owner_id, content.id, ContentUpdate(content_value="changed", display_order=5)
    )

    assert updated.content_value == "changed"
    assert updated.display_order == 5
    assert updated.content_type == ContentType.BIO_TEXT


async def test_content_mutations_check_the_owning_page(db, save):
    content = await save(ProfileContentFactory.build())
    stranger = await save(UserFactory.build())

    with pytest.raises(ForbiddenError):
        await profile_service.update_content(db, stranger.id, content.id, ContentUpdate(content_value="x"))
    with pytest.raises(ForbiddenError):
        await profile_service.delete_content(db, stranger.id, content.id)
    with pytest.raises(NotFoundError):
        await profile_service.delete_content(db, stranger.id, 9999)


async def test_delete_content_by_owner(db, save):
    owner = await save(UserFactory.build())
    page = await save(ProfilePageFactory.build(user=owner))
    content = await save(ProfileContentFactory.build(profile_page=page))
    content_id, owner_id = content.id, owner.id

    await profile_service.delete_content(db, owner_id, content_id)

    assert await count(db, ProfileContent.id, ProfileContent.id == content_id) == 0


# ---------------------------------------------------------
# 업로드
# ---------------------------------------------------------
async def test_upload_without_remote_storage_returns_local_url(upload_root):
    owner_id = uuid.uuid4()

    response = await profile_service.upload_image(owner_id, "Photo.PNG", b"\x89PNG", "image/png")

    assert response.url.startswith(f"/uploads/profiles/{owner_id}/")
    assert response.url.endswith(".png")
    stored = upload_root / response.url.removeprefix("/uploads/")
    assert stored.read_bytes() == b"\x89PNG"


async def test_upload_never_raises_when_local_disk_fails(upload_root):
    # 업로드 루트 자리에 파일이 있어 디렉토리를 만들 수 없음
    upload_root.write_bytes(b"")
    owner_id = uuid.uuid4()

    response = await profile_service.upload_image(owner_id, "a.jpg", b"data", "image/jpeg")

    assert re.fullmatch(rf"/uploads/profiles/{owner_id}/\d+-\d+\.jpg", response.url)
    assert not (upload_root / response.url.removeprefix("/uploads/")).exists()


# ---------------------------------------------------------
# 방문 통계
# ---------------------------------------------------------
def test_period_start_boundaries():
    now = datetime(2024, 3, 31, 15, 30, tzinfo=timezone.utc)

    assert period_start("day", now) == datetime(2024, 3, 31, tzinfo=timezone.utc)
    assert period_start("week", now) == datetime(2024, 3, 24, 15, 30, tzinfo=timezone.utc)
    # 2024년 2월은 29일까지
    assert period_start("month", now) == datetime(2024, 2, 29, 15, 30, tzinfo=timezone.utc)
    assert period_start("month", datetime(2024, 1, 15, tzinfo=timezone.utc)) == datetime(2023, 12, 15, tzinfo=timezone.utc)

    with pytest.raises(BadRequestError):
        period_start("year", now)


async def test_day_stats_exclude_yesterday_and_include_recent(db, save):
    page = await save(ProfilePageFactory.build())
    now = datetime.now(timezone.utc)
    start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    await save(
        PageVisitFactory.build(profile_page=page, visitor_ip_hash="a" * 64, visited_at=now - timedelta(days=1, hours=1)),
        PageVisitFactory.build(profile_page=page, visitor_ip_hash="b" * 64, visited_at=max(now - timedelta(hours=1), start_of_today)),
    )

    day = await profile_service.get_visit_stats(db, page.user_id, page.id, "day")
    week = await profile_service.get_visit_stats(db, page.user_id, page.id, "week")

    assert day.total_visits == 1
    assert day.unique_visitors == 1
    assert day.period == "day"
    assert week.total_visits == 2


async def test_unique_visitors_count_distinct_hashes(db, save):
    page = await save(ProfilePageFactory.build())
    await save(*[PageVisitFactory.build(profile_page=page, visitor_ip_hash="c" * 64) for _ in range(3)])

    stats = await profile_service.get_visit_stats(db, page.user_id, page.id, "month")

    assert stats.total_visits == 3
    assert stats.unique_visitors == 1


async def test_stats_are_owner_only(db, save):
    page = await save(ProfilePageFactory.build())
    stranger = await save(UserFactory.build())

    with pytest.raises(ForbiddenError):
        await profile_service.get_visit_stats(db, stranger.id, page.id, "day")


# ---------------------------------------------------------
# 신고
# ---------------------------------------------------------
async def test_anonymous_report_starts_pending(db, save):
    page = await save(ProfilePageFactory.build())

    report = await profile_service.report_abusive_page(db, None, page.id, ReportCategory.SPAM, "광고")

    assert report.status == ReportStatus.PENDING
    assert report.reporter_user_id is None


async def test_report_on_missing_page(db, save):
    reporter = await save(UserFactory.build())

    with pytest.raises(NotFoundError):
        await profile_service.report_abusive_page(db, reporter.id, 9999, ReportCategory.OTHER)


async def test_list_abuse_reports_filters_and_paginates(db, save):
    owner = await save(UserFactory.build(nickname="owner", email="owner@subcanvas.io"))
    page = await save(ProfilePageFactory.build(user=owner, page_path="reported"))
    reporter = await save(UserFactory.build())
    await save(
        AbuseReportFactory.build(reported_profile=page, reporter_user=reporter),
        AbuseReportFactory.build(reported_profile=page),
        AbuseReportFactory.build(reported_profile=page, status=ReportStatus.RESOLVED),
    )
    db.expunge_all()

    pending = await profile_service.list_abuse_reports(db, status=ReportStatus.PENDING)
    first = await profile_service.list_abuse_reports(db, skip=0, take=1)

    assert pending["total"] == 2
    assert {r.status for r in pending["reports"]} == {ReportStatus.PENDING}
    assert first["total"] == 3
    assert len(first["reports"]) == 1

    reported = pending["reports"][0].reported_profile
    assert reported.page_path == "reported"
    assert reported.user.email == "owner@subcanvas.io"
    reporters = {r.reporter_user.id if r.reporter_user else None for r in pending["reports"]}
    assert reporters == {reporter.id, None}


async def test_report_status_transitions_are_unrestricted(db, save):
    report = await save(AbuseReportFactory.build())

    for status in [ReportStatus.RESOLVED, ReportStatus.PENDING, ReportStatus.REVIEWING]:
        report = await profile_service.update_report_status(db, report.id, status)
        assert report.status == status

    with pytest.raises(NotFoundError):
        await profile_service.update_report_status(db, 9999, ReportStatus.RESOLVED)


# ---------------------------------------------------------
# 전체 흐름
# ---------------------------------------------------------
async def test_register_create_page_visit_and_stats(db):
    registered = await auth_service.register(db, email="a@x.com", password="password123", nickname="alice")
    owner_id = registered.user.id

    page = await profile_service.create_page(db, owner_id, "alice")
    await profile_service.create_content(db, owner_id, page.id, ContentType.BIO_TEXT, "hello")
    detail = await profile_service.get_page_by_path(db, "alice", "1.2.3.4")
    stats = await profile_service.get_visit_stats(db, owner_id, page.id, "day")

    assert [c.content_type for c in detail.contents] == [ContentType.BIO_TEXT]
    assert stats.total_visits == 1
    assert stats.unique_visitors == 1
