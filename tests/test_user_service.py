import uuid

import pytest

from subcanvas.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from subcanvas.core.security.hashing import verify_password
from subcanvas.models import AbuseReport, ProfilePage, SnsAccount, User, UserStatus
from subcanvas.schemas.user import UserUpdate
from subcanvas.services.user_services import user_service
from tests.factories import (
    AbuseReportFactory,
    DEFAULT_PASSWORD,
    ProfilePageFactory,
    SnsAccountFactory,
    SocialUserFactory,
    UserFactory,
)


async def test_find_by_id_includes_sns_accounts(db, save):
    account = await save(SnsAccountFactory.build())

    user = await user_service.find_by_id(db, account.user_id)

    assert [a.id for a in user.sns_accounts] == [account.id]


async def test_find_by_id_missing_user(db):
    with pytest.raises(NotFoundError):
        await user_service.find_by_id(db, uuid.uuid4())


async def test_update_nickname(db, save):
    user = await save(UserFactory.build())

    updated = await user_service.update_user(db, user.id, UserUpdate(nickname="renamed"))

    assert updated.nickname == "renamed"


async def test_change_password_with_current_password(db, save):
    user = await save(UserFactory.build())

    updated = await user_service.update_user(
        db, user.id, UserUpdate(password="new-password-1", current_password=DEFAULT_PASSWORD)
    )

    assert verify_password("new-password-1", updated.password_hash)
    assert updated.password_hash.startswith("$2b$10$")


async def test_change_password_requires_current_password(db, save):
    user = await save(UserFactory.build())

    with pytest.raises(BadRequestError):
        await user_service.update_user(db, user.id, UserUpdate(password="new-password-1"))


async def test_change_password_rejects_wrong_current_password(db, save):
    user = await save(UserFactory.build())

    with pytest.raises(BadRequestError):
        await user_service.update_user(
            db, user.id, UserUpdate(password="new-password-1", current_password="wrong-password")
        )


async def test_social_user_cannot_change_password(db, save):
    user = await save(SocialUserFactory.build())

    with pytest.raises(BadRequestError):
        await user_service.update_user(
            db, user.id, UserUpdate(password="new-password-1", current_password="anything")
        )


async def test_self_delete_requires_password(db, save):
    user = await save(UserFactory.build())

    with pytest.raises(BadRequestError):
        await user_service.delete_user(db, user.id)
    with pytest.raises(ForbiddenError):
        await user_service.delete_user(db, user.id, current_password="wrong-password")


async def test_delete_user_cascades_pages_and_keeps_reports_anonymous(db, save):
    owner = await save(UserFactory.build())
    page = await save(ProfilePageFactory.build(user=owner))
    reporter = await save(UserFactory.build())
    other_page = await save(ProfilePageFactory.build())
    report = await save(AbuseReportFactory.build(reported_profile=other_page, reporter_user=reporter))
    owner_id, page_id, reporter_id, report_id = owner.id, page.id, reporter.id, report.id

    await user_service.delete_user(db, owner_id, current_password=DEFAULT_PASSWORD)
    await user_service.delete_user(db, reporter_id, require_password=False)
    db.expunge_all()

    assert await db.get(User, owner_id) is None
    assert await db.get(ProfilePage, page_id) is None
    remaining = await db.get(AbuseReport, report_id)
    assert remaining is not None
    assert remaining.reporter_user_id is None


async def test_admin_delete_skips_password_check(db, save):
    user = await save(UserFactory.build())

    result = await user_service.delete_user(db, user.id, require_password=False)

    assert "삭제" in result["message"]


async def test_sns_account_add_and_delete(db, save):
    user = await save(UserFactory.build())

    account = await user_service.add_sns_account(db, user.id, "github", "https://github.com/bob")
    assert account.user_id == user.id
    assert account.sns_url == "https://github.com/bob"

    await user_service.delete_sns_account(db, user.id, account.id)
    db.expunge_all()
    assert await db.get(SnsAccount, account.id) is None


async def test_cannot_delete_someone_elses_sns_account(db, save):
    account = await save(SnsAccountFactory.build())
    stranger = await save(UserFactory.build())

    with pytest.raises(ForbiddenError):
        await user_service.delete_sns_account(db, stranger.id, account.id)
    with pytest.raises(NotFoundError):
        await user_service.delete_sns_account(db, stranger.id, 9999)


async def test_list_users_paginates_with_total(db, save):
    await save(*UserFactory.build_batch(5))

    first_page = await user_service.list_users(db, skip=0, take=2)
    last_page = await user_service.list_users(db, skip=4, take=2)

    assert first_page["total"] == 5
    assert len(first_page["users"]) == 2
    assert len(last_page["users"]) == 1


async def test_update_user_status(db, save):
    user = await save(UserFactory.build())

    updated = await user_service.update_user_status(db, user.id, UserStatus.BANNED)
    assert updated.status == UserStatus.BANNED

    with pytest.raises(NotFoundError):
        await user_service.update_user_status(db, uuid.uuid4(), UserStatus.ACTIVE)

