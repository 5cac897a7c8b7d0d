import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from subcanvas.core.exceptions import ForbiddenError
from subcanvas.core.security.dependencies import has_required_role, require_roles
from subcanvas.core.security.hashing import PasswordHasher, hash_password, verify_password
from subcanvas.core.security.token import TokenIssuer
from subcanvas.models import UserRole
from tests.factories import AdminFactory, UserFactory


def test_hash_password_uses_bcrypt_cost_10():
    hashed = hash_password("password123")
    assert hashed.startswith("$2b$10$")
    assert verify_password("password123", hashed)
    assert not verify_password("wrong-password", hashed)


def test_verify_without_hash_is_false():
    assert PasswordHasher().verify("password123", None) is False


def test_token_round_trip_keeps_user_id_and_email():
    issuer = TokenIssuer(secret_key="test-secret")
    user_id = uuid.uuid4()

    token = issuer.create_access_token(user_id=user_id, email="a@x.com")
    data = issuer.verify_access_token(token)

    assert data.user_id == user_id
    assert data.email == "a@x.com"


def test_token_signed_with_other_secret_is_rejected():
    token = TokenIssuer(secret_key="other").create_access_token(user_id=uuid.uuid4(), email="a@x.com")
    assert TokenIssuer(secret_key="test-secret").verify_access_token(token) is None


def test_expired_token_is_rejected():
    payload = {
        "email": "a@x.com",
        "sub": str(uuid.uuid4()),
        "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
    }
    token = jwt.encode(payload, "test-secret", algorithm="HS256")
    assert TokenIssuer(secret_key="test-secret").verify_access_token(token) is None


def test_token_without_subject_is_rejected():
    payload = {"email": "a@x.com", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)}
    token = jwt.encode(payload, "test-secret", algorithm="HS256")
    assert TokenIssuer(secret_key="test-secret").verify_access_token(token) is None


def test_no_required_roles_allows_anyone():
    assert has_required_role(None, None)
    assert has_required_role(UserFactory.build(), [])


def test_required_role_without_user_is_denied():
    assert not has_required_role(None, [UserRole.ADMIN])


def test_required_role_checks_membership():
    assert has_required_role(AdminFactory.build(), [UserRole.ADMIN])
    assert not has_required_role(UserFactory.build(), [UserRole.ADMIN])
    assert has_required_role(UserFactory.build(), [UserRole.USER, UserRole.ADMIN])


async def test_role_checker_raises_forbidden_for_plain_user():
    checker = require_roles(UserRole.ADMIN)
    admin = AdminFactory.build()

    assert await checker(current_user=admin) is admin
    with pytest.raises(ForbiddenError):
        await checker(current_user=UserFactory.build())
