import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from subcanvas.core.security.token import token_issuer
from subcanvas.database import build_engine, get_db, init_db
from subcanvas.main import app
from subcanvas.services.profile_service import profile_service
from subcanvas.services.storage_service import LocalStorage, StorageService


@pytest_asyncio.fixture
async def engine(tmp_path):
    # 테스트마다 독립된 SQLite 파일 DB
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def save(db):
    """factory 로 만든 객체를 저장하고 DB 기본값까지 채워서 반환"""

    async def _save(*objs):
        db.add_all(objs)
        await db.commit()
        for obj in objs:
            await db.refresh(obj)
        return objs[0] if len(objs) == 1 else objs

    return _save


@pytest.fixture
def upload_root(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture(autouse=True)
def local_storage_only(monkeypatch, upload_root):
    """외부 저장소 없이 로컬 디스크만 사용"""
    storage = StorageService(remotes=[], local=LocalStorage(upload_root))
    monkeypatch.setattr(profile_service, "storage", storage)
    return storage


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_header():
    def _auth_header(user):
        token = token_issuer.create_access_token(user_id=user.id, email=user.email)
        return {"Authorization": f"Bearer {token}"}

    return _auth_header
