import logging
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from subcanvas.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(database_url: str):
    """
    비동기 엔진 생성.
    SQLite는 외래키 제약(ON DELETE CASCADE)이 기본 비활성화라 연결마다 켜준다.
    """
    if database_url.startswith("sqlite"):
        engine = create_async_engine(database_url, connect_args={"check_same_thread": False})

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_sqlite_fk(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    else:
        engine = create_async_engine(database_url, pool_pre_ping=True)
    return engine


engine = build_engine(settings.DATABASE_URL)

# expire_on_commit=False: 커밋 후 속성 접근 시 비동기 지연 로딩이 일어나지 않도록
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


async def get_db():
    """DB 세션 의존성 주입용"""
    async with AsyncSessionLocal() as db:
        yield db


async def init_db(bind=None):
    """모델 메타데이터 기준으로 테이블 생성"""
    # 모든 모델을 메타데이터에 등록
    import subcanvas.models  # noqa: F401

    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✅ 데이터베이스 테이블 준비 완료.")
