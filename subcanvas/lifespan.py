import logging
from pathlib import Path
from fastapi import FastAPI
from contextlib import asynccontextmanager

from subcanvas.core.config import settings
from subcanvas.database import init_db, engine
from subcanvas.services.storage_service import storage_service

logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # ----- 앱 시작 -----
    logger.info("🚀 SubCanvas API가 시작됩니다...")
    logger.info("✅ 데이터베이스 연결 및 테이블 생성을 시도합니다.")

    await init_db()

    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    logger.info(f"✅ 파일 저장소 순서: {' -> '.join(storage_service.backend_names)}")

    yield
    # ----- 앱 종료 -----
    logger.info("⏳ SubCanvas API가 종료됩니다...")
    if engine:
        await engine.dispose()
        logger.info("✅ 데이터베이스 엔진이 종료되었습니다.")
