import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from subcanvas.core.config import settings
from subcanvas.core.exception_handlers import register_exception_handlers
from subcanvas.lifespan import lifespan
from subcanvas.routers import auth, profiles, users

app = FastAPI(title="SubCanvas API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS, # 교차-출처 요청을 보낼 수 있는 출처의 리스트
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# 라우터 연결
app.include_router(auth.router, prefix="/api")
app.include_router(profiles.router, prefix="/api")
app.include_router(users.router, prefix="/api")

# 로컬 저장소에 올라간 파일 서빙 (디렉토리는 lifespan 에서 생성)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")

@app.get("/")
def read_root():
    return {"message": "SubCanvas API"}


def run():
    uvicorn.run("subcanvas.main:app", host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
