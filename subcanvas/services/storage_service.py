"""
파일 저장소 서비스

업로드/삭제 우선순위
    1. Supabase Storage (SUPABASE_URL, SUPABASE_SERVICE_KEY 설정 시)
    2. AWS S3 (리전/자격증명/버킷 설정 시)
    3. 로컬 디스크 (UPLOAD_DIR, /uploads 로 정적 서빙)

앞 단계가 설정되지 않았거나 실패하면 다음 단계로 넘어간다.
SDK 호출은 동기 방식이라 asyncio.to_thread 로 실행한다.
"""
import asyncio
import logging
import os
import time
from pathlib import Path

import boto3
from supabase import create_client

from subcanvas.core.config import Settings, settings as app_settings
from subcanvas.core.exceptions import StorageError

logger = logging.getLogger(__name__)

LOCAL_URL_PREFIX = "/uploads"


class SupabaseStorage:
    name = "supabase"

    def __init__(self, url: str, key: str, bucket: str):
        self.bucket = bucket
        self._client = create_client(url, key)

    def _upload(self, data: bytes, key: str, mime_type: str) -> str:
        self._client.storage.from_(self.bucket).upload(key, data, {
            "content-type": mime_type,
            "cache-control": "3600",
            "upsert": "true",
        })
        return self._client.storage.from_(self.bucket).get_public_url(key)

    def _delete(self, key: str) -> None:
        self._client.storage.from_(self.bucket).remove([key])

    async def upload(self, data: bytes, key: str, mime_type: str) -> str:
        return await asyncio.to_thread(self._upload, data, key, mime_type)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)


class S3Storage:
    name = "s3"

    def __init__(self, region: str, access_key_id: str, secret_access_key: str, bucket: str):
        self.bucket = bucket
        self._client = boto3.client(
            "s3",
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region,
        )

    def _upload(self, data: bytes, key: str, mime_type: str) -> str:
        self._client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=mime_type,
        )
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    def _delete(self, key: str) -> None:
        self._client.delete_object(Bucket=self.bucket, Key=key)

    async def upload(self, data: bytes, key: str, mime_type: str) -> str:
        return await asyncio.to_thread(self._upload, data, key, mime_type)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)


class LocalStorage:
    name = "local"

    def __init__(self, root: str | os.PathLike):
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        target = (self.root / key).resolve()
        # 업로드 디렉토리 밖으로 나가는 키 차단
        if self.root.resolve() not in target.parents:
            raise StorageError("허용되지 않는 파일 경로입니다.")
        return target

    async def upload(self, data: bytes, key: str, mime_type: str) -> str:
        try:
            target = self.path_for(key)
            target.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(target.write_bytes, data)
        except StorageError:
            raise
        except OSError as e:
            logger.error(f"⛔ 로컬 파일 저장 오류: {e}", exc_info=True)
            raise StorageError("파일 저장 중 오류가 발생했습니다.") from e

        # 상대 URL 경로 반환
        return f"{LOCAL_URL_PREFIX}/{key}"

    async def delete(self, key: str) -> None:
        target = self.path_for(key)
        if target.exists():
            await asyncio.to_thread(target.unlink)


class StorageService:
    def __init__(self, remotes: list | None = None, local: LocalStorage | None = None):
        # remotes: 우선순위 순서의 원격 저장소 목록
        self.remotes = remotes or []
        self.local = local or LocalStorage(app_settings.UPLOAD_DIR)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageService":
        remotes = []

        if settings.supabase_enabled:
            try:
                remotes.append(SupabaseStorage(
                    settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY, settings.SUPABASE_BUCKET_NAME
                ))
            except Exception as e:
                logger.error(f"⛔ Supabase 클라이언트 생성 실패: {e}", exc_info=True)

        if settings.s3_enabled:
            try:
                remotes.append(S3Storage(
                    settings.AWS_REGION,
                    settings.AWS_ACCESS_KEY_ID,
                    settings.AWS_SECRET_ACCESS_KEY,
                    settings.AWS_S3_BUCKET,
                ))
            except Exception as e:
                logger.error(f"⛔ S3 클라이언트 생성 실패: {e}", exc_info=True)

        return cls(remotes=remotes, local=LocalStorage(settings.UPLOAD_DIR))

    @property
    def backend_names(self) -> list[str]:
        return [backend.name for backend in self.remotes] + [self.local.name]

    async def upload(self, data: bytes, key: str, mime_type: str = "image/jpeg") -> str:
        """
        파일 업로드 후 접근 URL 반환
        모든 원격 저장소가 실패하면 로컬에 저장, 로컬까지 실패하면 StorageError
        """
        if not key:
            logger.warning("⚠️ 파일 키가 없습니다. 임시 파일 이름을 생성합니다.")
            key = f"temp-{int(time.time() * 1000)}.jpg"

        for backend in self.remotes:
            try:
                return await backend.upload(data, key, mime_type)
            except Exception as e:
                logger.error(f"⛔ {backend.name} 업로드 실패, 다음 저장소로 전환: {e}")

        return await self.local.upload(data, key, mime_type)

    async def delete(self, key: str) -> None:
        """파일 삭제. 어느 단계에서 실패해도 예외를 올리지 않는다."""
        if not key:
            logger.warning("⚠️ 파일 키가 없습니다. 삭제를 건너뜁니다.")
            return

        for backend in self.remotes:
            try:
                await backend.delete(key)
                return
            except Exception as e:
                logger.error(f"⛔ {backend.name} 파일 삭제 실패, 다음 저장소로 전환: {e}")

        try:
            await self.local.delete(key)
        except Exception as e:
            logger.error(f"⛔ 로컬 파일 삭제 실패: {e}")


storage_service = StorageService.from_settings(app_settings)
