import asyncio
import logging
from typing import Annotated

from fastapi import Depends
from qiniu import Auth, BucketManager, put_data

from config import Settings, get_settings
from utils.errors import InternalError

logger = logging.getLogger(__name__)

# qiniu: 612 = 이미 존재하지 않는 키
QINIU_NO_SUCH_KEY = 612
UPLOAD_TOKEN_EXPIRES = 3600


class BlobStorage:
    """qiniu 버킷 업로드 / 삭제

    삭제는 best-effort: 실패는 로그만 남기고 False 반환.
    업로드 실패는 InternalError.
    """

    def __init__(self, settings: Settings):
        self.bucket = settings.qiniu_bucket
        self.enabled = settings.is_storage_enabled
        self.public_url = settings.storage_public_url.rstrip("/")
        self._auth = None
        self._manager = None
        if self.enabled:
            self._auth = Auth(settings.qiniu_access_key, settings.qiniu_secret_key)
            self._manager = BucketManager(self._auth)

    def _upload_sync(self, key: str, data: bytes, content_type: str) -> None:
        token = self._auth.upload_token(self.bucket, key, UPLOAD_TOKEN_EXPIRES)
        _, info = put_data(token, key, data, mime_type=content_type)
        if info.status_code != 200:
            logger.error("Failed to upload blob %s: %s %s", key, info.status_code, info.error)
            raise InternalError("파일 업로드에 실패했습니다.")

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """버킷에 올리고 공개 URL 반환"""
        if not self.enabled:
            logger.error("Blob storage is not configured, reject upload: %s", key)
            raise InternalError("파일 업로드에 실패했습니다.")
        try:
            await asyncio.to_thread(self._upload_sync, key, data, content_type)
        except InternalError:
            raise
        except Exception as e:
            logger.error("Blob upload raised: %s", key, exc_info=True)
            raise InternalError("파일 업로드에 실패했습니다.") from e
        logger.info("Blob uploaded: %s (%d bytes)", key, len(data))
        return f"{self.public_url}/{key}"

    def _delete_sync(self, key: str) -> bool:
        _, info = self._manager.delete(self.bucket, key)
        if info.status_code == 200:
            return True
        if info.status_code == QINIU_NO_SUCH_KEY:
            logger.info("Blob already gone: %s", key)
            return True
        logger.error("Failed to delete blob %s: %s %s", key, info.status_code, info.error)
        return False

    async def delete(self, key: str) -> bool:
        if not self.enabled:
            logger.warning("Blob storage is not configured, skip delete: %s", key)
            return False
        try:
            return await asyncio.to_thread(self._delete_sync, key)
        except Exception:
            logger.error("Blob delete raised: %s", key, exc_info=True)
            return False

    async def delete_many(self, keys: list[str]) -> int:
        """키를 순서대로 삭제하고 성공 개수 반환"""
        deleted = 0
        for key in keys:
            if await self.delete(key):
                deleted += 1
        return deleted


def get_storage(settings: Annotated[Settings, Depends(get_settings)]) -> BlobStorage:
    return BlobStorage(settings)


Storage = Annotated[BlobStorage, Depends(get_storage)]
