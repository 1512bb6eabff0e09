import logging
import secrets
import string
import time
from dataclasses import dataclass

from fastapi import APIRouter, Depends, File, UploadFile

from config import AppSettings
from utils.auth import require_api_key
from utils.database import utcnow
from utils.errors import ValidationError
from utils.responses import success_response
from utils.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/upload",
    tags=["UPLOAD"],
    dependencies=[Depends(require_api_key)],
)

MB = 1024 * 1024

IMAGE_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"]
IMAGE_EXTENSIONS = ["jpg", "jpeg", "png", "gif", "webp"]

FILE_TYPES = [
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
    "application/zip",
    "application/x-zip-compressed",
    "application/zip-compressed",
    "application/x-rar-compressed",
    "application/x-7z-compressed",
]

_RANDOM_CHARS = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class UploadRule:
    kind: str
    max_size: int
    allowed_types: list[str]


IMAGE_RULE = UploadRule(kind="image", max_size=10 * MB, allowed_types=IMAGE_TYPES)
FILE_RULE = UploadRule(kind="file", max_size=5 * MB, allowed_types=FILE_TYPES)


def file_extension(filename: str | None) -> str:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[1].lower()
    return "bin"


def image_extension(filename: str | None, content_type: str | None) -> str:
    """이미지 확장자 정규화 (jpeg → jpg, 알 수 없으면 jpg)"""
    candidates = [file_extension(filename)]
    if content_type and "/" in content_type:
        candidates.append(content_type.split("/", 1)[1].lower())
    for ext in candidates:
        if ext in IMAGE_EXTENSIONS:
            return "jpg" if ext == "jpeg" else ext
    return "jpg"


def build_storage_path(kind: str, extension: str) -> str:
    """yyyy/mm/dd/{kind}_{밀리초}_{랜덤6}.{ext}"""
    today = utcnow()
    random_part = "".join(secrets.choice(_RANDOM_CHARS) for _ in range(6))
    filename = f"{kind}_{int(time.time() * 1000)}_{random_part}.{extension}"
    return f"{today:%Y/%m/%d}/{filename}"


def validate_upload(data: bytes, content_type: str | None, rule: UploadRule) -> None:
    if not data:
        raise ValidationError("파일이 없습니다.")
    if len(data) > rule.max_size:
        raise ValidationError(f"파일 크기는 {rule.max_size // MB}MB 이하여야 합니다.")
    if content_type not in rule.allowed_types:
        raise ValidationError(f"지원하지 않는 파일 형식입니다. (받은 타입: {content_type})")


async def store_upload(file: UploadFile | None, rule: UploadRule, prefix: str, storage: Storage) -> dict:
    if file is None:
        raise ValidationError("파일이 없습니다.")

    data = await file.read()
    validate_upload(data, file.content_type, rule)

    if rule.kind == "image":
        extension = image_extension(file.filename, file.content_type)
    else:
        extension = file_extension(file.filename)
    path = build_storage_path(rule.kind, extension)

    url = await storage.upload(f"{prefix}/{path}", data, file.content_type)
    return {
        "filename": file.filename or path.rsplit("/", 1)[1],
        "url": url,
        "size": len(data),
        "path": path,
        "type": file.content_type,
        "uploadType": rule.kind,
    }


@router.post("/image")
async def upload_image(
    storage: Storage,
    settings: AppSettings,
    file: UploadFile | None = File(None),
) -> dict:
    """게시글 본문 이미지 업로드 (최대 10MB, jpeg/png/gif/webp)"""
    result = await store_upload(file, IMAGE_RULE, settings.image_prefix, storage)
    return success_response(result, "이미지 업로드가 완료되었습니다.")


@router.post("/file")
async def upload_file(
    storage: Storage,
    settings: AppSettings,
    file: UploadFile | None = File(None),
) -> dict:
    """첨부파일 업로드 (최대 5MB, 문서/압축 파일)"""
    result = await store_upload(file, FILE_RULE, settings.attachment_prefix, storage)
    return success_response(result, "파일 업로드가 완료되었습니다.")
