import logging

from fastapi import APIRouter, Depends

from config import AppSettings
from schemas.commons import PasswordRequest
from utils.auth import require_api_key, verify_site_password
from utils.errors import AuthError
from utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["AUTH"],
    dependencies=[Depends(require_api_key)],
)


@router.post("/auth/site")
async def verify_site_access(body: PasswordRequest, settings: AppSettings) -> dict:
    """사이트 공용 비밀번호 확인"""
    if not verify_site_password(body.password, settings):
        logger.info("Site password rejected")
        raise AuthError("사이트 비밀번호가 올바르지 않습니다.")
    return success_response(None, "인증되었습니다.")
