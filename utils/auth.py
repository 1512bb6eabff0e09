import hmac
import logging
from typing import Annotated

import bcrypt
from fastapi import Depends, Header

from config import Settings, get_settings
from utils.errors import AuthError, InternalError

logger = logging.getLogger(__name__)


def _prehash(password: str, pepper: str) -> bytes:
    """
    HMAC-SHA256으로 사전 해싱
    - bcrypt 72바이트 제한 우회
    - PEPPER로 password shucking 공격 방지
    """
    return hmac.new(
        key=pepper.encode(),
        msg=password.encode(),
        digestmod="sha256"
    ).hexdigest().encode()


def hash_password(password: str, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    prehashed = _prehash(password, settings.password_pepper)
    return bcrypt.hashpw(prehashed, bcrypt.gensalt()).decode()


def verify_password(plain_password: str, hashed_password: str, settings: Settings | None = None) -> bool:
    """
    저장된 해시와 비교 (평문 비교 없음)
    불일치는 False, 해시 자체가 손상된 경우에만 InternalError
    """
    settings = settings or get_settings()
    prehashed = _prehash(plain_password, settings.password_pepper)
    try:
        return bcrypt.checkpw(prehashed, hashed_password.encode())
    except ValueError as e:
        logger.warning("Invalid hash format detected")
        raise InternalError("비밀번호 확인 중 오류가 발생했습니다.") from e


def check_password_or_raise(plain_password: str, hashed_password: str) -> None:
    if not verify_password(plain_password, hashed_password):
        raise AuthError()


def verify_site_password(password: str, settings: Settings) -> bool:
    if not settings.site_password:
        logger.error("SITE_PASSWORD is not configured")
        raise InternalError("Server configuration error")
    return hmac.compare_digest(password.encode(), settings.site_password.encode())


def require_api_key(
        settings: Annotated[Settings, Depends(get_settings)],
        x_api_key: Annotated[str | None, Header()] = None,
) -> None:
    """x-api-key 헤더 검증 (라우터 공통 의존성)"""
    if not settings.server_api_key:
        logger.error("SERVER_API_KEY is not configured")
        raise InternalError("Server configuration error")

    if not x_api_key:
        raise AuthError("API key required")

    if not hmac.compare_digest(x_api_key.encode(), settings.server_api_key.encode()):
        raise AuthError("Invalid API key")
