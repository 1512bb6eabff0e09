from datetime import datetime, UTC
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from utils.errors import BoardError


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def success_response(data: Any = None, message: str | None = None) -> dict:
    """표준 성공 응답: {success, data, message?, timestamp}"""
    response = {
        "success": True,
        "data": data,
        "timestamp": now_iso(),
    }
    if message:
        response["message"] = message
    return response


def error_response(status_code: int, message: str) -> JSONResponse:
    """표준 에러 응답: {statusCode, statusMessage}"""
    return JSONResponse(
        status_code=status_code,
        content={"statusCode": status_code, "statusMessage": message},
    )


async def board_error_handler(request: Request, exc: BoardError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "입력값이 올바르지 않습니다."
    if errors:
        first = errors[0]
        loc = first.get("loc", ())
        if loc and loc[0] == "path":
            message = "올바르지 않은 ID 형식입니다."
        else:
            message = first.get("msg") or message
    return error_response(400, message)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "요청을 처리할 수 없습니다."
    return error_response(exc.status_code, message)
