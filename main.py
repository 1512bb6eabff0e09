import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings
from routers import auth, posts, comments, likes, stats, upload
from db.session import engine
from utils.errors import BoardError
from utils.logger import setup_logging
from utils.responses import (
    board_error_handler,
    error_response,
    http_error_handler,
    validation_error_handler,
)

logger = logging.getLogger(__name__)

SLOW_REQUEST_SECONDS = 1.0

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings)
    logger.info("Board API started (storage %s)", "enabled" if settings.is_storage_enabled else "disabled")

    yield
    await engine.dispose()


app = FastAPI(title="Anonymous Board API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_access(request: Request, call_next):
    start_time = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - start_time

    if elapsed > SLOW_REQUEST_SECONDS:
        logger.warning("Slow API call: %s %s %.3fs", request.method, request.url.path, elapsed)
    logger.info("%s %s %d %.3fs", request.method, request.url.path, response.status_code, elapsed)
    return response


@app.exception_handler(Exception)
async def exception_handler(request: Request, exc: Exception):
    logger.error(
        "%s %s - %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True
    )
    return error_response(500, "서버 오류가 발생했습니다.")


app.add_exception_handler(BoardError, board_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)

app.include_router(auth.router)
app.include_router(posts.router)
app.include_router(likes.router)
app.include_router(comments.router)
app.include_router(stats.router)
app.include_router(upload.router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
