"""
공통 테스트 픽스처

실행 방법:
    pip install -e ".[test]"
    pytest -v
"""
import asyncio
import os
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

# Settings 는 최초 get_settings() 호출 시 한 번만 만들어지므로 import 전에 설정
os.environ["SERVER_API_KEY"] = "test-api-key"
os.environ["SITE_PASSWORD"] = "letmein"
os.environ["PASSWORD_PEPPER"] = "test-pepper"
os.environ["STORAGE_PUBLIC_URL"] = "https://cdn.example.com"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from db.base import Base
from db.models.comment import Comment
from db.models.post import Post
from db.session import get_db
from main import app
from utils.auth import hash_password
from utils.errors import InternalError
from utils.storage import get_storage

API_KEY = "test-api-key"


class FakeStorage:
    """업로드/삭제 요청된 키만 기록 (fail=True 면 전부 실패 처리)"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.deleted: list[str] = []
        self.uploaded: dict[str, tuple[bytes, str]] = {}

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        if self.fail:
            raise InternalError("파일 업로드에 실패했습니다.")
        self.uploaded[key] = (data, content_type)
        return f"https://cdn.example.com/{key}"

    async def delete_many(self, keys: list[str]) -> int:
        self.deleted.extend(keys)
        return 0 if self.fail else len(keys)


def _db_result(obj=None, items=None, rows=None) -> MagicMock:
    """AsyncSession.execute() 결과 흉내"""
    result = MagicMock()
    result.scalar_one_or_none.return_value = obj
    result.scalars.return_value.all.return_value = items or []
    result.all.return_value = rows or []
    return result


@pytest.fixture
def db_result():
    return _db_result


@pytest.fixture
def db():
    session = MagicMock()
    session.execute = AsyncMock(return_value=_db_result())
    session.scalar = AsyncMock(return_value=0)
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(db, storage):
    """테스트용 FastAPI 클라이언트 (DB/스토리지 의존성 교체)"""
    async def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def safe_client(client):
    """예상치 못한 예외도 500 응답으로 받는 클라이언트"""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def session_local_client(db, storage):
    """get_db 는 그대로 두고 AsyncSessionLocal 만 목 세션으로 바꾼 클라이언트"""
    @asynccontextmanager
    async def session_factory():
        yield db

    app.dependency_overrides[get_storage] = lambda: storage
    with patch("db.session.AsyncSessionLocal", session_factory):
        yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def sqlite_sessions(tmp_path):
    """실제 DB (SQLite + aiosqlite) 세션 팩토리

    NullPool: 이벤트 루프마다 새 커넥션을 연다
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'board.db'}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def sqlite_client(sqlite_sessions, storage):
    """SQLite 세션을 쓰는 클라이언트"""
    async def override_db():
        async with sqlite_sessions() as session:
            yield session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def api_headers():
    return {"x-api-key": API_KEY}


@pytest.fixture(scope="session")
def password_hash():
    """비밀번호 "1234" 해시 (bcrypt 비용 때문에 세션 단위로 재사용)"""
    return hash_password("1234")


@pytest.fixture
def make_post(password_hash):
    def _make(**overrides) -> Post:
        values = {
            "id": str(uuid.uuid4()),
            "title": "첫 번째 글",
            "content": "<p>내용입니다</p>",
            "plain_text": "내용입니다",
            "nickname": "익명",
            "password_hash": password_hash,
            "view_count": 10,
            "like_count": 5,
            "comment_count": 0,
            "attached_files": None,
            "has_attachments": False,
            "attachment_count": 0,
            "is_deleted": False,
            "created_at": datetime(2026, 1, 17, 10, 0, 0),
            "updated_at": datetime(2026, 1, 17, 10, 0, 0),
        }
        values.update(overrides)
        return Post(**values)
    return _make


@pytest.fixture
def make_comment(password_hash):
    def _make(**overrides) -> Comment:
        values = {
            "id": str(uuid.uuid4()),
            "post_id": str(uuid.uuid4()),
            "parent_id": None,
            "depth": 0,
            "content": "댓글입니다",
            "nickname": "익명",
            "password_hash": password_hash,
            "like_count": 0,
            "reply_count": 0,
            "is_author": False,
            "is_deleted": False,
            "created_at": datetime(2026, 1, 17, 11, 0, 0),
            "updated_at": datetime(2026, 1, 17, 11, 0, 0),
        }
        values.update(overrides)
        return Comment(**values)
    return _make
