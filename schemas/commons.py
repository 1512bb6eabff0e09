from enum import Enum
from typing import Annotated

from fastapi import Depends, Path
from pydantic import Field, BaseModel, StringConstraints
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_db

# UUID v4 (대소문자 무시)
UUID_V4_PATTERN = r"(?i)^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"

PostId = Annotated[
    str,
    Path(
        pattern=UUID_V4_PATTERN,
        description="게시글 ID",
        examples=["3fa85f64-5717-4562-b3fc-2c963f66afa6"],
    ),
]

CommentId = Annotated[
    str,
    Path(
        pattern=UUID_V4_PATTERN,
        description="댓글 ID",
        examples=["3fa85f64-5717-4562-b3fc-2c963f66afa6"],
    ),
]

EntityRef = Annotated[str, Field(pattern=UUID_V4_PATTERN)]

Page = Annotated[
    int,
    Field(default=1, ge=1, le=10000, description="조회할 페이지 번호"),
]

Title = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=3, max_length=255),
]

PostContent = Annotated[
    str,
    StringConstraints(min_length=10, max_length=50000),
]

CommentContent = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=1000),
]

Nickname = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=1,
        max_length=15,
        pattern=r"^[가-힣A-Za-z0-9\s]+$",
    ),
]

# 게시글 비밀번호: 숫자 4자리
BoardPassword = Annotated[str, StringConstraints(pattern=r"^[0-9]{4}$")]

Count = Annotated[int, Field(ge=0)]

DBSession = Annotated[AsyncSession, Depends(get_db)]


class CounterDirection(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"


class PasswordRequest(BaseModel):
    password: Annotated[str, StringConstraints(min_length=1)]


class Pagination(BaseModel):
    currentPage: Page
    totalPages: Annotated[int, Field(ge=0, description="전체 페이지 수")]
    totalCount: Count
    hasMore: bool


def clamp_limit(limit: int | None, default: int, maximum: int) -> int:
    """쿼리스트링 limit 을 1..maximum 범위로 보정"""
    if limit is None:
        return default
    return max(1, min(limit, maximum))
