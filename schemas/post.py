from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, computed_field

from schemas.commons import BoardPassword, Count, Nickname, PostContent, Title, CounterDirection
from utils.content import make_preview


class SortColumn(str, Enum):
    CREATED = "created"
    COMMENTS = "comments"
    LIKES = "likes"
    VIEWS = "views"
    POPULAR = "popular"


class LikeAction(str, Enum):
    LIKE = "like"
    UNLIKE = "unlike"

    @property
    def direction(self) -> CounterDirection:
        return CounterDirection.INCREASE if self is LikeAction.LIKE else CounterDirection.DECREASE


class AttachedFile(BaseModel):
    filename: str
    url: str
    size: Annotated[int, Field(ge=0)]


class PostItemBase(BaseModel):
    """게시글 목록 아이템 기본 스키마"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    nickname: str
    view_count: Count = 0
    like_count: Count = 0
    comment_count: Count = 0
    has_attachments: bool = False
    attachment_count: Count = 0
    is_deleted: bool = False
    created_at: datetime
    last_comment_at: datetime | None = None


class PostListItem(PostItemBase):
    """게시글 목록 아이템 (본문 미리보기 포함)"""
    content: str = Field(exclude=True)

    @computed_field
    @property
    def preview(self) -> str:
        return make_preview(self.content)


class PostDetail(PostItemBase):
    content: str
    attached_files: list[AttachedFile] | None = None
    deleted_at: datetime | None = None
    updated_at: datetime | None = None


class ListPostsQuery(BaseModel):
    model_config = ConfigDict(extra='forbid')

    search: Annotated[
        str | None,
        StringConstraints(strip_whitespace=True, max_length=50),
        Field(description="제목 또는 본문에 포함된 검색어")
    ] = None
    sort: SortColumn = SortColumn.CREATED
    page: Annotated[int, Field(ge=1, le=10000)] = 1
    limit: Annotated[int, Field(ge=1)] = 20


class PostCreateRequest(BaseModel):
    model_config = ConfigDict(extra='forbid')

    title: Title
    content: PostContent
    nickname: Nickname
    password: BoardPassword
    attachedFiles: list[AttachedFile] = []


class PostUpdateRequest(BaseModel):
    model_config = ConfigDict(extra='forbid')

    title: Title
    content: PostContent
    password: Annotated[str, StringConstraints(min_length=4, max_length=20)]
    attachedFiles: list[AttachedFile] = []


class PostVerifyRequest(BaseModel):
    password: Annotated[str, StringConstraints(min_length=4, max_length=4)]


class PostLikeRequest(BaseModel):
    action: LikeAction
