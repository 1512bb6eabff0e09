from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, StrictBool, StringConstraints

from schemas.commons import CommentContent, Count, EntityRef, Nickname, CounterDirection


class CommentCreateRequest(BaseModel):
    model_config = ConfigDict(extra='forbid')

    postId: EntityRef
    parentId: EntityRef | None = None
    content: CommentContent
    nickname: Nickname
    password: Annotated[str, StringConstraints(min_length=4, max_length=100)]
    isAuthor: bool = False


class CommentBase(BaseModel):
    """댓글 생성/조회에서 공통으로 쓰는 필드"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    post_id: str
    parent_id: str | None = None
    content: str
    nickname: str
    depth: Count = 0
    like_count: Count = 0
    reply_count: Count = 0
    is_author: bool = False
    is_deleted: bool = False
    created_at: datetime
    updated_at: datetime | None = None


class CommentNode(CommentBase):
    replies: list["CommentNode"] = []


class RecentComment(BaseModel):
    id: str
    content: str
    nickname: str
    post_id: str
    post_title: str
    is_author: bool
    depth: int
    created_at: datetime


class CommentUpdateRequest(BaseModel):
    content: CommentContent
    password: Annotated[str, StringConstraints(min_length=4, max_length=100)]


class CommentVerifyRequest(BaseModel):
    password: Annotated[str, StringConstraints(min_length=4, max_length=100)]


class CommentLikeRequest(BaseModel):
    liked: StrictBool

    @property
    def direction(self) -> CounterDirection:
        return CounterDirection.INCREASE if self.liked else CounterDirection.DECREASE
